from __future__ import annotations

import logging
from time import perf_counter
from typing import Iterable, List, Optional

from pygame.math import Vector3

from .agent import Boid
from .config import FlockingParams, StepParams
from .rng import DeterministicRng
from .spatial_grid import SpatialGrid
from ..systems import metrics as metrics_system
from ..systems.avoidance import avoidance_direction
from ..systems.integrator import integrate
from ..systems.neighbors import NearbyBoid, collect_neighbors
from ..systems.steering import compute_acceleration
from ..types.metrics import StepMetrics

logger = logging.getLogger(__name__)


class Flock:
    """Steps a flock of boids held in a list the caller owns.

    The list is read and written in place but never resized here. Callers may
    append boids or edit `params` between steps, not during one.
    """

    def __init__(
        self,
        boids: List[Boid],
        params: Optional[FlockingParams] = None,
        rng: Optional[DeterministicRng] = None,
        seed: int = 0,
    ) -> None:
        self._boids = boids
        self.params = params if params is not None else FlockingParams()
        self._rng = rng if rng is not None else DeterministicRng(seed)
        self._grid = SpatialGrid()
        self._step_params: StepParams | None = None
        self._next_id = max((boid.id for boid in boids), default=-1) + 1
        self._tick = 0
        self._metrics: StepMetrics | None = None

    @property
    def boids(self) -> List[Boid]:
        return self._boids

    @property
    def grid(self) -> SpatialGrid:
        return self._grid

    @property
    def rng(self) -> DeterministicRng:
        return self._rng

    @property
    def metrics(self) -> StepMetrics | None:
        return self._metrics

    def step(self, dt: float, tick: Optional[int] = None) -> StepMetrics:
        if dt < 0:
            raise ValueError(f"dt must be non-negative, got {dt}")
        start = perf_counter()
        tick = self._tick if tick is None else tick
        params = self.params.freeze()
        boids = self._boids
        population = len(boids)

        # Phase 1 reads every boid, so it has to finish before anything moves.
        neighbor_checks = self.update_acceleration(params)
        if len(boids) != population:
            raise RuntimeError(f"Boid list resized during step ({population} -> {len(boids)})")

        for boid in boids:
            avoidance, _active = avoidance_direction(boid, params)
            integrate(boid, boid.acceleration, avoidance, params, dt)

        duration_ms = (perf_counter() - start) * 1000.0
        self._metrics = metrics_system.create_metrics(tick, boids, self._grid, neighbor_checks, duration_ms)
        # Buckets still hold pre-move positions; the next query must rebuild.
        self._step_params = None
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "tick %s: %d boids, %d neighbor checks, %d avoiding",
                tick,
                population,
                neighbor_checks,
                self._metrics.avoiding,
            )
        self._tick = tick + 1
        return self._metrics

    def update_acceleration(self, params: Optional[StepParams] = None) -> int:
        """Rebuild the grid and store a fresh acceleration on every boid.

        Returns the number of neighbor records produced.
        """
        if params is None:
            params = self.params.freeze()
        self._step_params = params
        self._grid.rebuild(self._boids, params.cell_size)
        neighbor_checks = 0
        for boid in self._boids:
            nearby = collect_neighbors(self._grid, boid, params)
            neighbor_checks += len(nearby)
            boid.acceleration = compute_acceleration(boid, nearby, params, self._rng)
        return neighbor_checks

    def neighbors(self, boid: Boid) -> List[NearbyBoid]:
        """Neighborhood query against the grid built by the last acceleration pass."""
        params = self._step_params
        if params is None:
            params = self.params.freeze()
            self._grid.rebuild(self._boids, params.cell_size)
            self._step_params = params
        return collect_neighbors(self._grid, boid, params)

    def add_boid(
        self,
        position: Iterable[float],
        velocity: Iterable[float],
        motion_normal: Iterable[float] = (0.0, 0.0, 1.0),
        size: float = 1.0,
    ) -> Boid:
        boid = Boid(
            id=self._next_id,
            position=Vector3(*position),
            velocity=Vector3(*velocity),
            motion_normal=Vector3(*motion_normal),
            size=size,
        )
        self._next_id += 1
        self._boids.append(boid)
        # The grid no longer covers every boid.
        self._step_params = None
        return boid

    def spawn_boid(self, jitter: float = 2.0, speed: float = 1.0, center: Optional[Vector3] = None) -> Boid:
        """Add a boid at a random offset around `center` (default: first steering target)."""
        if center is None:
            targets = self.params.steering_targets
            center = Vector3(targets[0]) if targets else Vector3()
        position = center + self._rng.next_vector(-jitter, jitter)
        velocity = self._rng.next_vector(-speed, speed)
        return self.add_boid(position, velocity)

    def reset(self) -> None:
        self._rng.reset()
        self._grid.clear()
        self._step_params = None
        self._metrics = None
        self._tick = 0
        self._next_id = max((boid.id for boid in self._boids), default=-1) + 1
