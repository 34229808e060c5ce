from __future__ import annotations

import logging
from typing import List

from pygame.math import Vector3

from .agent import Boid
from .config import SimulationConfig
from .flock import Flock
from .rng import DeterministicRng
from ..types.metrics import StepMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotObstacle

logger = logging.getLogger(__name__)


def _triple(vector: Vector3) -> List[float]:
    return [float(vector.x), float(vector.y), float(vector.z)]


class World:
    """Owns the boid list for a headless or served run and drives a Flock over it."""

    def __init__(self, config: SimulationConfig):
        self._config = config
        # Reset restores the parameters the run started with.
        self._initial_params = config.flocking.copy()
        self._rng = DeterministicRng(config.seed)
        self._boids: List[Boid] = []
        self._flock = Flock(self._boids, config.flocking, rng=self._rng)
        self._bootstrap_population()

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def boids(self) -> List[Boid]:
        return self._boids

    @property
    def flock(self) -> Flock:
        return self._flock

    @property
    def metrics(self) -> StepMetrics | None:
        return self._flock.metrics

    def reset(self) -> None:
        self._boids.clear()
        self._config.flocking = self._initial_params.copy()
        self._flock.params = self._config.flocking
        self._flock.reset()
        self._bootstrap_population()
        logger.info("World reset with %d boids", len(self._boids))

    def step(self, tick: int) -> StepMetrics:
        return self._flock.step(self._config.time_step, tick)

    def add_boid(self) -> Boid:
        return self._flock.spawn_boid(self._config.spawn_jitter, self._config.spawn_speed)

    def snapshot(self, tick: int) -> Snapshot:
        params = self._flock.params
        config = self._config
        boids = [
            {
                "id": boid.id,
                "x": boid.position.x,
                "y": boid.position.y,
                "z": boid.position.z,
                "vx": boid.velocity.x,
                "vy": boid.velocity.y,
                "vz": boid.velocity.z,
                "nx": boid.motion_normal.x,
                "ny": boid.motion_normal.y,
                "nz": boid.motion_normal.z,
                "speed": boid.velocity.length(),
                "size": boid.size,
                "avoiding": boid.avoidance,
            }
            for boid in self._boids
        ]
        return Snapshot(
            tick=tick,
            metrics=self._flock.metrics,
            boids=boids,
            obstacle=SnapshotObstacle(center=_triple(params.collision_center), radius=params.collision_radius),
            targets=[_triple(target) for target in params.steering_targets],
            metadata=SnapshotMetadata(
                sim_dt=config.time_step,
                tick_rate=1.0 / config.time_step if config.time_step > 0 else 0.0,
                seed=config.seed,
                config_version=config.config_version,
                perception_radius=params.perception_radius,
                max_velocity=params.max_velocity,
            ),
        )

    def _bootstrap_population(self) -> None:
        config = self._config
        for entry in config.initial_boids:
            self._flock.add_boid(entry.position, entry.velocity, entry.motion_normal, entry.size)
        for _ in range(config.initial_population):
            self.add_boid()
        logger.info(
            "Bootstrapped %d boids (seed=%s, perception_radius=%s)",
            len(self._boids),
            config.seed,
            config.flocking.perception_radius,
        )
