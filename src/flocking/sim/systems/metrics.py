from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from pygame.math import Vector3

from ..types.metrics import StepMetrics

if TYPE_CHECKING:
    from ..core.agent import Boid
    from ..core.spatial_grid import SpatialGrid


def polarization(boids: Sequence["Boid"]) -> float:
    """Order parameter |sum(v)| / sum(|v|): 1 when every boid heads the same way."""
    heading_sum = Vector3()
    speed_sum = 0.0
    for boid in boids:
        heading_sum += boid.velocity
        speed_sum += boid.velocity.length()
    if speed_sum == 0.0:
        return 0.0
    return heading_sum.length() / speed_sum


def create_metrics(
    tick: int,
    boids: Sequence["Boid"],
    grid: "SpatialGrid",
    neighbor_checks: int,
    duration_ms: float,
) -> StepMetrics:
    population = len(boids)
    speeds = [boid.velocity.length() for boid in boids]
    return StepMetrics(
        tick=tick,
        population=population,
        neighbor_checks=neighbor_checks,
        avoiding=sum(1 for boid in boids if boid.avoidance),
        average_speed=sum(speeds) / population if population else 0.0,
        max_speed=max(speeds, default=0.0),
        polarization=polarization(boids),
        occupied_cells=grid.occupied_cells,
        max_cell_occupancy=grid.max_occupancy,
        tick_duration_ms=duration_ms,
    )
