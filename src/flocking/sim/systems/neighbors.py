from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List

from pygame.math import Vector3

if TYPE_CHECKING:
    from ..core.agent import Boid
    from ..core.config import StepParams
    from ..core.spatial_grid import SpatialGrid


@dataclass(slots=True)
class NearbyBoid:
    boid: "Boid"
    direction: Vector3
    distance: float


def is_perceived(boid: "Boid", direction: Vector3, distance: float, params: "StepParams") -> bool:
    """Distance and field-of-view test for a candidate at `boid.position + direction`.

    A candidate is dropped when it sits inside the cone directly behind the boid,
    i.e. when cos(angle between -velocity and direction) reaches `fov_compare`.
    A boid at rest perceives in every direction.
    """
    if distance > params.perception_radius:
        return False
    velocity = boid.velocity
    speed = velocity.length()
    if speed == 0:
        return True
    compare = 0.0
    if distance != 0:
        compare = -velocity.dot(direction) / (distance * speed)
    return params.fov_compare > compare


def collect_neighbors(grid: "SpatialGrid", boid: "Boid", params: "StepParams") -> List[NearbyBoid]:
    return _filter_candidates(boid, grid.cells_around(grid.cell_key(boid.position)), params)


def brute_force_neighbors(boid: "Boid", boids: Iterable["Boid"], params: "StepParams") -> List[NearbyBoid]:
    """O(N) scan with the same predicate, for checking the grid-backed query."""
    return _filter_candidates(boid, boids, params)


def _filter_candidates(boid: "Boid", candidates: Iterable["Boid"], params: "StepParams") -> List[NearbyBoid]:
    result: List[NearbyBoid] = []
    px, py, pz = boid.position.x, boid.position.y, boid.position.z
    for other in candidates:
        if other is boid:
            continue
        pos = other.position
        direction = Vector3(pos.x - px, pos.y - py, pos.z - pz)
        distance = math.sqrt(direction.x * direction.x + direction.y * direction.y + direction.z * direction.z)
        if is_perceived(boid, direction, distance, params):
            result.append(NearbyBoid(boid=other, direction=direction, distance=distance))
    return result
