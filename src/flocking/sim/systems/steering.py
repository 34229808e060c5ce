from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Sequence

from pygame.math import Vector3

from ..core.config import DistanceType
from ..utils.math3d import _clamp_length, _same_point, _safe_normalize
from .neighbors import NearbyBoid

if TYPE_CHECKING:
    from ..core.agent import Boid
    from ..core.config import StepParams
    from ..core.rng import DeterministicRng

# Scale of the random push given to a neighbour sharing our exact position.
COINCIDENT_KICK = 1000.0


def transform_distance(distance: float, kind: DistanceType) -> float:
    if kind is DistanceType.LINEAR:
        return distance
    if kind is DistanceType.INVERSE_LINEAR:
        return 0.0 if distance == 0 else 1.0 / distance
    if kind is DistanceType.QUADRATIC:
        return distance * distance
    if kind is DistanceType.INVERSE_QUADRATIC:
        quad = distance * distance
        return 0.0 if quad == 0 else 1.0 / quad
    return distance


def nearest_target(
    position: Vector3, targets: Sequence[Vector3], kind: DistanceType
) -> tuple[Optional[Vector3], float]:
    """Target with the smallest curve value; the first one wins ties."""
    best: Optional[Vector3] = None
    best_value = 0.0
    for target in targets:
        value = transform_distance(position.distance_to(target), kind)
        if best is None or value < best_value:
            best = target
            best_value = value
    return best, best_value


def separation(neighbors: List[NearbyBoid], kind: DistanceType, rng: "DeterministicRng") -> Vector3:
    total = Vector3()
    if not neighbors:
        return total
    for nearby in neighbors:
        if nearby.distance == 0:
            total += rng.next_unit_sphere() * COINCIDENT_KICK
        else:
            total -= nearby.direction * transform_distance(nearby.distance, kind)
    return total / len(neighbors)


def alignment(neighbors: List[NearbyBoid]) -> Vector3:
    total = Vector3()
    if not neighbors:
        return total
    for nearby in neighbors:
        total += nearby.boid.velocity
    return total / len(neighbors)


def cohesion(boid: "Boid", neighbors: List[NearbyBoid]) -> Vector3:
    if not neighbors:
        return Vector3()
    center = Vector3()
    for nearby in neighbors:
        center += nearby.boid.position
    return center / len(neighbors) - boid.position


def steering(boid: "Boid", targets: Sequence[Vector3], kind: DistanceType) -> Vector3:
    target, value = nearest_target(boid.position, targets, kind)
    if target is None or _same_point(target, boid.position):
        return Vector3()
    return _safe_normalize(target - boid.position) * value


def compute_acceleration(
    boid: "Boid",
    neighbors: List[NearbyBoid],
    params: "StepParams",
    rng: "DeterministicRng",
) -> Vector3:
    acceleration = Vector3()
    acceleration += separation(neighbors, params.separation_type, rng) * params.separation_weight
    acceleration += alignment(neighbors) * params.alignment_weight
    acceleration += cohesion(boid, neighbors) * params.cohesion_weight
    acceleration += (
        steering(boid, params.steering_targets, params.steering_target_type) * params.steering_weight
    )
    return _clamp_length(acceleration, params.max_acceleration)
