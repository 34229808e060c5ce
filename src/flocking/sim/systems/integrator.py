from __future__ import annotations

from typing import TYPE_CHECKING

from pygame.math import Vector3

from ..utils.math3d import _clamp_length

if TYPE_CHECKING:
    from ..core.agent import Boid
    from ..core.config import StepParams

# Time constant (seconds) for turning the velocity onto the avoidance heading.
AVOIDANCE_RESPONSE = 0.1
# Fraction of the offset from the sphere center added back when a boid ends up inside.
INSIDE_IMPULSE = 0.1


def integrate(boid: "Boid", acceleration: Vector3, avoidance: Vector3, params: "StepParams", dt: float) -> None:
    velocity = Vector3(boid.velocity)
    if boid.avoidance and avoidance.length() > 0.001:
        velocity += (avoidance * velocity.length() - velocity) * (dt / AVOIDANCE_RESPONSE)
    velocity = _clamp_length(velocity + acceleration * dt, params.max_velocity)
    boid.position += velocity * dt

    # Last-resort push for boids that still ended up inside the unpadded sphere.
    # Applies on top of the avoidance blend; the speed cap still holds afterwards.
    offset = boid.position - params.collision_center
    radius = params.collision_radius
    if offset.length_squared() < radius * radius:
        velocity = _clamp_length(velocity + offset * INSIDE_IMPULSE, params.max_velocity)
    boid.velocity = velocity
