from __future__ import annotations

import math
from typing import TYPE_CHECKING, Tuple

from pygame.math import Vector3

from ..utils.math3d import _safe_normalize

if TYPE_CHECKING:
    from ..core.agent import Boid
    from ..core.config import StepParams

# Extra clearance added to the obstacle radius when looking ahead.
COLLISION_PADDING = 0.5
# How far ahead a boid looks, in seconds of travel at max velocity.
AVOIDANCE_LOOKAHEAD_SECONDS = 1.0


def avoidance_direction(boid: "Boid", params: "StepParams") -> Tuple[Vector3, bool]:
    """Escape heading around the collision sphere, and whether avoidance is active.

    The boid's motion is treated as the ray p + t*v. If that ray enters the padded
    sphere ahead of the boid within the look-ahead distance, the result is the unit
    vector tangent to the sphere's silhouette in the boid's motion plane, on the side
    needing the smaller turn. Otherwise the current velocity is returned unchanged.
    The flag is also written to `boid.avoidance`.
    """
    position = boid.position
    velocity = boid.velocity
    center = params.collision_center
    radius = params.collision_radius + COLLISION_PADDING
    radius_sq = radius * radius

    offset = position - center
    a = velocity.length_squared()
    b = 2.0 * velocity.dot(offset)
    c = offset.length_squared() - radius_sq
    delta = b * b - 4.0 * a * c

    if a == 0 or delta < 0:
        boid.avoidance = False
        return Vector3(velocity), False
    root = math.sqrt(delta)
    # b + root > 0 puts both intersections behind the boid.
    if b + root > 0:
        boid.avoidance = False
        return Vector3(velocity), False
    reach = -(b + root) / (2.0 * a) * math.sqrt(a)
    if reach >= params.max_velocity * AVOIDANCE_LOOKAHEAD_SECONDS:
        boid.avoidance = False
        return Vector3(velocity), False

    boid.avoidance = True
    normal = boid.motion_normal
    to_center = center - position
    height = normal.dot(to_center)
    projected = center - normal * height
    radial = projected - position
    radial_length = radial.length()
    if radial_length == 0:
        return _safe_normalize(velocity), True

    sin_theta = min(1.0, math.sqrt(max(0.0, radius_sq - height * height)) / radial_length)
    cos_theta = math.sqrt(1.0 - sin_theta * sin_theta)
    sign = 1.0 if normal.dot(radial.cross(velocity)) > 0 else -1.0

    escape = radial * (cos_theta / radial_length) + normal.cross(radial) * (sign * sin_theta / radial_length)
    return escape, True
