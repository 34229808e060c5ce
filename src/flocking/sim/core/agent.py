from __future__ import annotations

from dataclasses import dataclass, field

from pygame.math import Vector3

from ..utils.math3d import _unit_normal


def _default_motion_normal() -> Vector3:
    return Vector3(0.0, 0.0, 1.0)


@dataclass(slots=True)
class Boid:
    """Kinematic state of one flock member.

    `acceleration` and `avoidance` are overwritten by the flock on every step.
    `motion_normal` is the unit normal of the plane avoidance turns happen in;
    it is normalized on construction and a zero vector is rejected.
    `size` is only read by renderers.
    """

    id: int
    position: Vector3
    velocity: Vector3
    acceleration: Vector3 = field(default_factory=Vector3)
    motion_normal: Vector3 = field(default_factory=_default_motion_normal)
    size: float = 1.0
    avoidance: bool = False

    def __post_init__(self) -> None:
        self.motion_normal = _unit_normal(Vector3(self.motion_normal))
