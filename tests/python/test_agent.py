from __future__ import annotations

import pytest
from pygame.math import Vector3

from flocking.sim.core.agent import Boid


def _make_boid(boid_id: int) -> Boid:
    return Boid(id=boid_id, position=Vector3(), velocity=Vector3())


def test_boid_uses_slots_and_isolates_defaults():
    boid_a = _make_boid(1)
    boid_b = _make_boid(2)

    assert not hasattr(boid_a, "__dict__")
    assert hasattr(Boid, "__slots__")

    assert boid_a.motion_normal is not boid_b.motion_normal
    assert boid_a.acceleration is not boid_b.acceleration
    boid_a.motion_normal.x = 1.0
    boid_a.acceleration.y = 3.0
    assert boid_b.motion_normal.x == 0.0
    assert boid_b.acceleration.y == 0.0


def test_boid_defaults():
    boid = _make_boid(0)

    assert tuple(boid.motion_normal) == (0.0, 0.0, 1.0)
    assert tuple(boid.acceleration) == (0.0, 0.0, 0.0)
    assert boid.size == 1.0
    assert boid.avoidance is False


def test_motion_normal_is_normalized_and_must_be_non_zero():
    boid = Boid(id=0, position=Vector3(), velocity=Vector3(), motion_normal=Vector3(0.0, 0.0, 2.5))

    assert tuple(boid.motion_normal) == (0.0, 0.0, 1.0)
    with pytest.raises(ValueError):
        Boid(id=1, position=Vector3(), velocity=Vector3(), motion_normal=Vector3())
