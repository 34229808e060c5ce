from __future__ import annotations

import random

import pytest
from pygame.math import Vector3

from flocking.sim.core.agent import Boid
from flocking.sim.core.config import FlockingParams
from flocking.sim.systems.integrator import integrate


def _boid(position, velocity) -> Boid:
    return Boid(id=0, position=Vector3(position), velocity=Vector3(velocity))


def _far_obstacle(**overrides):
    values = {"collision_center": Vector3(1000.0, 1000.0, 1000.0), "collision_radius": 1.0}
    values.update(overrides)
    return FlockingParams(**values).freeze()


def test_plain_euler_step():
    boid = _boid((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))

    integrate(boid, Vector3(0.0, 2.0, 0.0), Vector3(1.0, 0.0, 0.0), _far_obstacle(), dt=0.5)

    assert tuple(boid.velocity) == pytest.approx((1.0, 1.0, 0.0))
    assert tuple(boid.position) == pytest.approx((0.5, 0.5, 0.0))


def test_zero_dt_leaves_boid_in_place():
    boid = _boid((3.0, 2.0, 1.0), (1.0, 1.0, 0.0))

    integrate(boid, Vector3(4.0, 0.0, 0.0), Vector3(1.0, 1.0, 0.0), _far_obstacle(), dt=0.0)

    assert tuple(boid.position) == pytest.approx((3.0, 2.0, 1.0))
    assert tuple(boid.velocity) == pytest.approx((1.0, 1.0, 0.0))


def test_avoidance_blends_velocity_toward_escape_heading():
    boid = _boid((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
    boid.avoidance = True

    integrate(boid, Vector3(), Vector3(0.0, 1.0, 0.0), _far_obstacle(), dt=0.01)

    # v += dt * (|v| * u - v) / 0.1
    assert tuple(boid.velocity) == pytest.approx((0.9, 0.1, 0.0))


def test_escape_heading_ignored_when_flag_is_off():
    boid = _boid((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
    boid.avoidance = False

    integrate(boid, Vector3(), Vector3(0.0, 1.0, 0.0), _far_obstacle(), dt=0.01)

    assert tuple(boid.velocity) == pytest.approx((1.0, 0.0, 0.0))


def test_velocity_is_capped():
    boid = _boid((0.0, 0.0, 0.0), (4.0, 0.0, 0.0))

    integrate(boid, Vector3(100.0, 0.0, 0.0), Vector3(4.0, 0.0, 0.0), _far_obstacle(max_velocity=5.0), dt=1.0)

    assert boid.velocity.length() == pytest.approx(5.0)
    assert tuple(boid.position) == pytest.approx((5.0, 0.0, 0.0))


def test_boid_inside_sphere_is_pushed_outward():
    boid = _boid((0.5, 0.0, 0.0), (0.0, 0.0, 0.0))
    params = FlockingParams(collision_center=Vector3(), collision_radius=1.0).freeze()

    integrate(boid, Vector3(), Vector3(), params, dt=0.1)

    assert boid.velocity.x == pytest.approx(0.05)
    assert boid.velocity.y == pytest.approx(0.0)


def test_velocity_bound_holds_for_random_inputs():
    rnd = random.Random(17)
    for _ in range(300):
        max_velocity = rnd.uniform(0.5, 10.0)
        params = FlockingParams(
            collision_center=Vector3(rnd.uniform(-3, 3), rnd.uniform(-3, 3), rnd.uniform(-3, 3)),
            collision_radius=rnd.uniform(0.5, 4.0),
            max_velocity=max_velocity,
        ).freeze()
        boid = _boid(
            (rnd.uniform(-5, 5), rnd.uniform(-5, 5), rnd.uniform(-5, 5)),
            (rnd.uniform(-20, 20), rnd.uniform(-20, 20), rnd.uniform(-20, 20)),
        )
        boid.avoidance = rnd.random() < 0.5
        escape = Vector3(rnd.uniform(-1, 1), rnd.uniform(-1, 1), rnd.uniform(-1, 1))
        acceleration = Vector3(rnd.uniform(-50, 50), rnd.uniform(-50, 50), rnd.uniform(-50, 50))

        integrate(boid, acceleration, escape, params, dt=rnd.uniform(0.0, 0.05))

        assert boid.velocity.length() <= max_velocity + 1e-9
