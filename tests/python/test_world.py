from __future__ import annotations

from pygame.math import Vector3
from pytest import approx

from flocking.sim.core.config import FlockingParams, InitialBoidConfig, SimulationConfig
from flocking.sim.core.world import World


def run_steps(config: SimulationConfig, steps: int):
    world = World(config)
    snapshots = []
    for tick in range(steps):
        metrics = world.step(tick)
        snapshots.append((metrics.population, metrics.neighbor_checks, metrics.avoiding, round(metrics.average_speed, 6)))
    positions = [tuple(round(c, 9) for c in boid.position) for boid in world.boids]
    return snapshots, positions


def test_deterministic_steps():
    result_a = run_steps(SimulationConfig(seed=1234, initial_population=50), 50)
    # recreate config to ensure RNG resets
    result_b = run_steps(SimulationConfig(seed=1234, initial_population=50), 50)
    assert result_a == result_b


def test_different_seeds_spawn_different_flocks():
    world_a = World(SimulationConfig(seed=1, initial_population=5))
    world_b = World(SimulationConfig(seed=2, initial_population=5))

    assert [tuple(b.position) for b in world_a.boids] != [tuple(b.position) for b in world_b.boids]


def test_snapshot_contains_metadata_and_boid_state():
    config = SimulationConfig(
        seed=7,
        time_step=0.5,
        initial_population=0,
        config_version="test-v2",
        initial_boids=[InitialBoidConfig(position=(10.0, 0.0, 0.0), velocity=(1.0, 0.0, 0.0), size=2.0)],
        flocking=FlockingParams(
            perception_radius=4.0,
            steering_targets=[Vector3(1.0, 2.0, 3.0)],
            collision_center=Vector3(-50.0, 0.0, 0.0),
            collision_radius=2.5,
        ),
    )
    world = World(config)

    world.step(0)
    snapshot = world.snapshot(1)

    assert snapshot.tick == 1
    assert snapshot.metadata.sim_dt == approx(0.5)
    assert snapshot.metadata.tick_rate == approx(2.0)
    assert snapshot.metadata.seed == 7
    assert snapshot.metadata.config_version == "test-v2"
    assert snapshot.metadata.perception_radius == approx(4.0)
    assert snapshot.obstacle.center == [-50.0, 0.0, 0.0]
    assert snapshot.obstacle.radius == approx(2.5)
    assert snapshot.targets == [[1.0, 2.0, 3.0]]

    assert snapshot.metrics.population == len(world.boids) == 1
    payload = snapshot.boids[0]
    assert set(payload) == {"id", "x", "y", "z", "vx", "vy", "vz", "nx", "ny", "nz", "speed", "size", "avoiding"}
    assert payload["id"] == 0
    assert payload["size"] == approx(2.0)
    assert payload["nz"] == approx(1.0)
    assert payload["speed"] == approx(world.boids[0].velocity.length())
    assert payload["avoiding"] is False


def test_add_boid_spawns_around_first_target():
    config = SimulationConfig(
        seed=5,
        initial_population=0,
        spawn_jitter=1.0,
        flocking=FlockingParams(steering_targets=[Vector3(20.0, 20.0, 20.0)]),
    )
    world = World(config)

    boid = world.add_boid()

    assert boid in world.boids
    assert boid.position.distance_to(Vector3(20.0, 20.0, 20.0)) <= 3 ** 0.5 + 1e-9


def test_reset_restores_parameters_and_population():
    config = SimulationConfig(seed=11, initial_population=8)
    world = World(config)
    initial_positions = [tuple(b.position) for b in world.boids]

    for tick in range(5):
        world.step(tick)
    world.add_boid()
    world.flock.params.update({"max_velocity": 1.0, "perception_radius": 2.0})

    world.reset()

    assert len(world.boids) == 8
    assert [tuple(b.position) for b in world.boids] == initial_positions
    assert world.flock.params.max_velocity == 5.0
    assert world.flock.params.perception_radius == 30.0
    assert world.config.flocking is world.flock.params


def test_demo_config_loads(repo_root):
    config = SimulationConfig.from_yaml(repo_root / "configs" / "demo.yaml")
    world = World(config)

    assert len(world.boids) == 4
    assert tuple(world.boids[1].velocity) == (1.0, 1.0, 0.0)
    assert config.flocking.collision_radius == approx(2.0)
    assert len(config.flocking.steering_targets) == 1
    assert config.time_step == approx(1.0 / 60.0)
