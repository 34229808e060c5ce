from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, List, Tuple

import yaml
from pygame.math import Vector3

from ..utils.math3d import _as_vector, _unit_normal

logger = logging.getLogger(__name__)


class DistanceType(str, Enum):
    LINEAR = "linear"
    INVERSE_LINEAR = "inverse_linear"
    QUADRATIC = "quadratic"
    INVERSE_QUADRATIC = "inverse_quadratic"

    @classmethod
    def parse(cls, value: "DistanceType | str") -> "DistanceType":
        if isinstance(value, DistanceType):
            return value
        key = str(value).strip().lower().replace(" ", "_").replace("-", "_")
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown distance type: {value!r}") from None


@dataclass(frozen=True)
class StepParams:
    """Immutable copy of the flocking parameters used for a single step."""

    perception_radius: float
    cell_size: float
    separation_weight: float
    separation_type: DistanceType
    alignment_weight: float
    cohesion_weight: float
    steering_weight: float
    steering_targets: Tuple[Vector3, ...]
    steering_target_type: DistanceType
    fov_compare: float
    max_acceleration: float
    max_velocity: float
    collision_radius: float
    collision_center: Vector3


@dataclass
class FlockingParams:
    # Only boids within this distance influence each other.
    perception_radius: float = 30.0
    separation_weight: float = 3.5
    separation_type: DistanceType = DistanceType.INVERSE_QUADRATIC
    alignment_weight: float = 0.1
    cohesion_weight: float = 1.0
    steering_weight: float = 4.0
    steering_targets: List[Vector3] = field(default_factory=list)
    steering_target_type: DistanceType = DistanceType.LINEAR
    # Field of view in degrees.
    fov_angle_deg: float = 20.0
    max_acceleration: float = 5.0
    max_velocity: float = 5.0
    collision_radius: float = 1.0
    collision_center: Vector3 = field(default_factory=Vector3)

    def freeze(self) -> StepParams:
        if self.perception_radius == 0:
            self.perception_radius = 1.0
        return StepParams(
            perception_radius=self.perception_radius,
            cell_size=abs(self.perception_radius),
            separation_weight=self.separation_weight,
            separation_type=DistanceType.parse(self.separation_type),
            alignment_weight=self.alignment_weight,
            cohesion_weight=self.cohesion_weight,
            steering_weight=self.steering_weight,
            steering_targets=tuple(Vector3(target) for target in self.steering_targets),
            steering_target_type=DistanceType.parse(self.steering_target_type),
            fov_compare=math.cos(2.0 * math.pi * self.fov_angle_deg / 360.0),
            max_acceleration=self.max_acceleration,
            max_velocity=self.max_velocity,
            collision_radius=self.collision_radius,
            collision_center=Vector3(self.collision_center),
        )

    def copy(self) -> "FlockingParams":
        return replace(
            self,
            steering_targets=[Vector3(target) for target in self.steering_targets],
            collision_center=Vector3(self.collision_center),
        )

    def update(self, values: dict[str, Any]) -> None:
        """Apply a partial mapping of parameter values, converting vectors and curve names."""
        known = {f.name for f in fields(self)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown flocking parameters: {sorted(unknown)}")
        converted: dict[str, Any] = {}
        for name, value in values.items():
            if name in {"separation_type", "steering_target_type"}:
                converted[name] = DistanceType.parse(value)
            elif name == "collision_center":
                converted[name] = _as_vector(value)
            elif name == "steering_targets":
                converted[name] = [_as_vector(target) for target in value]
            else:
                converted[name] = float(value)
        # Nothing is applied unless every value converted.
        for name, value in converted.items():
            setattr(self, name, value)


@dataclass
class InitialBoidConfig:
    position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    velocity: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    motion_normal: Tuple[float, float, float] = (0.0, 0.0, 1.0)
    size: float = 1.0


@dataclass
class SimulationConfig:
    time_step: float = 1.0 / 60.0
    seed: int = 42
    initial_population: int = 40
    # Spawned boids land within +/- spawn_jitter of the first steering target.
    spawn_jitter: float = 2.0
    spawn_speed: float = 1.0
    config_version: str = "v1"
    initial_boids: List[InitialBoidConfig] = field(default_factory=list)
    flocking: FlockingParams = field(default_factory=FlockingParams)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        logger.info("Loaded simulation config from %s", path)
        return load_config(data)


def load_config(raw: dict) -> SimulationConfig:
    def _triple(value: Any, default: Tuple[float, float, float]) -> Tuple[float, float, float]:
        if value is None:
            return default
        vector = _as_vector(value)
        return (vector.x, vector.y, vector.z)

    def _normal_triple(value: Any) -> Tuple[float, float, float]:
        if value is None:
            return (0.0, 0.0, 1.0)
        normal = _unit_normal(_as_vector(value))
        return (normal.x, normal.y, normal.z)

    flocking = FlockingParams()
    flocking.update(raw.get("flocking", {}))

    boids = [
        InitialBoidConfig(
            position=_triple(entry.get("position"), (0.0, 0.0, 0.0)),
            velocity=_triple(entry.get("velocity"), (0.0, 0.0, 0.0)),
            motion_normal=_normal_triple(entry.get("motion_normal")),
            size=float(entry.get("size", 1.0)),
        )
        for entry in raw.get("initial_boids", [])
    ]
    sim_values = {k: v for k, v in raw.items() if k not in {"flocking", "initial_boids"}}
    return SimulationConfig(flocking=flocking, initial_boids=boids, **sim_values)
