from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from .metrics import StepMetrics


@dataclass(slots=True)
class Snapshot:
    tick: int
    metrics: StepMetrics | None
    boids: List[Dict[str, Any]]
    obstacle: "SnapshotObstacle"
    targets: List[List[float]]
    metadata: "SnapshotMetadata"


@dataclass(slots=True)
class SnapshotObstacle:
    center: List[float]
    radius: float


@dataclass(slots=True)
class SnapshotMetadata:
    sim_dt: float
    tick_rate: float
    seed: int
    config_version: str
    perception_radius: float
    max_velocity: float
