from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class StepMetrics:
    tick: int
    population: int
    neighbor_checks: int
    avoiding: int
    average_speed: float
    max_speed: float
    polarization: float
    occupied_cells: int
    max_cell_occupancy: int
    tick_duration_ms: float = 0.0
