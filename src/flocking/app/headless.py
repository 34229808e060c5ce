from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from pathlib import Path
from typing import Optional

from ..sim.core.config import SimulationConfig
from ..sim.core.world import World
from ..sim.types.metrics import StepMetrics

logger = logging.getLogger(__name__)

_BASIC_HEADER = [
    "tick",
    "population",
    "neighbor_checks",
    "avoiding",
    "avg_speed",
    "tick_ms",
]

_DETAILED_HEADER = [
    "tick",
    "population",
    "neighbor_checks",
    "avoiding",
    "avg_speed",
    "tick_ms",
    "max_speed",
    "polarization",
    "neighbor_checks_per_agent",
    "tick_ms_per_agent",
    "avoiding_ratio",
    "occupied_cells",
    "avg_agents_per_cell",
    "max_cell_occupancy",
    "centroid_x",
    "centroid_y",
    "centroid_z",
    "spread",
]


def _format_basic_row(metrics: StepMetrics, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.population,
        metrics.neighbor_checks,
        metrics.avoiding,
        f"{metrics.average_speed:.4f}",
        f"{tick_ms:.3f}",
    ]


def _format_detailed_row(world: World, metrics: StepMetrics, tick_ms: float) -> list[object]:
    population = metrics.population
    if population <= 0:
        neighbor_checks_per_agent = 0.0
        tick_ms_per_agent = 0.0
        avoiding_ratio = 0.0
        avg_agents_per_cell = 0.0
        centroid = (0.0, 0.0, 0.0)
        spread = 0.0
    else:
        neighbor_checks_per_agent = metrics.neighbor_checks / population
        tick_ms_per_agent = tick_ms / population
        avoiding_ratio = metrics.avoiding / population
        occupied = metrics.occupied_cells
        avg_agents_per_cell = population / occupied if occupied > 0 else 0.0

        sum_x = sum_y = sum_z = 0.0
        for boid in world.boids:
            sum_x += boid.position.x
            sum_y += boid.position.y
            sum_z += boid.position.z
        centroid = (sum_x / population, sum_y / population, sum_z / population)
        distance_sum = 0.0
        for boid in world.boids:
            dx = boid.position.x - centroid[0]
            dy = boid.position.y - centroid[1]
            dz = boid.position.z - centroid[2]
            distance_sum += math.sqrt(dx * dx + dy * dy + dz * dz)
        spread = distance_sum / population

    return [
        *_format_basic_row(metrics, tick_ms),
        f"{metrics.max_speed:.4f}",
        f"{metrics.polarization:.4f}",
        f"{neighbor_checks_per_agent:.4f}",
        f"{tick_ms_per_agent:.4f}",
        f"{avoiding_ratio:.4f}",
        metrics.occupied_cells,
        f"{avg_agents_per_cell:.4f}",
        metrics.max_cell_occupancy,
        f"{centroid[0]:.4f}",
        f"{centroid[1]:.4f}",
        f"{centroid[2]:.4f}",
        f"{spread:.4f}",
    ]


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0, "p95": 0.0, "p99": 0.0}
    sorted_values = sorted(values)
    count = len(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / count),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
        "p95": _percentile(sorted_values, 0.95),
        "p99": _percentile(sorted_values, 0.99),
    }


def _correlation(xs: list[float], ys: list[float]) -> float:
    if len(xs) != len(ys) or len(xs) < 2:
        return 0.0
    mean_x = sum(xs) / len(xs)
    mean_y = sum(ys) / len(ys)
    num = 0.0
    denom_x = 0.0
    denom_y = 0.0
    for x, y in zip(xs, ys):
        dx = x - mean_x
        dy = y - mean_y
        num += dx * dy
        denom_x += dx * dx
        denom_y += dy * dy
    denom = math.sqrt(denom_x * denom_y)
    if denom == 0.0:
        return 0.0
    return float(num / denom)


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    log_format: str = "detailed",
    summary_path: Optional[Path] = None,
    summary_window: int = 5000,
    config_path: Optional[Path] = None,
    population: Optional[int] = None,
) -> World:
    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if seed is not None:
        config.seed = seed
    if population is not None:
        config.initial_population = population

    log_mode = log_format.lower().strip()
    if log_mode not in {"basic", "detailed"}:
        raise ValueError(f"Unknown log format: {log_format}")

    world = World(config)
    logger.info("Running %d headless steps with %d boids (seed=%s)", steps, len(world.boids), config.seed)

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_DETAILED_HEADER if log_mode == "detailed" else _BASIC_HEADER)

    tick_ms_series: list[float] = []
    neighbor_checks_series: list[float] = []
    polarization_series: list[float] = []
    avoiding_series: list[float] = []
    max_tick_ms = (-1.0, -1)
    max_neighbor_checks = (-1, -1)

    try:
        for tick in range(steps):
            metrics = world.step(tick)
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms

            if summary_path:
                tick_ms_series.append(tick_ms)
                neighbor_checks_series.append(float(metrics.neighbor_checks))
                polarization_series.append(metrics.polarization)
                avoiding_series.append(float(metrics.avoiding))
                if tick_ms > max_tick_ms[0]:
                    max_tick_ms = (tick_ms, tick)
                if metrics.neighbor_checks > max_neighbor_checks[0]:
                    max_neighbor_checks = (metrics.neighbor_checks, tick)

            if writer:
                if log_mode == "detailed":
                    writer.writerow(_format_detailed_row(world, metrics, tick_ms))
                else:
                    writer.writerow(_format_basic_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    if summary_path:
        window = max(1, int(summary_window))
        tail_slice = slice(max(0, len(tick_ms_series) - window), len(tick_ms_series))
        summary = {
            "steps": steps,
            "seed": config.seed,
            "population": len(world.boids),
            "log_format": log_mode,
            "deterministic_log": deterministic_log,
            "tick_ms": _summary_stats(tick_ms_series),
            "neighbor_checks": _summary_stats(neighbor_checks_series),
            "polarization": _summary_stats(polarization_series),
            "avoiding": _summary_stats(avoiding_series),
            "correlations": {
                "tick_ms_vs_neighbor_checks": _correlation(tick_ms_series, neighbor_checks_series),
            },
            "peaks": {
                "tick_ms": {"value": float(max_tick_ms[0]), "tick": max_tick_ms[1]},
                "neighbor_checks": {"value": max_neighbor_checks[0], "tick": max_neighbor_checks[1]},
            },
            "tail_window": {
                "window": window,
                "tick_ms": _summary_stats(tick_ms_series[tail_slice]),
                "neighbor_checks": _summary_stats(neighbor_checks_series[tail_slice]),
                "polarization": _summary_stats(polarization_series[tail_slice]),
            },
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))

    logger.info("Headless run finished after %d steps", steps)
    return world


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless flocking simulation")
    parser.add_argument("--steps", type=int, default=3000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--population", type=int, default=None, help="Override the number of spawned boids.")
    parser.add_argument("--config", type=Path, default=None, help="YAML simulation config")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument(
        "--log-format",
        choices=["basic", "detailed"],
        default="detailed",
        help="CSV format to write when --log is provided.",
    )
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional JSON file to write summary stats for the run.",
    )
    parser.add_argument(
        "--summary-window",
        type=int,
        default=5000,
        help="Tail window size (ticks) for summary stats.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default="WARNING", help="Python logging level")
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        log_format=args.log_format,
        summary_path=args.summary,
        summary_window=args.summary_window,
        config_path=args.config,
        population=args.population,
    )


if __name__ == "__main__":
    main()
