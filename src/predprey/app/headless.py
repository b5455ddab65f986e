from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from pathlib import Path
from typing import Optional

from ..sim.core.clock import SimulationClock
from ..sim.core.config import SimulationConfig
from ..sim.systems.metrics import format_simulation_time
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)

_BASIC_HEADER = [
    "tick",
    "sim_time",
    "prey",
    "predators",
    "prey_births",
    "predator_births",
    "eaten",
    "tick_ms",
]

_DETAILED_HEADER = [
    "tick",
    "sim_time",
    "clock",
    "prey",
    "predators",
    "prey_births",
    "predator_births",
    "eaten",
    "prey_deaths",
    "predator_deaths",
    "prey_males",
    "prey_females",
    "prey_pregnant",
    "predator_males",
    "predator_females",
    "predator_pregnant",
    "avg_prey_energy",
    "avg_predator_energy",
    "avg_prey_age",
    "avg_predator_age",
    "predator_prey_ratio",
    "tick_ms",
]


def _format_basic_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        f"{metrics.simulation_time:.4f}",
        metrics.prey.population,
        metrics.predators.population,
        metrics.prey.births,
        metrics.predators.births,
        metrics.eaten,
        f"{tick_ms:.3f}",
    ]


def _format_detailed_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    prey = metrics.prey
    predators = metrics.predators
    ratio = 0.0 if prey.population == 0 else predators.population / prey.population
    return [
        metrics.tick,
        f"{metrics.simulation_time:.4f}",
        format_simulation_time(metrics.simulation_time),
        prey.population,
        predators.population,
        prey.births,
        predators.births,
        metrics.eaten,
        prey.deaths,
        predators.deaths,
        prey.males,
        prey.females,
        prey.pregnant,
        predators.males,
        predators.females,
        predators.pregnant,
        f"{prey.average_energy:.4f}",
        f"{predators.average_energy:.4f}",
        f"{prey.average_age:.4f}",
        f"{predators.average_age:.4f}",
        f"{ratio:.4f}",
        f"{tick_ms:.3f}",
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
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0}
    sorted_values = sorted(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / len(values)),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
    }


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    log_format: str = "detailed",
    summary_path: Optional[Path] = None,
    config_path: Optional[Path] = None,
    speed_factor: float = 1.0,
) -> SimulationClock:
    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if seed is not None:
        config.seed = seed
    log_mode = log_format.lower().strip()
    if log_mode not in {"basic", "detailed"}:
        raise ValueError(f"Unknown log format: {log_format}")

    clock = SimulationClock(config)
    clock.set_speed_factor(speed_factor)
    logger.info(
        "Running %d ticks at %.4fs per frame (speed x%.1f, seed=%s)",
        steps,
        config.frame_time,
        clock.speed_factor,
        config.seed,
    )

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_DETAILED_HEADER if log_mode == "detailed" else _BASIC_HEADER)

    prey_series: list[float] = []
    predator_series: list[float] = []
    tick_ms_series: list[float] = []
    total_eaten = 0
    prey_extinct_tick: Optional[int] = None
    predator_extinct_tick: Optional[int] = None

    try:
        for _ in range(steps):
            metrics = clock.tick(config.frame_time)
            if metrics is None:
                continue
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms
            prey_series.append(float(metrics.prey.population))
            predator_series.append(float(metrics.predators.population))
            tick_ms_series.append(tick_ms)
            total_eaten += metrics.eaten
            if prey_extinct_tick is None and metrics.prey.population == 0:
                prey_extinct_tick = metrics.tick
                logger.info("Prey extinct at tick %d", metrics.tick)
            if predator_extinct_tick is None and metrics.predators.population == 0:
                predator_extinct_tick = metrics.tick
                logger.info("Predators extinct at tick %d", metrics.tick)
            if writer:
                if log_mode == "detailed":
                    writer.writerow(_format_detailed_row(metrics, tick_ms))
                else:
                    writer.writerow(_format_basic_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    if summary_path:
        summary = {
            "steps": steps,
            "seed": config.seed,
            "log_format": log_mode,
            "deterministic_log": deterministic_log,
            "simulation_time": clock.simulation_time,
            "clock": format_simulation_time(clock.simulation_time),
            "final": {"prey": len(clock.prey), "predators": len(clock.predators)},
            "prey": _summary_stats(prey_series),
            "predators": _summary_stats(predator_series),
            "tick_ms": _summary_stats(tick_ms_series),
            "eaten": total_eaten,
            "extinction": {"prey": prey_extinct_tick, "predators": predator_extinct_tick},
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))

    logger.info(
        "Finished at %s with %d prey and %d predators",
        format_simulation_time(clock.simulation_time),
        len(clock.prey),
        len(clock.predators),
    )
    return clock


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless predator-prey simulation")
    parser.add_argument("--steps", type=int, default=3600)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML file overriding the default settings")
    parser.add_argument("--speed", type=float, default=1.0, help="Speed factor (clamped to 0.1-3.0)")
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
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        log_format=args.log_format,
        summary_path=args.summary,
        config_path=args.config,
        speed_factor=args.speed,
    )


if __name__ == "__main__":
    main()
