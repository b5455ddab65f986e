from __future__ import annotations

import math
from typing import TYPE_CHECKING, Sequence

from ..core.agent import Agent
from ..types.metrics import SpeciesMetrics, TickMetrics

if TYPE_CHECKING:
    from ..core.world import World


def species_metrics(agents: Sequence[Agent], births: int = 0, deaths: int = 0) -> SpeciesMetrics:
    population = len(agents)
    males = 0
    pregnant = 0
    energy_sum = 0.0
    age_sum = 0.0
    for agent in agents:
        if agent.is_male:
            males += 1
        if agent.is_pregnant:
            pregnant += 1
        energy_sum += agent.energy
        age_sum += agent.age
    return SpeciesMetrics(
        population=population,
        males=males,
        females=population - males,
        pregnant=pregnant,
        births=births,
        deaths=deaths,
        average_energy=0.0 if population == 0 else energy_sum / population,
        average_age=0.0 if population == 0 else age_sum / population,
    )


def create_metrics(
    tick: int,
    simulation_time: float,
    prey: SpeciesMetrics,
    predators: SpeciesMetrics,
    eaten: int,
    duration_ms: float,
) -> TickMetrics:
    return TickMetrics(
        tick=tick,
        simulation_time=simulation_time,
        prey=prey,
        predators=predators,
        eaten=eaten,
        tick_duration_ms=duration_ms,
    )


def population_metrics(world: World, last: TickMetrics | None = None) -> TickMetrics:
    """Counters for the committed populations.

    Births, deaths, eaten and tick duration are per-tick events and are taken
    from ``last`` when given; the head counts always come from ``world``.
    """
    if last is None:
        return create_metrics(
            world.tick,
            world.simulation_time,
            species_metrics(world.prey),
            species_metrics(world.predators),
            0,
            0.0,
        )
    return create_metrics(
        world.tick,
        world.simulation_time,
        species_metrics(world.prey, last.prey.births, last.prey.deaths),
        species_metrics(world.predators, last.predators.births, last.predators.deaths),
        last.eaten,
        last.tick_duration_ms,
    )


def format_simulation_time(seconds: float) -> str:
    """Render elapsed simulated seconds as ``m:ss``."""
    seconds = max(0.0, seconds)
    minutes = int(math.floor(seconds / 60.0))
    remainder = int(math.floor(seconds % 60.0))
    return f"{minutes}:{remainder:02d}"
