from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class SpeciesMetrics:
    population: int = 0
    males: int = 0
    females: int = 0
    pregnant: int = 0
    births: int = 0
    deaths: int = 0
    average_energy: float = 0.0
    average_age: float = 0.0


@dataclass(slots=True)
class TickMetrics:
    tick: int
    simulation_time: float
    prey: SpeciesMetrics
    predators: SpeciesMetrics
    eaten: int = 0
    tick_duration_ms: float = 0.0

    @property
    def population(self) -> int:
        return self.prey.population + self.predators.population
