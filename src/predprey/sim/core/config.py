from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Optional

import yaml

from .agent import Species


@dataclass
class SpeciesConfig:
    initial_count: int = 8
    initial_energy: float = 80.0
    base_speed: float = 1.2
    # None keeps the current speed when turning
    wander_speed: Optional[float] = None
    turn_chance: float = 0.03
    max_turn_angle: float = math.pi / 4
    detection_radius: float = 6.0
    escape_speed: float = 0.0
    hunt_speed: float = 0.0
    catch_radius: float = 0.0
    meal_energy: float = 0.0
    regen_per_second: float = 0.0
    metabolism_per_second: float = 0.8
    pregnancy_upkeep_per_second: float = 0.5
    min_mating_energy: float = 60.0
    min_mating_age: float = 8.0
    mating_cooldown: float = 12.0
    mating_chance: float = 0.15
    gestation_seconds: float = 8.0
    litter_min: int = 2
    litter_max: int = 4
    birth_energy_cost: float = 40.0
    female_mating_cost: float = 15.0
    male_mating_cost: float = 10.0


def default_prey_config() -> SpeciesConfig:
    return SpeciesConfig(
        initial_count=8,
        initial_energy=80.0,
        base_speed=1.2,
        wander_speed=None,
        turn_chance=0.03,
        detection_radius=6.0,
        escape_speed=3.0,
        regen_per_second=3.0,
        metabolism_per_second=0.8,
        pregnancy_upkeep_per_second=0.5,
        min_mating_energy=60.0,
        min_mating_age=8.0,
        mating_cooldown=12.0,
        mating_chance=0.15,
        gestation_seconds=8.0,
        litter_min=2,
        litter_max=4,
    )


def default_predator_config() -> SpeciesConfig:
    return SpeciesConfig(
        initial_count=4,
        initial_energy=100.0,
        base_speed=1.8,
        wander_speed=1.8,
        turn_chance=0.04,
        detection_radius=8.0,
        hunt_speed=3.5,
        catch_radius=1.2,
        meal_energy=60.0,
        regen_per_second=0.0,
        metabolism_per_second=2.5,
        pregnancy_upkeep_per_second=0.8,
        min_mating_energy=75.0,
        min_mating_age=15.0,
        mating_cooldown=18.0,
        mating_chance=0.12,
        gestation_seconds=15.0,
        litter_min=1,
        litter_max=2,
    )


@dataclass
class SimulationConfig:
    arena_radius: float = 20.0
    max_energy: float = 100.0
    ground_offset: float = 0.0
    spawn_radius_fraction: float = 0.8
    boundary_pullback: float = 0.95
    newborn_energy: float = 60.0
    birth_jitter: float = 1.0
    mating_distance: float = 2.0
    min_speed_factor: float = 0.1
    max_speed_factor: float = 3.0
    frame_time: float = 1.0 / 60.0
    seed: Optional[int] = None
    config_version: str = "v1"
    prey: SpeciesConfig = field(default_factory=default_prey_config)
    predator: SpeciesConfig = field(default_factory=default_predator_config)

    def species_config(self, species: Species) -> SpeciesConfig:
        return self.prey if species is Species.PREY else self.predator

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)


def _merge_species(base: SpeciesConfig, overrides: dict | None) -> SpeciesConfig:
    if not overrides:
        return base
    known = {f.name for f in fields(SpeciesConfig)}
    unknown = set(overrides) - known
    if unknown:
        raise TypeError(f"Unknown species settings: {', '.join(sorted(unknown))}")
    return replace(base, **overrides)


def load_config(raw: dict) -> SimulationConfig:
    prey = _merge_species(default_prey_config(), raw.get("prey"))
    predator = _merge_species(default_predator_config(), raw.get("predator"))
    sim_values = {k: v for k, v in raw.items() if k not in {"prey", "predator"}}
    return SimulationConfig(prey=prey, predator=predator, **sim_values)
