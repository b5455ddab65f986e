from __future__ import annotations

import math
from typing import TYPE_CHECKING

from pygame.math import Vector3

from ..core.agent import Agent, AgentState, Gender, Species
from ..core.config import SimulationConfig

if TYPE_CHECKING:
    from ..core.rng import DeterministicRng


def _default_state(species: Species) -> AgentState:
    return AgentState.GRAZING if species is Species.PREY else AgentState.WANDERING


def _spawn_position(config: SimulationConfig, rng: DeterministicRng) -> Vector3:
    spawn_radius = config.arena_radius * config.spawn_radius_fraction
    # sqrt keeps the density uniform over the disk
    distance = spawn_radius * math.sqrt(rng.next_float())
    angle = rng.next_angle()
    return Vector3(math.cos(angle) * distance, config.ground_offset, math.sin(angle) * distance)


def create_agent(
    species: Species, config: SimulationConfig, rng: DeterministicRng, agent_id: int
) -> Agent:
    species_config = config.species_config(species)
    position = _spawn_position(config, rng)
    velocity = rng.next_heading(species_config.base_speed)
    gender = Gender.MALE if rng.next_float() < 0.5 else Gender.FEMALE
    return Agent(
        id=agent_id,
        species=species,
        gender=gender,
        position=position,
        velocity=velocity,
        energy=species_config.initial_energy,
        age=0.0,
        last_reproduced=0.0,
        is_pregnant=False,
        pregnancy_time=0.0,
        state=_default_state(species),
    )


def create_newborn(
    parent: Agent, config: SimulationConfig, rng: DeterministicRng, agent_id: int
) -> Agent:
    child = create_agent(parent.species, config, rng, agent_id)
    jitter = config.birth_jitter
    child.position = Vector3(
        parent.position.x + rng.next_range(-jitter, jitter),
        config.ground_offset,
        parent.position.z + rng.next_range(-jitter, jitter),
    )
    child.energy = config.newborn_energy
    return child
