from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, List

from ..core.agent import Agent
from ..core.config import SimulationConfig, SpeciesConfig
from ..utils.math2d import squared_distance
from .factory import create_newborn

if TYPE_CHECKING:
    from ..core.rng import DeterministicRng

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ReproductionOutcome:
    newborns: List[Agent] = field(default_factory=list)
    litters: int = 0
    matings: int = 0


def is_ready_to_mate(agent: Agent, species: SpeciesConfig) -> bool:
    return (
        not agent.is_pregnant
        and agent.energy > species.min_mating_energy
        and agent.age > species.min_mating_age
        and agent.age - agent.last_reproduced > species.mating_cooldown
    )


def give_birth(
    mother: Agent,
    species: SpeciesConfig,
    config: SimulationConfig,
    rng: DeterministicRng,
    next_id: Callable[[], int],
) -> List[Agent]:
    litter_size = rng.next_int(species.litter_min, species.litter_max)
    litter = [create_newborn(mother, config, rng, next_id()) for _ in range(litter_size)]
    mother.is_pregnant = False
    mother.pregnancy_time = 0.0
    mother.last_reproduced = mother.age
    mother.energy -= species.birth_energy_cost
    logger.debug("%s %s gave birth to %d", mother.species.value, mother.id, litter_size)
    return litter


def apply_reproduction(
    agents: List[Agent],
    species: SpeciesConfig,
    config: SimulationConfig,
    rng: DeterministicRng,
    next_id: Callable[[], int],
) -> ReproductionOutcome:
    """Run births and then mating over one species' survivors.

    Agents are updated in place and in order, so a mating later in the pass
    sees the effects of earlier births and matings in the same tick.
    Newborns are returned rather than appended.
    """
    outcome = ReproductionOutcome()

    for agent in agents:
        if agent.is_pregnant and agent.pregnancy_time >= species.gestation_seconds:
            outcome.newborns.extend(give_birth(agent, species, config, rng, next_id))
            outcome.litters += 1

    males = [agent for agent in agents if agent.is_male and not agent.is_pregnant]
    females = [agent for agent in agents if agent.is_female and not agent.is_pregnant]
    mating_distance_sq = config.mating_distance * config.mating_distance

    for female in females:
        if not is_ready_to_mate(female, species):
            continue
        for male in males:
            if not is_ready_to_mate(male, species):
                continue
            if squared_distance(female.position, male.position) >= mating_distance_sq:
                continue
            if rng.next_float() >= species.mating_chance:
                continue
            female.is_pregnant = True
            female.pregnancy_time = 0.0
            female.energy -= species.female_mating_cost
            male.energy -= species.male_mating_cost
            male.last_reproduced = male.age
            outcome.matings += 1
            logger.debug("%s %s mated with %s", female.species.value, female.id, male.id)
            # males stay in the pool; a female takes one mate per tick
            break

    return outcome
