from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Collection, Iterable, Optional, Tuple

from pygame.math import Vector3

from ..core.agent import Agent, AgentState
from ..core.config import SimulationConfig, SpeciesConfig
from ..utils.math2d import normalize_planar, rotate_planar, squared_distance
from .boundary import clamp_to_arena

if TYPE_CHECKING:
    from ..core.rng import DeterministicRng

logger = logging.getLogger(__name__)


def find_nearest(
    position: Vector3, candidates: Iterable[Agent], exclude: Collection[int] = ()
) -> Optional[Tuple[Agent, float]]:
    """Linear scan for the closest candidate; the first strictly smaller distance wins."""
    nearest: Agent | None = None
    nearest_dist_sq = float("inf")
    for candidate in candidates:
        if candidate.id in exclude:
            continue
        dist_sq = squared_distance(position, candidate.position)
        if dist_sq < nearest_dist_sq:
            nearest = candidate
            nearest_dist_sq = dist_sq
    if nearest is None:
        return None
    return nearest, nearest_dist_sq


def _wander(
    velocity: Vector3, species: SpeciesConfig, rng: DeterministicRng
) -> Vector3:
    if rng.next_float() >= species.turn_chance:
        return velocity
    change = rng.next_range(-species.max_turn_angle, species.max_turn_angle)
    return rotate_planar(velocity, change, species.wander_speed)


def _integrate(
    position: Vector3, velocity: Vector3, config: SimulationConfig, dt: float
) -> Vector3:
    moved = Vector3(
        position.x + velocity.x * dt,
        config.ground_offset,
        position.z + velocity.z * dt,
    )
    return clamp_to_arena(moved, config.arena_radius, config.boundary_pullback)


def _advance_pregnancy(agent: Agent, dt: float) -> float:
    return agent.pregnancy_time + dt if agent.is_pregnant else agent.pregnancy_time


def update_prey(
    prey: Agent,
    predators: Iterable[Agent],
    species: SpeciesConfig,
    config: SimulationConfig,
    rng: DeterministicRng,
    dt: float,
) -> Agent:
    pregnancy_time = _advance_pregnancy(prey, dt)
    velocity = _wander(Vector3(prey.velocity), species, rng)
    state = AgentState.GRAZING

    threat = find_nearest(prey.position, predators)
    if threat is not None:
        predator, dist_sq = threat
        if dist_sq < species.detection_radius * species.detection_radius:
            away = normalize_planar(prey.position - predator.position)
            velocity = away * species.escape_speed
            state = AgentState.FLEEING

    position = _integrate(prey.position, velocity, config, dt)

    energy = min(config.max_energy, prey.energy + species.regen_per_second * dt)
    energy -= species.metabolism_per_second * dt
    if prey.is_pregnant:
        energy -= species.pregnancy_upkeep_per_second * dt

    return replace(
        prey,
        position=position,
        velocity=velocity,
        energy=energy,
        age=prey.age + dt,
        pregnancy_time=pregnancy_time,
        state=state,
    )


def update_predator(
    predator: Agent,
    prey: Iterable[Agent],
    species: SpeciesConfig,
    config: SimulationConfig,
    rng: DeterministicRng,
    dt: float,
) -> Tuple[Agent, Optional[int]]:
    """Advance one predator; returns the updated copy and the id of the prey it ate, if any."""
    pregnancy_time = _advance_pregnancy(predator, dt)
    velocity = Vector3(predator.velocity)
    energy = predator.energy - species.metabolism_per_second * dt
    if predator.is_pregnant:
        energy -= species.pregnancy_upkeep_per_second * dt
    eaten_id: Optional[int] = None
    state = AgentState.WANDERING

    target = find_nearest(predator.position, prey)
    if target is not None and target[1] < species.detection_radius * species.detection_radius:
        victim, dist_sq = target
        toward = normalize_planar(victim.position - predator.position)
        velocity = toward * species.hunt_speed
        state = AgentState.HUNTING
        if dist_sq < species.catch_radius * species.catch_radius:
            # a meal replaces this tick's upkeep
            energy = min(config.max_energy, predator.energy + species.meal_energy)
            eaten_id = victim.id
            logger.debug("Predator %s caught prey %s", predator.id, victim.id)
    else:
        velocity = _wander(velocity, species, rng)

    position = _integrate(predator.position, velocity, config, dt)

    updated = replace(
        predator,
        position=position,
        velocity=velocity,
        energy=energy,
        age=predator.age + dt,
        pregnancy_time=pregnancy_time,
        state=state,
    )
    return updated, eaten_id
