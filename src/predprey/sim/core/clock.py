from __future__ import annotations

import logging
import math
from time import perf_counter
from typing import Any, Dict, List, Optional, Union

from .agent import Agent, Species
from .config import SimulationConfig
from .rng import DeterministicRng
from .world import World
from ..systems import metrics as metrics_system
from ..systems.behavior import update_predator, update_prey
from ..systems.factory import create_agent
from ..systems.reproduction import apply_reproduction
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld
from ..utils.math2d import clamp_value

logger = logging.getLogger(__name__)


class SimulationClock:
    """Drives the world one tick at a time and exposes the user command surface.

    Every tick computes the new populations from the previous committed ones
    and commits them together at the end, so behavior updates never observe
    agents that were already moved in the same tick.
    """

    def __init__(self, config: Optional[SimulationConfig] = None, rng: Optional[DeterministicRng] = None):
        self._config = config if config is not None else SimulationConfig()
        self._rng = rng if rng is not None else DeterministicRng(self._config.seed)
        self._world = World(arena_radius=self._config.arena_radius)
        self._metrics: TickMetrics | None = None
        self._ticking = False
        self._bootstrap_population()

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def world(self) -> World:
        return self._world

    @property
    def prey(self) -> List[Agent]:
        return self._world.prey

    @property
    def predators(self) -> List[Agent]:
        return self._world.predators

    @property
    def simulation_time(self) -> float:
        return self._world.simulation_time

    @property
    def is_paused(self) -> bool:
        return self._world.is_paused

    @property
    def speed_factor(self) -> float:
        return self._world.speed_factor

    @property
    def arena_radius(self) -> float:
        return self._world.arena_radius

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def set_paused(self, paused: bool) -> None:
        self._world.is_paused = bool(paused)

    def toggle_pause(self) -> bool:
        self._world.is_paused = not self._world.is_paused
        return self._world.is_paused

    def set_speed_factor(self, factor: float) -> float:
        if math.isnan(factor):
            return self._world.speed_factor
        self._world.speed_factor = clamp_value(
            factor, self._config.min_speed_factor, self._config.max_speed_factor
        )
        return self._world.speed_factor

    def spawn(self, species: Union[Species, str]) -> Agent:
        species = Species(species)
        agent = create_agent(species, self._config, self._rng, self._world.next_id())
        self._world.set_population(species, [*self._world.population(species), agent])
        logger.info("Spawned %s %s", species.value, agent.id)
        return agent

    def reset(self) -> None:
        self._world.prey = []
        self._world.predators = []
        self._world.simulation_time = 0.0
        self._world.tick = 0
        self._metrics = None
        self._rng.reset()
        self._bootstrap_population()
        logger.info(
            "Simulation reset with %d prey and %d predators",
            len(self._world.prey),
            len(self._world.predators),
        )

    def find_agent(self, agent_id: int) -> Agent | None:
        for agent in self._world.all_agents():
            if agent.id == agent_id:
                return agent
        return None

    def tick(self, delta_time: float) -> TickMetrics | None:
        """Advance the simulation by ``delta_time`` wall-clock seconds.

        Returns the metrics of the executed tick, or ``None`` while paused.
        """
        world = self._world
        if world.is_paused:
            return None
        if self._ticking:
            raise RuntimeError("SimulationClock.tick() is not reentrant")
        self._ticking = True
        try:
            return self._step(delta_time)
        finally:
            self._ticking = False

    def _step(self, delta_time: float) -> TickMetrics:
        start = perf_counter()
        config = self._config
        world = self._world
        rng = self._rng
        prey_config = config.prey
        predator_config = config.predator

        if not math.isfinite(delta_time) or delta_time < 0.0:
            delta_time = 0.0
        dt = delta_time * world.speed_factor
        world.simulation_time += dt
        world.tick += 1

        previous_prey = world.prey
        previous_predators = world.predators

        eaten: set[int] = set()
        moved_predators: List[Agent] = []
        for predator in previous_predators:
            updated, eaten_id = update_predator(predator, previous_prey, predator_config, config, rng, dt)
            if eaten_id is not None:
                eaten.add(eaten_id)
            moved_predators.append(updated)

        moved_prey = [
            update_prey(prey, previous_predators, prey_config, config, rng, dt)
            for prey in previous_prey
            if prey.id not in eaten
        ]
        prey = [agent for agent in moved_prey if agent.energy > 0]
        predators = [agent for agent in moved_predators if agent.energy > 0]
        prey_deaths = len(moved_prey) - len(prey)
        predator_deaths = len(moved_predators) - len(predators)

        prey_outcome = apply_reproduction(prey, prey_config, config, rng, world.next_id)
        predator_outcome = apply_reproduction(predators, predator_config, config, rng, world.next_id)

        # birth costs are paid after the starvation filter
        next_prey = [agent for agent in prey + prey_outcome.newborns if agent.energy > 0]
        next_predators = [agent for agent in predators + predator_outcome.newborns if agent.energy > 0]
        prey_deaths += len(prey) + len(prey_outcome.newborns) - len(next_prey)
        predator_deaths += len(predators) + len(predator_outcome.newborns) - len(next_predators)

        world.prey = next_prey
        world.predators = next_predators

        if prey_outcome.litters or predator_outcome.litters:
            logger.debug(
                "Tick %d: %d prey and %d predators born",
                world.tick,
                len(prey_outcome.newborns),
                len(predator_outcome.newborns),
            )

        elapsed_ms = (perf_counter() - start) * 1000.0
        self._metrics = metrics_system.create_metrics(
            world.tick,
            world.simulation_time,
            metrics_system.species_metrics(next_prey, len(prey_outcome.newborns), prey_deaths),
            metrics_system.species_metrics(next_predators, len(predator_outcome.newborns), predator_deaths),
            len(eaten),
            elapsed_ms,
        )
        return self._metrics

    def snapshot(self) -> Snapshot:
        world = self._world
        metrics = metrics_system.population_metrics(world, self._metrics)
        return Snapshot(
            tick=world.tick,
            simulation_time=world.simulation_time,
            is_paused=world.is_paused,
            speed_factor=world.speed_factor,
            metrics=metrics,
            prey=[self.agent_payload(agent) for agent in world.prey],
            predators=[self.agent_payload(agent) for agent in world.predators],
            world=SnapshotWorld(arena_radius=world.arena_radius, ground_offset=self._config.ground_offset),
            metadata=SnapshotMetadata(
                seed=self._config.seed,
                frame_time=self._config.frame_time,
                config_version=self._config.config_version,
            ),
        )

    def _bootstrap_population(self) -> None:
        config = self._config
        world = self._world
        world.prey = [
            create_agent(Species.PREY, config, self._rng, world.next_id())
            for _ in range(config.prey.initial_count)
        ]
        world.predators = [
            create_agent(Species.PREDATOR, config, self._rng, world.next_id())
            for _ in range(config.predator.initial_count)
        ]

    @staticmethod
    def agent_payload(agent: Agent) -> Dict[str, Any]:
        return {
            "id": agent.id,
            "species": agent.species.value,
            "gender": agent.gender.value,
            "x": agent.position.x,
            "y": agent.position.y,
            "z": agent.position.z,
            "vx": agent.velocity.x,
            "vz": agent.velocity.z,
            "speed": agent.speed,
            "heading": agent.heading,
            "energy": agent.energy,
            "age": agent.age,
            "last_reproduced": agent.last_reproduced,
            "is_pregnant": agent.is_pregnant,
            "pregnancy_time": agent.pregnancy_time,
            "behavior_state": agent.state.value,
        }
