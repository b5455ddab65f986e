from __future__ import annotations

import json
from dataclasses import asdict

from pygame.math import Vector3
from pytest import approx

from predprey.sim.core.agent import Agent, Gender, Species
from predprey.sim.core.clock import SimulationClock
from predprey.sim.core.config import SimulationConfig
from predprey.sim.systems.metrics import format_simulation_time, population_metrics, species_metrics


def _agent(agent_id: int, gender: Gender, energy: float, age: float, pregnant: bool = False) -> Agent:
    return Agent(
        id=agent_id,
        species=Species.PREY,
        gender=gender,
        position=Vector3(),
        velocity=Vector3(),
        energy=energy,
        age=age,
        is_pregnant=pregnant,
    )


def test_species_metrics_counts():
    agents = [
        _agent(1, Gender.MALE, 40.0, 2.0),
        _agent(2, Gender.FEMALE, 60.0, 4.0, pregnant=True),
        _agent(3, Gender.FEMALE, 80.0, 6.0),
    ]

    metrics = species_metrics(agents, births=2, deaths=1)

    assert metrics.population == 3
    assert (metrics.males, metrics.females, metrics.pregnant) == (1, 2, 1)
    assert (metrics.births, metrics.deaths) == (2, 1)
    assert metrics.average_energy == approx(60.0)
    assert metrics.average_age == approx(4.0)


def test_species_metrics_empty_population():
    metrics = species_metrics([])

    assert metrics.population == 0
    assert metrics.average_energy == 0.0


def test_format_simulation_time():
    assert format_simulation_time(0.0) == "0:00"
    assert format_simulation_time(59.9) == "0:59"
    assert format_simulation_time(125.7) == "2:05"
    assert format_simulation_time(-3.0) == "0:00"


def test_snapshot_is_json_ready():
    clock = SimulationClock(SimulationConfig(seed=8))
    clock.tick(0.2)

    snapshot = clock.snapshot()

    assert snapshot.tick == 1
    assert snapshot.simulation_time == approx(0.2)
    assert snapshot.world.arena_radius == 20.0
    assert snapshot.metadata.seed == 8
    assert len(snapshot.prey) == len(clock.prey)
    assert snapshot.metrics.population == len(clock.prey) + len(clock.predators)
    payload = snapshot.predators[0]
    for key in ["id", "species", "gender", "x", "y", "z", "vx", "vz", "energy", "age", "is_pregnant"]:
        assert key in payload
    assert payload["species"] == "predator"
    assert payload["speed"] == approx(clock.predators[0].speed)
    json.dumps({"metrics": asdict(snapshot.metrics), "prey": snapshot.prey, "world": asdict(snapshot.world)})


def test_snapshot_before_first_tick_uses_current_population():
    clock = SimulationClock(SimulationConfig(seed=8))

    snapshot = clock.snapshot()

    assert snapshot.tick == 0
    assert snapshot.metrics.prey.population == 8
    assert snapshot.metrics.predators.population == 4


def test_population_metrics_reads_committed_world():
    clock = SimulationClock(SimulationConfig(seed=3))
    clock.spawn(Species.PREDATOR)

    metrics = population_metrics(clock.world)

    assert metrics.tick == 0
    assert metrics.prey.population == 8
    assert metrics.predators.population == 5
    assert metrics.predators.births == 0
    assert metrics.population == 13


def test_snapshot_counts_follow_spawns_between_ticks():
    clock = SimulationClock(SimulationConfig(seed=5))
    ticked = clock.tick(0.1)
    clock.set_paused(True)
    clock.spawn(Species.PREY)
    clock.spawn(Species.PREY)

    snapshot = clock.snapshot()

    assert snapshot.metrics.prey.population == len(snapshot.prey) == len(clock.prey)
    assert snapshot.metrics.predators.population == len(snapshot.predators)
    assert snapshot.metrics.prey.births == ticked.prey.births
    assert snapshot.metrics.eaten == ticked.eaten
    assert snapshot.metrics.tick == 1


def test_population_metrics_carries_last_tick_events():
    clock = SimulationClock(SimulationConfig(seed=3))
    last = clock.tick(0.1)
    last.prey.births = 2
    last.predators.deaths = 1
    last.eaten = 3

    metrics = population_metrics(clock.world, last)

    assert metrics.prey.births == 2
    assert metrics.predators.deaths == 1
    assert metrics.eaten == 3
    assert metrics.prey.population == len(clock.prey)
