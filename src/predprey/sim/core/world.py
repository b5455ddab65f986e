from __future__ import annotations

from dataclasses import dataclass, field
from itertools import count
from typing import Iterator, List

from .agent import Agent, Species


@dataclass
class World:
    """Committed simulation state: both populations plus clock and control flags.

    The populations are replaced wholesale when a tick commits, never edited
    in place, so a list obtained between ticks stays a stable snapshot.
    """

    arena_radius: float
    prey: List[Agent] = field(default_factory=list)
    predators: List[Agent] = field(default_factory=list)
    simulation_time: float = 0.0
    tick: int = 0
    is_paused: bool = False
    speed_factor: float = 1.0
    _ids: Iterator[int] = field(default_factory=count, repr=False)

    def next_id(self) -> int:
        return next(self._ids)

    def population(self, species: Species) -> List[Agent]:
        return self.prey if species is Species.PREY else self.predators

    def set_population(self, species: Species, agents: List[Agent]) -> None:
        if species is Species.PREY:
            self.prey = agents
        else:
            self.predators = agents

    def all_agents(self) -> Iterator[Agent]:
        yield from self.prey
        yield from self.predators
