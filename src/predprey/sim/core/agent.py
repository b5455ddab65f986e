from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from pygame.math import Vector3


class Species(str, Enum):
    PREY = "prey"
    PREDATOR = "predator"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class AgentState(str, Enum):
    GRAZING = "Grazing"
    FLEEING = "Fleeing"
    WANDERING = "Wandering"
    HUNTING = "Hunting"


@dataclass(slots=True)
class Agent:
    id: int
    species: Species
    gender: Gender
    position: Vector3
    velocity: Vector3
    energy: float
    age: float = 0.0
    last_reproduced: float = 0.0
    is_pregnant: bool = False
    pregnancy_time: float = 0.0
    state: AgentState = AgentState.WANDERING

    @property
    def speed(self) -> float:
        return math.hypot(self.velocity.x, self.velocity.z)

    @property
    def heading(self) -> float:
        return math.atan2(self.velocity.z, self.velocity.x)

    @property
    def is_male(self) -> bool:
        return self.gender is Gender.MALE

    @property
    def is_female(self) -> bool:
        return self.gender is Gender.FEMALE
