from __future__ import annotations

import math
import random
from typing import Optional

from pygame.math import Vector3


class DeterministicRng:
    def __init__(self, seed: Optional[int] = None):
        self._seed = seed
        self._random = random.Random(seed)

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_float(self) -> float:
        return self._random.random()

    def next_range(self, low: float, high: float) -> float:
        return self._random.uniform(low, high)

    def next_int(self, low: int, high: int) -> int:
        """Inclusive on both ends."""
        return self._random.randint(low, high)

    def next_angle(self) -> float:
        return self._random.uniform(0.0, 2.0 * math.pi)

    def next_heading(self, speed: float) -> Vector3:
        angle = self.next_angle()
        return Vector3(math.cos(angle) * speed, 0.0, math.sin(angle) * speed)
