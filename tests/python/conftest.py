import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
src_root = ROOT / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

from predprey.sim.core.config import SimulationConfig  # noqa: E402
from predprey.sim.core.rng import DeterministicRng  # noqa: E402


class FixedRng(DeterministicRng):
    """Returns the same draw every time so branches can be forced."""

    def __init__(self, value: float = 0.5):
        super().__init__(0)
        self.value = value

    def next_float(self) -> float:
        return self.value

    def next_range(self, low: float, high: float) -> float:
        return low + (high - low) * self.value

    def next_int(self, low: int, high: int) -> int:
        return low

    def next_angle(self) -> float:
        return 0.0


@pytest.fixture
def fixed_rng():
    return FixedRng


@pytest.fixture
def calm_config() -> SimulationConfig:
    """Default settings with random turning switched off."""
    config = SimulationConfig(seed=7)
    config.prey.turn_chance = 0.0
    config.predator.turn_chance = 0.0
    return config
