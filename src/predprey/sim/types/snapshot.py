from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from .metrics import TickMetrics


@dataclass(slots=True)
class Snapshot:
    tick: int
    simulation_time: float
    is_paused: bool
    speed_factor: float
    metrics: TickMetrics
    prey: List[Dict[str, Any]]
    predators: List[Dict[str, Any]]
    world: "SnapshotWorld"
    metadata: "SnapshotMetadata"


@dataclass(slots=True)
class SnapshotWorld:
    arena_radius: float
    ground_offset: float


@dataclass(slots=True)
class SnapshotMetadata:
    seed: int | None
    frame_time: float
    config_version: str
