"""Ground-plane vector helpers.

Agents live on the x/z plane of a :class:`pygame.math.Vector3`; y is the
vertical axis and is ignored by every helper here.
"""
from __future__ import annotations

import math

from pygame.math import Vector3


def squared_distance(a: Vector3, b: Vector3) -> float:
    dx = a.x - b.x
    dz = a.z - b.z
    return dx * dx + dz * dz


def planar_length(vector: Vector3) -> float:
    return math.hypot(vector.x, vector.z)


def normalize_planar(vector: Vector3) -> Vector3:
    magnitude = planar_length(vector)
    if magnitude == 0.0:
        return Vector3()
    return Vector3(vector.x / magnitude, 0.0, vector.z / magnitude)


def direction_angle(vector: Vector3) -> float:
    return math.atan2(vector.z, vector.x)


def from_angle(angle: float, speed: float) -> Vector3:
    return Vector3(math.cos(angle) * speed, 0.0, math.sin(angle) * speed)


def rotate_planar(vector: Vector3, delta: float, speed: float | None = None) -> Vector3:
    if speed is None:
        speed = planar_length(vector)
    return from_angle(direction_angle(vector) + delta, speed)


def clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))
