from __future__ import annotations

import math

from pygame.math import Vector3


def clamp_to_arena(position: Vector3, radius: float, pullback: float = 0.95) -> Vector3:
    """Pull a position that left the circular arena back to ``pullback * radius``.

    The angle from the arena center is kept and the vertical component is
    untouched. Positions inside the arena are returned as-is.
    """
    distance = math.hypot(position.x, position.z)
    if distance <= radius:
        return position
    angle = math.atan2(position.z, position.x)
    return Vector3(
        math.cos(angle) * radius * pullback,
        position.y,
        math.sin(angle) * radius * pullback,
    )
