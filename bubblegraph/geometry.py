from __future__ import annotations

import hashlib
import math
from typing import Sequence, Tuple

Point = Tuple[float, float]

_DIST_EPS = 1e-6


def _vec2(a: Point, b: Point) -> Point:
    return b[0] - a[0], b[1] - a[1]


def hashed_direction(key: str) -> Point:
    """Deterministic unit vector derived from ``key``.

    Used in place of the connecting vector when two centres coincide.
    """

    digest = hashlib.md5(key.encode("utf-8")).hexdigest()
    angle = 2.0 * math.pi * (int(digest[:8], 16) / 0xFFFFFFFF)
    return math.cos(angle), math.sin(angle)


def unit_between(a: Point, b: Point, key: str) -> Tuple[Point, float]:
    """Unit vector from ``a`` to ``b`` and their distance, guarding zero length."""

    dx, dy = _vec2(a, b)
    d = math.hypot(dx, dy)
    if d <= _DIST_EPS:
        return hashed_direction(key), 0.0
    return (dx / d, dy / d), d


def point_in_polygon(point: Point, polygon: Sequence[Point]) -> bool:
    """Edge-crossing parity test; horizontal edges get a tiny denominator bump."""

    if len(polygon) < 3:
        return False
    px, py = point
    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > py) != (yj > py):
            denom = yj - yi
            if denom == 0:
                denom = 1e-9
            cross_x = (xj - xi) * (py - yi) / denom + xi
            if px < cross_x:
                inside = not inside
        j = i
    return inside


__all__ = [
    "hashed_direction",
    "point_in_polygon",
    "unit_between",
]
