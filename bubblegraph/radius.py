"""Area to radius scale shared by every node of a diagram."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np

from .model import R_MAX, R_MIN, Node


def _sqrt_area(area: float) -> float:
    return math.sqrt(max(1.0, area or 1.0))


@dataclass(frozen=True)
class RadiusScale:
    """Square-root scale mapping ``sqrt(area)`` linearly onto ``[r_min, r_max]``."""

    low: float = 1.0
    high: float = 1.0
    r_min: float = R_MIN
    r_max: float = R_MAX

    def __call__(self, area: float) -> float:
        if self.high == self.low:
            return self.r_min
        value = _sqrt_area(area)
        t = (value - self.low) / (self.high - self.low)
        t = min(1.0, max(0.0, t))
        return self.r_min + t * (self.r_max - self.r_min)

    def of(self, node: Node) -> float:
        return self(node.area)

    def many(self, nodes: Sequence[Node]) -> np.ndarray:
        return np.fromiter((self(node.area) for node in nodes), dtype=float, count=len(nodes))


def scale_radius(nodes: Iterable[Node], r_min: float = R_MIN, r_max: float = R_MAX) -> RadiusScale:
    """Build the radius scale for the current node set."""

    values = [_sqrt_area(node.area) for node in nodes]
    if not values:
        return RadiusScale(r_min=r_min, r_max=r_max)
    return RadiusScale(low=min(values), high=max(values), r_min=r_min, r_max=r_max)


__all__ = ["RadiusScale", "scale_radius"]
