"""Force kernels applied once per simulation tick.

Every kernel mutates the ``velocities`` array in place (centering moves
``positions``). Kernels that resolve pairs one after another (collision,
links) run sequentially so each correction sees the velocities left by the
previous one; the rest are vectorized.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np
from scipy.spatial import cKDTree

from ..model import LinkKind
from .config import SimulationConfig

_JIGGLE = 1e-6


def _jiggle(rng: np.random.Generator) -> float:
    return (float(rng.random()) - 0.5) * _JIGGLE


@dataclass
class LinkSpec:
    """A deduplicated link expressed with node indices."""

    source: int
    target: int
    kind: LinkKind


def explode_charge_factor(explode: float, boost: float) -> float:
    # Deliberate step at explode == 1: no boost at all until the pulse is active.
    return boost * explode if explode > 1.0 else 1.0


def link_rest_distance(
    ra: float,
    rb: float,
    kind: LinkKind,
    buffer: float,
    config: SimulationConfig,
    explode: float = 1.0,
) -> float:
    factor = config.necessary_length_factor if kind == LinkKind.NECESSARY else config.ideal_length_factor
    base = (ra + rb) * config.link_scale * factor + config.link_offset + buffer * config.link_buffer_factor
    return base * (explode or 1.0)


def link_strength(kind: LinkKind, config: SimulationConfig) -> float:
    return config.necessary_strength if kind == LinkKind.NECESSARY else config.ideal_strength


def apply_repulsion(
    positions: np.ndarray,
    velocities: np.ndarray,
    alpha: float,
    strength: float,
    distance_min: float,
    rng: np.random.Generator,
) -> None:
    """Exact all-pairs many-body force; negative ``strength`` repels."""

    count = positions.shape[0]
    if count < 2 or strength == 0.0:
        return
    diff = positions[np.newaxis, :, :] - positions[:, np.newaxis, :]
    dist2 = np.einsum("ijk,ijk->ij", diff, diff)
    coincident = dist2 == 0.0
    np.fill_diagonal(coincident, False)
    if coincident.any():
        rows, cols = np.nonzero(coincident)
        for i, j in zip(rows, cols):
            diff[i, j] = (_jiggle(rng), _jiggle(rng))
        dist2 = np.einsum("ijk,ijk->ij", diff, diff)
    min2 = distance_min * distance_min
    dist2 = np.where(dist2 < min2, np.sqrt(min2 * dist2), dist2)
    np.fill_diagonal(dist2, 1.0)
    weight = strength * alpha / dist2
    np.fill_diagonal(weight, 0.0)
    velocities += np.einsum("ij,ijk->ik", weight, diff)


def apply_collision(
    positions: np.ndarray,
    velocities: np.ndarray,
    radii: np.ndarray,
    strength: float,
    rng: np.random.Generator,
) -> int:
    """Separate overlapping circles through their velocities.

    Candidate pairs come from a KD-tree over the predicted positions. Each
    overlap is split between the two nodes in proportion to the other
    node's squared radius, so small circles yield to large ones.
    """

    count = positions.shape[0]
    if count < 2 or strength <= 0.0:
        return 0
    predicted = positions + velocities
    reach = 2.0 * float(radii.max())
    neighbours: Dict[int, List[int]] = {}
    for i, j in cKDTree(predicted).query_pairs(r=reach):
        neighbours.setdefault(i, []).append(j)
    radii_sq = radii * radii
    hits = 0
    for i in sorted(neighbours):
        xi = positions[i] + velocities[i]
        ri = radii[i]
        for j in sorted(neighbours[i]):
            x = xi[0] - positions[j, 0] - velocities[j, 0]
            y = xi[1] - positions[j, 1] - velocities[j, 1]
            r = ri + radii[j]
            l = x * x + y * y
            if l >= r * r:
                continue
            if x == 0.0:
                x = _jiggle(rng)
                l += x * x
            if y == 0.0:
                y = _jiggle(rng)
                l += y * y
            l = float(np.sqrt(l))
            l = (r - l) / l * strength
            x *= l
            y *= l
            share = radii_sq[j] / (radii_sq[i] + radii_sq[j])
            velocities[i, 0] += x * share
            velocities[i, 1] += y * share
            velocities[j, 0] -= x * (1.0 - share)
            velocities[j, 1] -= y * (1.0 - share)
            hits += 1
    return hits


def apply_centering(positions: np.ndarray, strength: float) -> None:
    """Translate the layout so its centroid moves to the origin."""

    if positions.shape[0] == 0 or strength == 0.0:
        return
    positions -= positions.mean(axis=0) * strength


def apply_links(
    positions: np.ndarray,
    velocities: np.ndarray,
    links: Sequence[LinkSpec],
    rest: Sequence[float],
    strengths: Sequence[float],
    alpha: float,
    rng: np.random.Generator,
) -> None:
    """Spring each linked pair toward its rest distance.

    The correction is split by degree: the endpoint with more links moves
    less.
    """

    if not links:
        return
    degree = np.zeros(positions.shape[0], dtype=float)
    for spec in links:
        degree[spec.source] += 1.0
        degree[spec.target] += 1.0
    for spec, distance, strength in zip(links, rest, strengths):
        s, t = spec.source, spec.target
        x = positions[t, 0] + velocities[t, 0] - positions[s, 0] - velocities[s, 0]
        y = positions[t, 1] + velocities[t, 1] - positions[s, 1] - velocities[s, 1]
        if x == 0.0:
            x = _jiggle(rng)
        if y == 0.0:
            y = _jiggle(rng)
        l = float(np.hypot(x, y))
        l = (l - distance) / l * alpha * strength
        x *= l
        y *= l
        bias = degree[s] / (degree[s] + degree[t])
        velocities[t, 0] -= x * bias
        velocities[t, 1] -= y * bias
        velocities[s, 0] += x * (1.0 - bias)
        velocities[s, 1] += y * (1.0 - bias)


def apply_axis_pull(positions: np.ndarray, velocities: np.ndarray, alpha: float, strength: float) -> None:
    """Independent weak pulls toward the x and y axes through the origin."""

    if strength == 0.0:
        return
    velocities -= positions * (strength * alpha)


def apply_spin(
    positions: np.ndarray,
    velocities: np.ndarray,
    alpha: float,
    sensitivity: float,
    base: float,
    movable: Optional[np.ndarray] = None,
) -> None:
    """Add a tangential velocity proportional to the distance from the origin."""

    if not sensitivity:
        return
    k = base * sensitivity * alpha
    mask = slice(None) if movable is None else movable
    velocities[mask, 0] += -positions[mask, 1] * k
    velocities[mask, 1] += positions[mask, 0] * k


__all__ = [
    "LinkSpec",
    "apply_axis_pull",
    "apply_centering",
    "apply_collision",
    "apply_links",
    "apply_repulsion",
    "apply_spin",
    "explode_charge_factor",
    "link_rest_distance",
    "link_strength",
]
