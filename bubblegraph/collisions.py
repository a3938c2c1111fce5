"""Discrete overlap correction used while the simulation is paused."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

import numpy as np
from scipy.spatial import cKDTree

from .geometry import unit_between
from .logging_utils import apply_debug_logging
from .model import Node, NodeId
from .radius import RadiusScale

logger = logging.getLogger(__name__)

# Gaps within this distance of the required minimum count as resolved.
_SEPARATION_TOL = 1e-9
LIVE_PUSH_MARGIN = 0.5


@dataclass
class Overlap:
    a: NodeId
    b: NodeId
    depth: float


def _pair_tag(a: Node, b: Node) -> str:
    return f"{a.id}|{b.id}"


def _shift(node: Node, dx: float, dy: float) -> None:
    node.move_to(node.x + dx, node.y + dy)


def resolve_once(
    nodes: Sequence[Node],
    radius: RadiusScale,
    buffer: float,
    iterations: int = 2,
) -> int:
    """Push overlapping pairs apart symmetrically for ``iterations`` passes.

    Every unordered pair is visited in node order. An overlapping pair moves
    apart by half the overlap each along the line joining the centres. A
    locked node never leaves its lock: the free partner takes the whole push,
    and pairs of locked nodes are left alone. Returns the number of
    corrections, so ``0`` means the layout was already clean.
    """

    for node in nodes:
        node.snap_to_lock()
    radii = [radius(node.area) for node in nodes]
    corrections = 0
    count = len(nodes)
    for _ in range(max(0, int(iterations))):
        for i in range(count):
            a = nodes[i]
            for j in range(i + 1, count):
                b = nodes[j]
                if a.locked and b.locked:
                    continue
                min_d = radii[i] + radii[j] + buffer
                (ux, uy), d = unit_between(a.position, b.position, _pair_tag(a, b))
                if d >= min_d - _SEPARATION_TOL:
                    continue
                overlap = min_d - d
                if a.locked:
                    _shift(b, ux * overlap, uy * overlap)
                elif b.locked:
                    _shift(a, -ux * overlap, -uy * overlap)
                else:
                    half = overlap / 2.0
                    _shift(a, -ux * half, -uy * half)
                    _shift(b, ux * half, uy * half)
                corrections += 1
    if corrections:
        logger.info("Static resolve made %d correction(s) over %d node(s)", corrections, count)
    return corrections


def resolve_until_clear(
    nodes: Sequence[Node],
    radius: RadiusScale,
    buffer: float,
    max_passes: int = 64,
) -> int:
    """Run single resolve passes until one of them changes nothing."""

    total = 0
    for _ in range(max(1, int(max_passes))):
        made = resolve_once(nodes, radius, buffer, iterations=1)
        total += made
        if made == 0:
            break
    else:
        logger.warning("Overlaps remain after %d resolve passes", max_passes)
    return total


def resolve_live(
    nodes: Sequence[Node],
    moving_ids: Iterable[NodeId],
    radius: RadiusScale,
    buffer: float,
) -> int:
    """Push only the moving nodes out of every other node.

    Stationary nodes keep their position; each moving node is pushed by the
    overlap plus a small margin so it never comes to rest inside a collision.
    """

    index: Dict[NodeId, Node] = {node.id: node for node in nodes}
    pushes = 0
    for node_id in moving_ids:
        a = index.get(node_id)
        if a is None:
            continue
        ra = radius(a.area)
        for b in nodes:
            if b is a:
                continue
            min_d = ra + radius(b.area) + buffer
            (ux, uy), d = unit_between(b.position, a.position, _pair_tag(b, a))
            if d >= min_d:
                continue
            push = (min_d - d) + LIVE_PUSH_MARGIN
            _shift(a, ux * push, uy * push)
            pushes += 1
    return pushes


def find_overlaps(
    nodes: Sequence[Node],
    radius: RadiusScale,
    buffer: float,
    tolerance: float = 1e-6,
) -> List[Overlap]:
    """List every pair closer than ``ra + rb + buffer - tolerance``."""

    if len(nodes) < 2:
        return []
    positions = np.array([node.position for node in nodes], dtype=float)
    radii = radius.many(nodes)
    reach = 2.0 * float(radii.max()) + max(buffer, 0.0)
    tree = cKDTree(positions)
    overlaps: List[Overlap] = []
    for i, j in sorted(tree.query_pairs(r=reach)):
        min_d = radii[i] + radii[j] + buffer
        d = float(np.linalg.norm(positions[i] - positions[j]))
        if d < min_d - tolerance:
            overlaps.append(Overlap(a=nodes[i].id, b=nodes[j].id, depth=min_d - d))
    return overlaps


__all__ = [
    "LIVE_PUSH_MARGIN",
    "Overlap",
    "find_overlaps",
    "resolve_live",
    "resolve_once",
    "resolve_until_clear",
]


apply_debug_logging(globals(), logger=logger, skip=("_pair_tag", "_shift"))
