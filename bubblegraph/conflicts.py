"""Adjacency conflicts: required pairs without a link and overstretched links."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .logging_utils import apply_debug_logging
from .model import Link, LinkKind, Node, NodeId, PairKey, normalize_name, pair_key
from .radius import RadiusScale
from .simulation.config import SimulationConfig, get_default_config
from .simulation.forces import link_rest_distance
from .store import GraphStore

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 1.8

_PAIR_RE = re.compile(r"^(.*?)\s*[-,]\s*(.*?)$")


@dataclass(frozen=True)
class MissingPair:
    a: NodeId
    b: NodeId
    names: Tuple[str, str] = ("", "")

    @property
    def key(self) -> PairKey:
        return pair_key(self.a, self.b)


@dataclass
class ConflictReport:
    missing_pairs: List[MissingPair] = field(default_factory=list)
    overlong_link_ids: List[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not self.missing_pairs and not self.overlong_link_ids

    def missing_node_ids(self) -> Set[NodeId]:
        ids: Set[NodeId] = set()
        for pair in self.missing_pairs:
            ids.update((pair.a, pair.b))
        return ids


def parse_expected_pairs(text: str) -> List[Tuple[str, str]]:
    """Split ``"A - B"`` / ``"A, B"`` lines into name pairs.

    Blank and malformed lines are dropped without complaint.
    """

    pairs: List[Tuple[str, str]] = []
    for raw in (text or "").splitlines():
        line = raw.strip()
        if not line:
            continue
        match = _PAIR_RE.match(line)
        if not match:
            continue
        left, right = match.group(1).strip(), match.group(2).strip()
        if not left or not right:
            continue
        pairs.append((left, right))
    return pairs


def _name_index(nodes: Iterable[Node]) -> Dict[str, Node]:
    index: Dict[str, Node] = {}
    for node in nodes:
        # First node with a given name keeps it.
        index.setdefault(normalize_name(node.name), node)
    return index


def missing_necessary_pairs(
    nodes: Sequence[Node], links: Sequence[Link], expected_text: str
) -> List[MissingPair]:
    by_name = _name_index(nodes)
    have = {link.key for link in links if link.kind == LinkKind.NECESSARY}
    seen: Set[PairKey] = set()
    missing: List[MissingPair] = []
    for left, right in parse_expected_pairs(expected_text):
        a = by_name.get(normalize_name(left))
        b = by_name.get(normalize_name(right))
        if a is None or b is None or a.id == b.id:
            continue
        key = pair_key(a.id, b.id)
        if key in have or key in seen:
            continue
        seen.add(key)
        missing.append(MissingPair(a=a.id, b=b.id, names=(a.name, b.name)))
    return missing


def overlong_link_ids(
    nodes: Sequence[Node],
    links: Sequence[Link],
    radius: RadiusScale,
    buffer: float,
    tolerance: float = DEFAULT_TOLERANCE,
    config: Optional[SimulationConfig] = None,
) -> List[str]:
    """Ids of ``necessary`` links stretched beyond ``tolerance`` times their rest length."""

    cfg = config or get_default_config()
    index = {node.id: node for node in nodes}
    flagged: List[str] = []
    for link in links:
        if link.kind != LinkKind.NECESSARY:
            continue
        s = index.get(link.source)
        t = index.get(link.target)
        if s is None or t is None:
            continue
        dist = math.hypot(t.x - s.x, t.y - s.y)
        baseline = link_rest_distance(radius(s.area), radius(t.area), LinkKind.NECESSARY, buffer, cfg)
        if dist > baseline * tolerance:
            flagged.append(link.id)
    return flagged


def compute_conflicts(
    store: GraphStore,
    expected_text: str,
    *,
    buffer: float,
    tolerance: float = DEFAULT_TOLERANCE,
    config: Optional[SimulationConfig] = None,
) -> ConflictReport:
    report = ConflictReport(
        missing_pairs=missing_necessary_pairs(store.nodes, store.links, expected_text),
        overlong_link_ids=overlong_link_ids(
            store.nodes, store.links, store.radius_scale(), buffer, tolerance, config
        ),
    )
    logger.info(
        "Conflicts: %d missing necessary pair(s), %d overlong link(s)",
        len(report.missing_pairs),
        len(report.overlong_link_ids),
    )
    return report


def auto_connect(store: GraphStore, pairs: Iterable[MissingPair]) -> List[Link]:
    """Create a ``necessary`` link for every listed pair that still lacks one.

    Pairs repeated in ``pairs`` are linked once. An existing ``ideal`` link on
    a listed pair is upgraded in place.
    """

    created: List[Link] = []
    done: Set[PairKey] = set()
    for pair in pairs:
        if pair.key in done:
            continue
        done.add(pair.key)
        if store.link_kind_between(pair.a, pair.b) == LinkKind.NECESSARY.value:
            continue
        link = store.upsert_link(pair.a, pair.b, LinkKind.NECESSARY)
        if link is not None:
            created.append(link)
    logger.info("Auto-connected %d missing pair(s)", len(created))
    return created


__all__ = [
    "ConflictReport",
    "DEFAULT_TOLERANCE",
    "MissingPair",
    "auto_connect",
    "compute_conflicts",
    "missing_necessary_pairs",
    "overlong_link_ids",
    "parse_expected_pairs",
]


apply_debug_logging(globals(), logger=logger)
