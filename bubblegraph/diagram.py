"""One bubble diagram: graph store, layout engine and layout settings."""

from __future__ import annotations

import copy
import logging
import math
from dataclasses import dataclass
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np

from .collisions import Overlap, find_overlaps, resolve_once, resolve_until_clear
from .conflicts import ConflictReport, MissingPair, auto_connect, compute_conflicts
from .listparse import SAMPLE_LIST, parse_list
from .model import Link, LinkKind, Node, NodeId, normalize_name
from .scenes import SceneBook
from .simulation import SimulationConfig, SimulationEngine
from .store import GraphStore, NodeInput

logger = logging.getLogger(__name__)


@dataclass
class DiagramSettings:
    buffer: float = 6.0
    rotation_sensitivity: float = 0.0
    physics_enabled: bool = True
    long_link_tolerance: float = 1.8
    resolve_iterations: int = 2
    ring_radius: float = 260.0
    extras_spread: float = 20.0


_DEFAULT_SETTINGS = DiagramSettings()


def get_default_settings() -> DiagramSettings:
    return copy.deepcopy(_DEFAULT_SETTINGS)


def set_default_settings(settings: DiagramSettings) -> None:
    global _DEFAULT_SETTINGS
    _DEFAULT_SETTINGS = copy.deepcopy(settings)


class Diagram:
    """Entry point used by hosts (UI, CLI, tests) to drive a bubble diagram.

    Every mutation is total: unknown ids are ignored. Structural mutations
    restart the simulation; while physics is paused, area and buffer
    changes are followed by a batch collision resolve instead.
    """

    def __init__(
        self,
        settings: Optional[DiagramSettings] = None,
        *,
        config: Optional[SimulationConfig] = None,
        seed: Optional[int] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self.settings = settings or get_default_settings()
        self.store = GraphStore(id_factory)
        self.engine = SimulationEngine(
            self.store,
            config,
            buffer=self.settings.buffer,
            rotation_sensitivity=self.settings.rotation_sensitivity,
            running=self.settings.physics_enabled,
            seed=seed,
        )
        self.scenes = SceneBook(self)
        self._rng = np.random.default_rng(seed)

    # ------------------------------------------------------------ accessors
    @property
    def nodes(self) -> List[Node]:
        return self.store.nodes

    @property
    def links(self) -> List[Link]:
        return self.store.links

    @property
    def selection(self) -> List[NodeId]:
        return self.store.selection

    @property
    def buffer(self) -> float:
        return self.settings.buffer

    @property
    def physics_enabled(self) -> bool:
        return self.settings.physics_enabled

    def node(self, node_id: NodeId) -> Optional[Node]:
        return self.store.node(node_id)

    def radius(self, node_id: NodeId) -> float:
        return self.store.radius(node_id)

    def find_by_name(self, name: str) -> Optional[Node]:
        key = normalize_name(name)
        for node in self.store.nodes:
            if normalize_name(node.name) == key:
                return node
        return None

    # ----------------------------------------------------------- parameters
    def set_buffer(self, px: float) -> None:
        self.settings.buffer = max(0.0, float(px))
        self.engine.set_buffer(self.settings.buffer)
        logger.info("Buffer set to %.1f", self.settings.buffer)
        self._resolve_if_paused()

    def set_rotation_sensitivity(self, level: float) -> None:
        self.engine.set_rotation_sensitivity(level)
        self.settings.rotation_sensitivity = self.engine.rotation_sensitivity

    def set_physics_enabled(self, enabled: bool) -> None:
        self.settings.physics_enabled = bool(enabled)
        self.engine.set_running(self.settings.physics_enabled)

    def trigger_detangle(self) -> None:
        self.engine.trigger_detangle()

    # ------------------------------------------------------------ structure
    def _structure_changed(self) -> None:
        self.engine.structure_changed()

    def _resolve_if_paused(self) -> None:
        if not self.physics_enabled:
            self.resolve_once()

    def upsert_nodes(self, records: Iterable[NodeInput]) -> List[Node]:
        self.engine.commit()
        touched = self.store.upsert_nodes(records)
        if touched:
            self._structure_changed()
            self._resolve_if_paused()
        return touched

    def add_node(self, name: str, area: float, x: float = 0.0, y: float = 0.0, **kwargs) -> Node:
        self.engine.commit()
        node = self.store.add_node(name, area, x, y, **kwargs)
        self._structure_changed()
        return node

    def remove_nodes(self, ids: Iterable[NodeId]) -> int:
        ids = list(ids)
        self.engine.commit()
        removed = self.store.remove_nodes(ids)
        if removed:
            self.engine.release(ids)
            self._structure_changed()
        return removed

    def upsert_link(
        self,
        a: NodeId,
        b: NodeId,
        kind: Union[LinkKind, str] = LinkKind.NECESSARY,
        *,
        replace: bool = False,
    ) -> Optional[Link]:
        """Create, upgrade or (with ``"none"``) remove the link between two nodes.

        ``necessary`` is only downgraded to ``ideal`` when ``replace`` is set.
        """

        self.engine.commit()
        before = self.store.link_kind_between(a, b)
        link = self.store.upsert_link(a, b, kind, replace=replace)
        if self.store.link_kind_between(a, b) != before:
            self._structure_changed()
        return link

    def remove_link(self, link_id: str) -> bool:
        self.engine.commit()
        removed = self.store.remove_link(link_id)
        if removed:
            self._structure_changed()
        return removed

    def rename_node(self, node_id: NodeId, name: str) -> bool:
        return self.store.rename(node_id, name)

    def change_area(self, node_id: NodeId, area: float) -> bool:
        self.engine.commit()
        changed = self.store.change_area(node_id, area)
        if changed:
            self._structure_changed()
            self._resolve_if_paused()
        return changed

    def set_locked(self, node_id: NodeId, flag: bool) -> bool:
        self.engine.commit()
        return self.store.set_locked(node_id, flag)

    def pin_selection(self, flag: bool) -> int:
        self.engine.commit()
        count = 0
        for node_id in list(self.store.selection):
            if self.store.set_locked(node_id, flag):
                count += 1
        logger.info("%s %d selected node(s)", "Locked" if flag else "Unlocked", count)
        return count

    def clear(self) -> None:
        self.engine.discard_pending()
        self.store.clear()
        self.engine.release()
        self._structure_changed()

    def snapshot(self) -> dict:
        self.engine.commit()
        return self.store.snapshot()

    def restore(self, snapshot: Mapping[str, object]) -> None:
        self.engine.discard_pending()
        self.engine.release()
        self.store.restore(snapshot)
        self._structure_changed()

    # --------------------------------------------------------------- layout
    def resolve_once(self, iterations: Optional[int] = None) -> int:
        """Batch collision resolve; does nothing while physics is running."""

        if self.physics_enabled:
            logger.debug("resolve_once skipped: simulation is running")
            return 0
        passes = self.settings.resolve_iterations if iterations is None else iterations
        return resolve_once(self.store.nodes, self.store.radius_scale(), self.buffer, passes)

    def resolve_until_clear(self, max_passes: int = 64) -> int:
        if self.physics_enabled:
            logger.debug("resolve_until_clear skipped: simulation is running")
            return 0
        return resolve_until_clear(self.store.nodes, self.store.radius_scale(), self.buffer, max_passes)

    def overlaps(self, tolerance: float = 1e-6) -> List[Overlap]:
        self.engine.commit()
        return find_overlaps(self.store.nodes, self.store.radius_scale(), self.buffer, tolerance)

    def step(self, ticks: int = 1) -> int:
        return self.engine.step(ticks)

    def run_until_settled(self, max_ticks: int = 3000) -> int:
        return self.engine.run_until_settled(max_ticks)

    # ------------------------------------------------------------ conflicts
    def compute_conflicts(self, expected_pairs_text: str, tolerance: Optional[float] = None) -> ConflictReport:
        self.engine.commit()
        return compute_conflicts(
            self.store,
            expected_pairs_text,
            buffer=self.buffer,
            tolerance=self.settings.long_link_tolerance if tolerance is None else tolerance,
            config=self.engine.config,
        )

    def auto_connect(self, missing: Union[ConflictReport, Sequence[MissingPair]]) -> List[Link]:
        self.engine.commit()
        pairs = missing.missing_pairs if isinstance(missing, ConflictReport) else missing
        created = auto_connect(self.store, pairs)
        if created:
            self._structure_changed()
        return created

    # ---------------------------------------------------------------- lists
    def generate_from_list(self, text: Optional[str] = None) -> List[Node]:
        """Replace the diagram with one node per list line, placed on a ring."""

        entries = parse_list(text or SAMPLE_LIST)
        self.clear()
        step = 2.0 * math.pi / max(1, len(entries))
        ring = self.settings.ring_radius
        nodes = [
            Node(
                id=self.store.new_id(),
                name=entry.name,
                area=entry.area,
                x=math.cos(i * step) * ring,
                y=math.sin(i * step) * ring,
            )
            for i, entry in enumerate(entries)
        ]
        self.store.upsert_nodes(nodes)
        self.set_physics_enabled(True)
        self._structure_changed()
        logger.info("Generated %d node(s) from list", len(nodes))
        return nodes

    def _extra_node(self, name: str, area: float) -> Node:
        spread = self.settings.extras_spread
        x, y = self._rng.uniform(-spread, spread, size=2)
        return Node(id=self.store.new_id(), name=name, area=area, x=float(x), y=float(y))

    def update_from_list(self, text: str, *, match: str = "name", update_areas: bool = False) -> int:
        """Rename/resize existing nodes from a list and append unmatched entries.

        ``match="index"`` pairs list lines with nodes by position; ``"name"``
        pairs them by normalized name, each node matched at most once.
        Returns the number of nodes appended.
        """

        if not self.store.nodes:
            return 0
        entries = parse_list(text)
        if not entries:
            return 0
        if match not in ("name", "index"):
            raise ValueError(f"unknown match mode: {match!r}")
        self.engine.commit()

        nodes = self.store.nodes
        extras: List[Node] = []
        if match == "index":
            for i, entry in enumerate(entries):
                if i < len(nodes):
                    nodes[i].name = entry.name
                    if update_areas:
                        self.store.change_area(nodes[i].id, entry.area)
                else:
                    extras.append(self._extra_node(entry.name, entry.area))
        else:
            buckets = {}
            for node in nodes:
                buckets.setdefault(normalize_name(node.name), []).append(node)
            for entry in entries:
                bucket = buckets.get(normalize_name(entry.name))
                if bucket:
                    node = bucket.pop(0)
                    node.name = entry.name
                    if update_areas:
                        self.store.change_area(node.id, entry.area)
                else:
                    extras.append(self._extra_node(entry.name, entry.area))

        if extras:
            self.store.upsert_nodes(extras)
        self._structure_changed()
        self._resolve_if_paused()
        logger.info("Updated diagram from list (%s match, %d new node(s))", match, len(extras))
        return len(extras)

    def close(self) -> None:
        self.engine.close()


__all__ = [
    "Diagram",
    "DiagramSettings",
    "get_default_settings",
    "set_default_settings",
]
