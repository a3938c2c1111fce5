"""Authoritative node/link collections and the selection set."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .model import (
    Link,
    LinkKind,
    Node,
    NodeId,
    PairKey,
    new_id,
    pair_key,
    prefer_link,
)
from .radius import RadiusScale, scale_radius

logger = logging.getLogger(__name__)

NodeInput = Union[Node, Mapping[str, object]]


class GraphStore:
    """Nodes, links and selection of one diagram.

    Nodes keep insertion order, which is also the order used when resolving
    duplicate names and when iterating pairs in the collision resolver.
    """

    def __init__(self, id_factory: Optional[Callable[[], str]] = None) -> None:
        self.nodes: List[Node] = []
        self.links: List[Link] = []
        self.selection: List[NodeId] = []
        self._index: Dict[NodeId, Node] = {}
        self._id_factory = id_factory or new_id
        self._version = 0
        self._scale_version = -1
        self._scale: Optional[RadiusScale] = None

    # ------------------------------------------------------------------ nodes
    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    def node(self, node_id: NodeId) -> Optional[Node]:
        return self._index.get(node_id)

    def new_id(self) -> str:
        return self._id_factory()

    def _touch(self) -> None:
        self._version += 1

    def radius_scale(self) -> RadiusScale:
        """Return the radius scale for the current node set, rebuilding it when stale."""

        if self._scale is None or self._scale_version != self._version:
            self._scale = scale_radius(self.nodes)
            self._scale_version = self._version
        return self._scale

    def radius(self, node_id: NodeId) -> float:
        node = self._index.get(node_id)
        scale = self.radius_scale()
        return scale(node.area) if node is not None else scale.r_min

    def add_node(
        self,
        name: str,
        area: float,
        x: float = 0.0,
        y: float = 0.0,
        *,
        node_id: Optional[NodeId] = None,
        locked: bool = False,
    ) -> Node:
        node = Node(
            id=node_id or self._id_factory(),
            name=name,
            area=area,
            x=x,
            y=y,
            locked=locked,
        )
        return self.upsert_nodes([node])[0]

    def upsert_nodes(self, records: Iterable[NodeInput]) -> List[Node]:
        """Insert new nodes or update existing ones (matched by id)."""

        touched: List[Node] = []
        added = 0
        for record in records:
            incoming = record if isinstance(record, Node) else Node.from_record(record, self._id_factory)
            existing = self._index.get(incoming.id)
            if existing is None:
                self.nodes.append(incoming)
                self._index[incoming.id] = incoming
                touched.append(incoming)
                added += 1
                continue
            existing.name = incoming.name
            existing.area = incoming.area
            existing.x = incoming.x
            existing.y = incoming.y
            existing.locked = incoming.locked
            existing.fixed = incoming.fixed
            touched.append(existing)
        if touched:
            self._touch()
        logger.info("Upserted %d node(s) (%d new)", len(touched), added)
        return touched

    def remove_nodes(self, ids: Iterable[NodeId]) -> int:
        doomed = {node_id for node_id in ids if node_id in self._index}
        if not doomed:
            logger.debug("remove_nodes: no known ids")
            return 0
        self.nodes = [node for node in self.nodes if node.id not in doomed]
        for node_id in doomed:
            del self._index[node_id]
        before = len(self.links)
        self.links = [link for link in self.links if link.source not in doomed and link.target not in doomed]
        self.selection = [node_id for node_id in self.selection if node_id not in doomed]
        self._touch()
        logger.info(
            "Removed %d node(s) and %d incident link(s)", len(doomed), before - len(self.links)
        )
        return len(doomed)

    def rename(self, node_id: NodeId, name: str) -> bool:
        node = self._index.get(node_id)
        if node is None:
            return False
        node.name = str(name)
        return True

    def change_area(self, node_id: NodeId, area: float) -> bool:
        node = self._index.get(node_id)
        if node is None:
            return False
        node.area = Node(id=node_id, name=node.name, area=area).area
        self._touch()
        return True

    def set_locked(self, node_id: NodeId, flag: bool) -> bool:
        node = self._index.get(node_id)
        if node is None:
            return False
        if flag:
            node.lock()
        else:
            node.unlock()
        return True

    def clear(self) -> None:
        self.nodes = []
        self.links = []
        self.selection = []
        self._index = {}
        self._touch()
        logger.info("Cleared diagram")

    # ------------------------------------------------------------------ links
    def links_between(self, a: NodeId, b: NodeId) -> List[Link]:
        key = pair_key(a, b)
        return [link for link in self.links if link.key == key]

    def link_between(self, a: NodeId, b: NodeId) -> Optional[Link]:
        best: Optional[Link] = None
        for link in self.links_between(a, b):
            best = prefer_link(best, link)
        return best

    def link_kind_between(self, a: NodeId, b: NodeId) -> str:
        link = self.link_between(a, b)
        return link.kind.value if link is not None else "none"

    def _drop_pair(self, key: PairKey) -> None:
        self.links = [link for link in self.links if link.key != key]

    def upsert_link(
        self, a: NodeId, b: NodeId, kind: Union[LinkKind, str], *, replace: bool = False
    ) -> Optional[Link]:
        """Create or update the single link between ``a`` and ``b``.

        ``kind="none"`` removes the pair. Without ``replace`` an existing
        ``necessary`` link is never downgraded to ``ideal``. Self links and
        unknown ids are ignored.
        """

        if a == b or a not in self._index or b not in self._index:
            logger.debug("upsert_link ignored for pair %s-%s", a, b)
            return None
        key = pair_key(a, b)
        resolved = LinkKind.coerce(kind)
        if resolved is None:
            self._drop_pair(key)
            return None
        current = self.link_between(a, b)
        if current is not None and not replace:
            winner = prefer_link(current, Link(id="", source=a, target=b, kind=resolved))
            if winner is current:
                if len(self.links_between(a, b)) > 1:
                    self._drop_pair(key)
                    self.links.append(current)
                return current
        link = Link(id=self._id_factory(), source=a, target=b, kind=resolved)
        self._drop_pair(key)
        self.links.append(link)
        logger.debug("Linked %s-%s as %s", a, b, resolved.value)
        return link

    def add_raw_link(self, link: Link) -> Optional[Link]:
        """Insert a deserialized link, keeping the one-link-per-pair invariant."""

        if link.source == link.target:
            return None
        if link.source not in self._index or link.target not in self._index:
            return None
        current = self.link_between(link.source, link.target)
        if prefer_link(current, link) is current:
            return current
        self._drop_pair(link.key)
        self.links.append(link)
        return link

    def remove_link(self, link_id: str) -> bool:
        before = len(self.links)
        self.links = [link for link in self.links if link.id != link_id]
        return len(self.links) != before

    def deduplicated_links(self) -> List[Link]:
        """Links with one entry per pair, ``necessary`` preferred."""

        by_pair: Dict[PairKey, Link] = {}
        for link in self.links:
            if link.source == link.target:
                continue
            if link.source not in self._index or link.target not in self._index:
                continue
            by_pair[link.key] = prefer_link(by_pair.get(link.key), link)
        return list(by_pair.values())

    # -------------------------------------------------------------- selection
    def set_selection(self, ids: Iterable[NodeId]) -> None:
        self.selection = list(dict.fromkeys(node_id for node_id in ids if node_id in self._index))

    def select_only(self, node_id: Optional[NodeId]) -> None:
        self.set_selection([node_id] if node_id else [])

    def toggle_selection(self, node_id: NodeId) -> None:
        if node_id in self.selection:
            self.selection = [other for other in self.selection if other != node_id]
        elif node_id in self._index:
            self.selection = self.selection + [node_id]

    def select_all(self) -> None:
        self.selection = [node.id for node in self.nodes]

    def clear_selection(self) -> None:
        self.selection = []

    def is_selected(self, node_id: NodeId) -> bool:
        return node_id in self.selection

    def selected_nodes(self) -> List[Node]:
        return [self._index[node_id] for node_id in self.selection if node_id in self._index]

    # -------------------------------------------------------------- snapshots
    def snapshot(self) -> Dict[str, object]:
        return {
            "nodes": [node.to_record() for node in self.nodes],
            "links": [link.to_record() for link in self.links],
            "selection": list(self.selection),
        }

    def restore(self, snapshot: Mapping[str, object]) -> None:
        """Replace the store contents with a previously taken ``snapshot``."""

        self.clear()
        nodes = snapshot.get("nodes") or []
        links = snapshot.get("links") or []
        self.upsert_nodes(record for record in nodes if isinstance(record, Mapping))  # type: ignore[union-attr]
        for record in links:  # type: ignore[union-attr]
            if not isinstance(record, Mapping):
                continue
            link = Link.from_record(record, self._id_factory)
            if link is not None:
                self.add_raw_link(link)
        selection = snapshot.get("selection") or []
        self.set_selection(selection)  # type: ignore[arg-type]

    def ids(self) -> Sequence[NodeId]:
        return [node.id for node in self.nodes]


__all__ = ["GraphStore", "NodeInput"]
