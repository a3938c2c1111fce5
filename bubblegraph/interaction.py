"""Pointer-driven editing: group drag, lasso selection and connect mode."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Union

from .collisions import resolve_live
from .geometry import point_in_polygon
from .model import ActionRecord, LinkKind, NodeId, Point

if TYPE_CHECKING:  # pragma: no cover
    from .diagram import Diagram

logger = logging.getLogger(__name__)

NUDGE_STEP = 5.0
NUDGE_STEP_LARGE = 20.0

_ARROWS = {
    "ArrowLeft": (-1.0, 0.0),
    "ArrowRight": (1.0, 0.0),
    "ArrowUp": (0.0, -1.0),
    "ArrowDown": (0.0, 1.0),
}


class Mode(str, Enum):
    SELECT = "select"
    CONNECT = "connect"


@dataclass
class DragState:
    ids: List[NodeId]
    start: Point
    start_positions: Dict[NodeId, Point]
    before: Dict[str, object]
    moved: bool = False


@dataclass
class LassoState:
    points: List[Point] = field(default_factory=list)


class InteractionController:
    """Translate pointer and keyboard input into diagram mutations.

    Each completed discrete action (one drag that moved something, one link
    created, one nudge, one delete) is reported exactly once to
    ``on_action`` with the store snapshot taken before it.
    """

    def __init__(
        self,
        diagram: "Diagram",
        on_action: Optional[Callable[[ActionRecord], None]] = None,
    ) -> None:
        self.diagram = diagram
        self.on_action = on_action
        self.mode = Mode.SELECT
        self.link_kind = LinkKind.NECESSARY
        self.pending_source: Optional[NodeId] = None
        self.focused_id: Optional[NodeId] = None
        self.pan_zoom_enabled = True
        self.drag: Optional[DragState] = None
        self.lasso: Optional[LassoState] = None

    # ----------------------------------------------------------------- modes
    def set_mode(self, mode: Union[Mode, str]) -> None:
        self.mode = Mode(mode)
        self.pending_source = None
        if self.lasso is not None:
            self._end_lasso()
        logger.debug("Interaction mode %s", self.mode.value)

    def set_link_kind(self, kind: Union[LinkKind, str]) -> None:
        resolved = LinkKind.coerce(kind)
        if resolved is None:
            raise ValueError(f"unknown link kind: {kind!r}")
        self.link_kind = resolved

    def _emit(self, kind: str, before: Dict[str, object]) -> ActionRecord:
        record = ActionRecord(kind=kind, before=before)
        if self.on_action is not None:
            self.on_action(record)
        logger.debug("Action %s recorded", kind)
        return record

    # -------------------------------------------------------------- pointer
    def pointer_down_node(self, node_id: NodeId, point: Point, *, multi: bool = False) -> bool:
        """Handle a press on a node; returns False for unknown ids."""

        store = self.diagram.store
        if node_id not in store:
            return False
        if self.mode == Mode.CONNECT:
            self._connect_click(node_id)
            return True

        if multi:
            store.toggle_selection(node_id)
        elif not store.is_selected(node_id):
            store.select_only(node_id)
        self.focused_id = node_id

        ids = list(store.selection) if store.is_selected(node_id) else [node_id]
        before = self.diagram.snapshot()
        start_positions = {nid: store.node(nid).position for nid in ids}
        self.drag = DragState(
            ids=ids,
            start=(float(point[0]), float(point[1])),
            start_positions=start_positions,
            before=before,
        )
        engine = self.diagram.engine
        engine.hold(ids)
        if engine.running:
            engine.set_alpha_target(engine.config.drag_alpha_target)
        return True

    def pointer_move(self, point: Point) -> None:
        if self.lasso is not None:
            self.lasso.points.append((float(point[0]), float(point[1])))
            return
        drag = self.drag
        if drag is None:
            return
        store = self.diagram.store
        dx = float(point[0]) - drag.start[0]
        dy = float(point[1]) - drag.start[1]
        moving: List[NodeId] = []
        for node_id, (sx, sy) in drag.start_positions.items():
            node = store.node(node_id)
            if node is None:
                continue
            node.move_to(sx + dx, sy + dy)
            moving.append(node_id)
        if dx or dy:
            drag.moved = True
        if not self.diagram.physics_enabled:
            resolve_live(store.nodes, moving, store.radius_scale(), self.diagram.buffer)

    def pointer_up(self) -> Optional[ActionRecord]:
        if self.lasso is not None:
            self._finish_lasso()
            return None
        drag = self.drag
        if drag is None:
            return None
        self.drag = None
        engine = self.diagram.engine
        for node_id in drag.ids:
            node = self.diagram.store.node(node_id)
            if node is not None:
                node.vx = 0.0
                node.vy = 0.0
        # Publish the engine's frame while the dragged ids are still held.
        engine.commit()
        engine.release(drag.ids)
        engine.set_alpha_target(0.0)
        if not self.diagram.physics_enabled:
            self.diagram.resolve_once()
        if not drag.moved:
            return None
        logger.info("Dragged %d node(s)", len(drag.ids))
        return self._emit("drag", drag.before)

    def pointer_down_canvas(self, point: Point, *, lasso: bool = False, multi: bool = False) -> None:
        if self.mode != Mode.SELECT:
            return
        if lasso:
            self.lasso = LassoState(points=[(float(point[0]), float(point[1]))])
            self.pan_zoom_enabled = False
            return
        if not multi:
            self.clear_selection()

    def cancel(self) -> None:
        """Abort an in-progress drag or lasso without recording anything."""

        if self.drag is not None:
            self.diagram.engine.release(self.drag.ids)
            self.diagram.engine.set_alpha_target(0.0)
            self.drag = None
        if self.lasso is not None:
            self._end_lasso()
        self.pending_source = None

    # ---------------------------------------------------------------- lasso
    def _end_lasso(self) -> None:
        self.lasso = None
        self.pan_zoom_enabled = True

    def _finish_lasso(self) -> List[NodeId]:
        polygon = self.lasso.points if self.lasso is not None else []
        self.diagram.engine.commit()
        inside = [node.id for node in self.diagram.store.nodes if point_in_polygon(node.position, polygon)]
        self.diagram.store.set_selection(inside)
        self._end_lasso()
        logger.info("Lasso selected %d node(s)", len(inside))
        return inside

    # -------------------------------------------------------------- connect
    def _connect_click(self, node_id: NodeId) -> Optional[ActionRecord]:
        if self.pending_source is None:
            self.pending_source = node_id
            return None
        source = self.pending_source
        self.pending_source = None
        if source == node_id or source not in self.diagram.store:
            return None
        before = self.diagram.snapshot()
        link = self.diagram.upsert_link(source, node_id, self.link_kind, replace=True)
        if link is None:
            return None
        logger.info("Connected %s-%s as %s", source, node_id, self.link_kind.value)
        return self._emit("connect", before)

    # ------------------------------------------------------------ selection
    def select_all(self) -> None:
        self.diagram.store.select_all()

    def clear_selection(self) -> None:
        self.diagram.store.clear_selection()
        self.focused_id = None

    def delete_selection(self) -> Optional[ActionRecord]:
        ids = list(self.diagram.store.selection)
        if not ids:
            return None
        before = self.diagram.snapshot()
        self.diagram.remove_nodes(ids)
        if self.focused_id in ids:
            self.focused_id = None
        if self.pending_source in ids:
            self.pending_source = None
        return self._emit("delete", before)

    def nudge_selection(self, dx: float, dy: float) -> Optional[ActionRecord]:
        """Shift every selected node; locked nodes carry their lock along."""

        nodes = self.diagram.store.selected_nodes()
        if not nodes or (dx == 0 and dy == 0):
            return None
        before = self.diagram.snapshot()
        for node in nodes:
            node.move_to(node.x + dx, node.y + dy)
        if not self.diagram.physics_enabled:
            self.diagram.resolve_once()
        return self._emit("nudge", before)

    def nudge_key(self, key: str, *, large: bool = False) -> Optional[ActionRecord]:
        direction = _ARROWS.get(key)
        if direction is None:
            return None
        step = NUDGE_STEP_LARGE if large else NUDGE_STEP
        return self.nudge_selection(direction[0] * step, direction[1] * step)


__all__ = [
    "DragState",
    "InteractionController",
    "LassoState",
    "Mode",
    "NUDGE_STEP",
    "NUDGE_STEP_LARGE",
]
