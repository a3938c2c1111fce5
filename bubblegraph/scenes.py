"""Named layout snapshots that can be re-applied to a diagram."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

from .model import NodeId, Point, new_id

if TYPE_CHECKING:  # pragma: no cover
    from .diagram import Diagram

logger = logging.getLogger(__name__)


@dataclass
class Scene:
    id: str
    name: str
    positions: Dict[NodeId, Point] = field(default_factory=dict)
    updated_at: float = 0.0

    def to_record(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "positions": {key: {"x": x, "y": y} for key, (x, y) in self.positions.items()},
            "updatedAt": self.updated_at,
        }


class SceneBook:
    """Scenes captured from one diagram, in creation order."""

    def __init__(self, diagram: "Diagram") -> None:
        self.diagram = diagram
        self.scenes: List[Scene] = []
        self.active_id: Optional[str] = None

    def _positions(self) -> Dict[NodeId, Point]:
        return {node.id: (node.x, node.y) for node in self.diagram.store.nodes}

    def get(self, scene_id: str) -> Optional[Scene]:
        for scene in self.scenes:
            if scene.id == scene_id:
                return scene
        return None

    def list(self) -> List[Scene]:
        return list(self.scenes)

    def capture(self, name: Optional[str] = None) -> Scene:
        label = str(name or "").strip() or f"Scene {len(self.scenes) + 1}"
        self.diagram.engine.commit()
        scene = Scene(id=new_id(), name=label, positions=self._positions(), updated_at=time.time())
        self.scenes.append(scene)
        self.active_id = scene.id
        logger.info("Captured scene %r with %d position(s)", label, len(scene.positions))
        return scene

    def apply(self, scene_id: str) -> bool:
        """Move every node that still exists to its captured position.

        Locked nodes carry their lock along. Velocities are zeroed and the
        simulation restarts gently.
        """

        scene = self.get(scene_id)
        if scene is None:
            logger.debug("Unknown scene %s", scene_id)
            return False
        engine = self.diagram.engine
        engine.discard_pending()
        engine.release()
        moved = 0
        for node in self.diagram.store.nodes:
            point = scene.positions.get(node.id)
            if point is None:
                continue
            node.move_to(*point)
            moved += 1
        engine.zero_velocities()
        engine.restart(engine.config.alpha_on_scene)
        self.active_id = scene.id
        logger.info("Applied scene %r to %d node(s)", scene.name, moved)
        return True

    def update(self, scene_id: str) -> bool:
        scene = self.get(scene_id)
        if scene is None:
            return False
        self.diagram.engine.commit()
        scene.positions = self._positions()
        scene.updated_at = time.time()
        return True

    def delete(self, scene_id: str) -> bool:
        before = len(self.scenes)
        self.scenes = [scene for scene in self.scenes if scene.id != scene_id]
        if self.active_id == scene_id:
            self.active_id = None
        return len(self.scenes) != before


__all__ = ["Scene", "SceneBook"]
