"""Plain-structure (JSON) form of a diagram."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from .diagram import Diagram, DiagramSettings, get_default_settings
from .model import Link, coerce_number

logger = logging.getLogger(__name__)


class DiagramFormatError(ValueError):
    """Raised when a document does not have the shape of a saved diagram."""


def to_dict(diagram: Diagram) -> Dict[str, Any]:
    diagram.engine.commit()
    return {
        "nodes": [node.to_record() for node in diagram.store.nodes],
        "links": [link.to_record() for link in diagram.store.links],
        "buffer": diagram.settings.buffer,
        "rotationSensitivity": diagram.settings.rotation_sensitivity,
    }


def _require_list(data: Mapping[str, Any], key: str) -> list:
    value = data.get(key, [])
    if value is None:
        return []
    if not isinstance(value, list):
        raise DiagramFormatError(f"'{key}' must be a list, got {type(value).__name__}")
    return value


def from_dict(
    data: Mapping[str, Any],
    *,
    settings: Optional[DiagramSettings] = None,
    seed: Optional[int] = None,
) -> Diagram:
    """Build a diagram from :func:`to_dict` output.

    Missing node fields fall back to defaults (generated id, ``"Unnamed"``,
    area 20); links lacking an endpoint are dropped and duplicate pairs
    collapse to one link with ``necessary`` preferred.
    """

    if not isinstance(data, Mapping):
        raise DiagramFormatError(f"diagram document must be an object, got {type(data).__name__}")
    nodes = _require_list(data, "nodes")
    links = _require_list(data, "links")

    settings = settings or get_default_settings()
    if "buffer" in data:
        settings.buffer = max(0.0, coerce_number(data.get("buffer"), settings.buffer))
    if "rotationSensitivity" in data:
        level = coerce_number(data.get("rotationSensitivity"), settings.rotation_sensitivity)
        settings.rotation_sensitivity = min(100.0, max(0.0, level))

    diagram = Diagram(settings, seed=seed)
    store = diagram.store
    store.upsert_nodes(record for record in nodes if isinstance(record, Mapping))
    dropped = 0
    for record in links:
        link = Link.from_record(record, store.new_id) if isinstance(record, Mapping) else None
        if link is None or store.add_raw_link(link) is None:
            dropped += 1
    if dropped:
        logger.warning("Dropped %d link record(s) without valid endpoints", dropped)
    diagram.engine.structure_changed()
    logger.info("Loaded diagram with %d node(s) and %d link(s)", len(store.nodes), len(store.links))
    return diagram


def dumps(diagram: Diagram, *, indent: Optional[int] = 2) -> str:
    return json.dumps(to_dict(diagram), indent=indent)


def loads(text: str, **kwargs: Any) -> Diagram:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DiagramFormatError(f"invalid JSON: {exc}") from exc
    return from_dict(data, **kwargs)


def read_diagram(path: Union[str, Path], **kwargs: Any) -> Diagram:
    path = Path(path)
    logger.info("Reading diagram from %s", path)
    return loads(path.read_text(encoding="utf-8"), **kwargs)


def write_diagram(diagram: Diagram, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps(diagram), encoding="utf-8")
    logger.info("Wrote diagram to %s", path)
    return path


__all__ = [
    "DiagramFormatError",
    "dumps",
    "from_dict",
    "loads",
    "read_diagram",
    "to_dict",
    "write_diagram",
]
