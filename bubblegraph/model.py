"""Core records shared by the store, engine and analyzers."""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Mapping, Optional, Tuple

NodeId = str
PairKey = Tuple[str, str]
Point = Tuple[float, float]

R_MIN = 36.0
R_MAX = 120.0
DEFAULT_AREA = 20.0


class LinkKind(str, Enum):
    NECESSARY = "necessary"
    IDEAL = "ideal"

    @classmethod
    def coerce(cls, value: object) -> Optional["LinkKind"]:
        """Return the matching kind, or ``None`` for ``"none"``/unknown values."""

        if isinstance(value, LinkKind):
            return value
        if isinstance(value, str):
            text = value.strip().lower()
            for kind in cls:
                if kind.value == text:
                    return kind
        return None


def new_id() -> str:
    return uuid.uuid4().hex[:7]


def pair_key(a: NodeId, b: NodeId) -> PairKey:
    return (a, b) if a <= b else (b, a)


_WS_RE = re.compile(r"\s+")


def normalize_name(value: object) -> str:
    """Case-fold ``value`` and collapse internal whitespace."""

    return _WS_RE.sub(" ", str(value or "").strip().lower())


def coerce_number(value: object, fallback: float) -> float:
    if isinstance(value, bool):
        return fallback
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        if not value.strip():
            return fallback
        try:
            number = float(value)
        except ValueError:
            return fallback
    else:
        return fallback
    if number != number or number in (float("inf"), float("-inf")):
        return fallback
    return number


_TRUE_WORDS = {"true", "yes", "1", "on"}


def coerce_flag(value: object) -> bool:
    """Read a lock-style flag; only real booleans, numbers and "true"-like words count."""

    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_WORDS
    return False


@dataclass
class Node:
    """A named space drawn as a circle whose size follows its area."""

    id: NodeId
    name: str
    area: float = DEFAULT_AREA
    x: float = 0.0
    y: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    locked: bool = False
    fixed: Optional[Point] = None

    def __post_init__(self) -> None:
        self.area = max(1.0, coerce_number(self.area, DEFAULT_AREA))
        self.x = float(self.x)
        self.y = float(self.y)
        if self.locked and self.fixed is None:
            self.fixed = (self.x, self.y)
        if not self.locked:
            self.fixed = None

    @property
    def position(self) -> Point:
        return (self.x, self.y)

    def lock(self) -> None:
        self.locked = True
        self.fixed = (self.x, self.y)

    def unlock(self) -> None:
        self.locked = False
        self.fixed = None

    def move_to(self, x: float, y: float) -> None:
        """Place the node at ``(x, y)``; a locked node carries its lock along."""

        self.x = float(x)
        self.y = float(y)
        if self.locked:
            self.fixed = (self.x, self.y)

    def snap_to_lock(self) -> None:
        if self.locked and self.fixed is not None:
            self.x, self.y = self.fixed

    def to_record(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "area": self.area,
            "x": self.x,
            "y": self.y,
            "locked": self.locked,
            "fx": self.fixed[0] if self.fixed is not None else None,
            "fy": self.fixed[1] if self.fixed is not None else None,
        }

    @classmethod
    def from_record(
        cls, record: Mapping[str, object], id_factory: Optional[Callable[[], str]] = None
    ) -> "Node":
        """Build a node from a plain mapping, filling gaps with defaults."""

        node_id = record.get("id") or (id_factory or new_id)()
        name = record.get("name")
        x = coerce_number(record.get("x"), 0.0)
        y = coerce_number(record.get("y"), 0.0)
        locked = coerce_flag(record.get("locked"))
        fixed: Optional[Point] = None
        if locked:
            fx = coerce_number(record.get("fx"), x)
            fy = coerce_number(record.get("fy"), y)
            fixed = (fx, fy)
            x, y = fx, fy
        return cls(
            id=str(node_id),
            name=str(name) if name is not None else "Unnamed",
            area=coerce_number(record.get("area"), DEFAULT_AREA),
            x=x,
            y=y,
            locked=locked,
            fixed=fixed,
        )


@dataclass
class Link:
    """Undirected adjacency requirement between two spaces."""

    id: str
    source: NodeId
    target: NodeId
    kind: LinkKind = LinkKind.NECESSARY

    @property
    def key(self) -> PairKey:
        return pair_key(self.source, self.target)

    def to_record(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": self.kind.value,
        }

    @classmethod
    def from_record(
        cls, record: Mapping[str, object], id_factory: Optional[Callable[[], str]] = None
    ) -> Optional["Link"]:
        source = record.get("source")
        target = record.get("target")
        if not source or not target:
            return None
        kind = LinkKind.coerce(record.get("type", record.get("kind"))) or LinkKind.NECESSARY
        link_id = record.get("id") or (id_factory or new_id)()
        return cls(id=str(link_id), source=str(source), target=str(target), kind=kind)


@dataclass
class ActionRecord:
    """One undoable unit produced by a discrete user action."""

    kind: str
    before: Dict[str, object] = field(default_factory=dict)


def prefer_link(current: Optional[Link], candidate: Link) -> Link:
    """Resolve two links on the same pair: ``necessary`` beats ``ideal``."""

    if current is None:
        return candidate
    if current.kind != LinkKind.NECESSARY and candidate.kind == LinkKind.NECESSARY:
        return candidate
    return current


__all__ = [
    "ActionRecord",
    "DEFAULT_AREA",
    "Link",
    "LinkKind",
    "Node",
    "NodeId",
    "PairKey",
    "Point",
    "R_MAX",
    "R_MIN",
    "coerce_flag",
    "coerce_number",
    "new_id",
    "normalize_name",
    "pair_key",
    "prefer_link",
]
