"""Parsing of plain ``name, area`` space lists."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List

from .model import DEFAULT_AREA

logger = logging.getLogger(__name__)

_LINE_RE = re.compile(r"^(.*?)[,|-]?\s*(\d+(?:\.\d+)?)\s*$")


@dataclass
class SpaceEntry:
    name: str
    area: float = DEFAULT_AREA


def parse_line(line: str) -> SpaceEntry:
    """Split one trimmed line into a name and a trailing area.

    ``"Kitchen, 12"``, ``"Kitchen 12"`` and ``"Kitchen-12"`` all read as area
    12; a line with no trailing number is a name with the default area.
    """

    match = _LINE_RE.match(line)
    if not match:
        return SpaceEntry(name=line)
    return SpaceEntry(name=match.group(1).strip(), area=float(match.group(2)))


def parse_list(text: str) -> List[SpaceEntry]:
    entries = [parse_line(line.strip()) for line in (text or "").splitlines() if line.strip()]
    logger.debug("Parsed %d space(s) from list", len(entries))
    return entries


SAMPLE_LIST = """Living Room, 35
Kitchen, 14
Dining, 16
Master Bedroom, 18
Bedroom 2, 12
Bathroom, 6
Entry, 5
Storage, 4"""


__all__ = ["SAMPLE_LIST", "SpaceEntry", "parse_line", "parse_list"]
