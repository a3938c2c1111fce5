from .model import ActionRecord, Link, LinkKind, Node, R_MAX, R_MIN, pair_key, normalize_name
from .radius import RadiusScale, scale_radius
from .store import GraphStore
from .collisions import Overlap, find_overlaps, resolve_live, resolve_once, resolve_until_clear
from .simulation import (
    ExplodePulse,
    SimulationConfig,
    SimulationEngine,
    TickFrame,
    get_default_config,
    relax,
    set_default_config,
)
from .conflicts import (
    ConflictReport,
    MissingPair,
    auto_connect,
    compute_conflicts,
    parse_expected_pairs,
)
from .listparse import SpaceEntry, parse_list
from .diagram import Diagram, DiagramSettings, get_default_settings, set_default_settings
from .scenes import Scene, SceneBook
from .interaction import InteractionController, Mode
from .io import DiagramFormatError, dumps, from_dict, loads, read_diagram, to_dict, write_diagram

__all__ = [
    'ActionRecord',
    'Link',
    'LinkKind',
    'Node',
    'R_MAX',
    'R_MIN',
    'pair_key',
    'normalize_name',
    'RadiusScale',
    'scale_radius',
    'GraphStore',
    'Overlap',
    'find_overlaps',
    'resolve_live',
    'resolve_once',
    'resolve_until_clear',
    'ExplodePulse',
    'SimulationConfig',
    'SimulationEngine',
    'TickFrame',
    'get_default_config',
    'relax',
    'set_default_config',
    'ConflictReport',
    'MissingPair',
    'auto_connect',
    'compute_conflicts',
    'parse_expected_pairs',
    'SpaceEntry',
    'parse_list',
    'Diagram',
    'DiagramSettings',
    'get_default_settings',
    'set_default_settings',
    'Scene',
    'SceneBook',
    'InteractionController',
    'Mode',
    'DiagramFormatError',
    'dumps',
    'from_dict',
    'loads',
    'read_diagram',
    'to_dict',
    'write_diagram',
]
