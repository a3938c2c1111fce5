"""Simulation façade: engine construction and one-shot relaxation."""

from __future__ import annotations

import logging
from typing import Optional

from ..store import GraphStore
from .config import SimulationConfig, get_default_config, set_default_config
from .engine import ExplodePulse, SimulationEngine, TickFrame
from .forces import LinkSpec, explode_charge_factor, link_rest_distance, link_strength

logger = logging.getLogger(__name__)

if not logging.getLogger().handlers:  # pragma: no cover - depends on host application
    logging.basicConfig(level=logging.INFO)


def relax(
    store: GraphStore,
    *,
    buffer: float = 6.0,
    max_ticks: int = 3000,
    config: Optional[SimulationConfig] = None,
    seed: Optional[int] = None,
) -> int:
    """Run a throwaway engine over ``store`` until it settles."""

    logger.info("Relaxing layout of %d node(s) for at most %d tick(s)", len(store), max_ticks)
    engine = SimulationEngine(store, config, buffer=buffer, seed=seed)
    try:
        return engine.run_until_settled(max_ticks)
    finally:
        engine.close()


__all__ = [
    "ExplodePulse",
    "LinkSpec",
    "SimulationConfig",
    "SimulationEngine",
    "TickFrame",
    "explode_charge_factor",
    "get_default_config",
    "link_rest_distance",
    "link_strength",
    "relax",
    "set_default_config",
]
