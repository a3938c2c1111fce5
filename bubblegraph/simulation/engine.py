"""Tick-driven layout engine with an explicit commit step."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

import numpy as np

from ..model import NodeId
from ..store import GraphStore
from .config import SimulationConfig, get_default_config
from .forces import (
    LinkSpec,
    apply_axis_pull,
    apply_centering,
    apply_collision,
    apply_links,
    apply_repulsion,
    apply_spin,
    explode_charge_factor,
    link_rest_distance,
    link_strength,
)

logger = logging.getLogger(__name__)


@dataclass
class ExplodePulse:
    """Transient amplification of repulsion, collision margin and link length."""

    active: bool = False
    multiplier: float = 1.0
    expires_at_tick: int = 0


@dataclass
class TickFrame:
    """Candidate positions/velocities produced by a tick, not yet published."""

    ids: List[NodeId]
    positions: np.ndarray
    velocities: np.ndarray
    tick: int
    alpha: float


class SimulationEngine:
    """Layout simulation owned by exactly one diagram.

    ``tick`` advances the physics and keeps the result as a pending frame;
    ``commit`` publishes that frame into the store. Several ticks between
    commits are coalesced into one publish. Nodes held by an active drag are
    treated as pinned at their store position and are never overwritten.
    """

    def __init__(
        self,
        store: GraphStore,
        config: Optional[SimulationConfig] = None,
        *,
        buffer: float = 6.0,
        rotation_sensitivity: float = 0.0,
        running: bool = True,
        seed: Optional[int] = None,
    ) -> None:
        self.store = store
        self.config = config or get_default_config()
        self.buffer = float(buffer)
        self.rotation_sensitivity = float(rotation_sensitivity)
        self.running = bool(running)
        self.alpha = 1.0
        self.alpha_target = 0.0
        self.tick_count = 0
        self.pulse = ExplodePulse()
        self._pending: Optional[TickFrame] = None
        self._held: Set[NodeId] = set()
        self._rng = np.random.default_rng(seed)
        self._closed = False

    # ------------------------------------------------------------ parameters
    @property
    def explode(self) -> float:
        return self.pulse.multiplier if self.pulse.active else 1.0

    @property
    def settled(self) -> bool:
        return self.alpha < self.config.alpha_min

    @property
    def closed(self) -> bool:
        return self._closed

    def restart(self, alpha: float) -> None:
        """Reset alpha after a disturbance so decay starts over."""

        self.alpha = min(1.0, max(0.0, float(alpha)))
        logger.debug("Restarted simulation at alpha=%.3f", self.alpha)

    def set_alpha_target(self, target: float) -> None:
        self.alpha_target = min(1.0, max(0.0, float(target)))

    def set_buffer(self, buffer: float) -> None:
        self.buffer = max(0.0, float(buffer))
        self.restart(self.config.alpha_on_parameters)

    def set_rotation_sensitivity(self, level: float) -> None:
        self.rotation_sensitivity = min(100.0, max(0.0, float(level)))
        if self.rotation_sensitivity > 0:
            self.restart(self.config.alpha_on_rotation)

    def set_running(self, running: bool) -> None:
        self.running = bool(running)
        if self.running:
            self.restart(self.config.alpha_on_parameters)
        else:
            # Publish whatever was computed so a paused layout shows its last state.
            self.commit()
        logger.info("Simulation %s", "running" if self.running else "paused")

    def structure_changed(self) -> None:
        self._pending = None
        self.restart(self.config.alpha_on_structure)

    def trigger_detangle(self) -> ExplodePulse:
        """Start (or restart) the explode pulse; a pending expiry is replaced."""

        cfg = self.config
        self.pulse = ExplodePulse(
            active=True,
            multiplier=cfg.detangle_multiplier,
            expires_at_tick=self.tick_count + cfg.detangle_ticks,
        )
        self.restart(cfg.alpha_on_detangle)
        logger.info(
            "Detangle pulse x%.2f until tick %d", self.pulse.multiplier, self.pulse.expires_at_tick
        )
        return self.pulse

    def _expire_pulse(self) -> None:
        if self.pulse.active and self.tick_count >= self.pulse.expires_at_tick:
            self.pulse = ExplodePulse()
            self.restart(self.config.alpha_after_detangle)
            logger.info("Detangle pulse ended at tick %d", self.tick_count)

    # ------------------------------------------------------------- ownership
    def hold(self, ids: Iterable[NodeId]) -> None:
        self._held.update(ids)

    def release(self, ids: Optional[Iterable[NodeId]] = None) -> None:
        if ids is None:
            self._held.clear()
        else:
            self._held.difference_update(ids)

    @property
    def held(self) -> Set[NodeId]:
        return set(self._held)

    def zero_velocities(self) -> None:
        for node in self.store.nodes:
            node.vx = 0.0
            node.vy = 0.0
        if self._pending is not None:
            self._pending.velocities[:] = 0.0

    # ----------------------------------------------------------------- ticks
    def _gather(self) -> TickFrame:
        nodes = self.store.nodes
        ids = list(self.store.ids())
        pending = self._pending
        if pending is not None and pending.ids == ids:
            positions = pending.positions.copy()
            velocities = pending.velocities.copy()
        else:
            positions = np.array([[node.x, node.y] for node in nodes], dtype=float).reshape(-1, 2)
            velocities = np.array([[node.vx, node.vy] for node in nodes], dtype=float).reshape(-1, 2)
        for i, node in enumerate(nodes):
            if node.id in self._held:
                positions[i] = (node.x, node.y)
                velocities[i] = 0.0
        return TickFrame(ids=ids, positions=positions, velocities=velocities, tick=self.tick_count, alpha=self.alpha)

    def _link_specs(self, index: Dict[NodeId, int]) -> List[LinkSpec]:
        specs: List[LinkSpec] = []
        for link in self.store.deduplicated_links():
            specs.append(LinkSpec(source=index[link.source], target=index[link.target], kind=link.kind))
        return specs

    def tick(self) -> Optional[TickFrame]:
        """Advance the simulation by one step and keep the result pending.

        Returns ``None`` without doing anything while paused or settled.
        """

        if self._closed or not self.running:
            return None
        self._expire_pulse()
        if self.settled and self.alpha_target < self.config.alpha_min:
            return None

        cfg = self.config
        nodes = self.store.nodes
        frame = self._gather()
        positions, velocities = frame.positions, frame.velocities
        count = len(nodes)

        pinned = np.zeros(count, dtype=bool)
        pins = np.zeros((count, 2), dtype=float)
        locked = np.zeros(count, dtype=bool)
        for i, node in enumerate(nodes):
            if node.locked:
                locked[i] = True
                pinned[i] = True
                pins[i] = node.fixed if node.fixed is not None else (node.x, node.y)
            elif node.id in self._held:
                pinned[i] = True
                pins[i] = (node.x, node.y)

        self.alpha += (self.alpha_target - self.alpha) * cfg.alpha_decay
        alpha = self.alpha
        explode = self.explode

        if count:
            radii = self.store.radius_scale().many(nodes)
            index = {node_id: i for i, node_id in enumerate(frame.ids)}
            specs = self._link_specs(index)

            charge = cfg.charge_strength * explode_charge_factor(explode, cfg.explode_charge_boost)
            apply_repulsion(positions, velocities, alpha, charge, cfg.distance_min, self._rng)

            margin = max(0.0, (explode - 1.0) * cfg.explode_collide_margin)
            collide_scale = min(1.0, alpha / cfg.collide_alpha_reference) if cfg.collide_alpha_reference > 0 else 1.0
            apply_collision(
                positions,
                velocities,
                radii + self.buffer + margin,
                cfg.collide_strength * collide_scale,
                self._rng,
            )

            apply_centering(positions, cfg.center_strength)
            apply_spin(positions, velocities, alpha, self.rotation_sensitivity, cfg.spin_base, ~locked)

            rest = [
                link_rest_distance(radii[s.source], radii[s.target], s.kind, self.buffer, cfg, explode)
                for s in specs
            ]
            strengths = [link_strength(s.kind, cfg) for s in specs]
            apply_links(positions, velocities, specs, rest, strengths, alpha, self._rng)

            apply_axis_pull(positions, velocities, alpha, cfg.axis_strength)

            free = ~pinned
            velocities[free] *= 1.0 - cfg.velocity_decay
            positions[free] += velocities[free]
            positions[pinned] = pins[pinned]
            velocities[pinned] = 0.0

        self.tick_count += 1
        frame.tick = self.tick_count
        frame.alpha = alpha
        self._pending = frame
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Tick %d alpha=%.4f explode=%.2f nodes=%d", self.tick_count, alpha, explode, count)
        return frame

    def commit(self) -> int:
        """Publish the pending frame into the store; returns the nodes written."""

        frame = self._pending
        if frame is None:
            return 0
        self._pending = None
        written = 0
        for i, node_id in enumerate(frame.ids):
            if node_id in self._held:
                continue
            node = self.store.node(node_id)
            if node is None:
                continue
            node.x = float(frame.positions[i, 0])
            node.y = float(frame.positions[i, 1])
            node.vx = float(frame.velocities[i, 0])
            node.vy = float(frame.velocities[i, 1])
            written += 1
        return written

    def discard_pending(self) -> None:
        self._pending = None

    def step(self, ticks: int = 1) -> int:
        """Run up to ``ticks`` ticks and commit once; returns ticks performed."""

        done = 0
        for _ in range(max(0, int(ticks))):
            if self.tick() is None:
                break
            done += 1
        self.commit()
        return done

    def run_until_settled(self, max_ticks: int = 3000) -> int:
        done = self.step(max_ticks)
        logger.info(
            "Simulation ran %d tick(s); alpha=%.4f settled=%s", done, self.alpha, self.settled
        )
        return done

    def close(self) -> None:
        self.commit()
        self.running = False
        self._held.clear()
        self._closed = True
        logger.info("Simulation engine closed after %d tick(s)", self.tick_count)


__all__ = ["ExplodePulse", "SimulationEngine", "TickFrame"]
