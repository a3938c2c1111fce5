"""Configuration helpers for the layout simulation."""

from __future__ import annotations

import copy
from dataclasses import dataclass


@dataclass
class SimulationConfig:
    """Physical constants of the layout simulation.

    Defaults settle an undisturbed layout in a few seconds of 60 Hz ticks.
    """

    alpha_decay: float = 0.05
    alpha_min: float = 0.001
    velocity_decay: float = 0.3

    charge_strength: float = -80.0
    distance_min: float = 1.0
    explode_charge_boost: float = 1.8
    explode_collide_margin: float = 18.0

    collide_strength: float = 1.0
    collide_alpha_reference: float = 0.1

    center_strength: float = 1.0
    axis_strength: float = 0.03

    link_scale: float = 1.05
    link_offset: float = 40.0
    link_buffer_factor: float = 1.5
    necessary_length_factor: float = 1.1
    ideal_length_factor: float = 1.0
    necessary_strength: float = 0.5
    ideal_strength: float = 0.25

    spin_base: float = 0.0002

    detangle_multiplier: float = 2.2
    detangle_seconds: float = 1.2
    ticks_per_second: float = 60.0

    alpha_on_structure: float = 0.9
    alpha_on_parameters: float = 0.7
    alpha_on_rotation: float = 0.5
    alpha_on_detangle: float = 1.0
    alpha_after_detangle: float = 0.6
    alpha_on_scene: float = 0.3
    drag_alpha_target: float = 0.4

    @property
    def detangle_ticks(self) -> int:
        return max(1, int(round(self.detangle_seconds * self.ticks_per_second)))


_DEFAULT_CONFIG = SimulationConfig()


def get_default_config() -> SimulationConfig:
    return copy.deepcopy(_DEFAULT_CONFIG)


def set_default_config(config: SimulationConfig) -> None:
    global _DEFAULT_CONFIG
    _DEFAULT_CONFIG = copy.deepcopy(config)
