"""Simulation settings resolved once from the environment."""
from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel

from robot_engines.config import runtime_config


class SimSettings(BaseModel):
    collision_hz: float = runtime_config.DEFAULT_COLLISION_HZ
    warning_margin: float = runtime_config.DEFAULT_WARNING_MARGIN
    link_thickness: float = runtime_config.DEFAULT_LINK_THICKNESS
    min_index_gap: int = runtime_config.DEFAULT_MIN_INDEX_GAP
    base_padding: float = runtime_config.DEFAULT_BASE_PADDING
    base_min_link_index: int = runtime_config.DEFAULT_BASE_MIN_LINK_INDEX
    slot_duration: float = runtime_config.DEFAULT_SLOT_DURATION


@lru_cache(maxsize=1)
def get_sim_settings() -> SimSettings:
    return SimSettings(**runtime_config.config_snapshot())


def reset_sim_settings_cache() -> None:
    get_sim_settings.cache_clear()
