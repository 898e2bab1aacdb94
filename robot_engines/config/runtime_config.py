"""Runtime configuration helpers for the robot simulation engines."""
from __future__ import annotations

import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_COLLISION_HZ = 20.0
DEFAULT_WARNING_MARGIN = 0.03
DEFAULT_LINK_THICKNESS = 0.08
DEFAULT_MIN_INDEX_GAP = 2
DEFAULT_BASE_PADDING = 0.02
DEFAULT_BASE_MIN_LINK_INDEX = 3
DEFAULT_SLOT_DURATION = 1.0


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def _get_float(name: str, default: float, minimum: Optional[float] = None) -> float:
    raw = _get_env(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number, using %s", name, raw, default)
        return default
    if minimum is not None and value < minimum:
        logger.warning("Ignoring %s=%r: below %s, using %s", name, raw, minimum, default)
        return default
    return value


def _get_int(name: str, default: int, minimum: Optional[int] = None) -> int:
    raw = _get_env(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer, using %s", name, raw, default)
        return default
    if minimum is not None and value < minimum:
        logger.warning("Ignoring %s=%r: below %s, using %s", name, raw, minimum, default)
        return default
    return value


def get_collision_hz() -> float:
    return _get_float("ROBOT_SIM_COLLISION_HZ", DEFAULT_COLLISION_HZ, minimum=0.0)


def get_warning_margin() -> float:
    return _get_float("ROBOT_SIM_WARNING_MARGIN", DEFAULT_WARNING_MARGIN, minimum=0.0)


def get_link_thickness() -> float:
    return _get_float("ROBOT_SIM_LINK_THICKNESS", DEFAULT_LINK_THICKNESS, minimum=0.0)


def get_min_index_gap() -> int:
    return _get_int("ROBOT_SIM_MIN_INDEX_GAP", DEFAULT_MIN_INDEX_GAP, minimum=0)


def get_base_padding() -> float:
    return _get_float("ROBOT_SIM_BASE_PADDING", DEFAULT_BASE_PADDING, minimum=0.0)


def get_base_min_link_index() -> int:
    return _get_int("ROBOT_SIM_BASE_MIN_LINK_INDEX", DEFAULT_BASE_MIN_LINK_INDEX, minimum=0)


def get_slot_duration() -> float:
    value = _get_float("ROBOT_SIM_SLOT_DURATION", DEFAULT_SLOT_DURATION)
    if value <= 0:
        logger.warning("ROBOT_SIM_SLOT_DURATION must be positive, using %s", DEFAULT_SLOT_DURATION)
        return DEFAULT_SLOT_DURATION
    return value


def config_snapshot() -> dict:
    """Return a snapshot of the env-driven simulation config."""
    return {
        "collision_hz": get_collision_hz(),
        "warning_margin": get_warning_margin(),
        "link_thickness": get_link_thickness(),
        "min_index_gap": get_min_index_gap(),
        "base_padding": get_base_padding(),
        "base_min_link_index": get_base_min_link_index(),
        "slot_duration": get_slot_duration(),
    }
