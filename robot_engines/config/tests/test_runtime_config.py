"""Tests for environment-driven simulation settings."""
import logging

import pytest

from robot_engines.config import runtime_config
from robot_engines.config.settings import get_sim_settings, reset_sim_settings_cache


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_sim_settings_cache()
    yield
    reset_sim_settings_cache()


def test_defaults(monkeypatch):
    for name in ("ROBOT_SIM_COLLISION_HZ", "ROBOT_SIM_WARNING_MARGIN", "ROBOT_SIM_SLOT_DURATION"):
        monkeypatch.delenv(name, raising=False)
    settings = get_sim_settings()
    assert settings.collision_hz == 20.0
    assert settings.warning_margin == 0.03
    assert settings.link_thickness == 0.08
    assert settings.min_index_gap == 2
    assert settings.base_padding == 0.02
    assert settings.base_min_link_index == 3
    assert settings.slot_duration == 1.0


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("ROBOT_SIM_COLLISION_HZ", "60")
    monkeypatch.setenv("ROBOT_SIM_MIN_INDEX_GAP", "1")
    monkeypatch.setenv("ROBOT_SIM_WARNING_MARGIN", "0.05")
    settings = get_sim_settings()
    assert settings.collision_hz == 60.0
    assert settings.min_index_gap == 1
    assert settings.warning_margin == 0.05


def test_settings_are_cached(monkeypatch):
    monkeypatch.setenv("ROBOT_SIM_COLLISION_HZ", "30")
    assert get_sim_settings().collision_hz == 30.0
    monkeypatch.setenv("ROBOT_SIM_COLLISION_HZ", "10")
    assert get_sim_settings().collision_hz == 30.0
    reset_sim_settings_cache()
    assert get_sim_settings().collision_hz == 10.0


@pytest.mark.parametrize(
    "name, raw, getter, expected",
    [
        ("ROBOT_SIM_COLLISION_HZ", "fast", runtime_config.get_collision_hz, 20.0),
        ("ROBOT_SIM_WARNING_MARGIN", "-0.1", runtime_config.get_warning_margin, 0.03),
        ("ROBOT_SIM_MIN_INDEX_GAP", "2.5", runtime_config.get_min_index_gap, 2),
        ("ROBOT_SIM_SLOT_DURATION", "0", runtime_config.get_slot_duration, 1.0),
    ],
)
def test_invalid_values_fall_back(monkeypatch, caplog, name, raw, getter, expected):
    monkeypatch.setenv(name, raw)
    with caplog.at_level(logging.WARNING, logger="robot_engines.config.runtime_config"):
        assert getter() == expected
    assert name in caplog.text


def test_blank_value_uses_default(monkeypatch):
    monkeypatch.setenv("ROBOT_SIM_LINK_THICKNESS", "  ")
    assert runtime_config.get_link_thickness() == 0.08
