"""Tests for engine configuration and the JSON settings helpers."""

import json
import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from chord_generator import load_settings, save_settings  # noqa: E402
from chord_generator.config import EngineConfig, load_engine_config  # noqa: E402


def test_from_dict_coerces_types():
    """JSON integers are accepted for float fields."""
    config = EngineConfig.from_dict({"bass_weight": 1, "max_generation_attempts": "4"})
    assert config.bass_weight == 1.0
    assert isinstance(config.bass_weight, float)
    assert config.max_generation_attempts == 4


def test_from_dict_warns_on_unknown_key(caplog):
    """Unknown engine settings are skipped with a warning."""
    with caplog.at_level(logging.WARNING):
        config = EngineConfig.from_dict({"not_a_setting": 3})
    assert config == EngineConfig()
    assert "not_a_setting" in caplog.text


def test_from_dict_rejects_bad_value():
    """Values that cannot be converted raise ``ValueError``."""
    with pytest.raises(ValueError, match="bass_weight"):
        EngineConfig.from_dict({"bass_weight": "heavy"})


def test_inversion_bias_keys():
    """Bias keys arrive as strings from JSON and are stored as ints."""
    config = EngineConfig.from_dict({"inversion_bias": {"0": 0, "1": 0.5}})
    assert config.inversion_bias == {0: 0.0, 1: 0.5}
    assert config.to_dict()["inversion_bias"] == {"0": 0.0, "1": 0.5}
    json.dumps(config.to_dict())


def test_load_engine_config_defaults_on_error(caplog):
    """A broken engine section falls back to the defaults."""
    with caplog.at_level(logging.WARNING):
        config = load_engine_config({"engine": {"bass_weight": "heavy"}})
    assert config == EngineConfig()
    assert "Invalid engine settings" in caplog.text


def test_load_engine_config_non_mapping(caplog):
    """An engine section that is not an object is ignored."""
    with caplog.at_level(logging.WARNING):
        config = load_engine_config({"engine": [1, 2]})
    assert config == EngineConfig()
    assert "expected an object" in caplog.text


def test_load_engine_config_reads_section():
    """Values under ``engine`` override the defaults."""
    config = load_engine_config({"mode": "dorian", "engine": {"variety_jump_probability": 0.2}})
    assert config.variety_jump_probability == 0.2
    assert load_engine_config(None) == EngineConfig()


def test_settings_round_trip(tmp_path):
    """Saved settings load back unchanged."""
    path = tmp_path / "nested" / "settings.json"
    settings = {"key": "D", "mode_name": "dorian", "length": 6}
    save_settings(settings, path)
    assert load_settings(path) == settings


def test_missing_settings_file(tmp_path):
    """A missing file yields an empty dict."""
    assert load_settings(tmp_path / "missing.json") == {}


def test_corrupt_settings_file(tmp_path, caplog):
    """Invalid JSON is logged and ignored."""
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    with caplog.at_level(logging.ERROR):
        assert load_settings(path) == {}
    assert "Could not load settings" in caplog.text


def test_non_object_settings_file(tmp_path):
    """A top level list is rejected."""
    path = tmp_path / "settings.json"
    path.write_text("[1, 2]", encoding="utf-8")
    assert load_settings(path) == {}
