"""
Configuration loading tests
"""

import pytest

from smart_parking.config import AppConfig, load_config
from smart_parking.main import build_lot


def test_defaults():
    config = AppConfig()
    assert config.classifier.dark_luma == 55
    assert config.classifier.texture_std == 9.5
    assert config.navigation.arrival_distance == 4
    assert config.simulation.physics_interval_ms == 20
    assert config.simulation.guidance_interval_ms == 1000
    assert config.services.speech_url is None


def test_load_yaml(tmp_path, monkeypatch):
    monkeypatch.setenv("PARK_KEY", "secret")
    path = tmp_path / "config.yaml"
    path.write_text(
        "classifier:\n"
        "  busy_std: 30\n"
        "navigation:\n"
        "  cooldown_seconds: 8\n"
        "services:\n"
        "  api_key: ${PARK_KEY}\n"
        "simulation:\n"
        "  layout: grid\n"
        "  grid_rows: 3\n"
        "  grid_cols: 3\n"
    )

    config = load_config(path)

    assert config.classifier.busy_std == 30
    assert config.classifier.signage_luma == 165
    assert config.navigation.cooldown_seconds == 8
    assert config.services.api_key == "secret"
    assert len(build_lot(config)) == 9


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")
    assert load_config(path) == AppConfig()


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")
