"""
Tests for settings loading (YAML file + environment overrides).
"""

import pytest

from surveyflow.config import ENV_HOP_CAP_FACTOR, FlowSettings, load_settings, settings_from_dict
from surveyflow.diagnostics import ConfigError


def test_defaults():
    settings = load_settings(environ={})
    assert settings == FlowSettings()
    assert settings.hop_cap_factor == 4


def test_yaml_file(tmp_path):
    path = tmp_path / "surveyflow.yaml"
    path.write_text("hop_cap_factor: 10\nlayout_y_step: 120\n", encoding="utf-8")
    settings = load_settings(path, environ={})
    assert settings.hop_cap_factor == 10
    assert settings.layout_y_step == 120
    assert settings.layout_x == 250


def test_empty_yaml_file(tmp_path):
    path = tmp_path / "surveyflow.yaml"
    path.write_text("", encoding="utf-8")
    assert load_settings(path, environ={}) == FlowSettings()


def test_env_overrides_file(tmp_path):
    path = tmp_path / "surveyflow.yaml"
    path.write_text("hop_cap_factor: 10\n", encoding="utf-8")
    settings = load_settings(path, environ={ENV_HOP_CAP_FACTOR: "3"})
    assert settings.hop_cap_factor == 3


@pytest.mark.parametrize("value", ["off", "None", "0"])
def test_env_disables_cap(value):
    assert load_settings(environ={ENV_HOP_CAP_FACTOR: value}).hop_cap_factor is None


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_settings(tmp_path / "missing.yaml", environ={})


def test_non_mapping_file(tmp_path):
    path = tmp_path / "surveyflow.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(path, environ={})


@pytest.mark.parametrize("data", [
    {"hop_cap_factor": "lots"},
    {"hop_cap_factor": -1},
    {"hop_cap_factor": True},
    {"layout_x": "left"},
    {"colour": "blue"},
])
def test_invalid_values(data):
    with pytest.raises(ConfigError):
        settings_from_dict(data)
