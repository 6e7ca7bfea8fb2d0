"""
Tests for configuration loading.
"""

import pytest
from pydantic import ValidationError

from expertslots.config import AppConfig
from expertslots.domain.exceptions import ConfigError
from expertslots.domain.models import ConflictPolicy, SlotOrder


def test_defaults():
    config = AppConfig()

    assert config.timezone == "Asia/Kolkata"
    assert config.defaults.duration_minutes == 30
    assert config.defaults.conflict_policy is ConflictPolicy.FAIL_OPEN
    assert config.defaults.slot_order is SlotOrder.CHRONOLOGICAL
    assert config.mock_data_file is None


def test_load_from_yaml(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "timezone: Europe/Berlin\n"
        "api:\n"
        "  base_url: https://api.example.com\n"
        "  token: abc\n"
        "defaults:\n"
        "  duration_minutes: 60\n"
        "  conflict_policy: fail_closed\n"
        "  slot_order: label\n",
        encoding="utf-8",
    )

    config = AppConfig.load_from_yaml(config_path)

    assert config.timezone == "Europe/Berlin"
    assert config.api.base_url == "https://api.example.com"
    assert config.api.token == "abc"
    assert config.defaults.duration_minutes == 60
    assert config.defaults.conflict_policy is ConflictPolicy.FAIL_CLOSED
    assert config.defaults.slot_order is SlotOrder.LABEL


def test_empty_file_gives_defaults(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("", encoding="utf-8")

    assert AppConfig.load_from_yaml(config_path) == AppConfig()


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError, match="Config file not found"):
        AppConfig.load_from_yaml(tmp_path / "config.yaml")


def test_invalid_yaml(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("timezone: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        AppConfig.load_from_yaml(config_path)


def test_root_must_be_mapping(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="mapping"):
        AppConfig.load_from_yaml(config_path)


@pytest.mark.parametrize(
    "data",
    [
        {"defaults": {"duration_minutes": 0}},
        {"defaults": {"conflict_policy": "sometimes"}},
        {"api": {"timeout_seconds": -1}},
        {"timezone": "Mars/Olympus_Mons"},
    ],
)
def test_invalid_values(data):
    with pytest.raises(ValidationError):
        AppConfig(**data)
