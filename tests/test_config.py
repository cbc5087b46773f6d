from __future__ import annotations

from pathlib import Path

import pytest

from element_grid_explorer.config import (
    ConfigError,
    ExplorerConfig,
    parse_debounce_ms,
    parse_log_level,
)


def test_defaults() -> None:
    config = ExplorerConfig()
    assert config.debounce_s == 2.0
    assert config.initial_query == ""
    assert config.log_level == "WARNING"
    assert config.dataset_path is None


def test_from_env_reads_all_keys() -> None:
    config = ExplorerConfig.from_env(
        {
            "EGX_DEBOUNCE_MS": "250",
            "EGX_LOG_LEVEL": "debug",
            "EGX_DATASET_PATH": "/tmp/elements.json",
        }
    )
    assert config.debounce_s == 0.25
    assert config.log_level == "DEBUG"
    assert config.log_level_value == 10
    assert config.dataset_path == Path("/tmp/elements.json")


def test_from_env_ignores_empty_values() -> None:
    assert ExplorerConfig.from_env({"EGX_DEBOUNCE_MS": ""}) == ExplorerConfig()


@pytest.mark.parametrize("raw", ["-5", "soon", "nan"])
def test_invalid_debounce_is_rejected(raw: str) -> None:
    with pytest.raises(ConfigError):
        parse_debounce_ms(raw)
    with pytest.raises(ConfigError):
        ExplorerConfig.from_env({"EGX_DEBOUNCE_MS": raw})


def test_debounce_zero_is_allowed() -> None:
    assert parse_debounce_ms("0") == 0.0
    assert parse_debounce_ms(2000) == 2.0


def test_invalid_log_level_is_rejected() -> None:
    assert parse_log_level(" info ") == "INFO"
    with pytest.raises(ConfigError):
        parse_log_level("loud")
