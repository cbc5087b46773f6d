from __future__ import annotations

import logging
import math
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

ENV_DEBOUNCE_MS = "EGX_DEBOUNCE_MS"
ENV_LOG_LEVEL = "EGX_LOG_LEVEL"
ENV_DATASET_PATH = "EGX_DATASET_PATH"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """Raised for invalid configuration values."""


def parse_debounce_ms(raw: str | int | float) -> float:
    """Parse a quiet period given in milliseconds; returns seconds."""

    try:
        value = float(raw.strip() if isinstance(raw, str) else raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid debounce period: {raw!r}") from exc
    if not math.isfinite(value) or value < 0:
        raise ConfigError(f"Debounce period must be a non-negative number of ms: {raw!r}")
    return value / 1000.0


def parse_log_level(raw: str) -> str:
    level = raw.strip().upper()
    if level not in _LOG_LEVELS:
        raise ConfigError(f"Invalid log level {raw!r}. Expected one of: {', '.join(_LOG_LEVELS)}")
    return level


@dataclass(frozen=True, slots=True)
class ExplorerConfig:
    debounce_s: float = 2.0
    initial_query: str = ""
    log_level: str = "WARNING"
    dataset_path: Path | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ExplorerConfig:
        env = os.environ if environ is None else environ
        config = cls()
        if raw := env.get(ENV_DEBOUNCE_MS):
            config = replace(config, debounce_s=parse_debounce_ms(raw))
        if raw := env.get(ENV_LOG_LEVEL):
            config = replace(config, log_level=parse_log_level(raw))
        if raw := env.get(ENV_DATASET_PATH):
            config = replace(config, dataset_path=Path(raw))
        return config

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level)
