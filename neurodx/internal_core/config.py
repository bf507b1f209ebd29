from __future__ import annotations

import os
from dataclasses import dataclass


def _getenv_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return default if value is None else value


def _getenv_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return int(value)


def _getenv_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _getenv_list(name: str, default: list[str]) -> list[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class NeurodxConfig:
    NEURODX_LOG_LEVEL: str
    NEURODX_FEATURE_LIMIT: int
    NEURODX_DEFAULT_EXPLANATION_METHOD: str
    NEURODX_CACHE_ENABLED: bool
    NEURODX_CACHE_MAX_ENTRIES: int
    NEURODX_CORS_ORIGINS: tuple[str, ...]


def load_config() -> NeurodxConfig:
    return NeurodxConfig(
        NEURODX_LOG_LEVEL=_getenv_str("NEURODX_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        NEURODX_FEATURE_LIMIT=max(0, _getenv_int("NEURODX_FEATURE_LIMIT", 5)),
        NEURODX_DEFAULT_EXPLANATION_METHOD=_getenv_str("NEURODX_DEFAULT_EXPLANATION_METHOD", "SHAP"),
        NEURODX_CACHE_ENABLED=_getenv_bool("NEURODX_CACHE_ENABLED", True),
        NEURODX_CACHE_MAX_ENTRIES=max(1, _getenv_int("NEURODX_CACHE_MAX_ENTRIES", 512)),
        NEURODX_CORS_ORIGINS=tuple(_getenv_list("NEURODX_CORS_ORIGINS", ["*"])),
    )
