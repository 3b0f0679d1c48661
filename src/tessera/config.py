"""Configuration utilities for TESSERA.

This module centralizes the environment-driven settings of the runtime and the
small helpers used to read them.
"""

import os
from dataclasses import dataclass

from tessera import __version__

ENGINE_VERSION_KEY = "TESSERA_ENGINE_VERSION"  # pragma: no mutate
LOAD_TIMEOUT_KEY = "TESSERA_LOAD_TIMEOUT"  # pragma: no mutate
HTTP_TIMEOUT_KEY = "TESSERA_HTTP_TIMEOUT"  # pragma: no mutate
SHADOW_MODE_KEY = "TESSERA_SHADOW_MODE"  # pragma: no mutate

DEFAULT_HTTP_TIMEOUT = 30.0
SHADOW_MODES = ("open", "closed", "none")


class InvalidSettingError(ValueError):
    """Raised when an environment variable holds an unusable value."""

    def __init__(self, key: str, value: str, reason: str) -> None:
        super().__init__(f"Invalid value for {key}: {value!r} ({reason})")
        self.key = key
        self.value = value


def _get_seconds(key: str, default: float) -> float:
    raw = os.environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        seconds = float(raw)
    except ValueError as exc:
        raise InvalidSettingError(key, raw, "expected a number of seconds") from exc
    if seconds < 0:
        raise InvalidSettingError(key, raw, "must not be negative")
    return seconds


def get_engine_version() -> str:
    """Get the default engine version label.

    Returns:
        The value of `TESSERA_ENGINE_VERSION`, or the package version if unset.
    """
    return os.environ.get(ENGINE_VERSION_KEY) or __version__


def get_load_timeout() -> float:
    """Get the per-resource load timeout in seconds (`0` disables it).

    Raises:
        InvalidSettingError: If `TESSERA_LOAD_TIMEOUT` is not a non-negative number.
    """
    return _get_seconds(LOAD_TIMEOUT_KEY, 0.0)


def get_http_timeout() -> float:
    """Get the HTTP client timeout in seconds.

    Raises:
        InvalidSettingError: If `TESSERA_HTTP_TIMEOUT` is not a non-negative number.
    """
    return _get_seconds(HTTP_TIMEOUT_KEY, DEFAULT_HTTP_TIMEOUT)


def get_shadow_mode() -> str:
    """Get the default encapsulation mode for instance surfaces.

    Raises:
        InvalidSettingError: If `TESSERA_SHADOW_MODE` is not one of `open`,
            `closed` or `none`.
    """
    mode = os.environ.get(SHADOW_MODE_KEY, "closed").strip().lower() or "closed"
    if mode not in SHADOW_MODES:
        raise InvalidSettingError(
            SHADOW_MODE_KEY, mode, f"expected one of {', '.join(SHADOW_MODES)}"
        )
    return mode


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings for one engine."""

    engine_version: str = __version__
    load_timeout: float = 0.0
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    shadow_mode: str = "closed"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the `TESSERA_*` environment variables."""
        return cls(
            engine_version=get_engine_version(),
            load_timeout=get_load_timeout(),
            http_timeout=get_http_timeout(),
            shadow_mode=get_shadow_mode(),
        )
