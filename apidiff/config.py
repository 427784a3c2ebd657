"""Configuration loading from environment variables and session files."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from .exceptions import ConfigError, ValidationError
from .models import EngineConfig, LogLevel, RequestConfig

MAX_DEPTH_RANGE = (1, 400)

_TRUE_VALUES = ("true", "1", "yes")
_FALSE_VALUES = ("false", "0", "no")


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"APIDIFF_{key}", default)


def _as_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got '{value}'")


def _as_int(name: str, value: Any, min_val: int | None = None, max_val: int | None = None) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer, got '{value}'")
    try:
        val = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got '{value}'")
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _as_float(name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a number, got '{value}'")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got '{value}'")


def _env_bool(key: str, default: bool = False) -> bool:
    return _as_bool(f"APIDIFF_{key}", _env(key, str(default).lower()))


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    return _as_int(f"APIDIFF_{key}", _env(key, str(default)), min_val, max_val)


def _env_float(key: str, default: float) -> float:
    return _as_float(f"APIDIFF_{key}", _env(key, str(default)))


def _validate_log_level(value: Any) -> LogLevel:
    if isinstance(value, LogLevel):
        return value
    try:
        return LogLevel(str(value).lower())
    except ValueError:
        valid = {level.value for level in LogLevel}
        raise ConfigError(f"Invalid log level: {value}. Must be one of {valid}")


def _coerce_setting(key: str, value: Any) -> Any:
    """Validate one engine setting the same way its environment variable is."""
    if key == "max_depth":
        return _as_int(key, value, *MAX_DEPTH_RANGE)
    if key == "falsy_as_absent":
        return _as_bool(key, value)
    if key in ("max_payload_size_mb", "request_timeout_seconds"):
        return _as_float(key, value)
    return _validate_log_level(value)


def load_engine_config(overrides: Optional[dict] = None) -> EngineConfig:
    """
    Load engine configuration from APIDIFF_* environment variables.

    Args:
        overrides: Mapping applied on top of the environment, e.g. the
            ``engine:`` block of a session file. Values are validated and
            clamped like their environment variables.

    Returns:
        EngineConfig
    """
    config = EngineConfig(
        max_depth=_env_int("MAX_DEPTH", 200, *MAX_DEPTH_RANGE),
        max_payload_size_mb=_env_float("MAX_PAYLOAD_MB", 50),
        falsy_as_absent=_env_bool("FALSY_AS_ABSENT", True),
        request_timeout_seconds=_env_float("REQUEST_TIMEOUT", 30.0),
        log_level=_validate_log_level(_env("LOG_LEVEL", "info")),
    )

    known = {f.name for f in fields(EngineConfig)}
    for key, value in (overrides or {}).items():
        if key not in known:
            raise ConfigError(f"Unknown engine setting: {key}")
        setattr(config, key, _coerce_setting(key, value))

    return config


def load_file(path: str | Path) -> Any:
    """Load a JSON document (``.json``) or a YAML file (anything else)."""
    file_path = Path(path)
    if not file_path.exists():
        raise ConfigError("file not found", str(file_path))

    with open(file_path, 'r', encoding='utf-8') as f:
        content = f.read()

    if file_path.suffix.lower() == ".json":
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise ConfigError(f"failed to parse: {e}", str(file_path))

    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse: {e}", str(file_path))


@dataclass
class Session:
    """Two requests to compare plus engine settings."""
    left: RequestConfig
    right: RequestConfig
    engine: EngineConfig = field(default_factory=EngineConfig)
    name: Optional[str] = None


def parse_session(data: Any, source: str = "<session>") -> Session:
    """Build a Session from a parsed mapping with left/right/engine blocks."""
    if not isinstance(data, dict):
        raise ConfigError("session must be a mapping", source)

    for side in ("left", "right"):
        if side not in data:
            raise ConfigError(f"missing '{side}' request", source)

    engine_block = data.get("engine") or {}
    if not isinstance(engine_block, dict):
        raise ConfigError("'engine' must be a mapping", source)

    try:
        left = RequestConfig.from_dict(data["left"], name="left")
        right = RequestConfig.from_dict(data["right"], name="right")
    except ValidationError as e:
        raise ConfigError(e.message, source)

    return Session(
        left=left,
        right=right,
        engine=load_engine_config(engine_block),
        name=data.get("name"),
    )


def load_session(path: str | Path) -> Session:
    """
    Load a session file.

    Example (YAML):
        left:
          url: https://api.example.com/v1/users/1
          headers: {Accept: application/json}
        right:
          url: https://staging.example.com/v1/users/1
          modifier: |
            response.pop("requestId", None)
            return response
        engine:
          falsy_as_absent: false
    """
    return parse_session(load_file(path), str(path))
