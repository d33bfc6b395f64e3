"""
Settings loading.

Settings come from three layers, later ones winning:

1. an optional YAML file (``--config`` or ``RELMIRROR_CONFIG``), with
   ``${VAR}`` substitution,
2. environment variables,
3. explicit overrides (command line options).

Validation happens here, before any network activity; every problem is a
ConfigurationError.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from relmirror.config.duration import DurationParseError, parse_duration, resolve_interval
from relmirror.config.resolver import resolve_config
from relmirror.exceptions import ConfigurationError

DEFAULT_HOST = "https://github.com"
DEFAULT_POOL_SIZE = 4
DEFAULT_CHUNK_SIZE = 64 * 1024

# Setting name -> environment variable
ENV_VARS: dict[str, str] = {
    "owner": "GITHUB_OWNER",
    "repository": "GITHUB_REPOSITORY",
    "artifacts": "GITHUB_ARTEFACTS",
    "download_path": "DOWNLOAD_PATH",
    "check_interval": "CHECK_INTERVAL",
    "host": "RELMIRROR_HOST",
    "pool_size": "RELMIRROR_POOL_SIZE",
    "chunk_size": "RELMIRROR_CHUNK_SIZE",
    "request_timeout": "RELMIRROR_TIMEOUT",
    "log_level": "RELMIRROR_LOG_LEVEL",
    "log_file": "RELMIRROR_LOG_FILE",
}

REQUIRED = ("owner", "repository", "artifacts", "download_path")

CONFIG_FILE_VAR = "RELMIRROR_CONFIG"


@dataclass(frozen=True)
class MirrorSettings:
    """Validated, immutable process settings."""

    owner: str
    repository: str
    artifacts: str
    download_path: Path
    check_interval: float | None = None
    host: str = DEFAULT_HOST
    pool_size: int = DEFAULT_POOL_SIZE
    chunk_size: int = DEFAULT_CHUNK_SIZE
    request_timeout: float | None = None
    log_level: str = "INFO"
    log_file: Path | None = None

    @property
    def run_once(self) -> bool:
        return self.check_interval is None


def load_settings(
    environ: Mapping[str, str] | None = None,
    config_file: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> MirrorSettings:
    """
    Load and validate settings.

    Args:
        environ: Environment to read (default: os.environ)
        config_file: Optional YAML file; falls back to $RELMIRROR_CONFIG
        overrides: Values that win over both file and environment; None values are ignored

    Returns:
        MirrorSettings

    Raises:
        ConfigurationError: On missing required values or invalid ones
    """
    env = os.environ if environ is None else environ

    raw: dict[str, Any] = {}

    if config_file is None and env.get(CONFIG_FILE_VAR):
        config_file = env[CONFIG_FILE_VAR]
    if config_file is not None:
        raw.update(_read_config_file(Path(config_file), env))

    for name, var in ENV_VARS.items():
        value = env.get(var)
        if not value:
            continue
        # A blank CHECK_INTERVAL is rejected by the parser rather than read as unset
        if name != "check_interval" and not value.strip():
            continue
        raw[name] = value

    for name, value in (overrides or {}).items():
        if value is not None:
            raw[name] = value

    missing = [ENV_VARS[name] for name in REQUIRED if not str(raw.get(name) or "").strip()]
    if missing:
        raise ConfigurationError(
            f"Missing required configuration: {', '.join(missing)}. "
            f"Ensure GITHUB_OWNER, GITHUB_REPOSITORY, GITHUB_ARTEFACTS, and DOWNLOAD_PATH are set.",
            details={"missing": missing},
        )

    interval_raw = raw.get("check_interval")
    check_interval = resolve_interval(None if interval_raw is None else str(interval_raw))

    log_file = raw.get("log_file")
    return MirrorSettings(
        owner=str(raw["owner"]).strip(),
        repository=str(raw["repository"]).strip(),
        artifacts=str(raw["artifacts"]),
        download_path=Path(str(raw["download_path"])),
        check_interval=check_interval,
        host=str(raw.get("host") or DEFAULT_HOST).rstrip("/"),
        pool_size=_positive_int(raw, "pool_size", DEFAULT_POOL_SIZE),
        chunk_size=_positive_int(raw, "chunk_size", DEFAULT_CHUNK_SIZE),
        request_timeout=_optional_timeout(raw.get("request_timeout")),
        log_level=str(raw.get("log_level") or "INFO").upper(),
        log_file=Path(str(log_file)) if log_file else None,
    )


def _read_config_file(path: Path, environ: Mapping[str, str]) -> dict[str, Any]:
    """Read a YAML settings file into flat setting names."""
    if not path.is_file():
        raise ConfigurationError(f"Configuration file not found: {path}", details={"path": str(path)})

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        if hasattr(e, "problem_mark"):
            mark = e.problem_mark
            raise ConfigurationError(
                f"Error parsing {path} at line {mark.line + 1}, column {mark.column + 1}: {e}",
                details={"path": str(path)},
            ) from e
        raise ConfigurationError(f"Error parsing {path}: {e}", details={"path": str(path)}) from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}", details={"path": str(path)}) from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file must be a mapping, got {type(data).__name__}",
            details={"path": str(path)},
        )

    data = resolve_config(data, environ)

    flat: dict[str, Any] = {}
    for name in ENV_VARS:
        if name in data and data[name] is not None:
            flat[name] = data[name]

    artifacts = flat.get("artifacts")
    if isinstance(artifacts, list):
        flat["artifacts"] = ",".join(str(a) for a in artifacts)

    # Nested logging section: {logging: {level: DEBUG, file: logs/mirror.log}}
    logging_section = data.get("logging") or {}
    if isinstance(logging_section, dict):
        if logging_section.get("level"):
            flat.setdefault("log_level", logging_section["level"])
        if logging_section.get("file"):
            flat.setdefault("log_file", logging_section["file"])

    return flat


def _positive_int(raw: Mapping[str, Any], name: str, default: int) -> int:
    value = raw.get(name)
    if value is None or value == "":
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid {ENV_VARS[name]} {value!r}: expected an integer") from None
    if number <= 0:
        raise ConfigurationError(f"Invalid {ENV_VARS[name]} {value!r}: must be positive")
    return number


def _optional_timeout(value: Any) -> float | None:
    """Seconds for RELMIRROR_TIMEOUT; unset or zero means no total limit."""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        try:
            seconds = parse_duration(str(value))
        except DurationParseError as e:
            raise ConfigurationError(f"Invalid RELMIRROR_TIMEOUT {value!r}: {e}") from None
    if seconds < 0:
        raise ConfigurationError(f"Invalid RELMIRROR_TIMEOUT {value!r}: must not be negative")
    return seconds or None
