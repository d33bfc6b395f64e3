"""
Process settings: environment variables, optional YAML file, duration parsing.
"""

from relmirror.config.duration import DurationParseError, parse_duration, resolve_interval
from relmirror.config.loader import ENV_VARS, MirrorSettings, load_settings

__all__ = [
    "ENV_VARS",
    "MirrorSettings",
    "load_settings",
    "parse_duration",
    "resolve_interval",
    "DurationParseError",
]
