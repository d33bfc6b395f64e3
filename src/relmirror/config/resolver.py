"""
Environment variable substitution for config file values.

Substitutes ${VAR_NAME} placeholders; unknown variables are left untouched so
the validation step can report them.
"""

import os
import re
from collections.abc import Mapping
from typing import Any


def resolve_config(config_data: dict[str, Any], environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """
    Resolve configuration with environment variable substitution.

    Args:
        config_data: Configuration dictionary
        environ: Variables to substitute from (default: os.environ)

    Returns:
        Resolved configuration
    """
    env = os.environ if environ is None else environ
    return _resolve_value(config_data, env)


def _resolve_value(value: Any, environ: Mapping[str, str]) -> Any:
    """Recursively resolve values in configuration."""
    if isinstance(value, dict):
        return {k: _resolve_value(v, environ) for k, v in value.items()}
    elif isinstance(value, list):
        return [_resolve_value(item, environ) for item in value]
    elif isinstance(value, str):
        return re.sub(r"\${([^}]+)}", lambda m: environ.get(m.group(1), m.group(0)), value)
    else:
        return value
