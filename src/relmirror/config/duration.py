"""
Duration string parser for the check interval.

Accepts the compact duration notation common in container environments:
a possibly signed sequence of decimal numbers, each with an optional fraction
and a unit suffix, e.g. "300ms", "1.5h", "2h45m", "10s". Valid units are
"ns", "us" (or "µs"), "ms", "s", "m", "h". A bare "0" needs no unit.

Durations are returned as float seconds, the unit the scheduler sleeps in.
"""

from __future__ import annotations

import re

from relmirror.exceptions import ConfigurationError


class DurationParseError(ValueError):
    pass


_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # U+00B5 micro sign
    "μs": 1e-6,  # U+03BC greek small letter mu
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

# Longest units first so "ms" is not read as "m" followed by garbage
_COMPONENT = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text: str) -> float:
    """
    Parse a duration string into seconds.

    Args:
        text: Duration such as "90s", "1h30m" or "-2.5m"

    Returns:
        Duration in seconds (negative if the string carries a leading "-")

    Raises:
        DurationParseError: If the string is empty or malformed
    """
    orig = text
    s = text
    if not s:
        raise DurationParseError("invalid duration: empty string")

    sign = 1.0
    if s[0] in "+-":
        if s[0] == "-":
            sign = -1.0
        s = s[1:]

    if s == "0":
        return 0.0
    if not s:
        raise DurationParseError(f"invalid duration: {orig!r}")

    total = 0.0
    pos = 0
    while pos < len(s):
        match = _COMPONENT.match(s, pos)
        if match is None:
            if s[pos].isdigit() or s[pos] == ".":
                raise DurationParseError(f"missing or unknown unit in duration: {orig!r}")
            raise DurationParseError(f"invalid duration: {orig!r}")
        number, unit = match.groups()
        total += float(number) * _UNITS[unit]
        pos = match.end()

    return sign * total


def resolve_interval(text: str | None) -> float | None:
    """
    Turn a configured check interval into seconds, or None for run-once mode.

    Unset or empty values and zero durations ("0", "0s", "0h0m") select
    run-once mode. Surrounding whitespace is not trimmed, so a blank value
    such as "  " is malformed.

    Raises:
        ConfigurationError: If the value is malformed or negative
    """
    if not text:
        return None
    try:
        seconds = parse_duration(text)
    except DurationParseError as e:
        raise ConfigurationError(f"Invalid CHECK_INTERVAL {text!r}: {e}", details={"value": text}) from None
    if seconds == 0:
        return None
    if seconds < 0:
        raise ConfigurationError(
            f"Invalid CHECK_INTERVAL {text!r}: interval must be positive",
            details={"value": text},
        )
    return seconds


def format_duration(seconds: float) -> str:
    """Render seconds back into compact notation for log lines."""
    if seconds <= 0:
        return "0s"
    if seconds < 1:
        return f"{seconds * 1000:g}ms"
    whole = int(seconds)
    parts = []
    hours, rem = divmod(whole, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    frac = seconds - whole
    if secs or frac or not parts:
        parts.append(f"{secs + frac:g}s")
    return "".join(parts)
