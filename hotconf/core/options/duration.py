"""
Duration parsing and formatting.

Durations are written the way the configuration sources commonly spell them:
a sequence of decimal numbers each followed by a unit, such as ``"300ms"``,
``"1.5h"`` or ``"2h45m"``. Plain numbers count
nanoseconds.
"""

import re
from datetime import timedelta
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer

_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT = re.compile(r"(\d+\.?\d*|\.\d+)([a-zµμ]+)")
_NUMBER = re.compile(r"[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?")


def parse_duration(text: str) -> timedelta:
    """
    Parse a duration string.

    Args:
        text: Duration such as ``"1m30s"``, ``"-250ms"`` or ``"2000000000"``

    Returns:
        Parsed duration

    Raises:
        ValueError: If the text is not a valid duration
    """
    value = text.strip()
    if not value:
        raise ValueError("invalid duration: empty string")

    if _NUMBER.fullmatch(value):
        return _from_nanoseconds(float(value))

    sign = 1.0
    rest = value
    if rest[0] in "+-":
        sign = -1.0 if rest[0] == "-" else 1.0
        rest = rest[1:]

    seconds = 0.0
    pos = 0
    while pos < len(rest):
        match = _COMPONENT.match(rest, pos)
        if match is None:
            raise ValueError(f"invalid duration: {text!r}")
        number, unit = match.groups()
        if unit not in _UNITS:
            raise ValueError(f"unknown unit {unit!r} in duration {text!r}")
        seconds += float(number) * _UNITS[unit]
        pos = match.end()

    if pos == 0:
        raise ValueError(f"invalid duration: {text!r}")
    return timedelta(seconds=sign * seconds)


def format_duration(value: timedelta) -> str:
    """Render a duration as e.g. ``"1h2m3s"``, ``"1.5s"`` or ``"250ms"``."""
    micros = (value.days * 86400 + value.seconds) * 1_000_000 + value.microseconds
    if micros == 0:
        return "0s"

    sign = "-" if micros < 0 else ""
    micros = abs(micros)

    if micros < 1_000_000:
        if micros % 1000 == 0:
            return f"{sign}{micros // 1000}ms"
        return f"{sign}{micros}us"

    hours, micros = divmod(micros, 3_600_000_000)
    minutes, micros = divmod(micros, 60_000_000)
    seconds = f"{micros / 1_000_000:.6f}".rstrip("0").rstrip(".")

    text = ""
    if hours:
        text += f"{hours}h"
    if hours or minutes:
        text += f"{minutes}m"
    return f"{sign}{text}{seconds}s"


def _from_nanoseconds(value: float) -> timedelta:
    try:
        return timedelta(microseconds=value / 1000)
    except OverflowError as e:
        raise ValueError(f"duration out of range: {value!r}") from e


def coerce_duration(value: Any) -> timedelta:
    """Convert a timedelta, number of nanoseconds or duration string."""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return _from_nanoseconds(value)
    if isinstance(value, str):
        return parse_duration(value)
    raise ValueError(f"invalid duration: {value!r}")


Duration = Annotated[
    timedelta,
    BeforeValidator(coerce_duration),
    PlainSerializer(format_duration, return_type=str),
]
"""Pydantic field type accepting duration strings or nanoseconds."""
