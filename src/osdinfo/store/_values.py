"""String projections of typed values for the stores."""

from __future__ import annotations

from datetime import datetime


def display_value(value: object) -> str:
    """Project a typed value to the text written to the registry.

    Numbers use the shortest text that parses back to the same float;
    integral values drop the fractional part.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, float):
        if value.is_integer() and abs(value) < 1e15:
            return str(int(value))
        return repr(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ", ".join(display_value(v) for v in value)
    return str(value)


def cim_datetime(value: datetime) -> str:
    """Format *value* as a CIM DATETIME (``yyyymmddHHMMSS.mmmmmmsUUU``)."""
    offset = value.utcoffset()
    minutes = int(offset.total_seconds() // 60) if offset is not None else 0
    sign = "-" if minutes < 0 else "+"
    return f"{value:%Y%m%d%H%M%S}.{value.microsecond:06d}{sign}{abs(minutes):03d}"
