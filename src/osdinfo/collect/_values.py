"""Type inference for raw deployment variable values.

Every raw string maps to exactly one ``ValueKind``.  The checks run in a
fixed order, first match wins:

1. date/time under the configured culture's patterns (ISO 8601 always)
2. ``True`` / ``False``
3. ``Yes`` / ``No``
4. numeric (sign, fraction and exponent allowed) -> float
5. anything else -> string; empty -> null

The variable name is never consulted for the type.  Inference does not
raise: a value that matches a type but cannot be represented (a float that
overflows) comes back with ``error`` set so the caller can skip it.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime

from osdinfo.model.entries import ValueKind


# ---------------------------------------------------------------------------
# Date patterns
# ---------------------------------------------------------------------------

_ISO_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2})"
    r"(?:[T ](\d{2}:\d{2}(?::\d{2})?)(?:\.(\d+))?)?"
    r"(Z|[+-]\d{2}:?\d{2})?$",
    re.IGNORECASE,
)

INVARIANT_PATTERNS: tuple[str, ...] = (
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
    "%d %B %Y",
    "%d %b %Y",
    "%A, %d %B %Y %H:%M:%S",
)

CULTURE_PATTERNS: dict[str, tuple[str, ...]] = {
    "en-US": (
        "%m/%d/%Y %I:%M:%S %p",
        "%m/%d/%Y %I:%M %p",
        "%m/%d/%Y %H:%M:%S",
        "%m/%d/%Y %H:%M",
        "%m/%d/%Y",
        "%B %d, %Y",
        "%b %d, %Y",
        "%A, %B %d, %Y %I:%M:%S %p",
        "%A, %B %d, %Y",
    ),
    "en-GB": (
        "%d/%m/%Y %H:%M:%S",
        "%d/%m/%Y %H:%M",
        "%d/%m/%Y",
        "%d %B %Y %H:%M:%S",
        "%d %B %Y",
        "%d %b %Y",
    ),
    "de-DE": (
        "%d.%m.%Y %H:%M:%S",
        "%d.%m.%Y %H:%M",
        "%d.%m.%Y",
    ),
}


def patterns_for(culture: str, invariant: bool = False) -> tuple[str, ...]:
    """Return the strptime patterns tried for *culture*.

    Unknown cultures fall back to the invariant table.
    """
    if invariant:
        return INVARIANT_PATTERNS
    return CULTURE_PATTERNS.get(culture, INVARIANT_PATTERNS)


def _parse_iso(text: str) -> datetime | None:
    m = _ISO_RE.match(text)
    if m is None:
        return None
    date_part, time_part, fraction, offset = m.groups()
    iso = date_part
    if time_part:
        iso += "T" + time_part
        if fraction:
            iso += "." + fraction[:6].ljust(6, "0")
    if offset:
        if offset.upper() == "Z":
            offset = "+00:00"
        elif ":" not in offset:
            offset = f"{offset[:3]}:{offset[3:]}"
        if not time_part:
            iso += "T00:00:00"
        iso += offset
    try:
        return datetime.fromisoformat(iso)
    except ValueError:
        return None


def parse_datetime(
    text: str,
    culture: str = "en-US",
    invariant: bool = False,
) -> datetime | None:
    """Parse *text* as a date/time, or return ``None``.

    ISO 8601 is always accepted; the remaining patterns come from the
    culture table.  The result is naive unless the text carries an offset.
    """
    text = text.strip()
    if not text or not any(c.isdigit() for c in text):
        return None
    parsed = _parse_iso(text)
    if parsed is not None:
        return parsed
    for pattern in patterns_for(culture, invariant):
        try:
            return datetime.strptime(text, pattern)
        except ValueError:
            continue
    return None


# ---------------------------------------------------------------------------
# Inference
# ---------------------------------------------------------------------------

_NUMBER_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")

_BOOLEAN_WORDS: dict[str, bool] = {
    "true": True,
    "false": False,
}

_YES_NO_WORDS: dict[str, bool] = {
    "yes": True,
    "no": False,
}


@dataclass(frozen=True)
class Inference:
    """Result of inferring one raw value."""

    kind: ValueKind
    value: datetime | bool | float | str | None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def infer_value(
    raw: str | None,
    name: str = "",
    *,
    culture: str = "en-US",
    invariant: bool = False,
) -> Inference:
    """Infer the semantic type of *raw* and convert it.

    *name* only labels error text; it never changes the inferred type.
    """
    if raw is None:
        return Inference(ValueKind.NULL, None)
    text = raw.strip()
    if not text:
        return Inference(ValueKind.NULL, None)

    parsed = parse_datetime(text, culture, invariant)
    if parsed is not None:
        return Inference(ValueKind.DATETIME, parsed)

    folded = text.lower()
    if folded in _BOOLEAN_WORDS:
        return Inference(ValueKind.BOOLEAN, _BOOLEAN_WORDS[folded])
    if folded in _YES_NO_WORDS:
        return Inference(ValueKind.BOOLEAN, _YES_NO_WORDS[folded])

    if _NUMBER_RE.match(text):
        number = float(text)
        if not math.isfinite(number):
            label = f" for {name}" if name else ""
            return Inference(
                ValueKind.NUMBER, None, error=f"numeric overflow{label}: {text!r}"
            )
        return Inference(ValueKind.NUMBER, number)

    return Inference(ValueKind.STRING, raw)
