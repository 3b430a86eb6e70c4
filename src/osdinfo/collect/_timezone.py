"""Two-stage time zone normalization for inferred date/time values.

Values are converted source -> destination -> final.  The destination zone
is what a technician reads on the console; the final zone (UTC by default)
is what gets stored.  Zone ids are validated by ``RunConfig``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import pytz


@dataclass(frozen=True)
class Normalized:
    value: datetime | None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def localize(dt: datetime, source_zone_id: str | None = None) -> datetime:
    """Attach the source zone to a naive datetime.

    Aware values are returned unchanged.  With no *source_zone_id* the
    system's local zone is assumed.  Ambiguous local times resolve to
    standard time.
    """
    if dt.tzinfo is not None and dt.utcoffset() is not None:
        return dt
    if source_zone_id is None:
        return dt.astimezone()
    return pytz.timezone(source_zone_id).localize(dt)


def normalize(
    dt: datetime,
    destination_zone_id: str,
    final_zone_id: str = "UTC",
    source_zone_id: str | None = None,
) -> Normalized:
    """Convert *dt* into the destination zone, then into the final zone."""
    try:
        aware = localize(dt, source_zone_id)
        in_destination = aware.astimezone(pytz.timezone(destination_zone_id))
        return Normalized(in_destination.astimezone(pytz.timezone(final_zone_id)))
    except (OverflowError, ValueError, OSError) as e:
        return Normalized(None, error=f"cannot convert {dt.isoformat()}: {e}")
