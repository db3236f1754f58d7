from __future__ import annotations

import re
from typing import Optional

_ISO_DURATION = re.compile(r"^PT(?:(\d+)H)?(?:(\d+)M)?$")


def parse_iso_duration(iso: Optional[str]) -> Optional[int]:
    """Parse an ISO 8601 duration such as ``PT11H25M`` into minutes.

    Only the ``PT#H#M`` subset used by flight-offer itineraries is
    understood; anything else yields ``None``. ``"PT"`` yields ``0``.
    """
    if not iso or not isinstance(iso, str):
        return None
    match = _ISO_DURATION.match(iso)
    if not match:
        return None
    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    return hours * 60 + minutes


def format_minutes(minutes: int) -> str:
    mins = max(0, int(minutes or 0))
    hours, mins = divmod(mins, 60)
    if hours and mins:
        return f"PT{hours}H{mins}M"
    if hours:
        return f"PT{hours}H"
    return f"PT{mins}M"


__all__ = ["format_minutes", "parse_iso_duration"]
