"""
Date/time helpers and the injectable clock: framework-agnostic.

Every expiry comparison in the service layer goes through a ``Clock`` so tests
can pin "now" instead of sleeping past a TTL.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock returning timezone-aware UTC datetimes."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return *value* as a timezone-aware UTC datetime.

    MongoDB hands back naive datetimes unless the client is tz-aware; a naive
    value is assumed to already be UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
