"""
Helper functions for time representation.

The public API and realtime events express every timestamp as integer
milliseconds since the Unix epoch. Storage keeps timezone-aware datetimes;
these helpers convert at the boundary.

Usage:
    from core.helpers import to_epoch_ms

    payload = {"last_seen_at": to_epoch_ms(user.last_seen_at)}
"""

from __future__ import annotations

from datetime import datetime, timezone as dt_timezone

from django.utils import timezone


def to_epoch_ms(value: datetime | None) -> int | None:
    """
    Convert a datetime to integer epoch milliseconds.

    Naive datetimes are interpreted in the current Django timezone.

    Args:
        value: Datetime to convert (None passes through)

    Returns:
        Milliseconds since 1970-01-01T00:00:00Z, or None
    """
    if value is None:
        return None
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return int(value.timestamp() * 1000)


def from_epoch_ms(value: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(value / 1000, tz=dt_timezone.utc)
