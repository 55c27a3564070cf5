"""Date arithmetic for target windows: midpoint and tolerance buckets."""

from __future__ import annotations

from datetime import datetime, timedelta

# Instant used when a target date cell cannot be parsed.
EPOCH = datetime(1970, 1, 1)

_ONE_MINUTE = timedelta(minutes=1)

# (upper bound in minutes, tolerance); anything above the last bound is 120.
TOLERANCE_BUCKETS: tuple[tuple[int, int], ...] = ((0, 0), (15, 15), (30, 30), (60, 60))
MAX_TOLERANCE = 120


def midpoint(first: datetime, second: datetime) -> datetime:
    """Return the instant halfway between two dates, in either order.

    Sub-microsecond remainders are truncated toward the earlier date.
    """
    earlier, later = (first, second) if first <= second else (second, first)
    return earlier + (later - earlier) // 2


def difference_in_minutes(first: datetime, second: datetime) -> int:
    """Signed whole minutes from *second* to *first*, truncated toward zero."""
    delta = first - second
    minutes = abs(delta) // _ONE_MINUTE
    return minutes if delta >= timedelta(0) else -minutes


def tolerance_from_middle(edge: datetime, middle: datetime) -> int:
    """Bucket the distance between a window edge and its middle."""
    distance = abs(difference_in_minutes(edge, middle))
    for bound, tolerance in TOLERANCE_BUCKETS:
        if distance <= bound:
            return tolerance
    return MAX_TOLERANCE


def tolerance(early: datetime, late: datetime) -> int:
    return tolerance_from_middle(early, midpoint(early, late))
