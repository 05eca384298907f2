# This project was developed with assistance from AI tools.
"""Payment window evaluation for approved rental requests.

Once an owner approves a request, the renter has a limited time to pay. The
window depends on how soon the rental starts relative to the approval:

    days until start >= 5   -> 24 hours
    2 <= days < 5           -> 12 hours
    otherwise (< 2, or past) -> 1 hour

Everything here is pure; callers pass ``now`` explicitly.
"""

import math
from datetime import UTC, date, datetime, time, timedelta

from ..schemas.payment_window import PaymentWindow

# Ordered policy table: (minimum days until start, window hours). First match wins.
PAYMENT_WINDOW_POLICY: tuple[tuple[int, int], ...] = (
    (5, 24),
    (2, 12),
)
FALLBACK_WINDOW_HOURS = 1

_SECONDS_PER_DAY = 24 * 60 * 60


def _ensure_tz(dt: datetime) -> datetime:
    """Ensure a datetime is timezone-aware (UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def _start_of_day(d: date) -> datetime:
    return datetime.combine(d, time.min, tzinfo=UTC)


def days_until_start(approved_at: datetime, start_date: date) -> int:
    """Whole days (rounded up) between approval and the rental start date."""
    delta = _start_of_day(start_date) - _ensure_tz(approved_at)
    return math.ceil(delta.total_seconds() / _SECONDS_PER_DAY)


def payment_window_hours(days: int) -> int:
    """Look up the payment window for a given lead time in days."""
    for min_days, hours in PAYMENT_WINDOW_POLICY:
        if days >= min_days:
            return hours
    return FALLBACK_WINDOW_HOURS


def evaluate_payment_window(
    approved_at: datetime,
    start_date: date,
    now: datetime,
) -> PaymentWindow:
    """Compute the payment deadline and whether it has passed at ``now``."""
    approved_at = _ensure_tz(approved_at)
    days = days_until_start(approved_at, start_date)
    hours = payment_window_hours(days)
    deadline = approved_at + timedelta(hours=hours)
    return PaymentWindow(
        days_until_start=days,
        window_hours=hours,
        deadline=deadline,
        is_expired=_ensure_tz(now) > deadline,
    )


def expiry_denial_reason(window_hours: int) -> str:
    """User-facing reason stored on a request that ran out of time."""
    unit = "hour" if window_hours == 1 else "hours"
    return f"Payment period expired. You had {window_hours} {unit} to complete payment."
