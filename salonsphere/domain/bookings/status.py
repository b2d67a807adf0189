"""
Booking timing helpers
Effective status derivation and appointment overlap
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import and_, or_

from ...models import Booking

BOOKING_STATUSES = ("scheduled", "confirmed", "completed", "cancelled", "no_show")
ACTIVE_STATUSES = ("scheduled", "confirmed")


def utc_now() -> datetime:
    """Current time as naive UTC, matching stored datetimes"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_booking_status(booking, now: Optional[datetime] = None) -> str:
    """
    Effective status of a booking.

    A recognised stored status wins. Otherwise the booking counts as
    completed once its start time has passed and as scheduled before that.
    """
    if booking.status in BOOKING_STATUSES:
        return booking.status

    now = now or utc_now()
    return "completed" if booking.scheduled_at < now else "scheduled"


def booking_end(scheduled_at: datetime, duration_minutes: int) -> datetime:
    return scheduled_at + timedelta(minutes=duration_minutes)


def appointments_overlap(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    """True when either appointment starts inside the other; touching ends do not count"""
    return (start_b <= start_a < end_b) or (start_a <= start_b < end_a)


def completed_clause(now: datetime):
    """SQL filter equivalent of ``get_booking_status(...) == "completed"``"""
    return or_(
        Booking.status == "completed",
        and_(
            or_(Booking.status.is_(None), Booking.status.notin_(BOOKING_STATUSES)),
            Booking.scheduled_at < now,
        ),
    )
