"""
Appointment slot generation
Slots start on the 15-minute grid inside a staff member's working hours and are
unavailable when they lie in the past or overlap one of that member's bookings
"""

from datetime import date, datetime, timedelta

from ...models import StaffSchedule
from ...shared.duration import DURATION_INCREMENT
from .status import appointments_overlap, booking_end

SLOT_STEP = timedelta(minutes=DURATION_INCREMENT)


def weekday_index(day: date) -> int:
    """Day of week as stored on schedules (0 = Sunday)"""
    return day.isoweekday() % 7


def align_to_grid(moment: datetime) -> datetime:
    """Round up to the next quarter hour"""
    if moment.minute % DURATION_INCREMENT == 0 and not moment.second and not moment.microsecond:
        return moment
    aligned = moment.replace(second=0, microsecond=0)
    return aligned + timedelta(minutes=DURATION_INCREMENT - aligned.minute % DURATION_INCREMENT)


def build_slots(
    day: date,
    schedule: StaffSchedule,
    duration_minutes: int,
    bookings: list,
    now: datetime,
) -> list[dict]:
    """
    Every slot of ``duration_minutes`` that fits in the schedule on ``day``.

    ``bookings`` are the staff member's non-cancelled bookings around that day.
    A slot ending exactly when a booking starts (or starting when one ends) is free.
    """
    opening = align_to_grid(datetime.combine(day, schedule.start_time))
    closing = datetime.combine(day, schedule.end_time)
    busy = [(b.scheduled_at, booking_end(b.scheduled_at, b.duration_minutes)) for b in bookings]

    staff = schedule.staff
    staff_name = None
    if staff:
        staff_name = " ".join(p for p in (staff.first_name, staff.last_name) if p) or None

    slots = []
    start = opening
    while booking_end(start, duration_minutes) <= closing:
        end = booking_end(start, duration_minutes)
        taken = any(appointments_overlap(start, end, b_start, b_end) for b_start, b_end in busy)
        slots.append(
            {
                "day": day.isoformat(),
                "time": start.strftime("%H:%M"),
                "available": start >= now and not taken,
                "staff_id": schedule.staff_id,
                "staff_name": staff_name,
            }
        )
        start += SLOT_STEP
    return slots
