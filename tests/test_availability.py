from datetime import date, datetime, time

import pytest
from conftest import TENANT_ID

from salonsphere.domain.bookings.availability import align_to_grid, weekday_index
from salonsphere.models import Booking, StaffSchedule, User

# A Monday far enough ahead that no slot is in the past
DAY = date(2030, 1, 7)


@pytest.fixture
def schedule(db_session, staff):
    entry = StaffSchedule(
        tenant_id=TENANT_ID,
        staff_id=staff.id,
        day_of_week=weekday_index(DAY),
        start_time=time(9, 0),
        end_time=time(11, 0),
    )
    db_session.add(entry)
    db_session.commit()
    return entry


def _book(db_session, salon_client, treatment, staff, hour, minute, duration, status=None):
    db_session.add(
        Booking(
            tenant_id=TENANT_ID,
            client_id=salon_client.id,
            service_id=treatment.id,
            staff_id=staff.id,
            scheduled_at=datetime.combine(DAY, time(hour, minute)),
            duration_minutes=duration,
            status=status,
        )
    )
    db_session.commit()


def _slots(api, treatment, day=DAY, **params):
    response = api.get(
        "/bookings/availability",
        params={"service_id": treatment.id, "day": day.isoformat(), **params},
    )
    assert response.status_code == 200
    return response.json()


def _free(slots):
    return [s["time"] for s in slots if s["available"]]


def test_weekday_index_starts_on_sunday():
    assert weekday_index(date(2030, 1, 6)) == 0
    assert weekday_index(DAY) == 1


def test_align_to_grid():
    assert align_to_grid(datetime(2030, 1, 7, 9, 0)) == datetime(2030, 1, 7, 9, 0)
    assert align_to_grid(datetime(2030, 1, 7, 9, 5)) == datetime(2030, 1, 7, 9, 15)
    assert align_to_grid(datetime(2030, 1, 7, 9, 50)) == datetime(2030, 1, 7, 10, 0)


def test_open_day_on_quarter_hour_grid(api, treatment, schedule):
    slots = _slots(api, treatment)

    # 45 minute treatment inside 09:00-11:00
    assert [s["time"] for s in slots] == ["09:00", "09:15", "09:30", "09:45", "10:00", "10:15"]
    assert all(s["available"] for s in slots)
    assert slots[0]["staff_name"] == "Anna"
    assert slots[0]["day"] == DAY.isoformat()


def test_day_with_a_gap(api, db_session, salon_client, treatment, staff, schedule):
    _book(db_session, salon_client, treatment, staff, 9, 45, 30)

    assert _free(_slots(api, treatment)) == ["09:00", "10:15"]


def test_fully_booked_day(api, db_session, salon_client, treatment, staff, schedule):
    _book(db_session, salon_client, treatment, staff, 9, 0, 120)

    slots = _slots(api, treatment)
    assert len(slots) == 6
    assert _free(slots) == []


def test_cancelled_bookings_free_their_slots(api, db_session, salon_client, treatment, staff, schedule):
    _book(db_session, salon_client, treatment, staff, 9, 0, 120, status="cancelled")

    assert len(_free(_slots(api, treatment))) == 6


def test_no_schedule_on_weekday(api, treatment, schedule):
    assert _slots(api, treatment, day=date(2030, 1, 8)) == []


def test_past_day_has_no_free_slots(api, db_session, treatment, staff):
    past = date(2020, 1, 6)
    db_session.add(
        StaffSchedule(
            tenant_id=TENANT_ID,
            staff_id=staff.id,
            day_of_week=weekday_index(past),
            start_time=time(9, 0),
            end_time=time(10, 0),
        )
    )
    db_session.commit()

    slots = _slots(api, treatment, day=past)
    assert len(slots) == 2
    assert _free(slots) == []


def test_staff_filter_and_inactive_staff(api, db_session, treatment, schedule):
    other = User(id="staff-2", tenant_id=TENANT_ID, email="bo@beautysalon.nl", first_name="Bo", active=False)
    db_session.add(other)
    db_session.add(
        StaffSchedule(
            tenant_id=TENANT_ID,
            staff_id=other.id,
            day_of_week=weekday_index(DAY),
            start_time=time(9, 0),
            end_time=time(11, 0),
        )
    )
    db_session.commit()

    assert {s["staff_id"] for s in _slots(api, treatment)} == {"staff-1"}
    assert _slots(api, treatment, staff_id="staff-2") == []


def test_new_booking_takes_its_slot(api, salon_client, treatment, staff, schedule):
    assert "09:00" in _free(_slots(api, treatment))

    created = api.post(
        "/bookings",
        json={
            "client_id": salon_client.id,
            "service_id": treatment.id,
            "staff_id": staff.id,
            "scheduled_at": datetime.combine(DAY, time(9, 0)).isoformat(),
        },
    )
    assert created.status_code == 201

    assert _free(_slots(api, treatment)) == ["09:45", "10:00", "10:15"]


def test_unknown_service(api, schedule):
    response = api.get(
        "/bookings/availability", params={"service_id": "missing", "day": DAY.isoformat()}
    )
    assert response.status_code == 404


def test_without_tenant(api, treatment, schedule, login_as):
    login_as(tenant_id=None)
    assert _slots(api, treatment) == []
