from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
from conftest import TENANT_ID

from salonsphere.domain.bookings.status import (
    appointments_overlap,
    get_booking_status,
    utc_now,
)
from salonsphere.models import Booking

NOW = datetime(2026, 10, 19, 12, 0)


def _at(hours):
    return NOW + timedelta(hours=hours)


@pytest.mark.parametrize(
    "status, scheduled_at, expected",
    [
        ("confirmed", _at(-5), "confirmed"),
        ("cancelled", _at(5), "cancelled"),
        ("scheduled", _at(-5), "scheduled"),
        (None, _at(-1), "completed"),
        (None, _at(1), "scheduled"),
        ("bogus", _at(-1), "completed"),
    ],
)
def test_effective_status(status, scheduled_at, expected):
    booking = SimpleNamespace(status=status, scheduled_at=scheduled_at)
    assert get_booking_status(booking, NOW) == expected


def test_overlap_rules():
    assert appointments_overlap(_at(0), _at(1), _at(0.5), _at(2))
    assert appointments_overlap(_at(0.5), _at(2), _at(0), _at(1))
    assert appointments_overlap(_at(0), _at(3), _at(1), _at(2))
    assert not appointments_overlap(_at(0), _at(1), _at(1), _at(2))
    assert not appointments_overlap(_at(1), _at(2), _at(0), _at(1))


def _future(days, hour=10):
    return (utc_now() + timedelta(days=days)).replace(hour=hour, minute=0, second=0, microsecond=0)


def _payload(salon_client, treatment, scheduled_at, **extra):
    data = {
        "client_id": salon_client.id,
        "service_id": treatment.id,
        "scheduled_at": scheduled_at.isoformat(),
    }
    data.update(extra)
    return data


def test_create_booking_defaults_duration_to_service(api, salon_client, treatment):
    response = api.post("/bookings", json=_payload(salon_client, treatment, _future(2)))

    assert response.status_code == 201
    data = response.json()
    assert data["duration_minutes"] == 45
    assert data["status"] == "scheduled"
    assert data["service_name"] == "Gezichtsbehandeling"
    assert data["client_name"] == "Sophie de Vries"


def test_create_booking_rejects_off_grid_duration(api, salon_client, treatment):
    response = api.post(
        "/bookings", json=_payload(salon_client, treatment, _future(2), duration_minutes=20)
    )
    assert response.status_code == 422
    assert "Voorgesteld: 15 minuten" in response.text


def test_create_booking_for_unknown_service(api, salon_client, treatment):
    payload = _payload(salon_client, treatment, _future(2), service_id="missing")
    assert api.post("/bookings", json=payload).status_code == 404


def test_staff_double_booking_conflicts(api, salon_client, treatment, staff):
    start = _future(3)
    first = api.post(
        "/bookings",
        json=_payload(salon_client, treatment, start, staff_id=staff.id, duration_minutes=60),
    )
    assert first.status_code == 201

    overlapping = api.post(
        "/bookings",
        json=_payload(salon_client, treatment, start + timedelta(minutes=30), staff_id=staff.id),
    )
    assert overlapping.status_code == 409

    touching = api.post(
        "/bookings",
        json=_payload(salon_client, treatment, start + timedelta(minutes=60), staff_id=staff.id),
    )
    assert touching.status_code == 201

    earlier_overlap = api.post(
        "/bookings",
        json=_payload(
            salon_client, treatment, start - timedelta(minutes=30), staff_id=staff.id, duration_minutes=45
        ),
    )
    assert earlier_overlap.status_code == 409


def test_cancelled_booking_frees_the_slot(api, salon_client, treatment, staff):
    start = _future(4)
    first = api.post("/bookings", json=_payload(salon_client, treatment, start, staff_id=staff.id)).json()

    api.patch(f"/bookings/{first['id']}", json={"status": "cancelled"})

    again = api.post("/bookings", json=_payload(salon_client, treatment, start, staff_id=staff.id))
    assert again.status_code == 201


def test_reschedule_into_conflict(api, salon_client, treatment, staff):
    first = api.post(
        "/bookings", json=_payload(salon_client, treatment, _future(5, 10), staff_id=staff.id)
    ).json()
    second = api.post(
        "/bookings", json=_payload(salon_client, treatment, _future(5, 14), staff_id=staff.id)
    ).json()

    response = api.patch(
        f"/bookings/{second['id']}", json={"scheduled_at": _future(5, 10).isoformat()}
    )
    assert response.status_code == 409

    # moving a booking within its own slot is not a conflict
    response = api.patch(
        f"/bookings/{first['id']}",
        json={"scheduled_at": (_future(5, 10) + timedelta(minutes=15)).isoformat()},
    )
    assert response.status_code == 200


def test_past_booking_without_status_reads_completed(api, db_session, salon_client, treatment):
    booking = Booking(
        tenant_id=TENANT_ID,
        client_id=salon_client.id,
        service_id=treatment.id,
        scheduled_at=utc_now() - timedelta(days=2),
        duration_minutes=45,
        status=None,
    )
    db_session.add(booking)
    db_session.commit()

    assert api.get(f"/bookings/{booking.id}").json()["status"] == "completed"


def test_upcoming_only_active_future_bookings(api, salon_client, treatment):
    api.post("/bookings", json=_payload(salon_client, treatment, _future(1)))
    api.post("/bookings", json=_payload(salon_client, treatment, _future(2), status="cancelled"))
    api.post("/bookings", json=_payload(salon_client, treatment, _future(-2), status="confirmed"))
    api.post("/bookings", json=_payload(salon_client, treatment, _future(3), status="confirmed"))

    upcoming = api.get("/bookings/upcoming").json()
    assert [b["status"] for b in upcoming] == ["scheduled", "confirmed"]


def test_mutation_invalidates_booking_queries(api, salon_client, treatment, fake_redis):
    api.get("/bookings")
    assert "bookings:tenant-1:all" in fake_redis.store
    fake_redis.store["overhead-metrics:tenant-1:2026-10"] = "{}"
    fake_redis.store["booking_series:tenant-1:2026-10-01:2026-10-31"] = "[]"
    fake_redis.store["treatment-overhead-analysis:tenant-1::2026-10"] = "[]"
    fake_redis.store["overhead-trends:tenant-1:6:2026-10"] = "[]"

    api.post("/bookings", json=_payload(salon_client, treatment, _future(1)))

    assert fake_redis.store == {}
    assert len(api.get("/bookings").json()) == 1


def test_paginated_future_and_past(api, salon_client, treatment):
    for day in range(1, 8):
        api.post("/bookings", json=_payload(salon_client, treatment, _future(day)))
    for day in range(1, 4):
        api.post("/bookings", json=_payload(salon_client, treatment, _future(-day)))

    first = api.get("/bookings/paginated", params={"limit": 5}).json()
    assert len(first["items"]) == 5
    assert first["has_more"] is True
    starts = [b["scheduled_at"] for b in first["items"]]
    assert starts == sorted(starts)
    assert first["next_cursor"] == starts[-1]

    second = api.get(
        "/bookings/paginated", params={"limit": 5, "cursor": first["next_cursor"]}
    ).json()
    assert len(second["items"]) == 2
    assert second["has_more"] is False
    assert second["next_cursor"] is None

    past = api.get("/bookings/paginated", params={"limit": 2, "direction": "past"}).json()
    past_starts = [b["scheduled_at"] for b in past["items"]]
    assert past_starts == sorted(past_starts)
    assert past["has_more"] is True
    assert past["next_cursor"] == past_starts[0]

    older = api.get(
        "/bookings/paginated",
        params={"limit": 2, "direction": "past", "cursor": past["next_cursor"]},
    ).json()
    assert len(older["items"]) == 1
    assert older["items"][0]["scheduled_at"] < past_starts[0]


def test_today_and_range(api, salon_client, treatment):
    today = utc_now().replace(hour=9, minute=0, second=0, microsecond=0)
    api.post("/bookings", json=_payload(salon_client, treatment, today))
    api.post("/bookings", json=_payload(salon_client, treatment, _future(10)))

    assert len(api.get("/bookings/today").json()) == 1
    in_range = api.get(
        "/bookings",
        params={
            "start": (today - timedelta(days=1)).isoformat(),
            "end": (today + timedelta(days=1)).isoformat(),
        },
    ).json()
    assert len(in_range) == 1
    assert api.get("/bookings", params={"start": today.isoformat()}).status_code == 400


def test_delete_booking(api, salon_client, treatment):
    booking = api.post("/bookings", json=_payload(salon_client, treatment, _future(1))).json()

    assert api.delete(f"/bookings/{booking['id']}").status_code == 200
    assert api.get(f"/bookings/{booking['id']}").status_code == 404
