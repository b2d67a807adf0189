from datetime import datetime, timedelta

from conftest import TENANT_ID

from salonsphere.models import Booking, Service


def test_create_service_derives_label_and_margin(api, tenant):
    response = api.post(
        "/services",
        json={"name": "Manicure", "price": 50, "material_cost": 10, "duration_minutes": 90},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["duration_label"] == "1u 30min"
    assert data["margin_percentage"] == 80


def test_create_service_rejects_off_grid_duration(api, tenant):
    response = api.post("/services", json={"name": "Pedicure", "duration_minutes": 50})

    assert response.status_code == 422
    assert "Voorgesteld: 45 minuten" in response.text


def test_list_ordered_by_name_and_filtered(api, db_session, tenant):
    db_session.add_all(
        [
            Service(tenant_id=TENANT_ID, name="Wimpers", category="ogen", price=40),
            Service(tenant_id=TENANT_ID, name="Brow lift", category="ogen", price=45, active=False),
            Service(tenant_id=TENANT_ID, name="Massage", category="lichaam", price=70),
        ]
    )
    db_session.commit()

    assert [s["name"] for s in api.get("/services").json()] == ["Brow lift", "Massage", "Wimpers"]
    assert [s["name"] for s in api.get("/services", params={"active_only": True}).json()] == [
        "Massage",
        "Wimpers",
    ]
    assert [s["name"] for s in api.get("/services", params={"category": "ogen"}).json()] == ["Wimpers"]


def test_update_refreshes_cached_list(api, treatment):
    assert api.get("/services").json()[0]["price"] == 50

    response = api.patch(f"/services/{treatment.id}", json={"price": 65})
    assert response.status_code == 200

    assert api.get("/services").json()[0]["price"] == 65
    assert api.get(f"/services/{treatment.id}").json()["price"] == 65


def test_update_invalidates_overhead_analysis(api, treatment, fake_redis):
    fake_redis.store[f"treatment-overhead-analysis:{TENANT_ID}::2026-10"] = "[]"
    fake_redis.store[f"tenant_metrics:{TENANT_ID}"] = "{}"

    api.patch(f"/services/{treatment.id}", json={"material_cost": 12})

    assert fake_redis.store == {}


def test_delete_service_with_bookings_conflicts(api, db_session, treatment, salon_client):
    db_session.add(
        Booking(
            tenant_id=TENANT_ID,
            client_id=salon_client.id,
            service_id=treatment.id,
            scheduled_at=datetime.utcnow() + timedelta(days=1),
            duration_minutes=45,
        )
    )
    db_session.commit()

    assert api.delete(f"/services/{treatment.id}").status_code == 409
    assert api.get(f"/services/{treatment.id}").status_code == 200


def test_delete_service(api, treatment):
    assert api.delete(f"/services/{treatment.id}").status_code == 200
    assert api.get(f"/services/{treatment.id}").status_code == 404


def test_duration_options(api):
    response = api.get("/services/duration-options", params={"max_minutes": 60})

    assert response.status_code == 200
    assert response.json() == [
        {"value": 15, "label": "15 min"},
        {"value": 30, "label": "30 min"},
        {"value": 45, "label": "45 min"},
        {"value": 60, "label": "1u"},
    ]
