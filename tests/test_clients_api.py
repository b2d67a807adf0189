import json
from datetime import datetime, timedelta

from conftest import OTHER_TENANT_ID, TENANT_ID

from salonsphere.models import Client


def test_create_and_list_clients(api, tenant):
    response = api.post(
        "/clients",
        json={"first_name": "  Lisa ", "last_name": "Jansen", "email": "LISA@Example.nl", "phone": "06 12345678"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["first_name"] == "Lisa"
    assert data["email"] == "lisa@example.nl"
    assert data["phone"] == "+31612345678"

    listed = api.get("/clients").json()
    assert [c["id"] for c in listed] == [data["id"]]


def test_create_client_publishes_change(api, tenant, fake_redis):
    api.post("/clients", json={"first_name": "Lisa"})

    channel, message = fake_redis.published[-1]
    assert channel == f"tenant_realtime:{TENANT_ID}"
    assert json.loads(message)["table"] == "clients"
    assert json.loads(message)["event"] == "INSERT"


def test_create_client_requires_first_name(api, tenant):
    response = api.post("/clients", json={"first_name": "   "})
    assert response.status_code == 422


def test_search_is_case_insensitive(api, db_session, tenant):
    db_session.add_all(
        [
            Client(tenant_id=TENANT_ID, first_name="Sophie", email="sophie@example.nl"),
            Client(tenant_id=TENANT_ID, first_name="Emma", last_name="Bakker"),
        ]
    )
    db_session.commit()

    results = api.get("/clients", params={"search": "BAKK"}).json()
    assert [c["first_name"] for c in results] == ["Emma"]


def test_clients_are_tenant_scoped(api, db_session, tenant):
    other = Client(tenant_id=OTHER_TENANT_ID, first_name="Noor")
    db_session.add(other)
    db_session.commit()

    assert api.get("/clients").json() == []
    assert api.get(f"/clients/{other.id}").status_code == 404
    assert api.patch(f"/clients/{other.id}", json={"notes": "x"}).status_code == 404


def test_update_is_visible_on_next_read(api, salon_client):
    assert api.get(f"/clients/{salon_client.id}").json()["notes"] is None

    api.patch(f"/clients/{salon_client.id}", json={"notes": "Voorkeur voor ochtend"})

    assert api.get(f"/clients/{salon_client.id}").json()["notes"] == "Voorkeur voor ochtend"


def test_delete_client(api, salon_client):
    assert api.delete(f"/clients/{salon_client.id}").status_code == 200
    assert api.get(f"/clients/{salon_client.id}").status_code == 404


def test_segments(api, db_session, tenant):
    old = datetime.utcnow() - timedelta(days=200)
    db_session.add_all(
        [
            Client(tenant_id=TENANT_ID, first_name="Vip", total_spent=750, last_visit_date=datetime.utcnow(), created_at=old),
            Client(tenant_id=TENANT_ID, first_name="Slapend", total_spent=20, last_visit_date=old, created_at=old),
            Client(tenant_id=TENANT_ID, first_name="Nieuw", last_visit_date=datetime.utcnow()),
        ]
    )
    db_session.commit()

    def names(segment):
        return [c["first_name"] for c in api.get(f"/clients/segments/{segment}").json()]

    assert names("vip") == ["Vip"]
    assert names("inactive") == ["Slapend"]
    assert names("new") == ["Nieuw"]
    assert api.get("/clients/segments/sleeping").status_code == 400


def test_without_tenant_reads_are_empty_and_mutations_forbidden(api, tenant, login_as):
    login_as(tenant_id=None)

    assert api.get("/clients").json() == []
    response = api.post("/clients", json={"first_name": "Lisa"})
    assert response.status_code == 403
    assert response.json()["detail"] == "No tenant found"
