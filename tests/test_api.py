import json

import pytest
from fastapi.testclient import TestClient

from tablebook.api.deps import get_booking_service
from tablebook.db.base import Base
from tablebook.db.session import engine
from tablebook.main import app

BOOKINGS = "/api/v1/bookings/"


@pytest.fixture
def client(service):
    Base.metadata.create_all(bind=engine)
    app.dependency_overrides[get_booking_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)


def test_create_booking(client, make_payload):
    response = client.post(BOOKINGS, json=make_payload(ref="R1"))
    assert response.status_code == 201
    assert response.json() == {"success": True, "ref": "R1"}


def test_create_accepts_numeric_identifiers(client, make_payload):
    response = client.post(BOOKINGS, json=make_payload(emp_no=4411, phone=9876543210, table_id=5))
    assert response.status_code == 201

    [booking] = client.get(BOOKINGS).json()["bookings"]
    assert booking["emp_no"] == "4411"
    assert booking["phone"] == "9876543210"
    assert booking["table_id"] == "5"


def test_create_conflict_maps_to_409(client, make_payload):
    client.post(BOOKINGS, json=make_payload(ref="R1"))
    response = client.post(BOOKINGS, json=make_payload(ref="R2", emp_no="E2", time="07:30 PM"))
    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == "conflict"


def test_create_validation_maps_to_400(client, make_payload):
    response = client.post(BOOKINGS, json=make_payload(time="whenever"))
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid Time", "error_code": "validation"}


def test_malformed_body_gets_envelope(client, make_payload):
    response = client.post(BOOKINGS, json=make_payload(guests="lots"))
    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == "validation"
    assert "guests" in body["error"]


def test_busy_maps_to_503(client, make_payload, coordinator, service):
    service.create_timeout = 0.01
    assert coordinator.try_acquire(0)
    try:
        response = client.post(BOOKINGS, json=make_payload())
    finally:
        coordinator.release()
    assert response.status_code == 503
    assert response.json()["error_code"] == "busy"


def test_list_all_is_default_action(client, make_payload):
    client.post(BOOKINGS, json=make_payload(ref="R1"))
    response = client.get(BOOKINGS)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert [b["ref"] for b in body["bookings"]] == ["R1"]
    assert body["bookings"][0]["status"] == "Confirmed"


def test_today_action(client, make_payload):
    client.post(BOOKINGS, json=make_payload(ref="R1"))
    client.post(BOOKINGS, json=make_payload(ref="R2", date="2024-06-02"))

    body = client.get(BOOKINGS, params={"action": "today", "date": "2024-06-01", "time": "18:30"}).json()
    assert [b["ref"] for b in body["bookings"]] == ["R1"]
    assert body["active"] == ["R1"]


def test_history_action(client, make_payload):
    client.post(BOOKINGS, json=make_payload(ref="R1"))
    body = client.get(BOOKINGS, params={"action": "history", "phone": "9876543210"}).json()
    assert [b["ref"] for b in body["bookings"]] == ["R1"]

    legacy = client.get(BOOKINGS, params={"action": "history", "emp": "E100"}).json()
    assert [b["ref"] for b in legacy["bookings"]] == ["R1"]


def test_status_and_cancel_actions(client, make_payload):
    client.post(BOOKINGS, json=make_payload(ref="R1"))

    body = client.get(BOOKINGS, params={"action": "status", "ref": "R1", "status": "Seated"}).json()
    assert body["success"] is True
    assert body["status"] == "Seated"
    assert body["booking"]["status"] == "Confirmed"

    body = client.get(BOOKINGS, params={"action": "cancel", "ref": "R1"}).json()
    assert body["status"] == "Cancelled"
    assert client.get(BOOKINGS).json()["bookings"][0]["status"] == "Cancelled"


def test_update_action(client, make_payload):
    client.post(BOOKINGS, json=make_payload(ref="R1"))
    data = json.dumps({"Customer Name": "New Name", "Guests": 2, "unknown": True})

    response = client.get(BOOKINGS, params={"action": "update", "ref": "R1", "data": data})
    assert response.json() == {"success": True, "ref": "R1"}

    booking = client.get(BOOKINGS).json()["bookings"][0]
    assert booking["name"] == "New Name"
    assert booking["guests"] == 2


def test_update_action_rejects_bad_json(client, make_payload):
    client.post(BOOKINGS, json=make_payload(ref="R1"))
    response = client.get(BOOKINGS, params={"action": "update", "ref": "R1", "data": "{oops"})
    assert response.status_code == 400
    assert response.json()["error_code"] == "validation"


def test_delete_action_and_not_found(client, make_payload):
    client.post(BOOKINGS, json=make_payload(ref="R1"))

    assert client.get(BOOKINGS, params={"action": "delete", "ref": "R1"}).json()["success"] is True

    response = client.get(BOOKINGS, params={"action": "delete", "ref": "R1"})
    assert response.status_code == 404
    assert response.json()["error"] == "No data"


def test_unknown_action(client):
    response = client.get(BOOKINGS, params={"action": "explode"})
    assert response.status_code == 400
    assert response.json()["success"] is False


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def test_register_and_login(client):
    response = client.post("/api/v1/auth/register",
                           json={"name": "Asha", "mobile": " 9876543210 ", "password": "s3cret"})
    assert response.status_code == 201
    assert response.json() == {"success": True, "name": "Asha", "mobile": "9876543210"}

    response = client.post("/api/v1/auth/login", json={"mobile": "9876543210", "password": "s3cret"})
    assert response.status_code == 200
    assert response.json()["name"] == "Asha"


def test_register_rejects_duplicates_and_missing_fields(client):
    user = {"name": "Asha", "mobile": "9876543210", "password": "s3cret"}
    client.post("/api/v1/auth/register", json=user)

    duplicate = client.post("/api/v1/auth/register", json=user)
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "Mobile number already registered."

    missing = client.post("/api/v1/auth/register", json={"name": "Asha"})
    assert missing.status_code == 400


def test_login_with_wrong_password(client):
    client.post("/api/v1/auth/register",
                json={"name": "Asha", "mobile": "9876543210", "password": "s3cret"})
    response = client.post("/api/v1/auth/login", json={"mobile": "9876543210", "password": "nope"})
    assert response.status_code == 401
    assert response.json()["success"] is False


def test_delete_without_ref_is_rejected(client, make_payload):
    client.post(BOOKINGS, json=make_payload(ref="R1"))
    response = client.get(BOOKINGS, params={"action": "delete"})
    assert response.status_code == 400
    assert response.json()["error"] == "Missing ref"
    assert len(client.get(BOOKINGS).json()["bookings"]) == 1
