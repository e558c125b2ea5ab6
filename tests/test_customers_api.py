"""Tests for the customers/addresses JSON API."""
import pytest
from sqlalchemy.exc import OperationalError

from app.crm import create_app
from app.crm.modules.customer_profiles import store

ASHA = {
    "first_name": "Asha",
    "last_name": "Rao",
    "phone_number": "9876543210",
    "address_details": "12 MG Rd",
    "city": "Pune",
    "state": "MH",
    "pin_code": "411001",
}
ADDRESS_KEYS = ("address_details", "city", "state", "pin_code")


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    for k in ("CLIENT_BUILD_DIR", "DEFAULT_PAGE_LIMIT", "MAX_PAGE_LIMIT"):
        monkeypatch.delenv(k, raising=False)

    app = create_app()
    return app.test_client()


def _create(client, **overrides):
    r = client.post("/api/customers", json={**ASHA, **overrides})
    assert r.status_code == 200, r.json
    return r.json["data"]


def test_create_customer_with_address(client):
    r = client.post("/api/customers", json=ASHA)
    assert r.status_code == 200
    assert r.json["message"] == "Customer and address created successfully"
    data = r.json["data"]
    assert isinstance(data["id"], int)
    assert (data["first_name"], data["last_name"], data["phone_number"]) == ("Asha", "Rao", "9876543210")
    assert isinstance(data["address"]["id"], int)
    for k in ADDRESS_KEYS:
        assert data["address"][k] == ASHA[k]

    r = client.get(f"/api/customers/{data['id']}/addresses")
    assert r.status_code == 200
    assert r.json["message"] == "success"
    assert len(r.json["data"]) == 1
    addr = r.json["data"][0]
    assert addr["id"] == data["address"]["id"]
    assert addr["customer_id"] == data["id"]
    for k in ADDRESS_KEYS:
        assert addr[k] == ASHA[k]


def test_create_invalid_is_400_and_writes_nothing(client):
    r = client.post("/api/customers", json={**ASHA, "pin_code": "ABCDE"})
    assert r.status_code == 400
    assert r.json["error"] == "Invalid or missing address fields"
    assert r.json["details"][0]["field"] == "pin_code"

    r = client.post("/api/customers", json={**ASHA, "phone_number": ""})
    assert r.status_code == 400
    assert r.json["error"] == "Invalid or missing customer fields"

    assert client.get("/api/customers").json["pagination"]["total"] == 0


def test_create_non_json_body_is_400(client):
    r = client.post("/api/customers", data="not json", content_type="text/plain")
    assert r.status_code == 400
    r = client.post("/api/customers", json=["a", "list"])
    assert r.status_code == 400


def test_create_duplicate_phone_is_409(client):
    first = _create(client)
    r = client.post("/api/customers", json={**ASHA, "first_name": "Someone"})
    assert r.status_code == 409
    assert r.json["error"] == "Phone number already exists"

    r = client.get(f"/api/customers/{first['id']}")
    assert r.json["data"]["first_name"] == "Asha"
    assert client.get("/api/customers").json["pagination"]["total"] == 1


def test_store_failure_is_500_and_rolled_back(client, monkeypatch):
    def _boom(*args, **kwargs):
        raise OperationalError("INSERT INTO addresses", {}, Exception("database is locked"))

    monkeypatch.setattr(store, "create_address", _boom)
    r = client.post("/api/customers", json=ASHA)
    assert r.status_code == 500
    assert r.json == {"error": "Internal server error"}

    monkeypatch.undo()
    assert client.get("/api/customers").json["pagination"]["total"] == 0


def test_get_customer_and_404(client):
    c = _create(client)
    r = client.get(f"/api/customers/{c['id']}")
    assert r.status_code == 200
    assert r.json == {
        "message": "success",
        "data": {"id": c["id"], "first_name": "Asha", "last_name": "Rao", "phone_number": "9876543210"},
    }

    r = client.get("/api/customers/999")
    assert r.status_code == 404
    assert r.json["error"] == "Customer not found"


def test_with_address_count(client):
    c = _create(client)
    r = client.get(f"/api/customers/{c['id']}/with-address-count")
    assert r.status_code == 200
    assert r.json["data"]["address_count"] == 1
    assert r.json["data"]["only_one_address"] is True

    client.post(f"/api/customers/{c['id']}/addresses", json={**ASHA, "city": "Mumbai"})
    data = client.get(f"/api/customers/{c['id']}/with-address-count").json["data"]
    assert data["address_count"] == 2
    assert data["only_one_address"] is False

    assert client.get("/api/customers/999/with-address-count").status_code == 404


def test_update_customer(client):
    c = _create(client)
    body = {"first_name": "Asha", "last_name": "Patil", "phone_number": "9123456789"}
    r = client.put(f"/api/customers/{c['id']}", json=body)
    assert r.status_code == 200
    assert r.json == {"message": "Customer updated successfully"}
    assert client.get(f"/api/customers/{c['id']}").json["data"]["last_name"] == "Patil"

    # Same payload again leaves the row identical.
    client.put(f"/api/customers/{c['id']}", json=body)
    assert client.get(f"/api/customers/{c['id']}").json["data"] == {"id": c["id"], **body}


def test_update_customer_errors(client):
    a = _create(client)
    b = _create(client, phone_number="9000000001")

    r = client.put(f"/api/customers/{a['id']}", json={"first_name": "A", "last_name": "B"})
    assert r.status_code == 400
    r = client.put("/api/customers/999", json={"first_name": "A", "last_name": "B", "phone_number": "9000000009"})
    assert r.status_code == 404
    r = client.put(f"/api/customers/{b['id']}", json={"first_name": "B", "last_name": "B", "phone_number": "9876543210"})
    assert r.status_code == 409


def test_delete_customer_cascades(client):
    c = _create(client)
    client.post(f"/api/customers/{c['id']}/addresses", json={**ASHA, "city": "Nashik"})

    r = client.delete(f"/api/customers/{c['id']}")
    assert r.status_code == 200
    assert r.json == {"message": "Customer and addresses deleted successfully"}

    assert client.get(f"/api/customers/{c['id']}").status_code == 404
    r = client.get(f"/api/customers/{c['id']}/addresses")
    assert r.status_code == 200
    assert r.json["data"] == []

    r = client.delete(f"/api/customers/{c['id']}")
    assert r.status_code == 404


def test_add_address(client):
    c = _create(client)
    body = {"address_details": "9 Camp", "city": "Pune", "state": "MH", "pin_code": "41100"}
    r = client.post(f"/api/customers/{c['id']}/addresses", json=body)
    assert r.status_code == 200
    assert r.json["message"] == "Address added successfully"
    assert r.json["data"]["customer_id"] == c["id"]
    assert r.json["data"]["pin_code"] == "41100"

    r = client.post("/api/customers/999/addresses", json=body)
    assert r.status_code == 404

    r = client.post(f"/api/customers/{c['id']}/addresses", json={**body, "pin_code": "ABCDE"})
    assert r.status_code == 400
    assert len(client.get(f"/api/customers/{c['id']}/addresses").json["data"]) == 2


def test_update_and_delete_address(client):
    c = _create(client)
    addr_id = c["address"]["id"]
    body = {"address_details": "1 New St", "city": "Thane", "state": "MH", "pin_code": "400601"}

    r = client.put(f"/api/addresses/{addr_id}", json=body)
    assert r.status_code == 200
    assert r.json == {"message": "Address updated successfully"}
    addr = client.get(f"/api/customers/{c['id']}/addresses").json["data"][0]
    assert addr["city"] == "Thane"

    assert client.put(f"/api/addresses/{addr_id}", json={**body, "city": ""}).status_code == 400
    assert client.put("/api/addresses/999", json=body).status_code == 404

    r = client.delete(f"/api/addresses/{addr_id}")
    assert r.status_code == 200
    assert r.json == {"message": "Address deleted successfully"}
    assert client.delete(f"/api/addresses/{addr_id}").status_code == 404
    assert client.get(f"/api/customers/{c['id']}/with-address-count").json["data"]["address_count"] == 0


def test_list_pagination(client):
    for i in range(7):
        _create(client, first_name=f"C{i}", phone_number=f"90000000{i:02d}")

    r = client.get("/api/customers?page=2&limit=5")
    assert r.status_code == 200
    assert r.json["message"] == "success"
    assert len(r.json["data"]) == 2
    assert r.json["pagination"] == {"total": 7, "page": 2, "limit": 5, "totalPages": 2}

    r = client.get("/api/customers")
    assert len(r.json["data"]) == 5
    assert r.json["data"][0]["first_name"] == "C6"

    r = client.get("/api/customers?page=3&limit=5")
    assert r.json["data"] == []

    r = client.get("/api/customers?page=99999999999999999999")
    assert r.status_code == 200
    assert r.json["data"] == []
    assert r.json["pagination"]["total"] == 7


def test_list_filters_and_sort(client):
    _create(client)
    _create(client, first_name="Ravi", last_name="Kumar", phone_number="9000000001", city="Chennai", state="TN", pin_code="600002")

    r = client.get("/api/customers?city=chen")
    assert [c["first_name"] for c in r.json["data"]] == ["Ravi"]

    r = client.get("/api/customers?search=rao&city=&state=&pin_code=")
    assert [c["first_name"] for c in r.json["data"]] == ["Asha"]

    r = client.get("/api/customers?sortField=first_name&sortOrder=asc")
    assert [c["first_name"] for c in r.json["data"]] == ["Asha", "Ravi"]

    r = client.get("/api/customers?sortField=bogus&sortOrder=bogus")
    assert [c["first_name"] for c in r.json["data"]] == ["Ravi", "Asha"]


def test_list_bad_paging_is_400(client):
    r = client.get("/api/customers?page=abc")
    assert r.status_code == 400
    assert r.json["error"] == "Invalid pagination parameters"
    assert client.get("/api/customers?limit=0").status_code == 400
