import json
import os

from fastapi.testclient import TestClient

from app.core.config import UPLOAD_DIR
from app.db.models.service import Service
from app.main import app

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def test_catalog_lists_only_active_services(client, make_provider, make_service):
    provider = make_provider()
    live = make_service(provider, title="Live flat")
    make_service(provider, title="Hidden flat", is_active=False)

    res = client.get("/api/services")
    assert res.status_code == 200
    body = res.json()
    assert [s["id"] for s in body["services"]] == [live.id]
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 1, "pages": 1}


def test_catalog_filters_and_paginates(client, make_provider, make_service):
    provider = make_provider()
    make_service(provider, category="FOOD", title="Thali lunch", description="Homestyle meals")
    make_service(provider, category="FOOD", title="Breakfast box", description="Idli and dosa")
    make_service(provider, category="LAUNDRY", title="Wash and fold", description="Same day")

    res = client.get("/api/services", params={"category": "FOOD"}).json()
    assert {s["title"] for s in res["services"]} == {"Thali lunch", "Breakfast box"}

    res = client.get("/api/services", params={"search": "DOSA"}).json()
    assert [s["title"] for s in res["services"]] == ["Breakfast box"]

    res = client.get("/api/services", params={"limit": 2, "page": 2}).json()
    assert len(res["services"]) == 1
    assert res["pagination"]["pages"] == 2


def test_inactive_service_visible_only_to_owner_and_admin(
    client, make_user, make_provider, make_service, auth_headers
):
    provider = make_provider()
    service = make_service(provider, is_active=False)

    assert client.get(f"/api/services/{service.id}").status_code == 404
    assert client.get(f"/api/services/{service.id}", headers=auth_headers(make_user())).status_code == 404

    res = client.get(f"/api/services/{service.id}", headers=auth_headers(provider.user))
    assert res.status_code == 200
    assert res.json()["is_active"] is False

    res = client.get(f"/api/services/{service.id}", headers=auth_headers(make_user(role="ADMIN")))
    assert res.status_code == 200


def test_service_detail_includes_reviews_and_rating(
    client, make_user, make_provider, make_service, make_booking, auth_headers
):
    service = make_service(make_provider(), capacity=5)
    for rating in (4, 5):
        renter = make_user()
        make_booking(renter, service, status="COMPLETED")
        client.post("/api/reviews", json={"service_id": service.id, "rating": rating}, headers=auth_headers(renter))

    body = client.get(f"/api/services/{service.id}").json()
    assert body["review_count"] == 2
    assert body["avg_rating"] == 4.5
    assert len(body["reviews"]) == 2
    assert body["provider"]["business_name"] == "Acme Stays"


def test_create_service_with_details_and_images(client, db, make_provider, auth_headers):
    provider = make_provider()
    res = client.post(
        "/api/services",
        data={
            "title": "Airport cab",
            "category": "TRAVEL",
            "base_price": "40",
            "capacity": "4",
            "details": json.dumps({"vehicle_type": "SUV", "ac_available": True}),
        },
        files=[("images", ("cab.png", PNG_BYTES, "image/png"))],
        headers=auth_headers(provider.user),
    )
    assert res.status_code == 201
    body = res.json()
    assert body["travel_details"]["vehicle_type"] == "SUV"
    assert body["travel_details"]["seating_capacity"] == 4
    assert body["accommodation_details"] is None
    assert body["booked_count"] == 0
    assert len(body["images"]) == 1
    assert body["images"][0].startswith("/uploads/")
    assert os.path.exists(os.path.join(UPLOAD_DIR, os.path.basename(body["images"][0])))


def test_create_service_applies_detail_defaults(client, make_provider, auth_headers):
    provider = make_provider()
    res = client.post(
        "/api/services",
        data={"title": "Tiffin", "category": "FOOD", "base_price": "12.5"},
        headers=auth_headers(provider.user),
    )
    assert res.status_code == 201
    assert res.json()["food_details"]["cuisine_type"] == "Indian"


def test_create_service_requires_provider(client, make_user, auth_headers):
    data = {"title": "Flat", "category": "ACCOMMODATION", "base_price": "10"}

    res = client.post("/api/services", data=data, headers=auth_headers(make_user()))
    assert res.status_code == 403

    # provider role but no profile yet
    res = client.post("/api/services", data=data, headers=auth_headers(make_user(role="SERVICE_PROVIDER")))
    assert res.status_code == 400
    assert res.json()["error"] == "You must be a registered provider"


def test_create_service_rejects_bad_input(client, make_provider, auth_headers):
    headers = auth_headers(make_provider().user)
    base = {"title": "Flat", "category": "ACCOMMODATION", "base_price": "10"}

    assert client.post("/api/services", data={**base, "category": "SPA"}, headers=headers).status_code == 400
    assert client.post("/api/services", data={**base, "details": "[1, 2]"}, headers=headers).status_code == 400
    res = client.post("/api/services", data={**base, "details": json.dumps({"bedrooms": -1})}, headers=headers)
    assert res.status_code == 400
    res = client.post(
        "/api/services",
        data=base,
        files=[("images", ("notes.txt", b"hello", "text/plain"))],
        headers=headers,
    )
    assert res.status_code == 400


def test_create_service_rolls_back_when_details_fail(db, session_factory, make_provider, auth_headers, monkeypatch):
    from app.api.routes import services as services_routes
    from app.db.base import get_db

    def broken_details_row(*args, **kwargs):
        raise RuntimeError("details insert failed")

    monkeypatch.setattr(services_routes, "build_details_row", broken_details_row)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        client = TestClient(app, raise_server_exceptions=False)
        provider = make_provider()
        before = set(os.listdir(UPLOAD_DIR))
        res = client.post(
            "/api/services",
            data={"title": "Flat", "category": "ACCOMMODATION", "base_price": "10"},
            files=[("images", ("flat.png", PNG_BYTES, "image/png"))],
            headers=auth_headers(provider.user),
        )
    finally:
        app.dependency_overrides.clear()

    assert res.status_code == 500
    assert res.json() == {"error": "Internal server error"}
    db.expire_all()
    assert db.query(Service).count() == 0
    assert set(os.listdir(UPLOAD_DIR)) == before


def test_update_service_by_owner(client, make_provider, make_service, auth_headers):
    provider = make_provider()
    service = make_service(provider, capacity=2)
    headers = auth_headers(provider.user)

    res = client.put(
        f"/api/services/{service.id}",
        data={"title": "Renamed", "is_active": "false", "details": json.dumps({"bedrooms": 3})},
        headers=headers,
    )
    assert res.status_code == 200
    body = res.json()
    assert body["title"] == "Renamed"
    assert body["is_active"] is False
    assert body["accommodation_details"]["bedrooms"] == 3
    assert body["accommodation_details"]["property_type"] == "Apartment"


def test_update_service_rules(client, make_user, make_provider, make_service, make_booking, auth_headers):
    provider = make_provider()
    service = make_service(provider, capacity=3)
    make_booking(make_user(), service, quantity=2)
    headers = auth_headers(provider.user)

    assert client.put(f"/api/services/{service.id}", data={"title": "x"}, headers=auth_headers(make_user())).status_code == 403
    assert client.put(f"/api/services/{service.id}", data={"category": "FOOD"}, headers=headers).status_code == 400
    assert client.put(f"/api/services/{service.id}", data={"capacity": "1"}, headers=headers).status_code == 400
    res = client.put(f"/api/services/{service.id}", data={"details": json.dumps({"cuisine_type": "Thai"})}, headers=headers)
    assert res.status_code == 400

    admin = make_user(role="ADMIN")
    res = client.put(f"/api/services/{service.id}", data={"base_price": "120"}, headers=auth_headers(admin))
    assert res.status_code == 200
    assert res.json()["base_price"] == 120.0


def test_delete_service(client, db, make_user, make_provider, make_service, make_booking, auth_headers):
    provider = make_provider()
    service = make_service(provider)
    make_booking(make_user(), service)

    assert client.delete(f"/api/services/{service.id}", headers=auth_headers(make_user())).status_code == 403

    res = client.delete(f"/api/services/{service.id}", headers=auth_headers(provider.user))
    assert res.status_code == 200
    db.expire_all()
    assert db.query(Service).count() == 0
    assert client.delete(f"/api/services/{service.id}", headers=auth_headers(provider.user)).status_code == 404


def test_my_services_include_inactive(client, make_user, make_provider, make_service, auth_headers):
    provider = make_provider()
    make_service(provider, title="On")
    make_service(provider, title="Off", is_active=False)
    make_service(make_provider(), title="Someone else's")

    res = client.get("/api/services/provider/my-services", headers=auth_headers(provider.user))
    assert res.status_code == 200
    assert {s["title"] for s in res.json()} == {"On", "Off"}

    assert client.get("/api/services/provider/my-services", headers=auth_headers(make_user())).status_code == 403


def test_create_service_rejects_unknown_detail_fields(client, make_provider, auth_headers):
    res = client.post(
        "/api/services",
        data={"title": "Tiffin", "category": "FOOD", "base_price": "12", "details": json.dumps({"wifi": True})},
        headers=auth_headers(make_provider().user),
    )
    assert res.status_code == 400
    assert "wifi" in res.json()["error"]
