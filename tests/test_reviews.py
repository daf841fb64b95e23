import pytest
from sqlalchemy.exc import IntegrityError

from app.db.models.review import Review


def _review(client, headers, service_id, rating=5, comment="Great stay"):
    return client.post(
        "/api/reviews",
        json={"service_id": service_id, "rating": rating, "comment": comment},
        headers=headers,
    )


def test_review_requires_completed_booking(client, make_user, make_provider, make_service, make_booking, auth_headers):
    service = make_service(make_provider())
    renter = make_user()
    make_booking(renter, service, status="CONFIRMED")

    res = _review(client, auth_headers(renter), service.id)
    assert res.status_code == 400
    assert res.json()["error"] == "You can only review services you have booked"


def test_one_review_per_user_and_service(client, make_user, make_provider, make_service, make_booking, auth_headers):
    service = make_service(make_provider())
    renter = make_user(name="Asha")
    make_booking(renter, service, status="COMPLETED")

    res = _review(client, auth_headers(renter), service.id, rating=4)
    assert res.status_code == 201
    assert res.json()["rating"] == 4
    assert res.json()["user"]["name"] == "Asha"

    res = _review(client, auth_headers(renter), service.id, rating=1)
    assert res.status_code == 400
    assert res.json()["error"] == "You have already reviewed this service"


def test_duplicate_review_blocked_by_unique_constraint(db, make_user, make_provider, make_service):
    service = make_service(make_provider())
    renter = make_user()
    db.add(Review(user_id=renter.id, service_id=service.id, rating=5))
    db.commit()

    db.add(Review(user_id=renter.id, service_id=service.id, rating=2))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_review_validation(client, make_user, make_provider, make_service, auth_headers):
    service = make_service(make_provider())
    headers = auth_headers(make_user())

    assert _review(client, headers, service.id, rating=6).status_code == 400
    assert _review(client, headers, 999).status_code == 404
    assert _review(client, {}, service.id).status_code == 401


def test_list_service_reviews_paginated(client, make_user, make_provider, make_service, make_booking, auth_headers):
    service = make_service(make_provider(), capacity=5)
    for _ in range(3):
        renter = make_user()
        make_booking(renter, service, status="COMPLETED")
        assert _review(client, auth_headers(renter), service.id).status_code == 201

    res = client.get(f"/api/reviews/service/{service.id}", params={"limit": 2})
    assert res.status_code == 200
    body = res.json()
    assert len(body["reviews"]) == 2
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}


def test_edit_and_delete_review(client, make_user, make_provider, make_service, make_booking, auth_headers):
    service = make_service(make_provider())
    author = make_user()
    make_booking(author, service, status="COMPLETED")
    review = _review(client, auth_headers(author), service.id, rating=3).json()

    res = client.put(f"/api/reviews/{review['id']}", json={"rating": 5}, headers=auth_headers(make_user()))
    assert res.status_code == 403

    res = client.put(f"/api/reviews/{review['id']}", json={"rating": 5, "comment": "Better now"}, headers=auth_headers(author))
    assert res.status_code == 200
    assert res.json()["rating"] == 5
    assert res.json()["comment"] == "Better now"

    admin = make_user(role="ADMIN")
    assert client.delete(f"/api/reviews/{review['id']}", headers=auth_headers(admin)).status_code == 200
    assert client.delete(f"/api/reviews/{review['id']}", headers=auth_headers(admin)).status_code == 404


def test_concurrent_duplicate_review_gets_400(
    client, db, make_user, make_provider, make_service, make_booking, auth_headers, monkeypatch
):
    from app.api.routes import reviews as reviews_routes

    service = make_service(make_provider())
    renter = make_user()
    make_booking(renter, service, status="COMPLETED")

    def competing_submit(session, user_id, service_id):
        # another request lands its review between the check and the insert
        db.add(Review(user_id=user_id, service_id=service_id, rating=3))
        db.commit()
        return False

    monkeypatch.setattr(reviews_routes, "already_reviewed", competing_submit)

    res = _review(client, auth_headers(renter), service.id, rating=5)
    assert res.status_code == 400
    assert res.json() == {"error": "You have already reviewed this service"}

    db.expire_all()
    assert [r.rating for r in db.query(Review).all()] == [3]
