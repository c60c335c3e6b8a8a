from datetime import date, timedelta

from tests.conftest import auth_headers

API = "/api/v1/reviews"


async def test_review_requires_completed_booking(client, make_customer, make_chef, make_booking):
    customer = await make_customer()
    chef = await make_chef()
    await make_booking(customer, chef, status="confirmed")

    response = await client.post(
        f"{API}/", json={"chef_id": str(chef.id), "rating": 5}, headers=auth_headers(customer)
    )

    assert response.status_code == 400
    assert response.json()["code"] == "invalid_request"


async def test_review_updates_chef_rating(client, make_customer, make_chef, make_booking):
    chef = await make_chef()
    past = date.today() - timedelta(days=10)
    for rating in (5, 4):
        customer = await make_customer()
        await make_booking(customer, chef, event_date=past, status="completed")
        response = await client.post(
            f"{API}/",
            json={"chef_id": str(chef.id), "rating": rating, "comment": "Superb <i>bobotie</i>"},
            headers=auth_headers(customer),
        )
        assert response.status_code == 201
        assert response.json()["comment"] == "Superb bobotie"

    listing = await client.get(f"{API}/chef/{chef.id}")

    assert listing.json()["total"] == 2
    # Hidden until five reviews
    assert listing.json()["average_rating"] is None
    profile = await client.get(f"/api/v1/chefs/{chef.id}")
    assert profile.json()["total_reviews"] == 2
    assert profile.json()["average_rating"] is None


async def test_average_shown_from_fifth_review(client, make_customer, make_chef, make_booking):
    chef = await make_chef()
    past = date.today() - timedelta(days=10)
    for rating in (5, 4, 4, 3, 5):
        customer = await make_customer()
        await make_booking(customer, chef, event_date=past, status="completed")
        await client.post(
            f"{API}/", json={"chef_id": str(chef.id), "rating": rating}, headers=auth_headers(customer)
        )

    listing = await client.get(f"{API}/chef/{chef.id}")

    assert listing.json()["total"] == 5
    assert listing.json()["average_rating"] == 4.2


async def test_chef_is_notified_of_review(client, make_customer, make_chef, make_booking):
    customer = await make_customer()
    chef = await make_chef()
    await make_booking(
        customer, chef, event_date=date.today() - timedelta(days=3), status="completed"
    )

    await client.post(
        f"{API}/", json={"chef_id": str(chef.id), "rating": 5}, headers=auth_headers(customer)
    )

    inbox = await client.get("/api/v1/notifications/", headers=auth_headers(chef))
    assert [n["notification_type"] for n in inbox.json()["notifications"]] == ["review_received"]


async def test_duplicate_review_is_conflict(client, make_customer, make_chef, make_booking):
    customer = await make_customer()
    chef = await make_chef()
    await make_booking(
        customer, chef, event_date=date.today() - timedelta(days=3), status="completed"
    )
    body = {"chef_id": str(chef.id), "rating": 4}

    first = await client.post(f"{API}/", json=body, headers=auth_headers(customer))
    second = await client.post(f"{API}/", json=body, headers=auth_headers(customer))

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["code"] == "conflict"


async def test_review_rating_bounds(client, make_customer, make_chef):
    customer = await make_customer()
    chef = await make_chef()

    response = await client.post(
        f"{API}/", json={"chef_id": str(chef.id), "rating": 6}, headers=auth_headers(customer)
    )

    assert response.status_code == 422


async def test_review_rejects_profanity(client, make_customer, make_chef):
    customer = await make_customer()
    chef = await make_chef()

    response = await client.post(
        f"{API}/",
        json={"chef_id": str(chef.id), "rating": 1, "comment": "Total crap"},
        headers=auth_headers(customer),
    )

    assert response.status_code == 422


async def test_chefs_cannot_review(client, make_chef):
    chef = await make_chef()
    other = await make_chef()

    response = await client.post(
        f"{API}/", json={"chef_id": str(other.id), "rating": 5}, headers=auth_headers(chef)
    )

    assert response.status_code == 403
