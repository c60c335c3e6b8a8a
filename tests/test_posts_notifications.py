from app.services.notification_service import notification_service
from tests.conftest import auth_headers


async def test_chef_post_lifecycle(client, make_chef):
    chef = await make_chef()
    other = await make_chef()

    created = await client.post(
        "/api/v1/posts/",
        json={"content": "Tonight's tasting menu", "location": "Franschhoek", "tags": ["Vegan"]},
        headers=auth_headers(chef),
    )
    assert created.status_code == 201
    post_id = created.json()["id"]

    feed = await client.get("/api/v1/posts/", params={"chef_id": str(chef.id)})
    assert feed.json()["total"] == 1
    assert feed.json()["posts"][0]["tags"] == ["Vegan"]

    forbidden = await client.delete(f"/api/v1/posts/{post_id}", headers=auth_headers(other))
    assert forbidden.status_code == 403

    deleted = await client.delete(f"/api/v1/posts/{post_id}", headers=auth_headers(chef))
    assert deleted.status_code == 204
    assert (await client.get("/api/v1/posts/")).json()["total"] == 0


async def test_customers_cannot_post(client, make_customer):
    customer = await make_customer()

    response = await client.post(
        "/api/v1/posts/", json={"content": "Hello"}, headers=auth_headers(customer)
    )

    assert response.status_code == 403


async def test_notifications_read_flow(client, db_session, make_customer):
    customer = await make_customer()
    for title in ("Booking confirmed", "New message"):
        await notification_service.create_notification(
            db_session, customer.id, title, f"{title}.", "booking_confirmed"
        )
    await db_session.commit()
    headers = auth_headers(customer)

    listing = await client.get("/api/v1/notifications/", headers=headers)
    assert listing.json()["total"] == 2
    assert listing.json()["unread_count"] == 2

    first_id = listing.json()["notifications"][0]["id"]
    marked = await client.patch(f"/api/v1/notifications/{first_id}/read", headers=headers)
    assert marked.status_code == 204

    unread = await client.get("/api/v1/notifications/", params={"unread_only": True}, headers=headers)
    assert unread.json()["total"] == 1

    await client.post("/api/v1/notifications/read-all", headers=headers)
    after = await client.get("/api/v1/notifications/", headers=headers)
    assert after.json()["unread_count"] == 0


async def test_notification_of_other_user_is_404(client, db_session, make_customer):
    owner = await make_customer()
    other = await make_customer()
    notification = await notification_service.create_notification(
        db_session, owner.id, "Hi", "Hi.", "booking_request"
    )
    await db_session.commit()

    response = await client.patch(
        f"/api/v1/notifications/{notification.id}/read", headers=auth_headers(other)
    )

    assert response.status_code == 404
