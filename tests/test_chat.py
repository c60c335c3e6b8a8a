from contextlib import asynccontextmanager
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.websockets import WebSocketDisconnect

from app.api.deps import active_user_from_token
from app.api.v1 import messages
from app.core.exceptions import AuthenticationError
from app.domain.actor import Actor
from app.main import app
from app.models.user import User
from app.services.chat_service import ConnectionManager, connection_manager
from tests.conftest import auth_headers

API = "/api/v1/conversations"


class FakeSocket:
    def __init__(self, closed: bool = False) -> None:
        self.sent: list[dict] = []
        self.closed = closed

    async def send_json(self, payload: dict) -> None:
        if self.closed:
            raise WebSocketDisconnect(code=1006)
        self.sent.append(payload)


async def test_broadcast_reaches_room_except_sender():
    manager = ConnectionManager()
    conversation_id = uuid4()
    sender, receiver = FakeSocket(), FakeSocket()
    manager.join(conversation_id, sender)
    manager.join(conversation_id, receiver)

    await manager.broadcast(conversation_id, {"type": "typing"}, exclude=sender)

    assert receiver.sent == [{"type": "typing"}]
    assert sender.sent == []


async def test_broadcast_drops_closed_sockets():
    manager = ConnectionManager()
    conversation_id = uuid4()
    dead, alive = FakeSocket(closed=True), FakeSocket()
    manager.join(conversation_id, dead)
    manager.join(conversation_id, alive)

    await manager.broadcast(conversation_id, {"type": "new_message"})

    assert manager.rooms[conversation_id] == {alive}
    assert alive.sent == [{"type": "new_message"}]


def test_disconnect_leaves_rooms_and_goes_offline():
    manager = ConnectionManager()
    user_id, conversation_id = uuid4(), uuid4()
    socket = FakeSocket()
    manager.register(user_id, socket)
    manager.join(conversation_id, socket)
    assert manager.is_online(user_id)

    manager.disconnect(user_id, socket)

    assert not manager.is_online(user_id)
    assert conversation_id not in manager.rooms


async def test_conversation_flow(client, make_customer, make_chef):
    customer = await make_customer()
    chef = await make_chef()

    created = await client.post(
        f"{API}/",
        json={"participant_id": str(chef.id), "message": {"content": "Are you free on the 12th?"}},
        headers=auth_headers(customer),
    )
    assert created.status_code == 201
    conversation_id = created.json()["id"]

    # Reopening the same thread reuses it
    again = await client.post(
        f"{API}/", json={"participant_id": str(chef.id)}, headers=auth_headers(customer)
    )
    assert again.json()["id"] == conversation_id

    inbox = await client.get(f"{API}/", headers=auth_headers(chef))
    assert inbox.json()["total"] == 1
    assert inbox.json()["conversations"][0]["unread_count"] == 1

    reply = await client.post(
        f"{API}/{conversation_id}/messages",
        json={"content": "Yes, <b>happy</b> to cook"},
        headers=auth_headers(chef),
    )
    assert reply.status_code == 201
    assert reply.json()["content"] == "Yes, happy to cook"

    marked = await client.post(f"{API}/{conversation_id}/read", headers=auth_headers(chef))
    assert marked.json() == {"marked_read": 1}

    thread = await client.get(f"{API}/{conversation_id}/messages", headers=auth_headers(customer))
    assert thread.json()["total"] == 2
    assert thread.json()["conversation"]["unread_count"] == 1


async def test_non_participant_cannot_read_thread(client, make_customer, make_chef):
    customer = await make_customer()
    outsider = await make_customer()
    chef = await make_chef()
    created = await client.post(
        f"{API}/", json={"participant_id": str(chef.id)}, headers=auth_headers(customer)
    )

    response = await client.get(
        f"{API}/{created.json()['id']}/messages", headers=auth_headers(outsider)
    )

    assert response.status_code == 403


async def test_customers_cannot_message_customers(client, make_customer):
    customer = await make_customer()
    other = await make_customer()

    response = await client.post(
        f"{API}/", json={"participant_id": str(other.id)}, headers=auth_headers(customer)
    )

    assert response.status_code == 404


def test_socket_ping_and_unknown_type(monkeypatch):
    async def authenticate(token):
        return Actor(id=uuid4(), role="customer")

    monkeypatch.setattr(messages, "_authenticate_socket", authenticate)

    with TestClient(app).websocket_connect(f"{API}/ws?token=any") as websocket:
        websocket.send_json({"type": "ping"})
        assert websocket.receive_json() == {"type": "pong"}

        websocket.send_json({"type": "dance"})
        error = websocket.receive_json()
        assert error["type"] == "error"
        assert error["code"] == "invalid_request"

        websocket.send_json({"type": "typing"})
        assert websocket.receive_json()["detail"] == "conversation_id is required"


def test_socket_rejects_bad_token():
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with TestClient(app).websocket_connect(f"{API}/ws?token=not-a-jwt") as websocket:
            websocket.receive_json()

    assert exc_info.value.code == 1008


def bearer(user) -> str:
    return auth_headers(user)["Authorization"].removeprefix("Bearer ")


class StubResult:
    def __init__(self, user) -> None:
        self.user = user

    def scalar_one_or_none(self):
        return self.user


class StubSession:
    def __init__(self, user) -> None:
        self.user = user

    async def execute(self, query):
        return StubResult(self.user)


@pytest.mark.parametrize("stored", ["missing", "deactivated"])
def test_socket_rejects_dead_accounts(monkeypatch, stored):
    user = User(id=uuid4(), email="gone@example.com", role="customer", is_active=False)

    @asynccontextmanager
    async def db_context():
        yield StubSession(None if stored == "missing" else user)

    monkeypatch.setattr(messages, "get_db_context", db_context)

    with pytest.raises(WebSocketDisconnect) as exc_info:
        with TestClient(app).websocket_connect(f"{API}/ws?token={bearer(user)}") as websocket:
            websocket.receive_json()

    assert exc_info.value.code == 1008


async def test_active_user_from_token(db_session, make_customer):
    active = await make_customer()
    inactive = await make_customer(is_active=False)
    active_token, inactive_token = bearer(active), bearer(inactive)

    user = await active_user_from_token(db_session, active_token)
    assert user.id == active.id

    with pytest.raises(AuthenticationError, match="deactivated"):
        await active_user_from_token(db_session, inactive_token)

    await db_session.delete(active)
    await db_session.commit()
    with pytest.raises(AuthenticationError, match="not found"):
        await active_user_from_token(db_session, active_token)


async def test_message_is_committed_before_broadcast(client, monkeypatch, make_customer, make_chef):
    customer = await make_customer()
    chef = await make_chef()
    created = await client.post(
        f"{API}/", json={"participant_id": str(chef.id)}, headers=auth_headers(customer)
    )
    events: list[str] = []
    original_commit = AsyncSession.commit

    async def commit(self):
        events.append("commit")
        await original_commit(self)

    async def broadcast(conversation_id, payload, exclude=None):
        events.append("broadcast")

    monkeypatch.setattr(AsyncSession, "commit", commit)
    monkeypatch.setattr(connection_manager, "broadcast", broadcast)

    response = await client.post(
        f"{API}/{created.json()['id']}/messages",
        json={"content": "See you at six"},
        headers=auth_headers(chef),
    )

    assert response.status_code == 201
    assert events[:2] == ["commit", "broadcast"]


async def test_offline_recipient_is_notified(client, make_customer, make_chef):
    customer = await make_customer()
    chef = await make_chef()

    await client.post(
        f"{API}/",
        json={"participant_id": str(chef.id), "message": {"content": "Do you cater for 30?"}},
        headers=auth_headers(customer),
    )

    inbox = await client.get("/api/v1/notifications/", headers=auth_headers(chef))
    assert [n["notification_type"] for n in inbox.json()["notifications"]] == ["message_received"]
    silent = await client.get("/api/v1/notifications/", headers=auth_headers(customer))
    assert silent.json()["total"] == 0
