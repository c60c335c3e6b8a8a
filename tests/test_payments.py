import hashlib
import hmac
import json
import time as clock
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.core.exceptions import InvalidRequest, PaymentError, PermissionDenied
from app.domain.actor import Actor
from app.gateways.base import GatewayType, PaymentGateway, PaymentResult
from app.models.message import Notification
from app.models.payment import Payment
from app.services.booking_service import booking_service
from app.services.payment_service import PaymentService, to_minor_units
from tests.conftest import auth_headers

WEBHOOK_SECRET = "whsec_test"


class FakeGateway(PaymentGateway):
    def __init__(self, succeed: bool = True) -> None:
        self.succeed = succeed
        self.calls: list[dict] = []

    @property
    def gateway_type(self) -> GatewayType:
        return GatewayType.STRIPE

    async def create_payment(self, amount, currency, reference_id, description, metadata=None):
        self.calls.append({"amount": amount, "currency": currency, "reference_id": reference_id})
        if not self.succeed:
            return PaymentResult(success=False, error_message="card_declined")
        return PaymentResult(
            success=True,
            transaction_id=f"pi_{len(self.calls)}",
            client_secret="pi_secret",
            status="requires_payment_method",
            raw_response={"id": f"pi_{len(self.calls)}"},
        )

    def verify_webhook(self, payload, signature):
        return json.loads(payload)


def as_actor(user) -> Actor:
    return Actor(id=user.id, role=user.role)


def intent_event(event_type: str, intent_id: str, **extra) -> dict:
    return {
        "id": "evt_1",
        "type": event_type,
        "data": {"object": {"id": intent_id, "status": "succeeded", **extra}},
    }


def stripe_signature(payload: bytes, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(clock.time())
    signed = f"{timestamp}.{payload.decode()}".encode()
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


@pytest.mark.parametrize(
    ("amount", "cents"),
    [
        (Decimal("2160.00"), 216000),
        (Decimal("10.91"), 1091),
        (Decimal("0.005"), 1),
    ],
)
def test_to_minor_units(amount, cents):
    assert to_minor_units(amount) == cents


async def test_create_intent_records_payment(db_session, make_customer, make_chef, make_booking):
    customer = await make_customer()
    chef = await make_chef()
    booking = await make_booking(customer, chef)
    gateway = FakeGateway()
    service = PaymentService(gateway, booking_service)

    intent = await service.create_intent(db_session, booking.id, as_actor(customer))

    assert intent["amount"] == 216000
    assert intent["currency"] == "zar"
    assert gateway.calls[0]["reference_id"] == str(booking.id)
    payment = (await db_session.execute(select(Payment))).scalar_one()
    assert payment.status == "pending"
    assert payment.gateway_transaction_id == intent["payment_intent_id"]


async def test_create_intent_only_for_customer(db_session, make_customer, make_chef, make_booking):
    customer = await make_customer()
    chef = await make_chef()
    booking = await make_booking(customer, chef)
    service = PaymentService(FakeGateway(), booking_service)

    with pytest.raises(PermissionDenied):
        await service.create_intent(db_session, booking.id, as_actor(chef))


async def test_create_intent_rejects_confirmed_booking(db_session, make_customer, make_chef, make_booking):
    customer = await make_customer()
    chef = await make_chef()
    booking = await make_booking(customer, chef, status="confirmed")
    service = PaymentService(FakeGateway(), booking_service)

    with pytest.raises(InvalidRequest):
        await service.create_intent(db_session, booking.id, as_actor(customer))


async def test_create_intent_gateway_failure(db_session, make_customer, make_chef, make_booking):
    customer = await make_customer()
    chef = await make_chef()
    booking = await make_booking(customer, chef)
    service = PaymentService(FakeGateway(succeed=False), booking_service)

    with pytest.raises(PaymentError):
        await service.create_intent(db_session, booking.id, as_actor(customer))


async def test_succeeded_event_confirms_booking(db_session, make_customer, make_chef, make_booking):
    customer = await make_customer()
    chef = await make_chef()
    booking = await make_booking(customer, chef)
    service = PaymentService(FakeGateway(), booking_service)
    intent = await service.create_intent(db_session, booking.id, as_actor(customer))

    event = intent_event("payment_intent.succeeded", intent["payment_intent_id"])
    await service.handle_event(db_session, event)
    # Replayed deliveries are ignored
    await service.handle_event(db_session, event)

    await db_session.refresh(booking)
    assert booking.status == "confirmed"
    assert booking.payment_status == "paid"
    assert booking.total_amount == Decimal("2160.00")
    notifications = (await db_session.execute(select(Notification))).scalars().all()
    assert {n.user_id for n in notifications} == {customer.id, chef.id}


async def test_failed_event_marks_booking_failed(db_session, make_customer, make_chef, make_booking):
    customer = await make_customer()
    chef = await make_chef()
    booking = await make_booking(customer, chef)
    service = PaymentService(FakeGateway(), booking_service)
    intent = await service.create_intent(db_session, booking.id, as_actor(customer))

    await service.handle_event(
        db_session,
        intent_event(
            "payment_intent.payment_failed",
            intent["payment_intent_id"],
            last_payment_error={"message": "Your card was declined."},
        ),
    )

    await db_session.refresh(booking)
    assert booking.status == "pending"
    assert booking.payment_status == "failed"


async def test_unknown_intent_is_ignored(db_session):
    service = PaymentService(FakeGateway(), booking_service)

    await service.handle_event(db_session, intent_event("payment_intent.succeeded", "pi_missing"))


async def test_webhook_confirms_booking(client, db_session, make_customer, make_chef, make_booking):
    customer = await make_customer()
    chef = await make_chef()
    booking = await make_booking(customer, chef)
    db_session.add(
        Payment(
            booking_id=booking.id,
            user_id=customer.id,
            amount=216000,
            gateway_transaction_id="pi_webhook",
            status="pending",
        )
    )
    await db_session.commit()

    payload = json.dumps(intent_event("payment_intent.succeeded", "pi_webhook")).encode()
    response = await client.post(
        "/api/v1/webhooks/stripe",
        content=payload,
        headers={"Stripe-Signature": stripe_signature(payload), "Content-Type": "application/json"},
    )

    assert response.status_code == 200
    assert response.json() == {"received": True}
    await db_session.refresh(booking)
    assert booking.status == "confirmed"
    assert booking.payment_status == "paid"


async def test_webhook_rejects_bad_signature(client):
    payload = json.dumps(intent_event("payment_intent.succeeded", "pi_1")).encode()

    response = await client.post(
        "/api/v1/webhooks/stripe",
        content=payload,
        headers={"Stripe-Signature": stripe_signature(payload, secret="whsec_other")},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid signature"


async def test_webhook_requires_signature_header(client):
    response = await client.post("/api/v1/webhooks/stripe", content=b"{}")

    assert response.status_code == 400


async def test_payment_intent_endpoint_without_stripe_key(client, make_customer, make_chef, make_booking):
    customer = await make_customer()
    chef = await make_chef()
    booking = await make_booking(customer, chef)

    response = await client.post(
        "/api/v1/payments/intent",
        json={"booking_id": str(booking.id)},
        headers=auth_headers(customer),
    )

    assert response.status_code == 402
    assert response.json()["code"] == "payment_failed"
