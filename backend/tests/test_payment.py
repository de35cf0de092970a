import asyncio
from decimal import Decimal
from urllib.parse import parse_qs

import httpx
import pytest

from conftest import auth_headers, current_stock
from main import app
from models.order import OrderStatus, PaymentStatus
from routes.payment import get_payment_service
from services import order_service
from services.order_service import OrderLine
from services.payment_service import PaymentService, to_cents
from utils.stripe_client import StripeClient


class FakeStripe:
    """Records gateway calls and answers with canned responses."""

    def __init__(self, status="succeeded", error=None, refund_status="succeeded"):
        self.status = status
        self.error = error
        self.refund_status = refund_status
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        self.calls.append((request.url.path, form))
        if self.error is not None:
            return httpx.Response(402, json={"error": {"message": self.error}})
        if request.url.path == "/v1/refunds":
            return httpx.Response(200, json={"id": "re_1", "status": self.refund_status})
        return httpx.Response(200, json={"id": "pi_123", "status": self.status})

    def service(self) -> PaymentService:
        return PaymentService(StripeClient(transport=httpx.MockTransport(self)))


@pytest.fixture
def stripe(client):
    fake = FakeStripe()
    app.dependency_overrides[get_payment_service] = fake.service
    return fake


@pytest.fixture
def order(db_session, customer, make_product):
    product = make_product(price="25.99", stock=10)
    return order_service.place_order(db_session, customer.id, "1 Main St", [OrderLine(product.id, 2)])


def test_to_cents_rounds_half_up():
    assert to_cents(Decimal("51.98")) == 5198
    assert to_cents(Decimal("0.005")) == 1


def test_successful_payment_marks_order_paid_and_clears_cart(client, db_session, stripe, order, customer, make_product):
    headers = auth_headers(customer)
    extra = make_product(name="Extra")
    client.post("/api/Cart/add", json={"productId": extra.id}, headers=headers)

    r = client.post("/api/Payment/process", json={
        "amount": "51.98", "paymentToken": "pm_card_visa", "orderId": order.id,
    }, headers=headers)

    assert r.status_code == 200, r.text
    assert r.json() == {
        "success": True, "transactionId": "pi_123", "message": "Payment processed successfully",
    }
    path, form = stripe.calls[0]
    assert path == "/v1/payment_intents"
    assert form["amount"] == "5198"
    assert form["payment_method"] == "pm_card_visa"

    db_session.expire_all()
    paid = order_service.get_order(db_session, order.id)
    assert paid.payment_status == PaymentStatus.PAID
    assert paid.payment_transaction_id == "pi_123"
    assert client.get("/api/Cart", headers=headers).json()["items"] == []


def test_gateway_error_message_is_passed_through(client, stripe, customer):
    stripe.error = "Your card was declined."

    r = client.post("/api/Payment/process", json={"amount": "10.00", "paymentToken": "pm_bad"},
                    headers=auth_headers(customer))

    assert r.status_code == 400
    assert r.json()["detail"] == "Stripe error: Your card was declined."


@pytest.mark.parametrize("amount", ["0", "-5.00"])
def test_non_positive_amount_never_reaches_gateway(client, stripe, customer, amount):
    r = client.post("/api/Payment/process", json={"amount": amount, "paymentToken": "pm_card_visa"},
                    headers=auth_headers(customer))

    assert r.status_code == 400
    assert r.json()["detail"] == "Payment amount must be greater than zero"
    assert stripe.calls == []


def test_amount_must_match_order_total(client, stripe, order, customer):
    r = client.post("/api/Payment/process", json={
        "amount": "10.00", "paymentToken": "pm_card_visa", "orderId": order.id,
    }, headers=auth_headers(customer))

    assert r.status_code == 400
    assert stripe.calls == []


def test_cannot_pay_for_someone_elses_order(client, stripe, order, other_customer):
    r = client.post("/api/Payment/process", json={
        "amount": "51.98", "paymentToken": "pm_card_visa", "orderId": order.id,
    }, headers=auth_headers(other_customer))
    assert r.status_code == 404


def test_order_cannot_be_paid_twice(client, stripe, order, customer):
    payload = {"amount": "51.98", "paymentToken": "pm_card_visa", "orderId": order.id}
    assert client.post("/api/Payment/process", json=payload, headers=auth_headers(customer)).status_code == 200
    assert client.post("/api/Payment/process", json=payload, headers=auth_headers(customer)).status_code == 409


def test_refund_is_admin_only_and_marks_order(client, db_session, stripe, order, customer, admin):
    client.post("/api/Payment/process", json={
        "amount": "51.98", "paymentToken": "pm_card_visa", "orderId": order.id,
    }, headers=auth_headers(customer))
    refund = {"transactionId": "pi_123", "amount": "51.98"}

    assert client.post("/api/Payment/refund", json=refund, headers=auth_headers(customer)).status_code == 403

    r = client.post("/api/Payment/refund", json=refund, headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json() == {"success": True}
    db_session.expire_all()
    assert order_service.get_order(db_session, order.id).payment_status == PaymentStatus.REFUNDED


# Service level

def test_requires_action_is_a_failure_with_intent_id():
    fake = FakeStripe(status="requires_action")

    result = asyncio.run(fake.service().charge(Decimal("20.00"), "pm_3ds"))

    assert not result.success
    assert result.transaction_id == "pi_123"
    assert result.message == "Payment requires additional action: requires_action"


def test_unreachable_gateway_is_a_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    service = PaymentService(StripeClient(transport=httpx.MockTransport(handler)))
    result = asyncio.run(service.charge(Decimal("20.00"), "pm_card_visa"))

    assert not result.success
    assert result.message.startswith("Payment failed:")


def test_missing_token_is_a_failure():
    result = asyncio.run(FakeStripe().service().charge(Decimal("5.00"), ""))
    assert not result.success
    assert result.message == "Payment token is required"


def test_refund_failure_returns_false():
    fake = FakeStripe(error="No such payment_intent")
    assert asyncio.run(fake.service().refund("pi_missing", Decimal("5.00"))) is False
    assert asyncio.run(fake.service().refund("", Decimal("5.00"))) is False


# Order payment state

def test_cancelled_order_cannot_be_paid(client, db_session, stripe, order, customer):
    headers = auth_headers(customer)
    assert client.put(f"/api/Order/{order.id}/cancel", headers=headers).status_code == 200

    r = client.post("/api/Payment/process", json={
        "amount": "51.98", "paymentToken": "pm_card_visa", "orderId": order.id,
    }, headers=headers)

    assert r.status_code == 409
    assert "cannot be paid in status 'Cancelled'" in r.json()["detail"]
    assert stripe.calls == []
    db_session.expire_all()
    assert order_service.get_order(db_session, order.id).payment_status == PaymentStatus.UNPAID


def test_shipped_order_cannot_be_paid(client, db_session, stripe, order, customer):
    order_service.change_status(db_session, order, OrderStatus.PROCESSING)
    order_service.change_status(db_session, order, OrderStatus.SHIPPED)

    r = client.post("/api/Payment/process", json={
        "amount": "51.98", "paymentToken": "pm_card_visa", "orderId": order.id,
    }, headers=auth_headers(customer))

    assert r.status_code == 409
    assert stripe.calls == []


def test_processing_order_can_still_be_paid(client, db_session, stripe, order, customer):
    order_service.change_status(db_session, order, OrderStatus.PROCESSING)

    r = client.post("/api/Payment/process", json={
        "amount": "51.98", "paymentToken": "pm_card_visa", "orderId": order.id,
    }, headers=auth_headers(customer))

    assert r.status_code == 200


def test_paid_order_must_be_refunded_before_cancelling(client, db_session, stripe, order, customer, admin):
    headers = auth_headers(customer)
    product_id = order.items[0].product_id
    client.post("/api/Payment/process", json={
        "amount": "51.98", "paymentToken": "pm_card_visa", "orderId": order.id,
    }, headers=headers)

    r = client.put(f"/api/Order/{order.id}/cancel", headers=headers)
    assert r.status_code == 409
    assert current_stock(db_session, product_id) == 8

    refund = {"transactionId": "pi_123", "amount": "51.98"}
    assert client.post("/api/Payment/refund", json=refund, headers=auth_headers(admin)).json() == {"success": True}

    r = client.put(f"/api/Order/{order.id}/cancel", headers=headers)
    assert r.status_code == 200
    assert r.json()["status"] == "Cancelled"
    assert r.json()["paymentStatus"] == "refunded"
    assert current_stock(db_session, product_id) == 10


def test_amount_with_trailing_zero_matches_order_total(client, stripe, order, customer):
    r = client.post("/api/Payment/process", json={
        "amount": "51.980", "paymentToken": "pm_card_visa", "orderId": order.id,
    }, headers=auth_headers(customer))

    assert r.status_code == 200, r.text
    assert stripe.calls[0][1]["amount"] == "5198"


def test_fraction_of_a_cent_is_rejected(client, stripe, customer):
    r = client.post("/api/Payment/process", json={"amount": "51.985", "paymentToken": "pm_card_visa"},
                    headers=auth_headers(customer))

    assert r.status_code == 422
    assert stripe.calls == []
