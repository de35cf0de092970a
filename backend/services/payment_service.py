"""Payment processing through the Stripe gateway.

Gateway failures never escape as exceptions; they are mapped into a
PaymentResult (or False for refunds) that the route hands back to the
client.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

import httpx
from sqlalchemy.orm import Session

from config import settings
from models.order import Order, PaymentStatus, PAYABLE_STATUSES
from schemas.payment import PaymentResult
from services.exceptions import GatewayError, OrderAlreadyPaid, OrderNotPayable
from utils.stripe_client import StripeClient, gateway_error_message

logger = logging.getLogger(__name__)


def to_cents(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentService:
    """Charges and refunds payment tokens."""

    def __init__(self, client: StripeClient, currency: str = None):
        self.client = client
        self.currency = currency or settings.PAYMENT_CURRENCY

    async def charge(self, amount: Decimal, token: str) -> PaymentResult:
        """
        Charge `amount` against a payment method token.

        Returns:
            PaymentResult with success, the payment intent id when one was
            created, and a human readable message.
        """
        if amount is None or Decimal(amount) <= 0:
            return PaymentResult(success=False, message="Payment amount must be greater than zero")
        if not token:
            return PaymentResult(success=False, message="Payment token is required")

        try:
            intent = await self.client.create_payment_intent(to_cents(amount), self.currency, token)
        except httpx.HTTPStatusError as e:
            return PaymentResult(success=False, message=f"Stripe error: {gateway_error_message(e)}")
        except (httpx.HTTPError, GatewayError) as e:
            logger.exception("Payment gateway unreachable")
            return PaymentResult(success=False, message=f"Payment failed: {e}")

        intent_id = intent.get("id")
        status = intent.get("status")
        if status == "succeeded":
            logger.info("Payment %s succeeded for %s %s", intent_id, amount, self.currency)
            return PaymentResult(
                success=True,
                transaction_id=intent_id,
                message="Payment processed successfully",
            )

        logger.warning("Payment %s not completed, status=%s", intent_id, status)
        return PaymentResult(
            success=False,
            transaction_id=intent_id,
            message=f"Payment requires additional action: {status}",
        )

    async def refund(self, transaction_id: str, amount: Decimal) -> bool:
        if not transaction_id or amount is None or Decimal(amount) <= 0:
            return False
        try:
            refund = await self.client.create_refund(transaction_id, to_cents(amount))
        except httpx.HTTPError:
            logger.warning("Refund for %s failed", transaction_id)
            return False
        return refund.get("status") == "succeeded"


def ensure_payable(order: Order) -> None:
    """Refuse to charge for an order that is paid already or no longer holds its stock."""
    if order.payment_status != PaymentStatus.UNPAID:
        raise OrderAlreadyPaid(order.id)
    if order.status not in PAYABLE_STATUSES:
        raise OrderNotPayable(order.id, order.status)


def record_payment(db: Session, order: Order, transaction_id: str) -> Order:
    order.payment_status = PaymentStatus.PAID
    order.payment_transaction_id = transaction_id
    db.commit()
    db.refresh(order)
    return order


def record_refund(db: Session, transaction_id: str) -> Optional[Order]:
    order = db.query(Order).filter(Order.payment_transaction_id == transaction_id).first()
    if order is None:
        return None
    order.payment_status = PaymentStatus.REFUNDED
    db.commit()
    db.refresh(order)
    return order
