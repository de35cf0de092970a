from decimal import Decimal
from pydantic import Field, field_validator
from typing import Optional

from schemas.base import ORMBase

CENT = Decimal("0.01")


# Trailing zeros are fine ("51.980"); fractions of a cent are not
def _whole_cents(value: Decimal) -> Decimal:
    if value != value.quantize(CENT):
        raise ValueError("amount cannot contain fractions of a cent")
    return value.quantize(CENT)


# Request schema for charging a payment token
class PaymentRequest(ORMBase):
    amount: Decimal
    payment_token: str = Field(min_length=1)
    order_id: Optional[int] = None

    @field_validator("amount")
    @classmethod
    def amount_in_whole_cents(cls, value: Decimal) -> Decimal:
        return _whole_cents(value)


# Outcome of a charge attempt, mirrored from the gateway
class PaymentResult(ORMBase):
    success: bool
    transaction_id: Optional[str] = None
    message: str


# Request schema for refunding a previous charge (admin only)
class RefundRequest(ORMBase):
    transaction_id: str = Field(min_length=1)
    amount: Decimal

    @field_validator("amount")
    @classmethod
    def amount_in_whole_cents(cls, value: Decimal) -> Decimal:
        return _whole_cents(value)


class RefundResult(ORMBase):
    success: bool
