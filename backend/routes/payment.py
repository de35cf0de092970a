# backend/routes/payment.py
import logging
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user, role_required
from utils.audit import write_log
from utils.http_errors import to_http
from utils.stripe_client import StripeClient
from models.users import User, ROLE_ADMIN
from services import cart_service, order_service
from services.exceptions import StoreError
from services.payment_service import PaymentService, ensure_payable, record_payment, record_refund
from schemas.payment import PaymentRequest, PaymentResult, RefundRequest, RefundResult

router = APIRouter(prefix="/api/Payment", tags=["Payment"])
logger = logging.getLogger(__name__)


def get_payment_service() -> PaymentService:
    return PaymentService(StripeClient())


# Charge a payment token. On success the caller's cart is cleared and, when an
# order is referenced, the transaction is recorded on it.
@router.post("/process", response_model=PaymentResult)
async def process_payment(
    payload: PaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    payments: PaymentService = Depends(get_payment_service),
):
    order = None
    amount = payload.amount
    if payload.order_id is not None:
        try:
            order = order_service.get_order(db, payload.order_id, user_id=current_user.id)
            ensure_payable(order)
        except StoreError as e:
            raise to_http(e)
        if Decimal(order.total_amount) != amount:
            raise HTTPException(status_code=400, detail="Amount does not match order total")

    result = await payments.charge(amount, payload.payment_token)

    if not result.success:
        write_log(
            db, user_id=current_user.id, action="PAYMENT", resource="payment", status="FAIL",
            request=request, meta={"order_id": payload.order_id, "message": result.message},
        )
        raise HTTPException(status_code=400, detail=result.message)

    if order is not None:
        record_payment(db, order, result.transaction_id)
    cart_service.clear(db, current_user.id)

    write_log(
        db, user_id=current_user.id, action="PAYMENT", resource="payment", request=request,
        meta={"order_id": payload.order_id, "transaction_id": result.transaction_id, "amount": str(amount)},
    )
    return result


@router.post("/refund", response_model=RefundResult)
async def refund_payment(
    payload: RefundRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(ROLE_ADMIN)),
    payments: PaymentService = Depends(get_payment_service),
):
    success = await payments.refund(payload.transaction_id, payload.amount)
    if success:
        order = record_refund(db, payload.transaction_id)
        if order is not None:
            logger.info("Order %s marked refunded", order.id)

    write_log(
        db, user_id=current_user.id, action="REFUND", resource="payment",
        status="SUCCESS" if success else "FAIL", request=request,
        meta={"transaction_id": payload.transaction_id, "amount": str(payload.amount)},
    )
    return {"success": success}
