# backend/routes/orders.py
from typing import List
from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

import logging
from database import get_db
from utils.tokenJWT import get_current_user, role_required
from utils.audit import write_log
from utils.http_errors import to_http
from models.users import User, ROLE_ADMIN
from models.order import Order, CUSTOMER_TRANSITIONS, OrderStatus
from services import cart_service, order_service
from services.exceptions import StoreError
from services.order_service import OrderLine
from schemas.order import OrderResponse, OrderItemOut, OrderCreatePayload, CheckoutPayload

router = APIRouter(prefix="/api/Order", tags=["Orders"])
logger = logging.getLogger(__name__)

admin_only = role_required(ROLE_ADMIN)

# Map Order model to OrderResponse schema
def _order_to_out(order: Order) -> OrderResponse:
    items: List[OrderItemOut] = []
    for it in order.items:
        items.append(OrderItemOut(
            id=it.id,
            product_id=it.product_id,
            product_name=it.product_name,
            quantity=it.quantity,
            price=float(it.unit_price),
            subtotal=float(it.subtotal),
        ))
    return OrderResponse(
        id=order.id,
        user_id=order.user_id,
        status=order.status.value,
        shipping_address=order.shipping_address,
        total_amount=float(order.total_amount),
        created_at=order.created_at,
        payment_status=order.payment_status.value,
        payment_transaction_id=order.payment_transaction_id,
        order_items=items,
    )

def _place(db: Session, request: Request, user: User, shipping_address: str, lines: List[OrderLine]) -> OrderResponse:
    try:
        order = order_service.place_order(db, user.id, shipping_address, lines)
    except StoreError as e:
        logger.warning("Order placement by user %s failed: %s", user.id, e)
        write_log(
            db, user_id=user.id, action="ORDER_CREATE", resource="orders", status="FAIL",
            request=request, meta={"reason": str(e)},
        )
        raise to_http(e)

    out = _order_to_out(order)
    write_log(
        db, user_id=user.id, action="ORDER_CREATE", resource="orders", request=request,
        meta={"order_id": out.id, "total": out.total_amount, "lines": len(out.order_items)},
    )
    return out

# Place an order from explicit lines
@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreatePayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    lines = [OrderLine(it.product_id, it.quantity) for it in payload.items]
    return _place(db, request, current_user, payload.shipping_address, lines)

# Place an order from the caller's cart; the cart is cleared once payment succeeds
@router.post("/checkout", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def checkout(
    payload: CheckoutPayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    lines = cart_service.get_lines(db, current_user.id)
    if not lines:
        raise HTTPException(status_code=400, detail="Cart is empty")
    return _place(db, request, current_user, payload.shipping_address, lines)

# List the caller's orders, newest first
@router.get("", response_model=List[OrderResponse])
def list_my_orders(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return [_order_to_out(o) for o in order_service.get_user_orders(db, current_user.id)]

# List every order (Admin only)
@router.get("/admin/all", response_model=List[OrderResponse])
def list_all_orders(
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only)
):
    return [_order_to_out(o) for o in order_service.get_all_orders(db)]

# Get details of one of the caller's orders
@router.get("/{order_id}", response_model=OrderResponse)
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        order = order_service.get_order(db, order_id, user_id=current_user.id)
    except StoreError as e:
        raise to_http(e)
    return _order_to_out(order)

def _apply_status(db: Session, request: Request, user: User, order: Order, target: OrderStatus) -> OrderResponse:
    old_status = order.status
    try:
        order = order_service.change_status(db, order, target)
    except StoreError as e:
        raise to_http(e)

    write_log(db, user_id=user.id, action="ORDER_STATUS_CHANGE", resource="orders", request=request,
              meta={"order_id": order.id, "old": old_status.value, "new": order.status.value})
    return _order_to_out(order)

# Update order status. Body is the bare status string, e.g. "Shipped".
# Admins may apply any legal transition; owners may only cancel or request a return.
@router.put("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    request: Request,
    new_status: str = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        target = order_service.parse_status(new_status)
        if current_user.is_admin:
            order = order_service.get_order(db, order_id)
        else:
            order = order_service.get_order(db, order_id, user_id=current_user.id)
    except StoreError as e:
        raise to_http(e)

    if not current_user.is_admin and target not in CUSTOMER_TRANSITIONS:
        raise HTTPException(status_code=403, detail="Only administrators can set this status")

    return _apply_status(db, request, current_user, order, target)

@router.put("/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(
    order_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        order = order_service.get_order(
            db, order_id, user_id=None if current_user.is_admin else current_user.id
        )
    except StoreError as e:
        raise to_http(e)
    return _apply_status(db, request, current_user, order, OrderStatus.CANCELLED)

# Move an order one step along Pending -> Processing -> Shipped -> Delivered (Admin only)
@router.put("/{order_id}/advance", response_model=OrderResponse)
def advance_order(
    order_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only)
):
    try:
        order = order_service.get_order(db, order_id)
        old_status = order.status
        order = order_service.advance_status(db, order)
    except StoreError as e:
        raise to_http(e)

    write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders", request=request,
              meta={"order_id": order.id, "old": old_status.value, "new": order.status.value})
    return _order_to_out(order)
