"""Order placement and order lifecycle."""
import logging
from decimal import Decimal
from typing import Iterable, List, NamedTuple, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, selectinload

from models.order import Order, OrderItem, OrderStatus, PaymentStatus
from models.product import Product
from services.exceptions import (
    InsufficientStock,
    InvalidOrderRequest,
    InvalidTransition,
    OrderNotFound,
    PaidOrderCancellation,
    ProductNotFound,
)

logger = logging.getLogger(__name__)


class OrderLine(NamedTuple):
    product_id: int
    quantity: int


def _lock_products(db: Session, product_ids: Iterable[int]) -> dict:
    """Load and row-lock the referenced products.

    Rows are locked in ascending id order so two orders touching the same
    products cannot deadlock each other.
    """
    ids = sorted(set(product_ids))
    rows = (
        db.query(Product)
        .filter(Product.id.in_(ids))
        .order_by(Product.id.asc())
        .with_for_update()
        .populate_existing()
        .all()
    )
    return {p.id: p for p in rows}


def _decrement_stock(db: Session, product_id: int, quantity: int) -> bool:
    # Conditional update: only succeeds while enough stock is left
    result = db.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _restore_stock(db: Session, product_id: int, quantity: int) -> None:
    db.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(stock=Product.stock + quantity)
        .execution_options(synchronize_session=False)
    )


def place_order(
    db: Session,
    user_id: int,
    shipping_address: str,
    lines: List[OrderLine],
) -> Order:
    """
    Validate every line against current inventory and commit the order.

    Lines are processed in the order supplied. Each one snapshots the
    product's price and name, adds to the total and decrements stock. The
    order, its items and every decrement commit in a single transaction;
    any failure rolls all of it back.

    Raises:
        InvalidOrderRequest: no lines, a quantity below 1, or no address
        ProductNotFound: a line references a missing product
        InsufficientStock: a line asks for more than is in stock
    """
    if not lines:
        raise InvalidOrderRequest("Order must contain at least one item")
    if not shipping_address or not shipping_address.strip():
        raise InvalidOrderRequest("Shipping address is required")
    for line in lines:
        if line.quantity < 1:
            raise InvalidOrderRequest(
                f"Quantity for product {line.product_id} must be at least 1"
            )

    try:
        products = _lock_products(db, (line.product_id for line in lines))
        remaining = {pid: p.stock for pid, p in products.items()}

        total_amount = Decimal("0")
        items: List[OrderItem] = []

        for line in lines:
            product = products.get(line.product_id)
            if product is None:
                raise ProductNotFound(line.product_id)

            available = remaining[product.id]
            if available < line.quantity:
                raise InsufficientStock(product.id, line.quantity, available)

            unit_price = Decimal(str(product.price))
            items.append(OrderItem(
                product_id=product.id,
                product_name=product.name,
                quantity=line.quantity,
                unit_price=unit_price,
            ))
            total_amount += unit_price * line.quantity

            if not _decrement_stock(db, product.id, line.quantity):
                # Someone else took the stock between our read and the update
                in_stock = db.query(Product.stock).filter(Product.id == product.id).scalar()
                raise InsufficientStock(product.id, line.quantity, in_stock)
            remaining[product.id] = available - line.quantity

        order = Order(
            user_id=user_id,
            shipping_address=shipping_address.strip(),
            status=OrderStatus.PENDING,
            total_amount=total_amount,
            items=items,
        )
        db.add(order)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    logger.info(
        "Order %s placed by user %s: %s line(s), total %s",
        order.id, user_id, len(items), total_amount,
    )
    return order


def _orders_query(db: Session):
    return db.query(Order).options(selectinload(Order.items))


def get_user_orders(db: Session, user_id: int) -> List[Order]:
    return (
        _orders_query(db)
        .filter(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def get_all_orders(db: Session) -> List[Order]:
    return _orders_query(db).order_by(Order.created_at.desc(), Order.id.desc()).all()


def get_order(db: Session, order_id: int, user_id: Optional[int] = None) -> Order:
    """Fetch an order; when user_id is given, orders of other users are treated as missing."""
    query = _orders_query(db).filter(Order.id == order_id)
    if user_id is not None:
        query = query.filter(Order.user_id == user_id)
    order = query.first()
    if order is None:
        raise OrderNotFound(order_id)
    return order


def parse_status(value: str) -> OrderStatus:
    cleaned = (value or "").strip()
    for status in OrderStatus:
        if status.value.lower() == cleaned.lower() or status.name.lower() == cleaned.lower():
            return status
    raise InvalidOrderRequest(f"Unknown order status '{cleaned}'")


def change_status(db: Session, order: Order, target: OrderStatus) -> Order:
    """Apply a legal transition. Cancelling returns the reserved stock."""
    current = order.status
    if not order.can_transition_to(target):
        logger.warning(
            "Rejected status change for order %s: %s -> %s",
            order.id, current.value, target.value,
        )
        raise InvalidTransition(current, target)
    if target == OrderStatus.CANCELLED and order.payment_status == PaymentStatus.PAID:
        # A paid order is refunded first; the refund moves it off PAID
        raise PaidOrderCancellation(order.id)

    try:
        if target == OrderStatus.CANCELLED:
            for item in order.items:
                _restore_stock(db, item.product_id, item.quantity)
        order.status = target
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    logger.info("Order %s status %s -> %s", order.id, current.value, target.value)
    return order


def advance_status(db: Session, order: Order) -> Order:
    target = order.next_status
    if target is None:
        raise InvalidTransition(order.status)
    return change_status(db, order, target)
