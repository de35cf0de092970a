"""Shopping cart operations. One cart per user, created on first access."""
import logging
from decimal import Decimal
from typing import List

from sqlalchemy.orm import Session

from models.cart import Cart, CartItem
from services.catalog_service import require_product
from services.exceptions import CartItemNotFound, InsufficientStock
from services.order_service import OrderLine

logger = logging.getLogger(__name__)


def get_or_create_cart(db: Session, user_id: int) -> Cart:
    cart = db.query(Cart).filter(Cart.user_id == user_id).first()
    if not cart:
        cart = Cart(user_id=user_id)
        db.add(cart)
        db.commit()
        db.refresh(cart)
    return cart


def _find_item(db: Session, cart: Cart, product_id: int) -> CartItem:
    return db.query(CartItem).filter(
        CartItem.cart_id == cart.id, CartItem.product_id == product_id
    ).first()


def get_lines(db: Session, user_id: int) -> List[OrderLine]:
    cart = get_or_create_cart(db, user_id)
    return [OrderLine(it.product_id, it.quantity) for it in cart.items]


def add_item(db: Session, user_id: int, product_id: int, quantity: int) -> Cart:
    """Add a product to the cart; quantities for a product already present accumulate."""
    cart = get_or_create_cart(db, user_id)
    product = require_product(db, product_id)

    item = _find_item(db, cart, product_id)
    wanted = quantity + (item.quantity if item else 0)
    if wanted > product.stock:
        raise InsufficientStock(product.id, wanted, product.stock)

    if item:
        item.quantity = wanted
    else:
        db.add(CartItem(cart_id=cart.id, product_id=product.id, quantity=quantity))

    db.commit()
    db.refresh(cart)
    return cart


def update_item(db: Session, user_id: int, product_id: int, quantity: int) -> Cart:
    """Set a line's quantity. A quantity of zero or less removes the line."""
    cart = get_or_create_cart(db, user_id)
    item = _find_item(db, cart, product_id)
    if not item:
        raise CartItemNotFound(product_id)

    if quantity <= 0:
        db.delete(item)
    else:
        product = require_product(db, product_id)
        if quantity > product.stock:
            raise InsufficientStock(product.id, quantity, product.stock)
        item.quantity = quantity

    db.commit()
    db.refresh(cart)
    return cart


def remove_item(db: Session, user_id: int, product_id: int) -> Cart:
    cart = get_or_create_cart(db, user_id)
    item = _find_item(db, cart, product_id)
    if not item:
        raise CartItemNotFound(product_id)

    db.delete(item)
    db.commit()
    db.refresh(cart)
    return cart


def clear(db: Session, user_id: int) -> Cart:
    cart = get_or_create_cart(db, user_id)
    removed = len(cart.items)
    cart.items.clear()
    db.commit()
    db.refresh(cart)
    if removed:
        logger.info("Cleared %s item(s) from cart of user %s", removed, user_id)
    return cart


def cart_total(cart: Cart) -> Decimal:
    return sum(
        (Decimal(str(it.product.price)) * it.quantity for it in cart.items if it.product),
        Decimal("0"),
    )
