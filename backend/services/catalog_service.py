"""Product catalog operations."""
import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from models.product import Product
from models.order import OrderItem
from models.cart import CartItem
from services.exceptions import ProductNotFound, ProductInUse

logger = logging.getLogger(__name__)


def get_product(db: Session, product_id: int) -> Optional[Product]:
    return db.get(Product, product_id)


def require_product(db: Session, product_id: int) -> Product:
    product = get_product(db, product_id)
    if product is None:
        raise ProductNotFound(product_id)
    return product


def list_products(db: Session, category: Optional[str] = None, q: Optional[str] = None) -> List[Product]:
    query = db.query(Product)
    if category:
        query = query.filter(Product.category.ilike(category))
    if q:
        like = f"%{q}%"
        query = query.filter(or_(Product.name.ilike(like), Product.description.ilike(like)))
    return query.order_by(Product.id.asc()).all()


def list_categories(db: Session) -> List[str]:
    rows = (
        db.query(Product.category)
        .distinct()
        .filter(Product.category != None, Product.category != "")  # noqa: E711
        .order_by(Product.category.asc())
        .all()
    )
    return [r[0] for r in rows]


def create_product(db: Session, data: dict) -> Product:
    product = Product(**data)
    db.add(product)
    db.commit()
    db.refresh(product)
    logger.info("Product %s created (%s)", product.id, product.name)
    return product


def update_product(db: Session, product_id: int, data: dict) -> Product:
    product = require_product(db, product_id)
    for key, value in data.items():
        setattr(product, key, value)
    db.commit()
    db.refresh(product)
    return product


def set_stock(db: Session, product_id: int, new_stock: int) -> Product:
    if new_stock < 0:
        raise ValueError("stock cannot be negative")
    product = require_product(db, product_id)
    old_stock = product.stock
    product.stock = new_stock
    db.commit()
    db.refresh(product)
    logger.info("Product %s stock set %s -> %s", product_id, old_stock, new_stock)
    return product


def delete_product(db: Session, product_id: int) -> None:
    product = require_product(db, product_id)
    referenced = db.query(OrderItem.id).filter(OrderItem.product_id == product_id).first()
    if referenced:
        raise ProductInUse(product_id)
    # Drop the product from any open carts first
    db.query(CartItem).filter(CartItem.product_id == product_id).delete(synchronize_session=False)
    db.delete(product)
    db.commit()
    logger.info("Product %s deleted", product_id)
