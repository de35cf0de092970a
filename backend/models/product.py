# backend/models/product.py
from sqlalchemy import Column, Integer, String, Numeric, DateTime, CheckConstraint, func
from database import Base

# Model Product
# A single catalog entry. Price and stock are guarded by check constraints;
# stock is decremented by order placement and restored by cancellation.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String)
    category = Column(String, index=True)

    price = Column(Numeric(10, 2), CheckConstraint("price >= 0"), nullable=False)
    stock = Column(Integer, CheckConstraint("stock >= 0"), nullable=False, default=0)

    # Optional product image URL.
    image_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
