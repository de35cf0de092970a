# backend/schemas/product.py
from decimal import Decimal
from datetime import datetime
from pydantic import Field
from typing import Optional

from schemas.base import ORMBase


# Shared base attributes for product entities
class ProductBase(ORMBase):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None


# Schema for creating or fully replacing a product
class ProductCreate(ProductBase):
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(ge=0)


# Schema for setting the stock level directly
class StockUpdate(ORMBase):
    stock: int = Field(ge=0)


# Full product representation including ID
class ProductResponse(ProductBase):
    id: int
    price: float
    stock: int
    created_at: Optional[datetime] = None
