from pydantic import Field
from typing import List, Optional
from datetime import datetime

from schemas.base import ORMBase


# One submitted order line
class OrderLineIn(ORMBase):
    product_id: int
    quantity: int = Field(ge=1)


# Input schema for placing an order from explicit lines
class OrderCreatePayload(ORMBase):
    shipping_address: str = Field(min_length=1)
    items: List[OrderLineIn] = Field(min_length=1)


# Input schema for placing an order from the caller's cart
class CheckoutPayload(ORMBase):
    shipping_address: str = Field(min_length=1)


# Output schema for an individual order line item
class OrderItemOut(ORMBase):
    id: int
    product_id: int
    product_name: str
    quantity: int
    price: float
    subtotal: float


# Output schema representing the full order details
class OrderResponse(ORMBase):
    id: int
    user_id: int
    status: str
    shipping_address: str
    total_amount: float
    created_at: Optional[datetime] = None
    payment_status: str
    payment_transaction_id: Optional[str] = None
    order_items: List[OrderItemOut]
