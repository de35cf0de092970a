from pydantic import Field
from typing import List

from schemas.base import ORMBase

# Request schema for adding an item to the cart
class CartAddItem(ORMBase):
    product_id: int
    quantity: int = Field(default=1, ge=1)

# Response schema for a single cart line item, priced at the live product price
class CartItemOut(ORMBase):
    id: int
    product_id: int
    product_name: str
    price: float
    quantity: int
    subtotal: float

# Response schema for the entire cart summary
class CartOut(ORMBase):
    id: int
    user_id: int
    items: List[CartItemOut]
    total_amount: float
