from pydantic import BaseModel, Field
from typing import List

# Request schema for adding an item to the cart
class CartAddItem(BaseModel):
    product_id: int
    qty: int = Field(gt=0)

# Request schema for updating cart item quantity
class CartUpdateItem(BaseModel):
    qty: int = Field(gt=0)

# Response schema for a single cart line item
class CartItemOut(BaseModel):
    id: int
    product_id: int
    name: str
    unit: str
    qty: int
    unit_price: int
    line_total: int

# Response schema for the entire cart summary
class CartOut(BaseModel):
    id: int
    items: List[CartItemOut]
    total: int
