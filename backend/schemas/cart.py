from pydantic import BaseModel, Field
from typing import List, Optional

# One cart line: a product variant and how many of it
class CartLineItem(BaseModel):
    id: str
    name: str
    image_url: Optional[str] = None
    brand: Optional[str] = None
    size: Optional[str] = None
    price: Optional[float] = None
    quantity: int = Field(ge=1)

# Request schema for adding a product variant to the cart
class CartAddItem(BaseModel):
    product_id: str
    size: Optional[str] = None
    qty: int = 1

# Request schema for updating cart line quantity (<= 0 removes the line)
class CartUpdateItem(BaseModel):
    qty: int

# Response schema for the entire cart summary
class CartOut(BaseModel):
    items: List[CartLineItem]
    count: int
    total: float
