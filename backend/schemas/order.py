from pydantic import BaseModel, ConfigDict
from typing import List, Optional, Literal, Dict
from datetime import datetime


OrderStatus = Literal["pending", "processing", "completed", "cancelled"]
PaymentMethod = Literal["cod", "bank_deposit"]


# Snapshot of one purchased line
class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: str
    name: str
    image_url: Optional[str] = None
    brand: Optional[str] = None
    size: Optional[str] = None
    price: float
    quantity: int


class CustomerDetails(BaseModel):
    name: str
    phone: str
    address: str
    city: str
    email: Optional[str] = None
    notes: Optional[str] = None


# Output schema representing the full order document
class OrderResponse(BaseModel):
    id: int
    order_number: str
    items: List[OrderItemOut]
    subtotal: float
    delivery_fee: float
    total: float
    status: OrderStatus
    payment_method: PaymentMethod
    bank_slip_url: Optional[str] = None
    customer: CustomerDetails
    created_at: datetime
    updated_at: datetime


class OrdersPage(BaseModel):
    items: List[OrderResponse]
    total: int


# Schema for updating order status
class OrderStatusPatch(BaseModel):
    status: OrderStatus


# Result shown to the shopper after a successful checkout
class OrderPlaced(BaseModel):
    id: int
    order_number: str
    total: float
    payment_method: PaymentMethod


class CheckoutSummary(BaseModel):
    subtotal: float
    delivery_fee: float
    total: float
    count: int


# Per-status counts and completed revenue for the admin dashboard
class OrderSummary(BaseModel):
    counts: Dict[str, int]
    revenue: float
