# backend/routes/customers.py
from datetime import datetime
from typing import List, Optional, Literal
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from database import get_db
from models.order import Order
from models.users import User
from utils.tokenJWT import require_admin

router = APIRouter(prefix="/customers", tags=["Customers"])

# Customer derived from the orders placed under one phone number
class CustomerOut(BaseModel):
    name: str
    phone: str
    email: Optional[str] = None
    city: Optional[str] = None
    orders: int
    total_spent: float
    last_order_at: Optional[datetime] = None

class PaginatedCustomersResponse(BaseModel):
    items: List[CustomerOut]
    total: int
    page: int
    page_size: int


def _collect_customers(orders: List[Order]) -> List[CustomerOut]:
    by_phone = {}
    # Orders arrive oldest first, so the newest details win
    for o in orders:
        key = o.customer_phone.replace(" ", "")
        c = by_phone.setdefault(key, {"orders": 0, "total_spent": 0.0})
        c.update(name=o.customer_name, phone=o.customer_phone, city=o.customer_city, last_order_at=o.created_at)
        if o.customer_email:
            c["email"] = o.customer_email
        c["orders"] += 1
        if o.status != "cancelled":
            c["total_spent"] += o.total
    return [CustomerOut(**c) for c in by_phone.values()]


# List customers with search, sorting and pagination (Admin only)
@router.get("", response_model=PaginatedCustomersResponse)
def get_customers(
    q: Optional[str] = Query(None, description="Search by name, phone or email"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    sort_by: Literal["name", "orders", "total_spent", "last_order_at"] = "last_order_at",
    order: Literal["asc", "desc"] = "desc",
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    orders = db.query(Order).order_by(Order.created_at.asc(), Order.id.asc()).all()
    customers = _collect_customers(orders)

    # Filter by name, phone or email
    if q:
        needle = q.strip().lower()
        customers = [
            c for c in customers
            if needle in c.name.lower() or needle in c.phone or needle in (c.email or "").lower()
        ]

    # Apply sorting based on selected field and order
    sort_map = {
        "name": lambda c: c.name.lower(),
        "orders": lambda c: c.orders,
        "total_spent": lambda c: c.total_spent,
        "last_order_at": lambda c: c.last_order_at or datetime.min,
    }
    customers.sort(key=sort_map[sort_by], reverse=(order == "desc"))

    # Apply pagination
    total = len(customers)
    start = (page - 1) * page_size
    items = customers[start:start + page_size]

    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
    }
