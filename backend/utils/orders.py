# backend/utils/orders.py
import logging
from datetime import datetime, timezone
from typing import Dict, FrozenSet, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from models.order import Order, OrderItem
from schemas.order import OrderResponse, OrderItemOut, CustomerDetails
from utils.feed import order_feed
from utils.order_number import generate_order_number
from utils.order_stats import summarize

logger = logging.getLogger(__name__)

# Allowed status moves; terminal states have no way out and nothing returns to pending
ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "pending": frozenset({"processing", "completed", "cancelled"}),
    "processing": frozenset({"completed", "cancelled"}),
    "completed": frozenset(),
    "cancelled": frozenset(),
}

ORDER_NUMBER_ATTEMPTS = 5


class OrderNotFound(Exception):
    def __init__(self, order_id):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class InvalidStatusTransition(Exception):
    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot change status from {current} to {requested}")
        self.current = current
        self.requested = requested


def can_transition(current: str, requested: str) -> bool:
    return requested in ALLOWED_TRANSITIONS.get(current, frozenset())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Map Order model to OrderResponse schema
def order_to_out(order: Order) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        order_number=order.order_number,
        items=[OrderItemOut.model_validate(it) for it in order.items],
        subtotal=order.subtotal,
        delivery_fee=order.delivery_fee,
        total=order.total,
        status=order.status,
        payment_method=order.payment_method,
        bank_slip_url=order.bank_slip_url,
        customer=CustomerDetails(
            name=order.customer_name,
            phone=order.customer_phone,
            address=order.customer_address,
            city=order.customer_city,
            email=order.customer_email,
            notes=order.customer_notes,
        ),
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def create_order(
    db: Session,
    *,
    items: List[dict],
    subtotal: float,
    delivery_fee: float,
    total: float,
    payment_method: str,
    customer: CustomerDetails,
    bank_slip_url: Optional[str] = None,
) -> Order:
    """Persist a new pending order. The order number is regenerated on a uniqueness clash."""
    now = _utcnow()
    for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
        order = Order(
            order_number=generate_order_number(),
            status="pending",
            payment_method=payment_method,
            bank_slip_url=bank_slip_url if payment_method == "bank_deposit" else None,
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            total=total,
            customer_name=customer.name,
            customer_email=customer.email or None,
            customer_phone=customer.phone,
            customer_address=customer.address,
            customer_city=customer.city,
            customer_notes=customer.notes or None,
            created_at=now,
            updated_at=now,
        )
        order.items = [
            OrderItem(
                position=idx,
                product_id=str(it["product_id"]),
                name=it["name"],
                image_url=it.get("image_url"),
                brand=it.get("brand"),
                size=it.get("size"),
                price=it["price"],
                quantity=it["quantity"],
            )
            for idx, it in enumerate(items)
        ]
        db.add(order)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            if attempt == ORDER_NUMBER_ATTEMPTS:
                raise
            logger.warning("Order number %s already taken, retrying", order.order_number)
            continue
        db.refresh(order)
        return order


def get_order(db: Session, order_id: int) -> Optional[Order]:
    return db.query(Order).options(selectinload(Order.items)).filter(Order.id == order_id).first()


def get_order_by_number(db: Session, order_number: str) -> Optional[Order]:
    return (
        db.query(Order)
        .options(selectinload(Order.items))
        .filter(func.upper(Order.order_number) == order_number.strip().upper())
        .first()
    )


def list_orders(db: Session, status: Optional[str] = None, q: Optional[str] = None) -> List[Order]:
    """All orders newest first, optionally narrowed by status and a free-text search."""
    query = db.query(Order).options(selectinload(Order.items))
    if status:
        query = query.filter(Order.status == status)
    if q and q.strip():
        like = f"%{q.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(Order.order_number).like(like),
                func.lower(Order.customer_name).like(like),
                Order.customer_phone.like(f"%{q.strip()}%"),
                func.lower(Order.customer_email).like(like),
            )
        )
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def update_status(db: Session, order_id: int, new_status: str) -> Order:
    order = get_order(db, order_id)
    if not order:
        raise OrderNotFound(order_id)
    if not can_transition(order.status, new_status):
        raise InvalidStatusTransition(order.status, new_status)
    order.status = new_status
    order.updated_at = _utcnow()
    db.commit()
    db.refresh(order)
    return order


def publish_orders(db: Session) -> None:
    """Push the full newest-first order list and its summary to live admin views."""
    if order_feed.subscriber_count == 0:
        return
    order_feed.publish(orders_snapshot(list_orders(db)))


def orders_snapshot(orders: List[Order]) -> dict:
    return {
        "orders": [order_to_out(o).model_dump(mode="json") for o in orders],
        "summary": summarize(orders).model_dump(),
    }
