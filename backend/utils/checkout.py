# backend/utils/checkout.py
"""
Checkout: validate the shopper's details, upload the bank slip when needed and
turn the session cart into an immutable pending order.
"""
import logging
import re
from dataclasses import dataclass
from typing import Dict, Optional

from sqlalchemy.orm import Session

from models.order import Order
from schemas.order import CustomerDetails
from utils.cart_store import CartStore
from utils.orders import create_order, publish_orders
from utils.storage import LocalBlobStorage, slip_path
from utils.store_settings import fetch_settings

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SLIP_ALLOWED_TYPES = {"image/jpeg", "image/png", "image/webp", "image/jpg"}
SLIP_MAX_BYTES = 5 * 1024 * 1024

REQUIRED_FIELDS = {
    "name": "Name is required",
    "phone": "Phone number is required",
    "address": "Address is required",
    "city": "City is required",
}


class CheckoutValidationError(Exception):
    def __init__(self, errors: Dict[str, str]):
        super().__init__("Checkout details are invalid")
        self.errors = errors


class EmptyCartError(Exception):
    pass


@dataclass
class SlipUpload:
    filename: Optional[str]
    content_type: Optional[str]
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def validate_slip(slip: Optional[SlipUpload]) -> Optional[str]:
    if slip is None:
        return "Please upload your bank deposit slip."
    if slip.content_type not in SLIP_ALLOWED_TYPES:
        return "Please upload a JPG, PNG, or WebP image."
    if slip.size > SLIP_MAX_BYTES:
        return "File must be less than 5MB."
    return None


def validate_checkout(form: dict, payment_method: str, slip: Optional[SlipUpload] = None) -> Dict[str, str]:
    """Field name -> message for every problem found; empty when the form is good."""
    errors: Dict[str, str] = {}
    for field, message in REQUIRED_FIELDS.items():
        if not (form.get(field) or "").strip():
            errors[field] = message
    email = (form.get("email") or "").strip()
    if email and not EMAIL_RE.match(email):
        errors["email"] = "Invalid email address"
    if payment_method == "bank_deposit":
        slip_error = validate_slip(slip)
        if slip_error:
            errors["slip"] = slip_error
    return errors


def compute_totals(cart_total: float, configured_fee: float) -> dict:
    delivery_fee = configured_fee if cart_total > 0 else 0
    return {"subtotal": cart_total, "delivery_fee": delivery_fee, "total": cart_total + delivery_fee}


def place_order(
    db: Session,
    cart: CartStore,
    storage: LocalBlobStorage,
    form: dict,
    payment_method: str,
    slip: Optional[SlipUpload] = None,
) -> Order:
    errors = validate_checkout(form, payment_method, slip)
    if errors:
        raise CheckoutValidationError(errors)
    items = cart.items
    if not items:
        raise EmptyCartError()

    # Fee as configured at submit time
    configured_fee = fetch_settings(db).delivery_fee
    totals = compute_totals(cart.total, configured_fee)

    bank_slip_url = None
    if payment_method == "bank_deposit":
        bank_slip_url = storage.upload(slip_path(slip.content_type), slip.data, slip.content_type)

    customer = CustomerDetails(
        name=form["name"].strip(),
        phone=form["phone"].strip(),
        address=form["address"].strip(),
        city=form["city"].strip(),
        email=(form.get("email") or "").strip() or None,
        notes=(form.get("notes") or "").strip() or None,
    )
    order_items = [
        {
            "product_id": it.id,
            "name": it.name,
            "image_url": it.image_url,
            "brand": it.brand,
            "size": it.size,
            "price": it.price if it.price is not None else 0,
            "quantity": it.quantity,
        }
        for it in items
    ]
    try:
        order = create_order(
            db,
            items=order_items,
            payment_method=payment_method,
            bank_slip_url=bank_slip_url,
            customer=customer,
            **totals,
        )
    except Exception:
        if bank_slip_url:
            # No compensating delete: the slip stays in storage unreferenced
            logger.warning("Order creation failed, bank slip left orphaned at %s", bank_slip_url)
        raise

    cart.clear()
    publish_orders(db)
    return order
