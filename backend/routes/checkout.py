# backend/routes/checkout.py
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request, UploadFile, File, Form, status
from sqlalchemy.orm import Session

from database import get_db
from routes.cart import get_cart
from schemas.order import OrderPlaced, CheckoutSummary, PaymentMethod
from utils.audit import write_log, client_ip
from utils.cart_store import CartStore
from utils.checkout import (
    CheckoutValidationError, EmptyCartError, SlipUpload, compute_totals, place_order,
)
from utils.storage import LocalBlobStorage, get_storage
from utils.store_settings import fetch_settings

router = APIRouter(prefix="/checkout", tags=["Checkout"])
logger = logging.getLogger(__name__)

ORDER_FAILED_MESSAGE = "Something went wrong placing your order. Please try again."


# Totals shown beside the checkout form
@router.get("/summary", response_model=CheckoutSummary)
def checkout_summary(cart: CartStore = Depends(get_cart), db: Session = Depends(get_db)):
    totals = compute_totals(cart.total, fetch_settings(db).delivery_fee)
    return CheckoutSummary(count=cart.count, **totals)


# Validate details, upload the slip for bank deposits and create the order
@router.post("", response_model=OrderPlaced, status_code=status.HTTP_201_CREATED)
def submit_checkout(
    request: Request,
    name: str = Form(""),
    phone: str = Form(""),
    address: str = Form(""),
    city: str = Form(""),
    email: str = Form(""),
    notes: str = Form(""),
    payment_method: PaymentMethod = Form("cod"),
    slip: Optional[UploadFile] = File(None),
    cart: CartStore = Depends(get_cart),
    storage: LocalBlobStorage = Depends(get_storage),
    db: Session = Depends(get_db),
):
    slip_upload = None
    if slip is not None and slip.filename:
        try:
            slip_upload = SlipUpload(filename=slip.filename, content_type=slip.content_type, data=slip.file.read())
        finally:
            slip.file.close()

    form = {"name": name, "phone": phone, "address": address, "city": city, "email": email, "notes": notes}
    try:
        order = place_order(db, cart, storage, form, payment_method, slip_upload)
    except CheckoutValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors)
    except EmptyCartError:
        raise HTTPException(status_code=400, detail="Your cart is empty")
    except Exception as e:
        logger.exception("Order failed: %s", e)
        raise HTTPException(status_code=500, detail=ORDER_FAILED_MESSAGE)

    write_log(
        db, user_id=None, action="ORDER_CREATE", resource="orders", resource_id=order.id,
        ip=client_ip(request),
        meta={"order_number": order.order_number, "total": order.total, "payment_method": order.payment_method},
    )
    return OrderPlaced(
        id=order.id, order_number=order.order_number, total=order.total, payment_method=order.payment_method,
    )
