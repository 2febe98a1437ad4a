# backend/routes/cart.py
import uuid
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from database import get_db
from schemas.cart import CartAddItem, CartUpdateItem, CartOut
from utils.cart_store import CartStore, SqlCartStorage, line_id, session_key
from utils.catalog import get_catalog, select_primary_image, select_variant, any_in_stock

router = APIRouter(prefix="/cart", tags=["Cart"])

CART_COOKIE = "cart_session"
CART_COOKIE_MAX_AGE = 60 * 60 * 24 * 90

# Resolve the session's cart, issuing a session cookie on first use
def get_cart(request: Request, response: Response, db: Session = Depends(get_db)) -> CartStore:
    session_id = request.cookies.get(CART_COOKIE)
    if not session_id:
        session_id = uuid.uuid4().hex
        response.set_cookie(CART_COOKIE, session_id, max_age=CART_COOKIE_MAX_AGE, httponly=True, samesite="lax")
    return CartStore(SqlCartStorage(db), session_key(session_id))

def _cart_to_out(cart: CartStore) -> CartOut:
    return CartOut(items=cart.items, count=cart.count, total=round(cart.total, 2))

@router.get("", response_model=CartOut)
def get_cart_contents(cart: CartStore = Depends(get_cart)):
    return _cart_to_out(cart)

@router.post("/add", response_model=CartOut)
async def add_to_cart(
    payload: CartAddItem,
    cart: CartStore = Depends(get_cart),
    catalog = Depends(get_catalog),
):
    product = await catalog.get_product(payload.product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    variant = None
    if payload.size:
        variant = select_variant(product, payload.size)
        if not variant:
            raise HTTPException(status_code=404, detail="Variant not found")
        if not variant.in_stock:
            raise HTTPException(status_code=400, detail="Out of stock")
    elif product.variants and not any_in_stock(product):
        raise HTTPException(status_code=400, detail="Out of stock")

    # Persisting the cart is a blocking write
    await run_in_threadpool(
        cart.add_item,
        {
            "id": line_id(product.id, variant.size if variant else None),
            "name": product.name,
            "image_url": (variant.photo_url if variant and variant.photo_url else None) or select_primary_image(product),
            "brand": product.brand,
            "size": variant.size if variant else None,
            "price": variant.effective_price if variant else None,
        },
        payload.qty,
    )
    return _cart_to_out(cart)

@router.put("/items/{item_id}", response_model=CartOut)
def update_cart_item(item_id: str, payload: CartUpdateItem, cart: CartStore = Depends(get_cart)):
    if not cart.has_item(item_id):
        raise HTTPException(status_code=404, detail="Cart item not found")
    cart.update_quantity(item_id, payload.qty)
    return _cart_to_out(cart)

@router.delete("/items/{item_id}", response_model=CartOut)
def delete_cart_item(item_id: str, cart: CartStore = Depends(get_cart)):
    cart.remove_item(item_id)
    return _cart_to_out(cart)

@router.delete("", response_model=CartOut)
def clear_cart(cart: CartStore = Depends(get_cart)):
    cart.clear()
    return _cart_to_out(cart)
