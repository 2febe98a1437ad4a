# backend/routes/orders.py
import asyncio
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from schemas.order import OrderResponse, OrdersPage, OrderStatusPatch, OrderStatus
from utils.audit import write_log, client_ip
from utils.feed import order_feed
from utils.orders import (
    InvalidStatusTransition, OrderNotFound, get_order, get_order_by_number, list_orders, order_to_out, orders_snapshot,
    publish_orders, update_status,
)
from utils.tokenJWT import require_admin, user_from_token

router = APIRouter(prefix="/orders", tags=["Orders"])
logger = logging.getLogger(__name__)


# List orders newest first (admin)
@router.get("", response_model=OrdersPage)
def list_all_orders(
    status: Optional[OrderStatus] = Query(None, description="Filter by status"),
    q: Optional[str] = Query(None, description="Search order number, customer name, phone or email"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    orders = list_orders(db, status=status, q=q)
    return {"items": [order_to_out(o) for o in orders], "total": len(orders)}


# Live order list: full snapshot on connect and after every change
@router.websocket("/live")
async def orders_live(websocket: WebSocket, token: Optional[str] = None, db: Session = Depends(get_db)):
    user = user_from_token(token, db)
    if not user or (user.role or "").lower() != "admin":
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    queue = order_feed.open_queue()

    async def relay():
        while True:
            payload = await queue.get()
            await websocket.send_json(payload)

    relay_task = None
    try:
        await websocket.send_json(orders_snapshot(list_orders(db)))
        relay_task = asyncio.create_task(relay())
        # Nothing is expected from the client; reading only detects the disconnect
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        if relay_task:
            relay_task.cancel()
        order_feed.close_queue(queue)


# Look up an order by its human-readable number
@router.get("/by-number/{order_number}", response_model=OrderResponse)
def get_order_by_code(order_number: str, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    order = get_order_by_number(db, order_number)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order_to_out(order)


# Get details of a specific order
@router.get("/{order_id}", response_model=OrderResponse)
def get_order_detail(order_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    order = get_order(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order_to_out(order)


# Move an order along its lifecycle (admin only)
@router.patch("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    existing = get_order(db, order_id)
    old_status = existing.status if existing else None
    try:
        order = update_status(db, order_id, payload.status)
    except OrderNotFound:
        raise HTTPException(status_code=404, detail="Order not found")
    except InvalidStatusTransition as e:
        write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders",
                  resource_id=order_id, status="FAIL", ip=client_ip(request),
                  meta={"old": e.current, "new": e.requested})
        raise HTTPException(status_code=409, detail=str(e))

    write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders",
              resource_id=order.id, ip=client_ip(request),
              meta={"order_number": order.order_number, "old": old_status, "new": order.status})

    publish_orders(db)
    return order_to_out(order)
