# backend/utils/cart_store.py
"""
Session cart: the list of line items a shopper is collecting before checkout.

The store is the single source of truth for one session's cart. Every mutation
serializes the full list into a key/value storage under a fixed key, and a new
store rehydrates from that key. Storage problems never reach the shopper: a
lost cart is recoverable, so read and write failures are logged and ignored.
"""
import json
import logging
from typing import Callable, Dict, List, Optional, Protocol

from pydantic import ValidationError
from sqlalchemy.orm import Session

from models.cart import CartStorageEntry
from schemas.cart import CartLineItem

logger = logging.getLogger(__name__)

STORAGE_KEY = "aroma-notes:cart"

CartListener = Callable[[List[CartLineItem]], None]


class CartStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...
    def set_item(self, key: str, value: str) -> None: ...


class MemoryCartStorage:
    """Dict-backed storage, used where no database session is at hand."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value


class SqlCartStorage:
    """Key/value storage on the cart_storage table."""

    def __init__(self, db: Session):
        self.db = db

    def get_item(self, key: str) -> Optional[str]:
        entry = self.db.get(CartStorageEntry, key)
        return entry.value if entry else None

    def set_item(self, key: str, value: str) -> None:
        try:
            entry = self.db.get(CartStorageEntry, key)
            if entry:
                entry.value = value
            else:
                self.db.add(CartStorageEntry(key=key, value=value))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise


def session_key(session_id: str) -> str:
    return f"{STORAGE_KEY}:{session_id}"


def line_id(product_id: str, size: Optional[str] = None) -> str:
    # Distinct variants of one product occupy distinct lines
    return f"{product_id}:{size}" if size else str(product_id)


class CartStore:
    def __init__(self, storage: CartStorage, key: str = STORAGE_KEY):
        self.storage = storage
        self.key = key
        self._listeners: List[CartListener] = []
        self._items: List[CartLineItem] = self._load()

    # ---- persistence ----

    def _load(self) -> List[CartLineItem]:
        try:
            raw = self.storage.get_item(self.key)
        except Exception as e:
            logger.warning("Cart storage read failed for %s: %s", self.key, e)
            return []
        if not raw:
            return []
        try:
            parsed = json.loads(raw)
            if not isinstance(parsed, list):
                return []
            return [CartLineItem.model_validate(it) for it in parsed]
        except (ValueError, ValidationError) as e:
            logger.warning("Ignoring malformed cart data under %s: %s", self.key, e)
            return []

    def _save(self) -> None:
        payload = json.dumps([it.model_dump() for it in self._items])
        try:
            self.storage.set_item(self.key, payload)
        except Exception as e:
            logger.warning("Cart storage write failed for %s: %s", self.key, e)

    def _changed(self) -> None:
        self._save()
        snapshot = self.items
        for listener in list(self._listeners):
            listener(snapshot)

    # ---- reads ----

    @property
    def items(self) -> List[CartLineItem]:
        return [it.model_copy() for it in self._items]

    @property
    def count(self) -> int:
        return sum(it.quantity for it in self._items)

    @property
    def total(self) -> float:
        # Lines with an unknown price stay in the cart but add nothing
        return sum(it.price * it.quantity for it in self._items if it.price is not None)

    def has_item(self, item_id: str) -> bool:
        return any(it.id == item_id for it in self._items)

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ---- mutations ----

    def add_item(self, item: dict, qty: int = 1) -> None:
        add_qty = max(1, qty)
        for existing in self._items:
            if existing.id == item["id"]:
                existing.quantity += add_qty
                break
        else:
            data = {k: v for k, v in item.items() if k != "quantity"}
            self._items.append(CartLineItem(**data, quantity=add_qty))
        self._changed()

    def remove_item(self, item_id: str) -> None:
        remaining = [it for it in self._items if it.id != item_id]
        if len(remaining) == len(self._items):
            return
        self._items = remaining
        self._changed()

    def update_quantity(self, item_id: str, new_qty: int) -> None:
        if new_qty <= 0:
            self.remove_item(item_id)
            return
        for existing in self._items:
            if existing.id == item_id:
                existing.quantity = new_qty
                self._changed()
                return

    def clear(self) -> None:
        self._items = []
        self._changed()
