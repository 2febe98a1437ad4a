from numbers import Number
from typing import Optional

from sqlalchemy.orm import Session

from config import settings as app_settings
from models.settings import SettingsDocument
from schemas.settings import StoreSettingsOut
from utils.feed import settings_feed

STORE_KEY = "store"


def _decode(data: Optional[dict]) -> StoreSettingsOut:
    data = data or {}
    fee = data.get("delivery_fee")
    # bool is a Number too, but never a fee
    if not isinstance(fee, Number) or isinstance(fee, bool):
        fee = app_settings.DEFAULT_DELIVERY_FEE
    return StoreSettingsOut(delivery_fee=fee)


def fetch_settings(db: Session) -> StoreSettingsOut:
    """Store settings, falling back to defaults when the document is missing or malformed."""
    doc = db.get(SettingsDocument, STORE_KEY)
    return _decode(doc.data if doc else None)


def save_settings(db: Session, changes: dict) -> StoreSettingsOut:
    """Merge-update the store document; keys not in `changes` keep their stored values."""
    doc = db.get(SettingsDocument, STORE_KEY)
    if not doc:
        doc = SettingsDocument(key=STORE_KEY, data={})
        db.add(doc)
    # Reassign so the JSON column is flagged dirty
    doc.data = {**(doc.data or {}), **changes}
    db.commit()
    db.refresh(doc)
    current = _decode(doc.data)
    settings_feed.publish(current.model_dump())
    return current
