# backend/routes/settings.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from database import get_db
from models.users import User
from utils.tokenJWT import require_admin
from utils.audit import write_log, client_ip
from utils.store_settings import fetch_settings, save_settings
from schemas.settings import StoreSettingsOut, StoreSettingsUpdate

router = APIRouter(prefix="/settings", tags=["Settings"])

# Store-wide settings read by cart and checkout, written from the admin settings screen


# Retrieve store settings (defaults when nothing is stored yet)
@router.get("", response_model=StoreSettingsOut)
def get_settings(db: Session = Depends(get_db)):
    return fetch_settings(db)


# Merge-update store settings (Admin only)
@router.patch("", response_model=StoreSettingsOut)
def update_settings(
    payload: StoreSettingsUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    current = save_settings(db, changes)

    # Log the settings update action
    write_log(
        db,
        user_id=current_user.id,
        action="SETTINGS_UPDATE",
        resource="settings",
        resource_id="store",
        ip=client_ip(request),
        meta=changes,
    )

    return current
