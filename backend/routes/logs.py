# backend/routes/logs.py
from datetime import datetime, time
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from models.log import Log
from models.users import User
from schemas.log import LogPage
from utils.tokenJWT import require_admin

router = APIRouter(prefix="/logs", tags=["Logs"])


def _parse_day(value: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    """YYYY-MM-DD or a full ISO timestamp; anything unparsable is treated as no bound."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if end_of_day and len(value) == 10:
        parsed = datetime.combine(parsed.date(), time.max)
    return parsed


# Audit trail for the admin panel, newest first
@router.get("", response_model=LogPage)
def get_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None, description="Action contains, e.g. ORDER_"),
    resource: Optional[str] = Query(None, description="Resource contains, e.g. orders"),
    resource_id: Optional[str] = Query(None, description="Exact resource id, e.g. an order id"),
    user_id: Optional[int] = Query(None, description="Admin who performed the action"),
    status: Optional[str] = Query(None, description="SUCCESS or FAIL"),
    date_from: Optional[str] = Query(None, description="YYYY-MM-DD"),
    date_to: Optional[str] = Query(None, description="YYYY-MM-DD, inclusive"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    query = db.query(Log)
    if action:
        query = query.filter(Log.action.ilike(f"%{action}%"))
    if resource:
        query = query.filter(Log.resource.ilike(f"%{resource}%"))
    if resource_id:
        query = query.filter(Log.resource_id == resource_id)
    if user_id is not None:
        query = query.filter(Log.user_id == user_id)
    if status:
        query = query.filter(Log.status == status.upper())

    since = _parse_day(date_from)
    until = _parse_day(date_to, end_of_day=True)
    if since:
        query = query.filter(Log.ts >= since)
    if until:
        query = query.filter(Log.ts <= until)

    total = query.count()
    items = (
        query.order_by(Log.ts.desc(), Log.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {"items": items, "total": total, "page": page, "page_size": page_size}
