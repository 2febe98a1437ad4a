# backend/routes/stats.py
from datetime import datetime, timezone
from typing import List
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from schemas.order import OrderSummary
from utils.order_stats import daily_revenue, summarize
from utils.orders import list_orders
from utils.tokenJWT import require_admin

router = APIRouter(prefix="/stats", tags=["Stats"])


class DailyRevenue(BaseModel):
    date: str
    revenue: float

class DailyRevenueResponse(BaseModel):
    data: List[DailyRevenue]


# Dashboard cards: orders per status and completed revenue
@router.get("/summary", response_model=OrderSummary)
def get_stats_summary(db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    return summarize(list_orders(db))


# Revenue chart for the last week (dates in UTC, shown as DD/MM)
@router.get("/daily-revenue", response_model=DailyRevenueResponse)
def get_daily_revenue_stats(db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    today = datetime.now(timezone.utc).date()
    points = daily_revenue(list_orders(db, status="completed"), today)
    return {"data": [DailyRevenue(date=day.strftime("%d/%m"), revenue=amount) for day, amount in points]}
