from datetime import date, timedelta
from typing import Iterable, List, Tuple

from models.order import ORDER_STATUSES
from schemas.order import OrderSummary


def summarize(orders: Iterable) -> OrderSummary:
    # Full scan per call; fine for a small shop's order volume
    counts = {"all": 0, **{s: 0 for s in ORDER_STATUSES}}
    revenue = 0.0
    for o in orders:
        counts["all"] += 1
        counts[o.status] = counts.get(o.status, 0) + 1
        if o.status == "completed":
            revenue += o.total
    return OrderSummary(counts=counts, revenue=round(revenue, 2))


def daily_revenue(orders: Iterable, today: date, days: int = 7) -> List[Tuple[date, float]]:
    """Completed revenue per calendar day for the `days` days ending today, zero-filled, oldest first."""
    first = today - timedelta(days=days - 1)
    buckets = {first + timedelta(days=i): 0.0 for i in range(days)}
    for o in orders:
        if o.status != "completed" or o.created_at is None:
            continue
        day = o.created_at.date()
        if day in buckets:
            buckets[day] += o.total
    return [(day, round(amount, 2)) for day, amount in buckets.items()]
