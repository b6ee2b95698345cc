"""Admin summary built from the order list."""

from datetime import date, datetime
from typing import List, Optional

from schemas import Order, OrderStatus, ShopModel

OPEN_STATUSES = (OrderStatus.PENDING, OrderStatus.PREPARING)


class DashboardSummary(ShopModel):
    day: date
    orders_today: int
    sales_today: float
    open_orders: List[Order]


def _local_day(ts: datetime) -> date:
    return ts.astimezone().date() if ts.tzinfo else ts.date()


def summarize(orders: List[Order], today: Optional[date] = None) -> DashboardSummary:
    today = today or datetime.now().date()
    todays = [o for o in orders if _local_day(o.created_at) == today]
    return DashboardSummary(
        day=today,
        orders_today=len(todays),
        sales_today=round(sum(o.total for o in todays), 2),
        open_orders=[o for o in orders if o.status in OPEN_STATUSES],
    )
