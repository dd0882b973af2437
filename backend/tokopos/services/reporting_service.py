# Overview: Service-layer operations for reporting; read-only aggregates over completed sales.

from __future__ import annotations

from datetime import date, datetime, timedelta

from sqlalchemy import func

from ..extensions import db
from ..models import Sale
from ..money import ZERO, format_money, to_decimal
from ..time_utils import store_day_end_utc, store_day_start_utc, store_today, to_utc_z


PERIODS = ("today", "week", "month", "all")


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def period_start(period: str, today: date) -> date | None:
    """First store-local day of `period`; weeks start on Sunday."""
    if period == "today":
        return today
    if period == "week":
        # weekday(): Monday=0 .. Sunday=6
        return today - timedelta(days=(today.weekday() + 1) % 7)
    if period == "month":
        return today.replace(day=1)
    if period == "all":
        return None
    raise ReportError(f"period must be one of: {', '.join(PERIODS)}")


def _as_decimal(value):
    return ZERO if value is None else to_decimal(value)


def sales_summary(period: str = "today", *, now: datetime | None = None) -> dict:
    """
    Count, revenue, subtotal, tax and average sale for completed sales in
    `period`, plus a per payment method breakdown.
    """
    today = store_today(now)
    start_day = period_start(period, today)

    filters = [Sale.status == "completed"]
    start_dt = end_dt = None
    if start_day is not None:
        start_dt = store_day_start_utc(start_day)
        end_dt = store_day_end_utc(today)
        filters += [Sale.sale_date >= start_dt, Sale.sale_date < end_dt]

    row = db.session.query(
        func.count(Sale.id).label("total_sales"),
        func.sum(Sale.total).label("total_revenue"),
        func.sum(Sale.subtotal).label("total_subtotal"),
        func.sum(Sale.tax).label("total_tax"),
    ).filter(*filters).one()

    total_sales = int(row.total_sales or 0)
    total_revenue = _as_decimal(row.total_revenue)
    average = total_revenue / total_sales if total_sales else ZERO

    method_rows = (
        db.session.query(
            Sale.payment_method,
            func.count(Sale.id).label("count"),
            func.sum(Sale.total).label("total"),
        )
        .filter(*filters)
        .group_by(Sale.payment_method)
        .order_by(Sale.payment_method)
        .all()
    )

    return {
        "period": period,
        "start": to_utc_z(start_dt),
        "end": to_utc_z(end_dt),
        "summary": {
            "totalSales": total_sales,
            "totalRevenue": format_money(total_revenue),
            "totalSubtotal": format_money(_as_decimal(row.total_subtotal)),
            "totalTax": format_money(_as_decimal(row.total_tax)),
            "averageSale": format_money(average),
        },
        "paymentMethods": [
            {
                "paymentMethod": r.payment_method,
                "count": int(r.count or 0),
                "total": format_money(_as_decimal(r.total)),
            }
            for r in method_rows
        ],
    }
