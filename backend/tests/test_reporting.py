from datetime import date, datetime

import pytest

from tokopos.services import sales_service
from tokopos.services.reporting_service import ReportError, period_start, sales_summary


NOW = datetime(2026, 10, 21, 10, 0)  # a Wednesday


def _sale(cashier, product, sale_date, quantity=1, payment_method="cash"):
    result = sales_service.create_sale(
        {
            "items": [{"productId": product.id, "quantity": quantity, "unitPrice": 100000}],
            "amountPaid": 100000 * quantity,
            "paymentMethod": payment_method,
            "taxRate": 0,
        },
        cashier.id,
    )
    assert result.ok, result.error
    result.sale.sale_date = sale_date
    return result.sale


@pytest.mark.parametrize("period,expected", [
    ("today", date(2026, 10, 21)),
    ("week", date(2026, 10, 18)),
    ("month", date(2026, 10, 1)),
    ("all", None),
])
def test_period_start(period, expected):
    assert period_start(period, date(2026, 10, 21)) == expected


def test_week_starting_on_sunday_is_that_sunday():
    assert period_start("week", date(2026, 10, 18)) == date(2026, 10, 18)


def test_unknown_period():
    with pytest.raises(ReportError):
        period_start("decade", date(2026, 10, 21))


class TestSalesSummary:

    @pytest.fixture
    def history(self, db_session, cashier, rice):
        _sale(cashier, rice, datetime(2026, 10, 21, 8, 0))
        _sale(cashier, rice, datetime(2026, 10, 21, 9, 0), quantity=2, payment_method="card")
        _sale(cashier, rice, datetime(2026, 10, 19, 12, 0))
        _sale(cashier, rice, datetime(2026, 10, 2, 12, 0))
        _sale(cashier, rice, datetime(2026, 9, 30, 12, 0))
        cancelled = _sale(cashier, rice, datetime(2026, 10, 21, 9, 30))
        db_session.commit()
        sales_service.cancel_sale(cancelled.id)

    def test_today(self, history):
        data = sales_summary("today", now=NOW)

        assert data["period"] == "today"
        assert data["start"] == "2026-10-21T00:00:00Z"
        assert data["end"] == "2026-10-22T00:00:00Z"
        assert data["summary"] == {
            "totalSales": 2,
            "totalRevenue": "300000.00",
            "totalSubtotal": "300000.00",
            "totalTax": "0.00",
            "averageSale": "150000.00",
        }
        assert data["paymentMethods"] == [
            {"paymentMethod": "card", "count": 1, "total": "200000.00"},
            {"paymentMethod": "cash", "count": 1, "total": "100000.00"},
        ]

    def test_week_month_all(self, history):
        assert sales_summary("week", now=NOW)["summary"]["totalSales"] == 3
        assert sales_summary("month", now=NOW)["summary"]["totalSales"] == 4
        everything = sales_summary("all", now=NOW)
        assert everything["summary"]["totalSales"] == 5
        assert everything["start"] is None

    def test_no_sales(self, db_session):
        data = sales_summary("today", now=NOW)
        assert data["summary"]["totalSales"] == 0
        assert data["summary"]["totalRevenue"] == "0.00"
        assert data["summary"]["averageSale"] == "0.00"
        assert data["paymentMethods"] == []

    def test_bad_period(self, db_session):
        with pytest.raises(ReportError):
            sales_summary("decade", now=NOW)
