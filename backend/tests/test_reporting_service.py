# Overview: Pytest coverage for sales, profit/loss and stock reports.

from datetime import datetime

import pytest

from posadmin.extensions import db
from posadmin.services import products_service, reporting_service, sales_service
from posadmin.services.reporting_service import ReportError


def _sale_at(when, lines, paid_cents):
    sale = sales_service.create_sale(lines, paid_cents)
    sale.created_at = when
    db.session.commit()
    return sale


@pytest.fixture
def january_sales(widget, gadget):
    """
    Jan 5: widget x2 (30.00) + gadget x1 (10.00)
    Jan 5 23:59:59.999999: widget x1 (15.00)
    Jan 7: gadget x2 (20.00)
    Feb 1 00:00: widget x1 (15.00), outside January
    """
    _sale_at(datetime(2026, 1, 5, 9, 30), [{"product_id": widget.id, "quantity": 2},
                                            {"product_id": gadget.id, "quantity": 1}], 5000)
    _sale_at(datetime(2026, 1, 5, 23, 59, 59, 999999), [{"product_id": widget.id, "quantity": 1}], 1500)
    _sale_at(datetime(2026, 1, 7, 12, 0), [{"product_id": gadget.id, "quantity": 2}], 2000)
    _sale_at(datetime(2026, 2, 1, 0, 0), [{"product_id": widget.id, "quantity": 1}], 1500)


class TestSalesReports:
    def test_daily_rows_ascending_only_days_with_sales(self, january_sales):
        rows = reporting_service.daily_sales_report(start_date="2026-01-01", end_date="2026-01-31")

        assert rows == [
            {
                "date": "2026-01-05",
                "total_sales": 2,
                "total_revenue": "55.00",
                "total_transactions": 2,
                "items_sold": 4,
            },
            {
                "date": "2026-01-07",
                "total_sales": 1,
                "total_revenue": "20.00",
                "total_transactions": 1,
                "items_sold": 2,
            },
        ]

    def test_daily_end_date_is_inclusive(self, january_sales):
        rows = reporting_service.daily_sales_report(start_date="2026-01-05", end_date="2026-01-05")
        assert [r["total_sales"] for r in rows] == [2]

        rows = reporting_service.daily_sales_report(start_date="2026-01-31", end_date="2026-02-01")
        assert [r["date"] for r in rows] == ["2026-02-01"]

    def test_datetime_input_truncated_to_date(self, january_sales):
        rows = reporting_service.daily_sales_report(
            start_date="2026-01-07T18:00:00Z", end_date="2026-01-07T01:00:00"
        )
        assert [r["date"] for r in rows] == ["2026-01-07"]

    def test_monthly(self, january_sales):
        report = reporting_service.monthly_sales_report(year=2026, month=1)
        assert report == {
            "date": "2026-01",
            "total_sales": 3,
            "total_revenue": "75.00",
            "total_transactions": 3,
            "items_sold": 6,
        }

    def test_monthly_empty_month_is_zero(self, january_sales):
        report = reporting_service.monthly_sales_report(year=2025, month=12)
        assert report["total_sales"] == 0
        assert report["total_revenue"] == "0.00"
        assert report["items_sold"] == 0

    def test_december_window_rolls_year(self, widget):
        _sale_at(datetime(2025, 12, 31, 23, 0), [{"product_id": widget.id, "quantity": 1}], 1500)
        _sale_at(datetime(2026, 1, 1, 0, 0), [{"product_id": widget.id, "quantity": 1}], 1500)

        assert reporting_service.monthly_sales_report(year=2025, month=12)["total_sales"] == 1

    @pytest.mark.parametrize(
        "start, end",
        [(None, "2026-01-01"), ("2026-01-02", "2026-01-01"), ("01/02/2026", "2026-01-03")],
    )
    def test_bad_daily_range(self, db_session, start, end):
        with pytest.raises(ReportError):
            reporting_service.daily_sales_report(start_date=start, end_date=end)

    @pytest.mark.parametrize("year, month", [(2026, 0), (2026, 13), (None, 1), (2026, None)])
    def test_bad_month(self, db_session, year, month):
        with pytest.raises(ReportError):
            reporting_service.monthly_sales_report(year=year, month=month)


class TestProfitLossReports:
    def test_daily(self, january_sales):
        rows = reporting_service.daily_profit_loss_report(start_date="2026-01-01", end_date="2026-01-31")

        # widget costs 9.00, gadget costs 4.00
        assert rows == [
            {
                "date": "2026-01-05",
                "revenue": "55.00",
                "cost_of_goods_sold": "31.00",
                "net_profit": "24.00",
                "total_transactions": 2,
            },
            {
                "date": "2026-01-07",
                "revenue": "20.00",
                "cost_of_goods_sold": "8.00",
                "net_profit": "12.00",
                "total_transactions": 1,
            },
        ]

    def test_monthly_uses_current_purchase_price(self, january_sales, widget):
        products_service.update_product(product_id=widget.id, patch={"purchase_price_cents": 1000})

        report = reporting_service.monthly_profit_loss_report(year=2026, month=1)
        assert report == {
            "date": "2026-01",
            "revenue": "75.00",
            "cost_of_goods_sold": "42.00",
            "net_profit": "33.00",
            "total_transactions": 3,
        }

    def test_loss_is_negative(self, product_factory):
        p = product_factory("Loss Leader", 100, stock=10, purchase_cents=250)
        _sale_at(datetime(2026, 3, 3, 10, 0), [{"product_id": p.id, "quantity": 2}], 200)

        report = reporting_service.monthly_profit_loss_report(year=2026, month=3)
        assert report["net_profit"] == "-3.00"


class TestStockReport:
    def test_stock_value_is_live(self, widget, gadget):
        report = reporting_service.stock_report()

        assert report["total_stock_value"] == "920.00"
        assert report["as_of"].endswith("Z")
        assert report["rows"] == [
            {
                "product_id": widget.id,
                "product_name": "Widget",
                "current_stock": 100,
                "purchase_price": "9.00",
                "selling_price": "15.00",
                "stock_value": "900.00",
            },
            {
                "product_id": gadget.id,
                "product_name": "Gadget",
                "current_stock": 5,
                "purchase_price": "4.00",
                "selling_price": "10.00",
                "stock_value": "20.00",
            },
        ]

    def test_reflects_latest_sale(self, widget):
        sales_service.create_sale([{"product_id": widget.id, "quantity": 10}], 15000)

        report = reporting_service.stock_report()
        assert report["rows"][0]["current_stock"] == 90
        assert report["rows"][0]["stock_value"] == "810.00"

    def test_empty_catalog(self, db_session):
        report = reporting_service.stock_report()
        assert report["rows"] == []
        assert report["total_stock_value"] == "0.00"


class TestCalendarEdges:
    def test_daily_range_ending_on_last_representable_day(self, db_session):
        with pytest.raises(ReportError):
            reporting_service.daily_sales_report(start_date="9999-12-01", end_date="9999-12-31")
        with pytest.raises(ReportError):
            reporting_service.daily_profit_loss_report(start_date="9999-12-31", end_date="9999-12-31")

    def test_daily_range_just_before_the_end_is_fine(self, db_session):
        assert reporting_service.daily_sales_report(start_date="9999-12-01", end_date="9999-12-30") == []

    def test_last_representable_month(self, db_session):
        with pytest.raises(ReportError):
            reporting_service.monthly_sales_report(year=9999, month=12)
        with pytest.raises(ReportError):
            reporting_service.monthly_profit_loss_report(year=9999, month=12)

    def test_november_of_last_year_is_fine(self, db_session):
        assert reporting_service.monthly_sales_report(year=9999, month=11)["total_sales"] == 0
