"""
Read-only sales, profit/loss and stock summaries.

Time semantics: every bucket is a UTC calendar day or month. Ranges are
half-open [start, end); a daily range covers its end date in full.
"""
from __future__ import annotations

from collections import OrderedDict
from datetime import date, datetime

from sqlalchemy import func

from posadmin.extensions import db
from posadmin.models import Product, Sale, SaleItem
from posadmin.money import format_cents
from posadmin.time_utils import day_bounds, month_bounds, parse_iso_date, to_utc_z, utcnow
from posadmin.validation import ValidationError


class ReportError(ValidationError):
    """Raised when report parameters are invalid."""
    pass


def _parse_date_range(start: str | None, end: str | None) -> tuple[date, date]:
    try:
        start_d = parse_iso_date(start)
        end_d = parse_iso_date(end)
    except ValueError:
        raise ReportError("start_date and end_date must be ISO dates (YYYY-MM-DD)")
    if start_d is None or end_d is None:
        raise ReportError("start_date and end_date are required")
    if start_d > end_d:
        raise ReportError("start_date must be on or before end_date")
    return start_d, end_d


def _day_window(start: str | None, end: str | None) -> tuple[datetime, datetime]:
    start_d, end_d = _parse_date_range(start, end)
    try:
        return day_bounds(start_d, end_d)
    except OverflowError:
        raise ReportError("end_date is out of range")


def _check_month(year: int | None, month: int | None) -> tuple[int, int]:
    if year is None or month is None:
        raise ReportError("year and month are required")
    if not 1 <= month <= 12:
        raise ReportError("month must be between 1 and 12")
    if not 1 <= year <= 9999:
        raise ReportError("year is out of range")
    return year, month


def _month_window(year: int | None, month: int | None) -> tuple[datetime, datetime]:
    year, month = _check_month(year, month)
    try:
        return month_bounds(year, month)
    except (OverflowError, ValueError):
        raise ReportError("year is out of range")


def _sales_in_window(start_dt: datetime, end_dt: datetime) -> list[Sale]:
    return (
        db.session.query(Sale)
        .filter(Sale.created_at >= start_dt, Sale.created_at < end_dt)
        .order_by(Sale.created_at.asc(), Sale.id.asc())
        .all()
    )


def _sales_row(label: str, sales: list[Sale]) -> dict:
    revenue = sum(s.total_amount_cents for s in sales)
    return {
        "date": label,
        "total_sales": len(sales),
        "total_revenue": format_cents(revenue),
        "total_transactions": len(sales),
        "items_sold": sum(item.quantity for s in sales for item in s.items),
    }


def _cogs_by_sale(sale_ids: list[int]) -> dict[int, int]:
    """Sum of quantity * current purchase price per sale, joined to products."""
    if not sale_ids:
        return {}
    rows = (
        db.session.query(
            SaleItem.sale_id,
            func.coalesce(func.sum(SaleItem.quantity * Product.purchase_price_cents), 0),
        )
        .join(Product, Product.id == SaleItem.product_id)
        .filter(SaleItem.sale_id.in_(sale_ids))
        .group_by(SaleItem.sale_id)
        .all()
    )
    return {sale_id: int(cogs or 0) for sale_id, cogs in rows}


def _profit_loss_row(label: str, sales: list[Sale], cogs: dict[int, int]) -> dict:
    revenue = sum(item.total_price_cents for s in sales for item in s.items)
    cost = sum(cogs.get(s.id, 0) for s in sales)
    return {
        "date": label,
        "revenue": format_cents(revenue),
        "cost_of_goods_sold": format_cents(cost),
        "net_profit": format_cents(revenue - cost),
        "total_transactions": len(sales),
    }


def _bucket_by_day(sales: list[Sale]) -> "OrderedDict[str, list[Sale]]":
    buckets: OrderedDict[str, list[Sale]] = OrderedDict()
    for sale in sales:
        buckets.setdefault(sale.created_at.date().isoformat(), []).append(sale)
    return buckets


def daily_sales_report(*, start_date: str | None, end_date: str | None) -> list[dict]:
    """One row per UTC day with sales in [start_date, end_date], oldest first."""
    sales = _sales_in_window(*_day_window(start_date, end_date))
    return [_sales_row(day, bucket) for day, bucket in _bucket_by_day(sales).items()]


def monthly_sales_report(*, year: int | None, month: int | None) -> dict:
    sales = _sales_in_window(*_month_window(year, month))
    return _sales_row(f"{year:04d}-{month:02d}", sales)


def daily_profit_loss_report(*, start_date: str | None, end_date: str | None) -> list[dict]:
    sales = _sales_in_window(*_day_window(start_date, end_date))
    cogs = _cogs_by_sale([s.id for s in sales])
    return [_profit_loss_row(day, bucket, cogs) for day, bucket in _bucket_by_day(sales).items()]


def monthly_profit_loss_report(*, year: int | None, month: int | None) -> dict:
    sales = _sales_in_window(*_month_window(year, month))
    cogs = _cogs_by_sale([s.id for s in sales])
    return _profit_loss_row(f"{year:04d}-{month:02d}", sales, cogs)


def stock_report() -> dict:
    """
    Current stock valuation, read in one query so every row reflects the
    same snapshot: stock_value = stock_quantity * purchase_price.
    """
    as_of = utcnow()
    products = db.session.query(Product).populate_existing().order_by(Product.id.asc()).all()

    rows = []
    total_value_cents = 0
    for product in products:
        value = product.stock_quantity * product.purchase_price_cents
        total_value_cents += value
        rows.append(
            {
                "product_id": product.id,
                "product_name": product.name,
                "current_stock": product.stock_quantity,
                "purchase_price": format_cents(product.purchase_price_cents),
                "selling_price": format_cents(product.selling_price_cents),
                "stock_value": format_cents(value),
            }
        )

    return {
        "as_of": to_utc_z(as_of),
        "total_stock_value": format_cents(total_value_cents),
        "rows": rows,
    }
