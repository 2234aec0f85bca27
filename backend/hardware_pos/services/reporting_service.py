# Overview: Service-layer operations for reporting; dashboard figures, report summaries and CSV exports.

from __future__ import annotations

import csv
import io
from datetime import datetime

from sqlalchemy import func

from ..extensions import db
from ..models import PAYMENT_METHODS, Expense, Product, Sale, SaleItem
from ..time_utils import range_start, utcnow
from ..validation import from_cents
from .persistence import store_operation

REPORT_TYPES = ("sales", "expenses", "inventory", "profit")
DATE_RANGES = ("today", "week", "month", "year", "all")

TOP_PRODUCTS_LIMIT = 5
RECENT_SALES_LIMIT = 5


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _start(date_range: str, now: datetime | None = None) -> datetime | None:
    try:
        return range_start(date_range, now)
    except ValueError as exc:
        raise ReportError(str(exc)) from exc


def _check_type(report_type: str) -> None:
    if report_type not in REPORT_TYPES:
        raise ReportError(f"report type must be one of: {', '.join(REPORT_TYPES)}")


def _sales_query(start: datetime | None):
    query = db.session.query(Sale)
    if start is not None:
        query = query.filter(Sale.created_at >= start)
    return query


def _expenses_query(start: datetime | None):
    query = db.session.query(Expense)
    if start is not None:
        query = query.filter(Expense.date >= start.date())
    return query


def _money(cents: int | None) -> str:
    return f"{from_cents(cents or 0):.2f}"


def sales_total_cents(start: datetime | None) -> int:
    query = db.session.query(func.coalesce(func.sum(Sale.total_cents), 0))
    if start is not None:
        query = query.filter(Sale.created_at >= start)
    return int(query.scalar() or 0)


def expenses_total_cents(start: datetime | None) -> int:
    query = db.session.query(func.coalesce(func.sum(Expense.amount_cents), 0))
    if start is not None:
        query = query.filter(Expense.date >= start.date())
    return int(query.scalar() or 0)


def payment_breakdown(start: datetime | None) -> dict[str, int]:
    query = db.session.query(
        Sale.payment_method,
        func.coalesce(func.sum(Sale.total_cents), 0),
    )
    if start is not None:
        query = query.filter(Sale.created_at >= start)
    breakdown = {method: 0 for method in PAYMENT_METHODS}
    for method, total in query.group_by(Sale.payment_method).all():
        breakdown[method] = int(total or 0)
    return breakdown


def top_products(start: datetime | None, limit: int = TOP_PRODUCTS_LIMIT) -> list[dict]:
    """Best sellers by quantity within the window."""
    qty = func.sum(SaleItem.quantity)
    query = db.session.query(
        SaleItem.product_id,
        func.max(SaleItem.product_name),
        qty.label("quantity"),
        func.sum(SaleItem.total_cents),
    ).join(Sale, SaleItem.sale_id == Sale.id)
    if start is not None:
        query = query.filter(Sale.created_at >= start)
    rows = (
        query.group_by(SaleItem.product_id)
        .order_by(qty.desc(), SaleItem.product_id.asc())
        .limit(limit)
        .all()
    )
    return [
        {
            "product_id": product_id,
            "product_name": name,
            "quantity": int(quantity or 0),
            "total_cents": int(total or 0),
        }
        for product_id, name, quantity, total in rows
    ]


@store_operation("building report summary")
def summary(date_range: str = "month", *, now: datetime | None = None) -> dict | None:
    start = _start(date_range, now)
    total_sales = sales_total_cents(start)
    total_expenses = expenses_total_cents(start)
    return {
        "date_range": date_range,
        "total_sales_cents": total_sales,
        "total_expenses_cents": total_expenses,
        "net_profit_cents": total_sales - total_expenses,
        "payment_breakdown": payment_breakdown(start),
        "top_products": top_products(start),
    }


def _sales_by_day(start: datetime | None) -> dict[str, int]:
    day = func.date(Sale.created_at)
    query = db.session.query(day, func.sum(Sale.total_cents))
    if start is not None:
        query = query.filter(Sale.created_at >= start)
    return {str(d): int(total or 0) for d, total in query.group_by(day).all()}


def _expenses_by_day(start: datetime | None) -> dict[str, int]:
    query = db.session.query(Expense.date, func.sum(Expense.amount_cents))
    if start is not None:
        query = query.filter(Expense.date >= start.date())
    return {d.isoformat(): int(total or 0) for d, total in query.group_by(Expense.date).all()}


@store_operation("building report chart")
def chart_series(report_type: str, date_range: str = "month", *, now: datetime | None = None) -> list[dict] | None:
    """
    [{"name": label, "value": cents-or-quantity}, ...] for the report chart.

    sales: sales per day; expenses: expenses per category;
    inventory: units in stock per category; profit: sales minus expenses per day.
    """
    _check_type(report_type)
    start = _start(date_range, now)

    if report_type == "sales":
        series = _sales_by_day(start)
    elif report_type == "expenses":
        query = db.session.query(Expense.category, func.sum(Expense.amount_cents))
        if start is not None:
            query = query.filter(Expense.date >= start.date())
        series = {c: int(t or 0) for c, t in query.group_by(Expense.category).all()}
    elif report_type == "inventory":
        rows = (
            db.session.query(Product.category, func.sum(Product.quantity))
            .group_by(Product.category)
            .all()
        )
        series = {(c or "Uncategorized"): int(q or 0) for c, q in rows}
    else:
        sales = _sales_by_day(start)
        expenses = _expenses_by_day(start)
        series = {d: sales.get(d, 0) - expenses.get(d, 0) for d in set(sales) | set(expenses)}

    return [{"name": name, "value": value} for name, value in sorted(series.items())]


@store_operation("exporting report")
def export_csv(report_type: str, date_range: str = "month", *, now: datetime | None = None) -> tuple[str, str] | None:
    """Return (filename, csv_text) for a report download."""
    _check_type(report_type)
    start = _start(date_range, now)

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    if report_type == "sales":
        item_counts = dict(
            db.session.query(SaleItem.sale_id, func.count(SaleItem.id))
            .group_by(SaleItem.sale_id)
            .all()
        )
        writer.writerow(["Date", "Total", "Payment Method", "Items"])
        for sale in _sales_query(start).order_by(Sale.created_at.desc()).all():
            writer.writerow([
                sale.created_at.date().isoformat(),
                _money(sale.total_cents),
                sale.payment_method,
                item_counts.get(sale.id, 0),
            ])
    elif report_type == "expenses":
        writer.writerow(["Date", "Name", "Category", "Amount"])
        for expense in _expenses_query(start).order_by(Expense.date.desc()).all():
            writer.writerow([
                expense.date.isoformat(),
                expense.name,
                expense.category,
                _money(expense.amount_cents),
            ])
    elif report_type == "inventory":
        writer.writerow(["Name", "SKU", "Category", "Quantity", "Buying Price", "Selling Price", "Reorder Level"])
        for product in db.session.query(Product).order_by(Product.name.asc()).all():
            writer.writerow([
                product.name,
                product.sku or "",
                product.category or "",
                product.quantity,
                _money(product.buying_price_cents),
                _money(product.selling_price_cents),
                product.reorder_level,
            ])
    else:
        total_sales = sales_total_cents(start)
        total_expenses = expenses_total_cents(start)
        writer.writerow(["Period", "Sales", "Expenses", "Profit"])
        writer.writerow([
            date_range,
            _money(total_sales),
            _money(total_expenses),
            _money(total_sales - total_expenses),
        ])

    filename = f"{report_type}_report_{(now or utcnow()).date().isoformat()}.csv"
    return filename, buffer.getvalue()


@store_operation("building dashboard")
def dashboard(*, now: datetime | None = None) -> dict | None:
    """Today's takings, gross profit, low stock and the latest sales."""
    now = now or utcnow()
    start = range_start("today", now)

    sales_count, sales_total = (
        db.session.query(func.count(Sale.id), func.coalesce(func.sum(Sale.total_cents), 0))
        .filter(Sale.created_at >= start)
        .one()
    )

    # Gross profit uses current buying prices; deleted products cost nothing
    revenue, cost = (
        db.session.query(
            func.coalesce(func.sum(SaleItem.total_cents), 0),
            func.coalesce(func.sum(SaleItem.quantity * func.coalesce(Product.buying_price_cents, 0)), 0),
        )
        .join(Sale, SaleItem.sale_id == Sale.id)
        .outerjoin(Product, SaleItem.product_id == Product.id)
        .filter(Sale.created_at >= start)
        .one()
    )

    low_stock = (
        db.session.query(Product)
        .filter(Product.quantity <= Product.reorder_level)
        .order_by(Product.quantity.asc(), Product.name.asc())
        .all()
    )
    recent = (
        db.session.query(Sale)
        .order_by(Sale.created_at.desc(), Sale.id.asc())
        .limit(RECENT_SALES_LIMIT)
        .all()
    )

    return {
        "date": now.date().isoformat(),
        "today_sales_cents": int(sales_total or 0),
        "today_sales_count": int(sales_count or 0),
        "today_profit_cents": int(revenue or 0) - int(cost or 0),
        "low_stock": [
            {"id": p.id, "name": p.name, "quantity": p.quantity, "reorder_level": p.reorder_level}
            for p in low_stock
        ],
        "recent_sales": [s.to_dict() for s in recent],
    }
