# Overview: Service-layer operations for reporting; sales listings, aggregate stats and CSV export.

from __future__ import annotations

import csv
import io
from datetime import datetime

from sqlalchemy import case, func

from portaria.extensions import db
from portaria.models import Customer, Ticket, TicketType
from portaria.models.tickets import PAYMENT_METHODS
from portaria.time_utils import parse_iso_datetime, to_utc_z


CSV_HEADER = ("ID", "Preço", "Método Pagamento", "Status", "Data", "Horário")


class ReportError(Exception):
    """Raised when report generation fails."""
    def __init__(self, message: str, code: str = "BAD_REQUEST"):
        super().__init__(message)
        self.message = message
        self.code = code


def _as_datetime(value: datetime | str | None, label: str) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ReportError(f"{label} must be an ISO-8601 datetime")


def sales_report(start: datetime | str, end: datetime | str) -> list[dict]:
    """
    Tickets created within [start, end] (both inclusive), oldest first.

    Prices stay in cents; callers convert for display.
    """
    start_dt = _as_datetime(start, "startDate")
    end_dt = _as_datetime(end, "endDate")
    if start_dt is None or end_dt is None:
        raise ReportError("startDate and endDate are required")
    if start_dt > end_dt:
        raise ReportError("startDate must be before endDate")

    rows = (
        db.session.query(Ticket, TicketType.name, Customer.name)
        .outerjoin(TicketType, TicketType.id == Ticket.ticket_type_id)
        .outerjoin(Customer, Customer.id == Ticket.customer_id)
        .filter(Ticket.created_at >= start_dt, Ticket.created_at <= end_dt)
        .order_by(Ticket.created_at.asc(), Ticket.id.asc())
        .all()
    )

    report = []
    for ticket, ticket_type_name, customer_name in rows:
        row = ticket.to_dict()
        row["ticketTypeName"] = ticket_type_name
        row["customerName"] = customer_name
        report.append(row)
    return report


def sales_stats(start: datetime | str | None = None, end: datetime | str | None = None) -> dict:
    """
    Aggregate ticket stats; money in cents.

    Each supplied bound filters on its own (inclusive). Sales and revenue
    count every ticket that is not cancelled; used tickets were sold too.
    """
    start_dt = _as_datetime(start, "startDate")
    end_dt = _as_datetime(end, "endDate")

    not_cancelled = Ticket.status != "cancelled"

    def _count_where(cond):
        return func.coalesce(func.sum(case((cond, 1), else_=0)), 0)

    def _sum_where(cond):
        return func.coalesce(func.sum(case((cond, Ticket.price), else_=0)), 0)

    columns = [
        _count_where(not_cancelled).label("total_sales"),
        _sum_where(not_cancelled).label("total_revenue"),
        _count_where(Ticket.status == "cancelled").label("total_cancelled"),
        _count_where(Ticket.status == "used").label("total_used"),
        _count_where(Ticket.status == "active").label("total_active"),
    ]
    for method in PAYMENT_METHODS:
        paid_with = (Ticket.payment_method == method) & not_cancelled
        columns.append(_count_where(paid_with).label(f"{method}_count"))
        columns.append(_sum_where(paid_with).label(f"{method}_total"))

    query = db.session.query(*columns)
    if start_dt is not None:
        query = query.filter(Ticket.created_at >= start_dt)
    if end_dt is not None:
        query = query.filter(Ticket.created_at <= end_dt)

    row = query.one()._mapping

    return {
        "totalSales": int(row["total_sales"]),
        "totalRevenue": int(row["total_revenue"]),
        "totalCancelled": int(row["total_cancelled"]),
        "totalUsed": int(row["total_used"]),
        "totalActive": int(row["total_active"]),
        "paymentMethods": {
            method: {
                "count": int(row[f"{method}_count"]),
                "total": int(row[f"{method}_total"]),
            }
            for method in PAYMENT_METHODS
        },
        "startDate": to_utc_z(start_dt),
        "endDate": to_utc_z(end_dt),
    }


def format_brl(cents: int) -> str:
    return f"R$ {cents / 100:.2f}"


def sales_csv(start: datetime | str, end: datetime | str) -> str:
    """Sales report as CSV text, prefixed with a UTF-8 BOM for spreadsheet apps."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)

    for row in sales_report(start, end):
        created = parse_iso_datetime(row["createdAt"])
        writer.writerow([
            row["id"],
            format_brl(row["price"]),
            row["paymentMethod"],
            row["status"],
            created.strftime("%d/%m/%Y") if created else "",
            created.strftime("%H:%M:%S") if created else "",
        ])

    return "\ufeff" + buffer.getvalue()
