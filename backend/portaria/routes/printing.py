# Overview: Printable pages; 58mm thermal ticket, thermal sales summary and the public digital pass.

from flask import Blueprint, abort, current_app, render_template, request

from ..decorators import require_auth
from ..errors import error_response
from ..services import access_service, qr_service, reporting_service, ticket_service
from ..services.reporting_service import ReportError, format_brl
from portaria.time_utils import parse_iso_datetime, utcnow


printing_bp = Blueprint("printing", __name__)

PAYMENT_LABELS = {"dinheiro": "Dinheiro", "pix": "PIX", "cartao": "Cartão"}


def _format_date(dt) -> str:
    return dt.strftime("%d/%m/%Y") if dt else ""


def _format_datetime(dt) -> str:
    return dt.strftime("%d/%m/%Y %H:%M") if dt else ""


@printing_bp.get("/print/tickets/<int:ticket_id>")
@require_auth
def print_ticket(ticket_id: int):
    """Thermal ticket for one sale. Does not stamp printed_at; call tickets.markPrinted."""
    ticket = ticket_service.get_ticket(ticket_id)
    if ticket is None:
        return error_response("Ticket not found", "NOT_FOUND")

    qr_image = qr_service.qr_png_data_uri(ticket.qr_token) if ticket.qr_token else None
    return render_template(
        "thermal_ticket.html",
        event_name=current_app.config.get("EVENT_NAME"),
        validity_hours=current_app.config.get("TICKET_VALIDITY_HOURS", 12),
        ticket_id=ticket.id,
        customer_name=ticket.customer.name if ticket.customer else None,
        ticket_type=ticket.ticket_type.name if ticket.ticket_type else None,
        price=format_brl(ticket.price),
        date=_format_date(ticket.created_at),
        valid_until=_format_datetime(ticket.valid_until),
        qr_image=qr_image,
    )


@printing_bp.get("/print/report")
@require_auth
def print_report():
    """
    Thermal sales summary.

    Query params (optional, ISO datetimes): start, end
    """
    try:
        stats = reporting_service.sales_stats(request.args.get("start"), request.args.get("end"))
    except ReportError as exc:
        return error_response(exc.message, exc.code)

    methods = [
        {
            "label": PAYMENT_LABELS[method],
            "count": bucket["count"],
            "total": format_brl(bucket["total"]),
        }
        for method, bucket in stats["paymentMethods"].items()
    ]

    return render_template(
        "thermal_report.html",
        event_name=current_app.config.get("EVENT_NAME"),
        start=_format_datetime(parse_iso_datetime(stats["startDate"])),
        end=_format_datetime(parse_iso_datetime(stats["endDate"])),
        total_sales=stats["totalSales"],
        total_revenue=format_brl(stats["totalRevenue"]),
        total_cancelled=stats["totalCancelled"],
        total_used=stats["totalUsed"],
        total_active=stats["totalActive"],
        methods=methods,
        generated_at=_format_datetime(utcnow()),
    )


@printing_bp.get("/ticket/<token>")
def public_ticket(token: str):
    """Digital pass opened from the link or QR code handed to the buyer."""
    info = access_service.ticket_info(token)
    if info is None:
        abort(404)

    return render_template(
        "public_ticket.html",
        event_name=current_app.config.get("EVENT_NAME"),
        ticket=info,
        valid_until=_format_datetime(parse_iso_datetime(info["validUntil"])),
        created_at=_format_datetime(parse_iso_datetime(info["createdAt"])),
        qr_image=qr_service.qr_png_data_uri(info["qrToken"], box_size=8),
    )
