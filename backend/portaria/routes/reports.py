# Overview: Flask API routes for report exports.

from flask import Blueprint, Response, current_app, request

from ..decorators import require_auth
from ..errors import error_response
from ..services import reporting_service
from ..services.reporting_service import ReportError
from portaria.time_utils import utcnow


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/sales.csv")
@require_auth
def sales_csv_route():
    """
    Sales report as a CSV download.

    Query params:
    - start: ISO datetime (required)
    - end: ISO datetime (required)
    """
    start = request.args.get("start")
    end = request.args.get("end")
    if not start or not end:
        return error_response("start and end are required", "BAD_REQUEST")

    try:
        body = reporting_service.sales_csv(start, end)
    except ReportError as exc:
        return error_response(exc.message, exc.code)
    except Exception:
        current_app.logger.exception("Failed to export sales CSV")
        return error_response("Internal server error", "INTERNAL_SERVER_ERROR")

    filename = f"relatorio-vendas-{utcnow().strftime('%Y-%m-%d')}.csv"
    return Response(
        body,
        mimetype="text/csv",
        headers={
            "Content-Type": "text/csv; charset=utf-8",
            "Content-Disposition": f'attachment; filename="{filename}"',
        },
    )
