# Overview: Flask API routes for reports; parses input and returns JSON responses.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_action, require_auth
from ..errors import ValidationError
from ..permissions import Action
from ..services import reporting_service
from ..time_utils import parse_report_window

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/summary")
@require_auth
@require_action(Action.VIEW_REPORTS)
def sales_summary():
    """
    KPI summary over the request scope.

    Query params: start, end (ISO-8601; a date-only end includes that day), scope.
    """
    try:
        start, end = parse_report_window(request.args.get("start"), request.args.get("end"))
    except ValueError as exc:
        raise ValidationError(f"Invalid report window: {exc}")
    summary = reporting_service.sales_summary(g.scope, start=start, end=end)
    return jsonify(summary), 200
