# Overview: Flask API routes for reports operations; parses input and returns JSON responses.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth
from ..errors import PosError
from ..services.identifier_service import get_codec
from ..services.reporting_service import sales_report
from .common import error_response, internal_error
from rhpos.time_utils import parse_calendar_date

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("")
@require_auth
def sales_report_route():
    """
    Sales report for a date range.

    Query params (both required, YYYY-MM-DD, inclusive, UTC):
    - start_date
    - end_date
    """
    try:
        start = parse_calendar_date(request.args.get("start_date"))
        end = parse_calendar_date(request.args.get("end_date"))
    except ValueError:
        return jsonify({"error": "Invalid date format, use YYYY-MM-DD"}), 400

    if start is None or end is None:
        return jsonify({"error": "start_date and end_date required"}), 400

    try:
        report = sales_report(g.tenant_scope, start, end, get_codec())
        return jsonify(report), 200
    except PosError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to build sales report")
