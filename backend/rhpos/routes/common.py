# Overview: Shared response helpers for the API blueprints.

from flask import current_app, jsonify, request

from ..errors import PosError
from ..validation import clamp_pagination


def error_response(exc: PosError):
    """JSON body + status for a service-layer error; server-side failures are logged with context."""
    if exc.status_code >= 500:
        current_app.logger.error("%s: %s", type(exc).__name__, exc)
    return jsonify(exc.to_dict()), exc.status_code


def internal_error(message: str):
    current_app.logger.exception(message)
    return jsonify({"error": "Internal server error"}), 500


def pagination_args() -> tuple[int, int]:
    """page / per_page query params (limit accepted as an alias), clamped."""
    page = request.args.get("page", type=int)
    per_page = request.args.get("per_page", type=int)
    if per_page is None:
        per_page = request.args.get("limit", type=int)
    return clamp_pagination(page, per_page)


def paginated(items: list, total: int, page: int, per_page: int) -> dict:
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    return {
        "items": items,
        "count": len(items),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
