# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/rhpos/routes/sales.py
"""Transaction (sale) API routes"""

from flask import Blueprint, g, jsonify

from ..decorators import require_auth
from ..errors import PosError
from ..services import sales_service
from ..services.identifier_service import get_codec
from ..services.sales_service import SaleRequest
from .common import error_response, internal_error, json_body, paginated, pagination_args


sales_bp = Blueprint("sales", __name__, url_prefix="/api/transactions")


@sales_bp.post("")
@require_auth
def create_sale_route():
    """
    Create a completed sale in one atomic step.

    Request body:
    {
        "items": [{"product_id": "<token>", "quantity": 2}],
        "cashier": "kasir1",
        "payment_method": "cash",
        "discount": 10,           // percent, optional
        "total_price": 21600,     // must equal the server-computed total
        "notes": "..."            // optional
    }

    409 on insufficient stock or total mismatch; nothing is written then.
    """
    try:
        codec = get_codec()
        sale_request = SaleRequest.from_payload(json_body(), codec)
        sale = sales_service.create_sale(g.tenant_scope, sale_request)
        return jsonify(sale.to_dict(codec)), 201
    except PosError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to create transaction")


@sales_bp.get("")
@require_auth
def list_sales_route():
    """Newest first. Query params: page, per_page (default 10, max 100)."""
    try:
        page, per_page = pagination_args()
        items, total = sales_service.list_sales(g.tenant_scope, page, per_page)
        codec = get_codec()
        return jsonify(paginated([s.to_dict(codec) for s in items], total, page, per_page)), 200
    except PosError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to list transactions")


@sales_bp.get("/<sale_token>")
@require_auth
def get_sale_route(sale_token: str):
    try:
        codec = get_codec()
        sale = sales_service.get_sale(g.tenant_scope, codec.decode(sale_token))
        return jsonify(sale.to_dict(codec)), 200
    except PosError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to load transaction")
