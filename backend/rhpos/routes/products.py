# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/rhpos/routes/products.py
"""
Product catalog, stock and image routes.

MULTI-TENANT: every handler passes g.tenant_scope to the service layer.
Product ids in paths are public tokens; a token from another deployment is
400, a product of another tenant is 404.
"""

from flask import Blueprint, Response, g, jsonify, request

from ..decorators import require_auth
from ..errors import PosError, ValidationError
from ..services import products_service
from ..services.identifier_service import get_codec
from ..services.products_service import ProductPatch, product_to_dict
from .common import error_response, internal_error, json_body, paginated, pagination_args

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products_route():
    """
    List the tenant's products, ordered by name.

    Query params:
    - page: int (default 1)
    - per_page: int (default 10, max 100); limit is accepted as an alias
    """
    try:
        page, per_page = pagination_args()
        items, total = products_service.list_products(g.tenant_scope, page, per_page)
        codec = get_codec()
        return jsonify(paginated([product_to_dict(p, codec) for p in items], total, page, per_page)), 200
    except PosError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to list products")


@products_bp.post("")
@require_auth
def create_product_route():
    """
    Create a product.

    Request body:
    {
        "name": "Nasi Goreng",     // required
        "sku": "NAS001",           // required, unique per tenant
        "cost_price": 8000,        // required, >= 0, two decimals max
        "sale_price": 12000,       // required, >= 0, two decimals max
        "stock": 50                // optional, default 0
    }
    """
    try:
        patch = ProductPatch.for_create(json_body())
        product = products_service.create_product(g.tenant_scope, patch)
        return jsonify(product_to_dict(product, get_codec())), 201
    except PosError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to create product")


@products_bp.get("/<product_token>")
@require_auth
def get_product_route(product_token: str):
    try:
        codec = get_codec()
        product = products_service.get_product(g.tenant_scope, codec.decode(product_token))
        return jsonify(product_to_dict(product, codec)), 200
    except PosError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to load product")


@products_bp.put("/<product_token>")
@require_auth
def update_product_route(product_token: str):
    """Partial update of name, sku, cost_price and sale_price."""
    try:
        codec = get_codec()
        product_id = codec.decode(product_token)
        patch = ProductPatch.for_update(json_body())
        if patch.is_empty():
            return jsonify({"error": "No fields to update"}), 400

        product = products_service.update_product(g.tenant_scope, product_id, patch)
        return jsonify(product_to_dict(product, codec)), 200
    except PosError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to update product")


@products_bp.delete("/<product_token>")
@require_auth
def delete_product_route(product_token: str):
    try:
        products_service.delete_product(g.tenant_scope, get_codec().decode(product_token))
        return jsonify({"ok": True}), 200
    except PosError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to delete product")


@products_bp.put("/<product_token>/stock")
@require_auth
def set_stock_route(product_token: str):
    """Set absolute stock. Body: {"stock": 25}"""
    try:
        codec = get_codec()
        product_id = codec.decode(product_token)
        data = json_body()
        if "stock" not in data:
            return jsonify({"error": "stock required"}), 400

        product = products_service.set_stock(g.tenant_scope, product_id, data["stock"])
        return jsonify(product_to_dict(product, codec)), 200
    except PosError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to set stock")


@products_bp.post("/<product_token>/upload-url")
@require_auth
def upload_url_route(product_token: str):
    """Presigned PUT URL for a new image. Body: {"extension": "jpg"}"""
    try:
        codec = get_codec()
        product_id = codec.decode(product_token)
        ext = json_body().get("extension")
        if not ext:
            return jsonify({"error": "extension required"}), 400

        url = products_service.product_upload_url(g.tenant_scope, product_id, ext, codec)
        return jsonify({"upload_url": url}), 200
    except PosError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to create upload URL")


@products_bp.post("/<product_token>/image")
@require_auth
def upload_image_route(product_token: str):
    """Multipart upload; the file goes in the "image" field."""
    try:
        codec = get_codec()
        product_id = codec.decode(product_token)
        upload = request.files.get("image")
        if upload is None:
            raise ValidationError("Image file is required")

        product = products_service.upload_product_image(
            g.tenant_scope, product_id, upload.read(), upload.mimetype, codec
        )
        return jsonify(product_to_dict(product, codec)), 200
    except PosError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to upload product image")


@products_bp.get("/<product_token>/image/bytes")
@require_auth
def image_bytes_route(product_token: str):
    try:
        codec = get_codec()
        data, content_type = products_service.product_image_bytes(
            g.tenant_scope, codec.decode(product_token), codec
        )
        response = Response(data, status=200, mimetype=content_type)
        response.headers["Cache-Control"] = "private, max-age=3600"
        return response
    except PosError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to load product image")
