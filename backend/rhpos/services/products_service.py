# Overview: Service-layer operations for products; tenant-scoped catalog and stock ledger.

"""
Products Service with Multi-Tenant Support

MULTI-TENANT: every operation takes an explicit TenantScope.
- reads go through scoped_query / scoped_get
- creates stamp tenant_id from the scope
- updates and deletes load the row through the scoped query first

STOCK: the counter changes in exactly three places: create (initial stock),
set_stock (absolute, admin correction) and adjust_stock (relative, used by
sales). adjust_stock is a single guarded UPDATE so concurrent writers can
never drive stock below zero.
"""
from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..errors import (
    ConflictError,
    DuplicateSKUError,
    InsufficientStockError,
    NotFoundError,
    PersistenceFailure,
    ProductNotFoundError,
    ValidationError,
)
from ..models import Product, TransactionItem
from ..validation import (
    ModelValidationPolicy,
    clamp_pagination,
    enforce_rules_product,
    parse_int,
    validate_payload,
)
from .identifier_service import IdentifierCodec
from .storage_service import (
    PRESIGNED_GET_TTL_SECONDS,
    PRESIGNED_PUT_TTL_SECONDS,
    get_storage,
    key_belongs_to_tenant,
    normalize_extension,
    product_image_key,
)
from .tenant_service import TenantScope, require_scope, scoped_get, scoped_query, stamp_tenant

logger = logging.getLogger(__name__)


PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "sku", "cost_price", "sale_price", "stock"},
    required_on_create={"name", "sku", "cost_price", "sale_price"},
)

# Stock is not part of a regular update; it moves through set_stock/adjust_stock
PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "sku", "cost_price", "sale_price"},
)

IMAGE_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


@dataclass
class ProductPatch:
    """Typed partial product. None means "leave unchanged"."""

    name: Optional[str] = None
    sku: Optional[str] = None
    cost_price: Optional[Decimal] = None
    sale_price: Optional[Decimal] = None
    stock: Optional[int] = None

    @classmethod
    def for_create(cls, payload: dict) -> "ProductPatch":
        clean = validate_payload(model=Product, payload=payload, policy=PRODUCT_CREATE_POLICY, partial=False)
        enforce_rules_product(clean)
        return cls(**clean)

    @classmethod
    def for_update(cls, payload: dict) -> "ProductPatch":
        clean = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
        enforce_rules_product(clean)
        return cls(**clean)

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


def apply_product_patch(product: Product, patch: ProductPatch) -> None:
    for f in fields(ProductPatch):
        value = getattr(patch, f.name)
        if value is not None:
            setattr(product, f.name, value)


def _sku_taken(tenant_id: int, sku: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(Product.id).filter(Product.tenant_id == tenant_id, Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    return query.first() is not None


def get_product(scope: TenantScope, product_id: int) -> Product:
    return scoped_get(Product, scope, product_id, entity="Product")


def list_products(scope: TenantScope, page: int | None = None, per_page: int | None = None) -> tuple[list[Product], int]:
    """
    Tenant-scoped product listing, ordered by name then id.

    Returns:
        (items for the requested page, total count for the tenant)
    """
    page, per_page = clamp_pagination(page, per_page)
    base_query = scoped_query(Product, scope)

    total = base_query.count()
    items = (
        base_query.order_by(Product.name.asc(), Product.id.asc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return items, total


def create_product(scope: TenantScope, patch: ProductPatch) -> Product:
    """
    Create a product in the scope's tenant.

    Raises:
        MissingTenantScopeError: scope carries no tenant
        ValidationError: required fields missing
        DuplicateSKUError: SKU already exists for this tenant
    """
    tenant_id = require_scope(scope, "create product")
    if not patch.name or not patch.sku or patch.cost_price is None or patch.sale_price is None:
        raise ValidationError("name, sku, cost_price and sale_price are required")

    if _sku_taken(tenant_id, patch.sku):
        raise DuplicateSKUError(patch.sku)

    product = Product(stock=0)
    stamp_tenant(product, scope, "create product")
    apply_product_patch(product, patch)

    db.session.add(product)
    try:
        db.session.commit()
    except IntegrityError:
        # Concurrent insert of the same SKU slipped past the pre-check
        db.session.rollback()
        raise DuplicateSKUError(patch.sku)
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("failed to create product tenant_id=%s sku=%s", tenant_id, patch.sku)
        raise PersistenceFailure("create product", exc) from exc

    logger.info("product created id=%s tenant_id=%s sku=%s", product.id, tenant_id, product.sku)
    return product


def update_product(scope: TenantScope, product_id: int, patch: ProductPatch) -> Product:
    product = get_product(scope, product_id)

    if patch.sku is not None and patch.sku != product.sku and _sku_taken(product.tenant_id, patch.sku, product.id):
        raise DuplicateSKUError(patch.sku)

    apply_product_patch(product, patch)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateSKUError(patch.sku or product.sku)
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("failed to update product id=%s", product_id)
        raise PersistenceFailure("update product", exc) from exc

    return product


def set_stock(scope: TenantScope, product_id: int, stock) -> Product:
    """Absolute stock correction; the new value must be >= 0."""
    stock = parse_int(stock, "stock")
    if stock < 0:
        raise ValidationError("stock must be >= 0")

    product = get_product(scope, product_id)
    product.stock = stock
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("failed to set stock product_id=%s", product_id)
        raise PersistenceFailure("set stock", exc) from exc

    logger.info("stock set product_id=%s tenant_id=%s stock=%s", product.id, product.tenant_id, stock)
    return product


def adjust_stock(scope: TenantScope, product_id: int, delta: int, *, commit: bool = False) -> Product:
    """
    Relative stock change as one guarded statement:

        UPDATE products SET stock = stock + :delta
        WHERE id = :id AND tenant_id = :tenant AND stock + :delta >= 0

    Zero affected rows means the product is not in this tenant or the
    change would go negative. With commit=False the change joins the caller's
    open transaction (see sales_service.create_sale).
    """
    tenant_id = require_scope(scope, "adjust stock")
    delta = parse_int(delta, "delta")

    updated = (
        db.session.query(Product)
        .filter(
            Product.id == product_id,
            Product.tenant_id == tenant_id,
            Product.stock + delta >= 0,
        )
        .update({Product.stock: Product.stock + delta}, synchronize_session="fetch")
    )

    if updated == 0:
        product = scoped_query(Product, scope).filter(Product.id == product_id).first()
        if product is None:
            raise ProductNotFoundError()
        raise InsufficientStockError(product.name, requested=-delta, available=product.stock)

    product = get_product(scope, product_id)
    if commit:
        db.session.commit()
    return product


def delete_product(scope: TenantScope, product_id: int) -> None:
    """
    Delete a product of the scope's tenant.

    Sales history is immutable, so a product that appears on any sale line
    cannot be deleted.
    """
    product = get_product(scope, product_id)

    referenced = (
        db.session.query(TransactionItem.id)
        .filter(TransactionItem.product_id == product.id)
        .first()
    )
    if referenced is not None:
        raise ConflictError("Product is referenced by existing transactions")

    db.session.delete(product)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("failed to delete product id=%s", product_id)
        raise PersistenceFailure("delete product", exc) from exc

    logger.info("product deleted id=%s tenant_id=%s", product_id, scope.tenant_id)


# ---------------------------------------------------------------------------
# Images (object storage)
# ---------------------------------------------------------------------------

def product_image_url(product: Product) -> str | None:
    """Presigned GET URL for the product image, valid for one hour."""
    if not product.image_ref:
        return None
    return get_storage().presign(product.image_ref, PRESIGNED_GET_TTL_SECONDS, for_upload=False)


def product_upload_url(scope: TenantScope, product_id: int, ext: str, codec: IdentifierCodec) -> str:
    """
    Presigned PUT URL (15 minutes) for a new product image.

    The generated key is recorded on the product right away so the image is
    visible as soon as the client finishes its upload.
    """
    product = get_product(scope, product_id)
    key = product_image_key(codec, product.tenant_id, product.id, ext)
    url = get_storage().presign(key, PRESIGNED_PUT_TTL_SECONDS, for_upload=True)

    product.image_ref = key
    db.session.commit()
    logger.info("product image upload url issued product_id=%s key=%s", product.id, key)
    return url


def upload_product_image(
    scope: TenantScope,
    product_id: int,
    data: bytes,
    content_type: str | None,
    codec: IdentifierCodec,
) -> Product:
    """Store image bytes under the tenant's prefix and point the product at them."""
    if not data:
        raise ValidationError("Image file is required")
    content_type = (content_type or "").split(";", 1)[0].strip().lower()
    ext = IMAGE_CONTENT_TYPES.get(content_type)
    if ext is None:
        raise ValidationError(f"Unsupported image type: {content_type or 'unknown'}")

    product = get_product(scope, product_id)
    key = product_image_key(codec, product.tenant_id, product.id, ext)
    get_storage().put(key, data, content_type)

    product.image_ref = key
    db.session.commit()
    logger.info("product image uploaded product_id=%s key=%s bytes=%s", product.id, key, len(data))
    return product


def product_image_bytes(scope: TenantScope, product_id: int, codec: IdentifierCodec) -> tuple[bytes, str]:
    """Image bytes and content type for a product of the scope's tenant."""
    product = get_product(scope, product_id)
    if not product.image_ref or not key_belongs_to_tenant(codec, product.tenant_id, product.image_ref):
        raise NotFoundError("Product image")

    data = get_storage().get(product.image_ref)
    content_type = mimetypes.guess_type(f"x.{normalize_extension(product.image_ref)}")[0]
    return data, content_type or "application/octet-stream"


def product_to_dict(product: Product, codec: IdentifierCodec) -> dict:
    payload = product.to_dict(codec)
    payload["image_url"] = product_image_url(product)
    return payload
