# Overview: Error taxonomy shared by services and routes.

"""
Domain and infrastructure errors.

Every error carries the HTTP status the routes answer with and a ``details``
dict the client can act on. Infrastructure errors (PersistenceFailure,
StorageError) keep their context for the server log but expose only a generic
message through ``public_message``.
"""

from __future__ import annotations


class PosError(Exception):
    """Base class for all errors raised by the service layer."""

    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def public_message(self) -> str:
        return self.message

    def to_dict(self) -> dict:
        payload = {"error": self.public_message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(PosError):
    """400-level input problem, raised before any mutation begins."""

    status_code = 400


class EmptySaleError(ValidationError):
    def __init__(self):
        super().__init__("Transaction must have at least one item")


class InvalidTokenFormatError(PosError):
    """A public identifier that this deployment did not mint."""

    status_code = 400

    def __init__(self, token: object = None):
        super().__init__("Invalid identifier format")
        self.token = token


class AuthenticationError(PosError):
    status_code = 401


class MissingTenantScopeError(PosError):
    """A tenant-bound operation was invoked without a tenant."""

    status_code = 403

    def __init__(self, operation: str | None = None):
        super().__init__("Tenant context not established")
        self.operation = operation


class NotFoundError(PosError):
    status_code = 404

    def __init__(self, entity: str, message: str | None = None):
        super().__init__(message or f"{entity} not found")
        self.entity = entity


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_ref: str | None = None):
        details = {"product_id": product_ref} if product_ref else None
        super().__init__("Product")
        self.details = details or {}


class ConflictError(PosError):
    """409-level business rule conflict."""

    status_code = 409


class DuplicateSKUError(ConflictError):
    def __init__(self, sku: str):
        super().__init__(f"Product with SKU {sku} already exists", details={"sku": sku})
        self.sku = sku


class InsufficientStockError(ConflictError):
    def __init__(self, product_name: str, requested: int, available: int, product_ref: str | None = None):
        details = {
            "product": product_name,
            "requested": requested,
            "available": available,
        }
        if product_ref:
            details["product_id"] = product_ref
        super().__init__(
            f"insufficient stock for product {product_name}: "
            f"requested {requested}, available {available}",
            details=details,
        )
        self.product_name = product_name
        self.requested = requested
        self.available = available


class TotalMismatchError(ConflictError):
    def __init__(self, claimed, calculated):
        super().__init__(
            f"total price mismatch: provided {claimed}, calculated {calculated}",
            details={"provided": str(claimed), "calculated": str(calculated)},
        )
        self.claimed = claimed
        self.calculated = calculated


class PersistenceFailure(PosError):
    """Underlying store error, wrapped with the operation that failed."""

    status_code = 500

    def __init__(self, operation: str, cause: BaseException | None = None):
        super().__init__(f"{operation} failed: {cause}" if cause else f"{operation} failed")
        self.operation = operation
        self.cause = cause

    @property
    def public_message(self) -> str:
        return "Internal server error"

    def to_dict(self) -> dict:
        return {"error": self.public_message}


class StorageError(PosError):
    """Object-storage failure for a given operation and key."""

    status_code = 502

    def __init__(self, op: str, key: str | None, cause: BaseException | None = None):
        if key:
            message = f"{op} {key}: {cause}"
        else:
            message = f"{op}: {cause}"
        super().__init__(message)
        self.op = op
        self.key = key
        self.cause = cause

    @property
    def public_message(self) -> str:
        return "Object storage unavailable"

    def to_dict(self) -> dict:
        return {"error": self.public_message}
