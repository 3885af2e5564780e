"""Custom exceptions and error handlers for the POS engine."""
from decimal import Decimal
from typing import Union

from fastapi import Request, status
from fastapi.responses import JSONResponse
import traceback

from .logging_config import get_logger

logger = get_logger("errors")


def _plain(value):
    """Make Decimal values JSON friendly for error details."""
    if isinstance(value, Decimal):
        return str(value)
    return value


class AppException(Exception):
    """Base exception for application-specific errors."""

    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = {k: _plain(v) for k, v in (details or {}).items()}
        super().__init__(self.message)


class ProductNotFoundError(AppException):
    """Raised when a scanned or requested product is not in the catalog."""

    def __init__(self, identifier: Union[int, str]):
        super().__init__(
            message=f"Product with identifier '{identifier}' not found",
            status_code=404,
            details={"resource": "product", "identifier": str(identifier)}
        )


class LineNotFoundError(AppException):
    """Raised when a cart line id is unknown."""

    def __init__(self, line_id: str):
        super().__init__(
            message=f"Cart line '{line_id}' not found",
            status_code=404,
            details={"resource": "cart_line", "identifier": str(line_id)}
        )


class CartNotFoundError(AppException):
    """Raised when a cart id is unknown to the registry."""

    def __init__(self, cart_id: str):
        super().__init__(
            message=f"Cart '{cart_id}' not found",
            status_code=404,
            details={"resource": "cart", "identifier": str(cart_id)}
        )


class InvalidManualEntryError(AppException):
    """Raised when a manually entered batch weight or price is not positive."""

    def __init__(self, weight, price):
        super().__init__(
            message="Weight and price must both be greater than 0",
            status_code=422,
            details={"weight": weight, "price": price}
        )


class InvalidQuantityError(AppException):
    """Raised when a quantity is out of range or cannot be changed."""

    def __init__(self, message: str, quantity=None):
        super().__init__(
            message=message,
            status_code=422,
            details={"quantity": quantity}
        )


class BatchRequiredError(AppException):
    """Raised when a vacuum-packed product is added without package data."""

    def __init__(self, product_name: str):
        super().__init__(
            message=f"{product_name} is sold by package, select or scan a batch",
            status_code=422,
            details={"product": product_name}
        )


class BatchUnavailableError(AppException):
    """Raised when the selected batch is sold, reserved or already in the cart."""

    def __init__(self, batch_id: str):
        super().__init__(
            message=f"Batch '{batch_id}' is not available",
            status_code=409,
            details={"batch_id": batch_id}
        )


class InsufficientStockError(AppException):
    """Raised when a unit-tracked product has no units left for this cart."""

    def __init__(self, product_name: str, available):
        super().__init__(
            message=f"Insufficient stock for {product_name}. Available: {available}",
            status_code=409,
            details={"product": product_name, "available": available}
        )


class InvalidDiscountError(AppException):
    """Raised when a discount amount is outside [0, max]."""

    def __init__(self, amount, maximum):
        super().__init__(
            message=f"Discount must be between 0 and {maximum}",
            status_code=422,
            details={"amount": amount, "min": Decimal("0"), "max": maximum}
        )


class InvalidPriceError(AppException):
    """Raised when a unit price override is not positive."""

    def __init__(self, price):
        super().__init__(
            message="Unit price must be greater than 0",
            status_code=422,
            details={"price": price}
        )


class InsufficientPaymentError(AppException):
    """Raised when the tendered amount does not cover the cart total."""

    def __init__(self, total, tendered):
        super().__init__(
            message=f"Insufficient payment. Missing Bs {total - tendered}",
            status_code=422,
            details={"total": total, "tendered": tendered}
        )


class InvalidPaymentError(AppException):
    """Raised when a payment split cannot be recorded."""

    def __init__(self, message: str, amount, total):
        super().__init__(
            message=message,
            status_code=422,
            details={"amount": amount, "total": total}
        )


class EmptyCartError(AppException):
    """Raised when settling a cart without lines."""

    def __init__(self):
        super().__init__(message="Cannot settle an empty cart", status_code=422)


class BatchCreationError(AppException):
    """Raised when a phantom batch cannot be registered at settlement."""

    def __init__(self, line_id: str, original_error: str = None):
        super().__init__(
            message="Batch registration failed, settlement aborted",
            status_code=502,
            details={"line_id": line_id, "original_error": original_error}
        )


class ReservationConflictError(AppException):
    """Raised when a batch was sold or reserved by another terminal."""

    def __init__(self, line_id: str, batch_id: str):
        super().__init__(
            message=f"Batch '{batch_id}' is no longer available, rescan the package",
            status_code=409,
            details={"line_id": line_id, "batch_id": batch_id}
        )


async def app_exception_handler(request: Request, exc: AppException):
    """Handler for custom application exceptions."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"Application error: {exc.message}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "details": exc.details,
            "path": request.url.path
        }
    )


async def generic_exception_handler(request: Request, exc: Exception):
    """Handler for unexpected exceptions."""
    logger.critical(
        f"Unhandled exception: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
            "traceback": traceback.format_exc()
        },
        exc_info=True
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please contact support if the issue persists.",
            "path": request.url.path
        }
    )
