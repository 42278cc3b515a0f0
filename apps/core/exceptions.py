"""
Domain errors for the POS and the DRF exception handler that maps them to
HTTP responses.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class POSError(Exception):
    """Base class for every error raised by the POS services."""

    code = "pos_error"
    title = "Something went wrong"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message="", **context):
        super().__init__(message or self.title)
        self.message = message or self.title
        self.context = context

    def as_dict(self):
        data = {"detail": self.message, "code": self.code}
        if self.context:
            data.update(self.context)
        return data


class ValidationError(POSError):
    """Missing or malformed input (customer fields, size selection, ...)."""

    code = "validation_error"
    title = "Invalid input"


class StockExceededError(POSError):
    """Requested cart quantity exceeds the last known stock."""

    code = "stock_exceeded"
    title = "Max stock reached"


class EmptyCartError(POSError):
    code = "empty_cart"
    title = "Cart is empty"


class InsufficientStockError(POSError):
    """Stock decrement lost a race against another sale."""

    code = "insufficient_stock"
    title = "Insufficient stock"
    status_code = status.HTTP_409_CONFLICT


class AuthenticationRequiredError(POSError):
    code = "authentication_required"
    title = "Authentication required"
    status_code = status.HTTP_401_UNAUTHORIZED


class PersistenceError(POSError):
    """A write to the bill store failed."""

    code = "persistence_error"
    title = "Could not save the bill"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class ProductNotFoundError(POSError):
    code = "product_not_found"
    title = "Product not found"
    status_code = status.HTTP_404_NOT_FOUND


def pos_exception_handler(exc, context):
    """
    DRF exception handler.

    POS errors become JSON responses with their own status code; everything
    else falls through to the default DRF handler.
    """
    if isinstance(exc, POSError):
        view = context.get("view")
        logger.warning(
            f"{exc.__class__.__name__} in {view.__class__.__name__ if view else 'unknown view'}: "
            f"{exc.message}"
        )
        return Response(exc.as_dict(), status=exc.status_code)

    return exception_handler(exc, context)
