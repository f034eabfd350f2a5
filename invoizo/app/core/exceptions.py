"""Domain exceptions and their HTTP mapping.

Services raise these; the handlers registered in ``main.py`` turn them into
JSON responses with the same ``{"detail": ...}`` shape that ``HTTPException``
produces, plus a short ``error`` title.
"""

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class InvoizoError(Exception):
    """Base class for errors raised by the invoice core."""

    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvoiceValidationError(InvoizoError):
    status_code = 400
    error = "Bad Request"


class InvalidStatusTransition(InvoiceValidationError):
    def __init__(self, from_status: Any, to_status: Any):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid status transition from {_status_name(from_status)} to {_status_name(to_status)}"
        )


class InvoiceNotFound(InvoizoError):
    status_code = 404
    error = "Not Found"

    def __init__(self, invoice_id: Any):
        self.invoice_id = invoice_id
        super().__init__(f"Invoice not found with id: {invoice_id}")


class AuthorizationError(InvoizoError):
    status_code = 403
    error = "Forbidden"


class DatabaseConnectionError(InvoizoError):
    status_code = 503
    error = "Service Unavailable"

    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable


class ExportGenerationError(InvoizoError):
    error = "Export Failed"


class EncryptionError(InvoizoError):
    error = "Encryption Failed"


class EmailDeliveryError(InvoizoError):
    error = "Email Delivery Failed"


def _status_name(status: Any) -> str:
    if status is None:
        return "None"
    return getattr(status, "value", str(status))


def _error_body(exc: InvoizoError) -> Dict[str, Any]:
    if isinstance(exc, DatabaseConnectionError):
        return {
            "detail": "Database connection error. Please try again later.",
            "error": exc.error,
            "retryable": exc.retryable,
        }
    return {"detail": exc.message, "error": exc.error}


async def invoizo_error_handler(request: Request, exc: InvoizoError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InvoizoError, invoizo_error_handler)
