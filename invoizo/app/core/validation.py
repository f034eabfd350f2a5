"""Input validation helpers shared by the services and the API layer."""

import re
from typing import Optional

from invoizo.app.core.enums import InvoiceStatus
from invoizo.app.core.exceptions import AuthorizationError, InvoiceValidationError

GST_NUMBER_PATTERN = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z]{1}[1-9A-Z]{1}Z[0-9A-Z]{1}$")
EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9_+&*-]+(?:\.[a-zA-Z0-9_+&*-]+)*@(?:[a-zA-Z0-9-]+\.)+[a-zA-Z]{2,7}$"
)
SUPPORTED_EXPORT_FORMATS = ("excel", "csv")


def validate_email(email: Optional[str]) -> str:
    if email is None or not email.strip():
        raise InvoiceValidationError("Email address is required")
    email = email.strip()
    if not EMAIL_PATTERN.match(email):
        raise InvoiceValidationError(f"Invalid email address format: {email}")
    return email


def validate_gst_number(gst_number: Optional[str]) -> None:
    """Absent or blank GST numbers are allowed; anything else must match the GSTIN layout."""
    if gst_number is None or not gst_number.strip():
        return
    if not GST_NUMBER_PATTERN.match(gst_number.strip()):
        raise InvoiceValidationError("Invalid GST number format. Expected format: 22AAAAA0000A1Z5")


def validate_export_format(export_format: Optional[str]) -> str:
    normalized = (export_format or "").strip().lower()
    if normalized not in SUPPORTED_EXPORT_FORMATS:
        raise InvoiceValidationError("Invalid export format. Supported formats are: excel, csv")
    return normalized


def validate_authorization(caller_id: Optional[str], owner_id: Optional[str]) -> None:
    if not caller_id:
        raise AuthorizationError("Authentication required")
    if caller_id != owner_id:
        raise AuthorizationError("Access denied: Invoice does not belong to the authenticated user")


def validate_required(value, field_name: str) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvoiceValidationError(f"{field_name} is required")


def validate_range(value: Optional[float], minimum: float, maximum: float, field_name: str, unit: str = "") -> None:
    """Inclusive range check; out-of-range values are rejected, never clamped."""
    if value is None or not minimum <= value <= maximum:
        suffix = f" {unit}" if unit else ""
        raise InvoiceValidationError(f"{field_name} must be between {minimum:g} and {maximum:g}{suffix}")


def parse_status(value: Optional[str], *, required: bool = True) -> Optional[InvoiceStatus]:
    """Status name to ``InvoiceStatus``. A blank value is None unless ``required``."""
    normalized = (value or "").strip().upper()
    if not normalized:
        if required:
            raise InvoiceValidationError("Status is required")
        return None
    try:
        return InvoiceStatus(normalized)
    except ValueError:
        allowed = ", ".join(status.value for status in InvoiceStatus)
        raise InvoiceValidationError(f"Invalid invoice status: {value}. Allowed values are: {allowed}") from None
