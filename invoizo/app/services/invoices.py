"""Invoice lifecycle: create/update, owner-scoped reads, status changes and deletion.

Every operation runs through ``execute_with_retry``. Each retried unit reloads
the invoice, applies its change and commits once, so a rollback between
attempts never leaves a half-applied mutation behind.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from invoizo.app.core.enums import InvoiceStatus, TransactionType
from invoizo.app.core.exceptions import InvoiceNotFound
from invoizo.app.core.retry import execute_with_retry
from invoizo.app.core.time import utc_now
from invoizo.app.core.validation import validate_gst_number
from invoizo.app.crud.crud_invoice import invoice_crud
from invoizo.app.models.invoice import Invoice
from invoizo.app.models.invoice_item import InvoiceItem
from invoizo.app.schemas.invoice import InvoiceCreate
from invoizo.app.services.gst import recalculate_invoice_gst, validate_gst_rate
from invoizo.app.services.status_transitions import effective_status, validate_transition

logger = logging.getLogger(__name__)

DESCRIPTIVE_FIELDS = ("notes", "logo", "title", "template", "thumbnail_url")
SUB_RECORD_FIELDS = ("company", "billing", "shipping", "details", "account")


def _load_owned(db: Session, owner_id: str, invoice_id: str) -> Invoice:
    invoice = invoice_crud.get_owned(db, invoice_id=invoice_id, owner_id=owner_id)
    if invoice is None:
        raise InvoiceNotFound(invoice_id)
    return invoice


def apply_status_change(invoice: Invoice, new_status) -> None:
    """Validated transition; stamps sent_at/paid_at/cancelled_at the first time they apply."""
    current = effective_status(invoice.status)
    target = InvoiceStatus(new_status)
    validate_transition(current, target)

    invoice.status = target.value
    now = utc_now()
    if target is InvoiceStatus.SENT and invoice.sent_at is None:
        invoice.sent_at = now
    elif target is InvoiceStatus.PAID and invoice.paid_at is None:
        invoice.paid_at = now
    elif target is InvoiceStatus.CANCELLED and invoice.cancelled_at is None:
        invoice.cancelled_at = now


def _apply_payload(invoice: Invoice, payload: InvoiceCreate) -> None:
    for field in SUB_RECORD_FIELDS:
        value = getattr(payload, field)
        setattr(invoice, field, value.model_dump() if value is not None else None)
    for field in DESCRIPTIVE_FIELDS:
        setattr(invoice, field, getattr(payload, field))
    invoice.tax = payload.tax or 0.0
    invoice.transaction_type = (payload.transaction_type or TransactionType.INTRA_STATE).value
    gst_number = (payload.company_gst_number or "").strip()
    invoice.company_gst_number = gst_number or None

    invoice.items = [
        InvoiceItem(
            position=position,
            name=item.name,
            description=item.description,
            qty=item.qty,
            amount=item.amount,
            gst_rate=item.gst_rate if item.gst_rate is not None else 0.0,
        )
        for position, item in enumerate(payload.items)
    ]
    recalculate_invoice_gst(invoice)


def save_invoice(db: Session, owner_id: str, payload: InvoiceCreate) -> Invoice:
    validate_gst_number(payload.company_gst_number)
    for item in payload.items:
        validate_gst_rate(item.gst_rate if item.gst_rate is not None else 0.0)

    def _save() -> Invoice:
        invoice = invoice_crud.get(db, invoice_id=payload.id) if payload.id else None
        if invoice is not None and invoice.owner_id != owner_id:
            raise InvoiceNotFound(payload.id)

        if invoice is None:
            status = payload.status or InvoiceStatus.DRAFT
            invoice = Invoice(owner_id=owner_id, status=status.value)
            if payload.id:
                invoice.id = payload.id
            logger.info(f"Creating invoice for owner {owner_id} with status {status.value}")
        elif payload.status is not None and InvoiceStatus(payload.status) is not effective_status(invoice.status):
            apply_status_change(invoice, payload.status)

        _apply_payload(invoice, payload)
        return invoice_crud.save(db, db_obj=invoice)

    return execute_with_retry(_save, "Save Invoice", on_failure=db.rollback)


def fetch_invoices(db: Session, owner_id: str) -> List[Invoice]:
    return execute_with_retry(
        lambda: invoice_crud.get_multi(db, owner_id=owner_id),
        "Fetch Invoices",
        on_failure=db.rollback,
    )


def fetch_invoices_by_status(db: Session, owner_id: str, status: Optional[InvoiceStatus]) -> List[Invoice]:
    if status is None:
        return fetch_invoices(db, owner_id)
    return execute_with_retry(
        lambda: invoice_crud.get_multi_by_status(db, owner_id=owner_id, status=status),
        "Fetch Invoices By Status",
        on_failure=db.rollback,
    )


def get_owned_invoice(db: Session, owner_id: str, invoice_id: str) -> Invoice:
    return execute_with_retry(
        lambda: _load_owned(db, owner_id, invoice_id),
        "Fetch Invoice",
        on_failure=db.rollback,
    )


def get_invoice_by_id(db: Session, invoice_id: str) -> Invoice:
    """Unscoped lookup; the caller is responsible for the ownership check."""

    def _get() -> Invoice:
        invoice = invoice_crud.get(db, invoice_id=invoice_id)
        if invoice is None:
            raise InvoiceNotFound(invoice_id)
        return invoice

    return execute_with_retry(_get, "Get Invoice By Id", on_failure=db.rollback)


def update_invoice_status(db: Session, owner_id: str, invoice_id: str, new_status: InvoiceStatus) -> Invoice:
    def _update() -> Invoice:
        invoice = _load_owned(db, owner_id, invoice_id)
        previous = effective_status(invoice.status)
        apply_status_change(invoice, new_status)
        saved = invoice_crud.save(db, db_obj=invoice)
        logger.info(f"Invoice {invoice_id} moved from {previous.value} to {saved.status}")
        return saved

    return execute_with_retry(_update, "Update Invoice Status", on_failure=db.rollback)


def remove_invoice(db: Session, owner_id: str, invoice_id: str) -> None:
    def _remove() -> None:
        invoice = _load_owned(db, owner_id, invoice_id)
        invoice_crud.delete(db, db_obj=invoice)
        logger.info(f"Deleted invoice {invoice_id} for owner {owner_id}")

    execute_with_retry(_remove, "Delete Invoice", on_failure=db.rollback)
