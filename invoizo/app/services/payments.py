"""Manual cash payment recording."""

import logging

from sqlalchemy.orm import Session

from invoizo.app.core.enums import InvoiceStatus, PaymentMethod, PaymentStatus
from invoizo.app.core.exceptions import InvoiceNotFound
from invoizo.app.core.retry import execute_with_retry
from invoizo.app.core.time import utc_now
from invoizo.app.crud.crud_invoice import invoice_crud
from invoizo.app.models.invoice import Invoice
from invoizo.app.services.gst import invoice_total
from invoizo.app.services.status_transitions import force_status

logger = logging.getLogger(__name__)


def mark_cash_payment(db: Session, invoice_id: str) -> Invoice:
    """Record a cash payment and move the invoice to PAID from any state, DRAFT included."""

    def _mark() -> Invoice:
        invoice = invoice_crud.get(db, invoice_id=invoice_id)
        if invoice is None:
            raise InvoiceNotFound(invoice_id)

        now = utc_now()
        payment_details = dict(invoice.payment_details or {})
        payment_details["payment_status"] = PaymentStatus.PAID.value
        payment_details["payment_method"] = PaymentMethod.CASH.value
        payment_details["payment_date"] = now.isoformat()
        payment_details.setdefault("currency", "INR")
        if payment_details.get("total_amount") is None:
            payment_details["total_amount"] = invoice_total(invoice)
        invoice.payment_details = payment_details

        force_status(invoice, InvoiceStatus.PAID, actor="cash-payment")
        if invoice.paid_at is None:
            invoice.paid_at = now
        return invoice_crud.save(db, db_obj=invoice)

    invoice = execute_with_retry(_mark, "Mark Cash Payment", on_failure=db.rollback)
    logger.info(f"Cash payment recorded for invoice {invoice_id}")
    return invoice
