"""Daily sweep that marks SENT/VIEWED invoices past their due date as OVERDUE."""

import logging
from datetime import date
from functools import partial
from typing import Optional

from sqlalchemy.orm import Session

from invoizo.app.core.enums import InvoiceStatus
from invoizo.app.core.exceptions import DatabaseConnectionError
from invoizo.app.core.retry import execute_with_retry
from invoizo.app.core.settings import get_settings
from invoizo.app.core.time import local_today, today_in
from invoizo.app.crud.crud_invoice import invoice_crud
from invoizo.app.db.session import SessionLocal
from invoizo.app.models.invoice import Invoice
from invoizo.app.services.status_transitions import force_status

logger = logging.getLogger(__name__)

OVERDUE_CANDIDATE_STATUSES = (InvoiceStatus.SENT, InvoiceStatus.VIEWED)


def parse_due_date(invoice: Invoice) -> Optional[date]:
    """ISO due date from the invoice details, or None (logged) when missing or malformed."""
    raw = (invoice.details or {}).get("due_date")
    if not raw or not str(raw).strip():
        logger.info(f"Invoice {invoice.id} has no due date")
        return None
    try:
        return date.fromisoformat(str(raw).strip())
    except ValueError:
        logger.warning(f"Invoice {invoice.id} has an unparsable due date: {raw!r}")
        return None


def _mark_overdue(db: Session, invoice: Invoice) -> Invoice:
    force_status(invoice, InvoiceStatus.OVERDUE, actor="overdue-sweep")
    return invoice_crud.save(db, db_obj=invoice)


def mark_overdue_invoices(db: Session, today: Optional[date] = None) -> int:
    today = today or local_today()
    candidates = execute_with_retry(
        lambda: invoice_crud.get_by_statuses(db, statuses=OVERDUE_CANDIDATE_STATUSES),
        "Find Overdue Candidates",
        on_failure=db.rollback,
    )
    logger.info(f"Overdue sweep checking {len(candidates)} invoices against {today.isoformat()}")

    updated = 0
    for invoice in candidates:
        invoice_id = invoice.id
        due_date = parse_due_date(invoice)
        if due_date is None or due_date >= today:
            continue
        try:
            execute_with_retry(partial(_mark_overdue, db, invoice), "Mark Invoice Overdue", on_failure=db.rollback)
        except DatabaseConnectionError as exc:
            logger.error(f"Could not mark invoice {invoice_id} overdue: {exc}")
            continue
        updated += 1

    logger.info(f"Overdue sweep complete. Marked {updated} invoices as OVERDUE")
    return updated


def run_overdue_sweep() -> int:
    """Scheduler entry point; owns its session and dates the run in the scheduler's zone."""
    today = today_in(get_settings().SCHEDULER_TIMEZONE)
    db = SessionLocal()
    try:
        return mark_overdue_invoices(db, today=today)
    finally:
        db.close()
