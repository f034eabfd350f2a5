"""Daily payment reminder emails: two days before the due date, on it, and once overdue.

Each reminder type is sent at most once per invoice; the sent reminders are
recorded on the invoice.
"""

import logging
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from invoizo.app.core.enums import InvoiceStatus, ReminderType
from invoizo.app.core.exceptions import DatabaseConnectionError, EmailDeliveryError
from invoizo.app.core.retry import execute_with_retry
from invoizo.app.core.settings import get_settings
from invoizo.app.core.time import local_today, today_in
from invoizo.app.crud.crud_invoice import invoice_crud
from invoizo.app.db.session import SessionLocal
from invoizo.app.jobs.overdue import parse_due_date
from invoizo.app.models.invoice import Invoice
from invoizo.app.models.payment_reminder import PaymentReminder
from invoizo.app.services.email import EmailService, get_email_service
from invoizo.app.services.gst import invoice_subtotal

logger = logging.getLogger(__name__)

# OVERDUE is included so the overdue reminder still goes out after the 01:00 sweep.
REMINDER_CANDIDATE_STATUSES = (InvoiceStatus.SENT, InvoiceStatus.VIEWED, InvoiceStatus.OVERDUE)

PAYMENT_OPTIONS = (
    "\n\nPayment Options:"
    "\n1. Online Payment: Use the payment button in your invoice dashboard"
    "\n2. Cash Payment: Pay by cash and inform us once the payment is made."
)


def reminder_type_for(due_date: date, today: date) -> Optional[ReminderType]:
    if today == due_date - timedelta(days=2):
        return ReminderType.TWO_DAYS_BEFORE
    if today == due_date:
        return ReminderType.DUE_DATE
    if today > due_date:
        return ReminderType.OVERDUE
    return None


def reminder_amount(invoice: Invoice) -> float:
    total_amount = (invoice.payment_details or {}).get("total_amount")
    if total_amount is not None:
        return total_amount
    gst_total = (invoice.gst_details or {}).get("gst_total") or 0.0
    return invoice_subtotal(invoice) + gst_total + (invoice.tax or 0.0)


def build_reminder_subject(invoice: Invoice, reminder_type: ReminderType) -> str:
    number = (invoice.details or {}).get("number") or ""
    if reminder_type is ReminderType.TWO_DAYS_BEFORE:
        return f"Payment Reminder: Invoice #{number} - Due in 2 Days"
    if reminder_type is ReminderType.DUE_DATE:
        return f"Payment Due Today: Invoice #{number}"
    return f"Overdue Payment: Invoice #{number}"


def build_reminder_body(invoice: Invoice, reminder_type: ReminderType) -> str:
    details = invoice.details or {}
    number = details.get("number") or ""
    due_date = details.get("due_date") or ""
    company_name = (invoice.company or {}).get("name") or ""
    customer_name = (invoice.billing or {}).get("name") or "Customer"
    amount_lines = f"Invoice Amount: ₹{reminder_amount(invoice):.2f}\nDue Date: {due_date}\n\n"

    body = f"Dear {customer_name},\n\n"
    if reminder_type is ReminderType.TWO_DAYS_BEFORE:
        body += (
            f"This is a friendly reminder that your invoice #{number} from {company_name} "
            f"is due in 2 days on {due_date}.\n\n"
            + amount_lines
            + "Please ensure timely payment to avoid any inconvenience."
        )
    elif reminder_type is ReminderType.DUE_DATE:
        body += (
            f"Your invoice #{number} from {company_name} is due today ({due_date}).\n\n"
            + amount_lines
            + "Please make the payment at your earliest convenience."
        )
    else:
        body += (
            f"Your invoice #{number} from {company_name} was due on {due_date} and is now overdue.\n\n"
            + amount_lines
            + "Please make the payment immediately to avoid any late fees or service disruption."
        )
    body += f"\n\nThank you for your business!\n\nBest regards,\n{company_name}"
    return body + PAYMENT_OPTIONS


def already_sent(invoice: Invoice, reminder_type: ReminderType) -> bool:
    return any(
        reminder.type == reminder_type.value and reminder.sent for reminder in invoice.payment_reminders
    )


def _record_reminder(
    db: Session, invoice: Invoice, reminder_type: ReminderType, due_date: date, subject: str, body: str
) -> PaymentReminder:
    reminder = PaymentReminder(
        type=reminder_type.value,
        scheduled_date=due_date,
        sent=True,
        email_subject=subject,
        email_body=body,
    )
    invoice.payment_reminders.append(reminder)
    invoice_crud.save(db, db_obj=invoice)
    return reminder


def _discard_reminder(db: Session, invoice: Invoice, reminder: PaymentReminder) -> None:
    invoice.payment_reminders.remove(reminder)
    invoice_crud.save(db, db_obj=invoice)


def process_invoice_reminder(
    db: Session, invoice: Invoice, today: date, email_service: EmailService
) -> Optional[ReminderType]:
    """Send the reminder due today for ``invoice``, if any. Returns the type sent."""
    due_date = parse_due_date(invoice)
    if due_date is None:
        return None
    reminder_type = reminder_type_for(due_date, today)
    if reminder_type is None or already_sent(invoice, reminder_type):
        return None

    recipient = (invoice.billing or {}).get("email")
    if not recipient:
        logger.info(f"Invoice {invoice.id} has no billing email; skipping {reminder_type.value} reminder")
        return None

    subject = build_reminder_subject(invoice, reminder_type)
    body = build_reminder_body(invoice, reminder_type)
    # Recorded before sending: a reminder that cannot be recorded is never emailed
    reminder = execute_with_retry(
        lambda: _record_reminder(db, invoice, reminder_type, due_date, subject, body),
        "Record Payment Reminder",
        on_failure=db.rollback,
    )
    try:
        email_service.send_email(recipient, subject, body)
    except EmailDeliveryError:
        execute_with_retry(
            lambda: _discard_reminder(db, invoice, reminder),
            "Discard Payment Reminder",
            on_failure=db.rollback,
        )
        raise
    logger.info(f"Sent {reminder_type.value} reminder for invoice {invoice.id}")
    return reminder_type


def send_payment_reminders(
    db: Session, today: Optional[date] = None, email_service: Optional[EmailService] = None
) -> List[ReminderType]:
    today = today or local_today()
    email_service = email_service or get_email_service()
    invoices = execute_with_retry(
        lambda: invoice_crud.get_by_statuses(db, statuses=REMINDER_CANDIDATE_STATUSES),
        "Find Reminder Candidates",
        on_failure=db.rollback,
    )
    logger.info(f"Payment reminder job checking {len(invoices)} invoices")

    sent = []
    for invoice in invoices:
        invoice_id = invoice.id
        try:
            reminder_type = process_invoice_reminder(db, invoice, today, email_service)
        except (EmailDeliveryError, DatabaseConnectionError) as exc:
            logger.error(f"Failed to send reminder for invoice {invoice_id}: {exc}")
            continue
        if reminder_type is not None:
            sent.append(reminder_type)

    logger.info(f"Payment reminder job complete. Sent {len(sent)} reminders")
    return sent


def run_payment_reminders() -> int:
    today = today_in(get_settings().SCHEDULER_TIMEZONE)
    db = SessionLocal()
    try:
        return len(send_payment_reminders(db, today=today))
    finally:
        db.close()
