"""Backfill defaults on invoices written before statuses, transaction types and GST existed.

Only missing values are filled in, so running the backfill again is a no-op.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from invoizo.app.core.enums import InvoiceStatus, TransactionType
from invoizo.app.core.retry import execute_with_retry
from invoizo.app.models.invoice import Invoice
from invoizo.app.models.invoice_item import InvoiceItem
from invoizo.app.services.gst import GSTDetails

logger = logging.getLogger(__name__)

ITEM_GST_COLUMNS = (
    InvoiceItem.gst_rate,
    InvoiceItem.cgst_amount,
    InvoiceItem.sgst_amount,
    InvoiceItem.igst_amount,
    InvoiceItem.total_with_gst,
)


@dataclass
class MigrationResult:
    total_invoices: int = 0
    status_migrated: int = 0
    transaction_type_migrated: int = 0
    gst_details_migrated: int = 0
    item_gst_fields_migrated: int = 0
    success: bool = False


def _backfill_column(db: Session, column, value) -> int:
    return (
        db.query(Invoice)
        .filter(column.is_(None))
        .update({column: value}, synchronize_session=False)
    )


def _backfill_item_gst_fields(db: Session) -> int:
    """Returns the number of invoices that had at least one item missing GST fields."""
    affected = (
        db.query(func.count(func.distinct(InvoiceItem.invoice_id)))
        .filter(or_(*[column.is_(None) for column in ITEM_GST_COLUMNS]))
        .scalar()
    )
    for column in ITEM_GST_COLUMNS:
        db.query(InvoiceItem).filter(column.is_(None)).update({column: 0.0}, synchronize_session=False)
    return affected or 0


def _verify(db: Session, total: int) -> bool:
    with_status = db.query(Invoice).filter(Invoice.status.isnot(None)).count()
    with_transaction_type = db.query(Invoice).filter(Invoice.transaction_type.isnot(None)).count()
    with_gst_details = db.query(Invoice).filter(Invoice.gst_details.isnot(None)).count()
    logger.info(
        f"Verification: Total={total}, Status={with_status}, "
        f"TransactionType={with_transaction_type}, GstDetails={with_gst_details}"
    )
    return with_status == total and with_transaction_type == total and with_gst_details == total


def migrate_invoices(db: Session) -> MigrationResult:
    logger.info("Starting invoice backfill")

    def _migrate() -> MigrationResult:
        result = MigrationResult()
        result.status_migrated = _backfill_column(db, Invoice.status, InvoiceStatus.DRAFT.value)
        result.transaction_type_migrated = _backfill_column(
            db, Invoice.transaction_type, TransactionType.INTRA_STATE.value
        )
        result.gst_details_migrated = _backfill_column(db, Invoice.gst_details, GSTDetails().as_dict())
        result.item_gst_fields_migrated = _backfill_item_gst_fields(db)
        db.commit()

        result.total_invoices = db.query(Invoice).count()
        result.success = _verify(db, result.total_invoices)
        return result

    result = execute_with_retry(_migrate, "Migrate Invoices", on_failure=db.rollback)
    if result.success:
        logger.info(f"Invoice backfill completed: {result}")
    else:
        logger.warning(f"Invoice backfill completed with invoices needing manual review: {result}")
    return result
