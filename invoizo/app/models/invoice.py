"""Invoice aggregate: descriptive sub-records, GST totals, lifecycle and payment state."""

import uuid

from sqlalchemy import JSON, Column, DateTime, Float, Index, String, Text, orm
from sqlalchemy.orm import relationship

from invoizo.app.core.enums import InvoiceStatus, TransactionType
from invoizo.app.core.time import utc_now
from invoizo.app.db.base_class import Base
from invoizo.app.db.types import EncryptedJSON


def _new_invoice_id() -> str:
    return str(uuid.uuid4())


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (Index("ix_invoices_owner_status", "owner_id", "status"),)

    id = Column(String(36), primary_key=True, default=_new_invoice_id)
    owner_id = Column(String(255), nullable=False, index=True)

    # Free-text sub-records: {name, phone, address}; billing may also carry an email.
    company = Column(JSON(none_as_null=True), nullable=True)
    billing = Column(JSON(none_as_null=True), nullable=True)
    shipping = Column(JSON(none_as_null=True), nullable=True)
    # {number, date, due_date} as entered by the user; dates are ISO strings.
    details = Column(JSON(none_as_null=True), nullable=True)
    account = Column(EncryptedJSON, nullable=True)

    notes = Column(Text, nullable=True)
    logo = Column(String, nullable=True)
    title = Column(String, nullable=True)
    template = Column(String, nullable=True)
    thumbnail_url = Column(String, nullable=True)

    tax = Column(Float, nullable=False, default=0.0)
    transaction_type = Column(String(20), nullable=True, default=TransactionType.INTRA_STATE.value)
    company_gst_number = Column(String(15), nullable=True)
    gst_details = Column(JSON(none_as_null=True), nullable=True)

    status = Column(String(20), nullable=True, default=InvoiceStatus.DRAFT.value)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    payment_details = Column(JSON(none_as_null=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    last_updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.position",
    )
    payment_reminders = relationship(
        "PaymentReminder",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="PaymentReminder.sent_date",
    )

    @orm.reconstructor
    def _normalize_legacy_status(self):
        # Rows written before statuses existed load as DRAFT.
        if self.status is None:
            self.status = InvoiceStatus.DRAFT.value
