"""Append-only record of payment reminder emails sent for an invoice."""

import uuid

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from invoizo.app.core.time import utc_now
from invoizo.app.db.base_class import Base


class PaymentReminder(Base):
    __tablename__ = "payment_reminders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    invoice_id = Column(String(36), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    scheduled_date = Column(Date, nullable=True)
    sent_date = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    sent = Column(Boolean, nullable=False, default=True)
    email_subject = Column(String(255), nullable=True)
    email_body = Column(Text, nullable=True)

    invoice = relationship("Invoice", back_populates="payment_reminders")
