"""Invoice line item with its derived GST amounts."""

from sqlalchemy import Column, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from invoizo.app.db.base_class import Base


class InvoiceItem(Base):
    __tablename__ = "invoice_items"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(String(36), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    name = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    qty = Column(Integer, nullable=False, default=1)
    amount = Column(Float, nullable=False, default=0.0)
    gst_rate = Column(Float, nullable=True, default=0.0)

    cgst_amount = Column(Float, nullable=True, default=0.0)
    sgst_amount = Column(Float, nullable=True, default=0.0)
    igst_amount = Column(Float, nullable=True, default=0.0)
    total_with_gst = Column(Float, nullable=True, default=0.0)

    invoice = relationship("Invoice", back_populates="items")
