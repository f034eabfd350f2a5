"""Invoice schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from invoizo.app.core.enums import InvoiceStatus, TransactionType
from invoizo.app.schemas.invoice_item import InvoiceItemCreate, InvoiceItemRead
from invoizo.app.schemas.payment import PaymentDetails, PaymentReminderRead


class PartyDetails(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class BillingDetails(PartyDetails):
    email: Optional[str] = None


class InvoiceDetails(BaseModel):
    number: Optional[str] = None
    date: Optional[str] = None
    due_date: Optional[str] = None


class BankAccount(BaseModel):
    name: Optional[str] = None
    number: Optional[str] = None
    ifsc_code: Optional[str] = None


class GSTDetails(BaseModel):
    cgst_total: float = 0.0
    sgst_total: float = 0.0
    igst_total: float = 0.0
    gst_total: float = 0.0


class InvoiceBase(BaseModel):
    company: Optional[PartyDetails] = None
    billing: Optional[BillingDetails] = None
    shipping: Optional[PartyDetails] = None
    details: Optional[InvoiceDetails] = None
    account: Optional[BankAccount] = None

    notes: Optional[str] = None
    logo: Optional[str] = None
    title: Optional[str] = None
    template: Optional[str] = None
    thumbnail_url: Optional[str] = None

    tax: float = 0.0
    transaction_type: Optional[TransactionType] = None
    company_gst_number: Optional[str] = None


class InvoiceCreate(InvoiceBase):
    """Create-or-update payload. Owner and derived GST fields are never taken from the body."""

    id: Optional[str] = None
    items: List[InvoiceItemCreate] = Field(default_factory=list)
    status: Optional[InvoiceStatus] = None


class InvoiceStatusUpdate(BaseModel):
    # Parsed in the route so unknown names surface as a 400 validation error
    status: Optional[str] = None


class InvoiceRead(InvoiceBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    items: List[InvoiceItemRead] = Field(default_factory=list)
    gst_details: Optional[GSTDetails] = None
    status: InvoiceStatus = InvoiceStatus.DRAFT
    sent_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    payment_details: Optional[PaymentDetails] = None
    payment_reminders: List[PaymentReminderRead] = Field(default_factory=list)
    created_at: datetime
    last_updated_at: datetime
