"""Payment details and reminder schemas."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from invoizo.app.core.enums import PaymentMethod, PaymentStatus, ReminderType


class PaymentDetails(BaseModel):
    payment_method: Optional[PaymentMethod] = None
    payment_status: Optional[PaymentStatus] = None
    total_amount: Optional[float] = None
    currency: Optional[str] = "INR"
    payment_date: Optional[datetime] = None
    payment_link: Optional[str] = None
    cash_payment_allowed: bool = True


class PaymentReminderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: ReminderType
    scheduled_date: Optional[date] = None
    sent_date: datetime
    sent: bool
    email_subject: Optional[str] = None


class CashPaymentResponse(BaseModel):
    success: bool
    message: str
