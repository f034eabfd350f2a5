"""Invoice item schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class InvoiceItemCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    qty: int = Field(default=1, gt=0)
    amount: float = Field(default=0.0, ge=0)
    gst_rate: Optional[float] = 0.0


class InvoiceItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: Optional[str] = None
    description: Optional[str] = None
    qty: int
    amount: float
    gst_rate: Optional[float] = 0.0
    cgst_amount: Optional[float] = 0.0
    sgst_amount: Optional[float] = 0.0
    igst_amount: Optional[float] = 0.0
    total_with_gst: Optional[float] = 0.0
