"""Manual payment routes."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from invoizo.app.core.exceptions import InvoiceNotFound
from invoizo.app.core.validation import validate_authorization
from invoizo.app.db.session import get_db
from invoizo.app.dependencies.auth import get_current_owner_id
from invoizo.app.schemas.payment import CashPaymentResponse
from invoizo.app.services.invoices import get_invoice_by_id
from invoizo.app.services.payments import mark_cash_payment

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/mark-cash-payment/{invoice_id}", response_model=CashPaymentResponse)
def mark_invoice_paid_in_cash(
    invoice_id: str,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner_id),
):
    try:
        invoice = get_invoice_by_id(db, invoice_id)
    except InvoiceNotFound:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invoice not found")
    validate_authorization(owner_id, invoice.owner_id)

    mark_cash_payment(db, invoice_id)
    return CashPaymentResponse(success=True, message="Cash payment marked successfully")
