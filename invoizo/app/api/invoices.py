"""Invoice routes. The caller identity comes from the bearer token, never from the body."""

import logging
from typing import List

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile, status
from sqlalchemy.orm import Session

from invoizo.app.core.enums import InvoiceStatus
from invoizo.app.core.exceptions import InvoiceNotFound, InvoizoError
from invoizo.app.core.validation import parse_status, validate_email, validate_export_format, validate_required
from invoizo.app.db.session import get_db
from invoizo.app.dependencies.auth import get_current_owner_id
from invoizo.app.schemas.invoice import InvoiceCreate, InvoiceRead, InvoiceStatusUpdate
from invoizo.app.services.email import EmailService, get_email_service
from invoizo.app.services.export import (
    CSV_MEDIA_TYPE,
    XLSX_MEDIA_TYPE,
    build_export_filename,
    export_to_csv,
    export_to_excel,
)
from invoizo.app.services.invoices import (
    fetch_invoices,
    fetch_invoices_by_status,
    get_owned_invoice,
    remove_invoice,
    save_invoice,
    update_invoice_status,
)
from invoizo.app.services.status_transitions import effective_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices", tags=["invoices"])


def _split_ids(invoice_ids: List[str] | None) -> set[str]:
    # Accepts repeated ?invoiceIds=a&invoiceIds=b as well as ?invoiceIds=a,b
    wanted = set()
    for value in invoice_ids or []:
        wanted.update(part.strip() for part in value.split(",") if part.strip())
    return wanted


@router.post("", response_model=InvoiceRead)
def create_or_update_invoice(
    payload: InvoiceCreate,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner_id),
):
    return save_invoice(db, owner_id, payload)


@router.get("", response_model=List[InvoiceRead])
def list_invoices(db: Session = Depends(get_db), owner_id: str = Depends(get_current_owner_id)):
    return fetch_invoices(db, owner_id)


@router.get("/filter", response_model=List[InvoiceRead])
def filter_invoices(
    status: str | None = None,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner_id),
):
    return fetch_invoices_by_status(db, owner_id, parse_status(status, required=False))


@router.get("/overdue", response_model=List[InvoiceRead])
def list_overdue_invoices(db: Session = Depends(get_db), owner_id: str = Depends(get_current_owner_id)):
    return fetch_invoices_by_status(db, owner_id, InvoiceStatus.OVERDUE)


@router.get("/export")
def export_invoices(
    export_format: str | None = Query(default=None, alias="format"),
    invoice_ids: List[str] | None = Query(default=None, alias="invoiceIds"),
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner_id),
):
    export_format = validate_export_format(export_format)

    invoices = fetch_invoices(db, owner_id)
    wanted = _split_ids(invoice_ids)
    if wanted:
        invoices = [invoice for invoice in invoices if invoice.id in wanted]
    if not invoices:
        raise HTTPException(status_code=400, detail="No invoices found to export")

    if export_format == "excel":
        content, media_type, extension = export_to_excel(invoices), XLSX_MEDIA_TYPE, "xlsx"
    else:
        content, media_type, extension = export_to_csv(invoices), CSV_MEDIA_TYPE, "csv"

    filename = build_export_filename(extension)
    logger.info(f"Exported {len(invoices)} invoices as {export_format} for owner {owner_id}")
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/sendinvoice")
def send_invoice(
    file: UploadFile = File(...),
    email: str = Form(...),
    invoice_id: str | None = Form(default=None),
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner_id),
    email_service: EmailService = Depends(get_email_service),
):
    recipient = validate_email(email)
    content = file.file.read()
    validate_required(content or None, "Invoice file")

    email_service.send_invoice_email(
        recipient,
        content,
        filename=file.filename or "invoice.pdf",
        content_type=file.content_type or "application/pdf",
    )

    if invoice_id and invoice_id.strip():
        try:
            invoice = get_owned_invoice(db, owner_id, invoice_id.strip())
            if effective_status(invoice.status) is InvoiceStatus.DRAFT:
                update_invoice_status(db, owner_id, invoice.id, InvoiceStatus.SENT)
        except InvoizoError as exc:
            logger.warning(f"Invoice {invoice_id} was emailed but its status could not be updated: {exc.message}")

    return {"message": "Invoice sent successfully!"}


@router.get("/{invoice_id}", response_model=InvoiceRead)
def get_invoice(invoice_id: str, db: Session = Depends(get_db), owner_id: str = Depends(get_current_owner_id)):
    return get_owned_invoice(db, owner_id, invoice_id)


@router.patch("/{invoice_id}/status", response_model=InvoiceRead)
def update_status(
    invoice_id: str,
    payload: InvoiceStatusUpdate,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner_id),
):
    return update_invoice_status(db, owner_id, invoice_id, parse_status(payload.status))


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice(invoice_id: str, db: Session = Depends(get_db), owner_id: str = Depends(get_current_owner_id)):
    try:
        remove_invoice(db, owner_id, invoice_id)
    except InvoiceNotFound:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invoice not found or access denied")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
