"""Bulk invoice export to Excel (openpyxl) and CSV."""

import csv
import io
import logging
from datetime import date
from typing import List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from invoizo.app.core.exceptions import ExportGenerationError
from invoizo.app.core.time import local_today
from invoizo.app.services.gst import invoice_subtotal, invoice_total
from invoizo.app.services.status_transitions import effective_status

logger = logging.getLogger(__name__)

EXPORT_HEADERS = [
    "Invoice Number",
    "Date",
    "Due Date",
    "Customer Name",
    "Customer Phone",
    "Customer Address",
    "Amount",
    "Tax",
    "Total",
    "Status",
    "Company Name",
    "GST Number",
    "Transaction Type",
    "CGST Total",
    "SGST Total",
    "IGST Total",
]

SHEET_TITLE = "Invoices"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MEDIA_TYPE = "text/csv"
MAX_COLUMN_WIDTH = 60

_HEADER_FONT = Font(bold=True, color="FFFFFF")
_HEADER_FILL = PatternFill(fill_type="solid", start_color="000080", end_color="000080")
_THIN = Side(style="thin")
_HEADER_BORDER = Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN)


def invoice_row(invoice) -> List:
    details = invoice.details or {}
    billing = invoice.billing or {}
    company = invoice.company or {}
    gst_details = invoice.gst_details or {}
    return [
        details.get("number") or "",
        details.get("date") or "",
        details.get("due_date") or "",
        billing.get("name") or "",
        billing.get("phone") or "",
        billing.get("address") or "",
        invoice_subtotal(invoice),
        invoice.tax or 0.0,
        invoice_total(invoice),
        effective_status(invoice.status).value,
        company.get("name") or "",
        invoice.company_gst_number or "",
        invoice.transaction_type or "",
        gst_details.get("cgst_total") or 0.0,
        gst_details.get("sgst_total") or 0.0,
        gst_details.get("igst_total") or 0.0,
    ]


def _require_invoices(invoices: Optional[Sequence]) -> Sequence:
    if not invoices:
        raise ExportGenerationError("No invoices provided for export")
    return invoices


def _rows(invoices: Sequence):
    for invoice in invoices:
        try:
            yield invoice_row(invoice)
        except Exception:
            logger.exception(f"Skipping invoice {getattr(invoice, 'id', None)} in export: row could not be built")


def _autosize_columns(sheet) -> None:
    for column_cells in sheet.columns:
        width = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column_cells)
        letter = get_column_letter(column_cells[0].column)
        sheet.column_dimensions[letter].width = min(width + 2, MAX_COLUMN_WIDTH)


def _write_row(sheet, row_number: int, invoice) -> None:
    for column, value in enumerate(invoice_row(invoice), start=1):
        sheet.cell(row=row_number, column=column, value=value)


def export_to_excel(invoices: Optional[Sequence]) -> bytes:
    invoices = _require_invoices(invoices)
    try:
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = SHEET_TITLE

        sheet.append(EXPORT_HEADERS)
        for cell in sheet[1]:
            cell.font = _HEADER_FONT
            cell.fill = _HEADER_FILL
            cell.border = _HEADER_BORDER

        row_number = 2
        for invoice in invoices:
            try:
                _write_row(sheet, row_number, invoice)
            except Exception:
                logger.exception(f"Skipping invoice {getattr(invoice, 'id', None)} in export: row could not be written")
                # drop the cells written before the failing value
                sheet.delete_rows(row_number)
                continue
            row_number += 1

        _autosize_columns(sheet)

        buffer = io.BytesIO()
        workbook.save(buffer)
    except Exception as exc:
        raise ExportGenerationError(f"Failed to generate Excel file: {exc}") from exc
    logger.info(f"Generated Excel export with {row_number - 2} invoices")
    return buffer.getvalue()


def export_to_csv(invoices: Optional[Sequence]) -> bytes:
    invoices = _require_invoices(invoices)
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    written = 0
    for row in _rows(invoices):
        writer.writerow(row)
        written += 1
    logger.info(f"Generated CSV export with {written} invoices")
    return buffer.getvalue().encode("utf-8")


def build_export_filename(extension: str, today: Optional[date] = None) -> str:
    return f"invoices_{(today or local_today()).isoformat()}.{extension}"
