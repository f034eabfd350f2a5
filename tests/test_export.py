import csv
import io
from datetime import date

import pytest
from openpyxl import load_workbook

from invoizo.app.core.exceptions import ExportGenerationError
from invoizo.app.db import base  # noqa: F401  (registers every mapped model)
from invoizo.app.models.invoice import Invoice
from invoizo.app.models.invoice_item import InvoiceItem
from invoizo.app.services.export import (
    EXPORT_HEADERS,
    build_export_filename,
    export_to_csv,
    export_to_excel,
    invoice_row,
)
from invoizo.app.services.gst import recalculate_invoice_gst


def make_invoice(number="INV-1", customer="Ravi Kumar", address="Mumbai", status=None, with_gst=True, tax=0.0):
    invoice = Invoice(
        id=f"id-{number}",
        owner_id="owner-a",
        details={"number": number, "date": "2024-05-01", "due_date": "2024-05-15"},
        billing={"name": customer, "phone": "98111", "address": address},
        company={"name": "Acme Traders"},
        company_gst_number="27AAAAA0000A1Z5",
        transaction_type="INTRA_STATE",
        status=status,
        tax=tax,
    )
    invoice.items = [InvoiceItem(name="Consulting", qty=2, amount=500.0, gst_rate=18.0)]
    if with_gst:
        recalculate_invoice_gst(invoice)
    return invoice


def read_csv(content: bytes):
    return list(csv.reader(io.StringIO(content.decode("utf-8"))))


def test_csv_has_header_and_one_row_per_invoice():
    rows = read_csv(export_to_csv([make_invoice("INV-1"), make_invoice("INV-2")]))
    assert rows[0] == EXPORT_HEADERS
    assert [row[0] for row in rows[1:]] == ["INV-1", "INV-2"]


def test_csv_row_values():
    rows = read_csv(export_to_csv([make_invoice()]))
    row = dict(zip(rows[0], rows[1]))
    assert row["Amount"] == "1000.0"
    assert row["Total"] == "1180.0"
    assert row["Status"] == "DRAFT"
    assert row["GST Number"] == "27AAAAA0000A1Z5"
    assert row["Transaction Type"] == "INTRA_STATE"
    assert float(row["CGST Total"]) == pytest.approx(90.0)
    assert float(row["IGST Total"]) == 0.0


def test_csv_quotes_commas_quotes_and_newlines():
    invoice = make_invoice(customer='Ravi "RK" Kumar', address="12, MG Road\nPune")
    content = export_to_csv([invoice]).decode("utf-8")
    assert '"Ravi ""RK"" Kumar"' in content
    assert '"12, MG Road\nPune"' in content
    assert content.endswith("\n")

    rows = read_csv(content.encode("utf-8"))
    assert rows[1][3] == 'Ravi "RK" Kumar'
    assert rows[1][5] == "12, MG Road\nPune"


def test_total_falls_back_to_flat_tax_without_gst_details():
    row = invoice_row(make_invoice(with_gst=False, tax=50.0))
    assert row[EXPORT_HEADERS.index("Total")] == pytest.approx(1050.0)
    assert row[EXPORT_HEADERS.index("CGST Total")] == 0.0


def test_missing_fields_export_as_blanks_and_zeros():
    invoice = Invoice(id="bare", owner_id="owner-a")
    row = invoice_row(invoice)
    assert row[:6] == ["", "", "", "", "", ""]
    assert row[EXPORT_HEADERS.index("Amount")] == 0
    assert row[EXPORT_HEADERS.index("Status")] == "DRAFT"


@pytest.mark.parametrize("exporter", [export_to_csv, export_to_excel])
def test_empty_input_is_rejected(exporter):
    with pytest.raises(ExportGenerationError):
        exporter([])
    with pytest.raises(ExportGenerationError):
        exporter(None)


def test_excel_has_styled_header_and_rows_in_order():
    content = export_to_excel([make_invoice("INV-1", status="SENT"), make_invoice("INV-2")])
    sheet = load_workbook(io.BytesIO(content)).active

    assert sheet.title == "Invoices"
    assert [cell.value for cell in sheet[1]] == EXPORT_HEADERS
    assert sheet.max_row == 3
    assert sheet["A2"].value == "INV-1"
    assert sheet["J2"].value == "SENT"
    assert sheet["A3"].value == "INV-2"

    header = sheet["A1"]
    assert header.font.bold is True
    assert header.fill.fill_type == "solid"
    assert header.border.left.style == "thin"
    assert sheet.column_dimensions["A"].width > 0


def test_unbuildable_row_is_skipped():
    broken = make_invoice("INV-BAD")
    broken.details = "not a mapping"
    rows = read_csv(export_to_csv([make_invoice("INV-1"), broken, make_invoice("INV-3")]))
    assert [row[0] for row in rows[1:]] == ["INV-1", "INV-3"]

    sheet = load_workbook(io.BytesIO(export_to_excel([broken, make_invoice("INV-3")]))).active
    assert sheet.max_row == 2


def test_excel_row_with_illegal_characters_is_skipped():
    bad = make_invoice("INV-BAD", customer="bad\x01name")

    sheet = load_workbook(io.BytesIO(export_to_excel([make_invoice("INV-1"), bad, make_invoice("INV-3")]))).active
    assert sheet.max_row == 3
    assert [sheet["A2"].value, sheet["A3"].value] == ["INV-1", "INV-3"]
    assert sheet["D3"].value == "Ravi Kumar"

    sheet = load_workbook(io.BytesIO(export_to_excel([make_invoice("INV-1"), bad]))).active
    assert sheet.max_row == 2
    assert sheet["A3"].value is None


def test_export_filename_uses_the_date():
    assert build_export_filename("csv", today=date(2024, 5, 1)) == "invoices_2024-05-01.csv"
    assert build_export_filename("xlsx", today=date(2024, 12, 31)) == "invoices_2024-12-31.xlsx"
