import csv
import io
from datetime import date

import pytest
from fastapi.testclient import TestClient
from openpyxl import load_workbook

from invoizo.app.core.security import create_access_token
from invoizo.app.db.base import Base
from invoizo.app.db.session import engine
from invoizo.app.main import app


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def auth_headers(owner_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(owner_id)}"}


def create_invoice(client: TestClient, owner_id: str, number: str, customer: str = "Ravi, Kumar") -> str:
    payload = {
        "billing": {"name": customer, "phone": "98111", "address": "Mumbai"},
        "company": {"name": "Acme Traders"},
        "details": {"number": number, "date": "2024-05-01", "due_date": "2024-05-15"},
        "items": [{"name": "Consulting", "qty": 1, "amount": 1000.0, "gst_rate": 18.0}],
    }
    response = client.post("/invoices", json=payload, headers=auth_headers(owner_id))
    assert response.status_code == 200
    return response.json()["id"]


def csv_rows(response) -> list:
    return list(csv.reader(io.StringIO(response.content.decode("utf-8"))))


def test_export_requires_authentication():
    client = TestClient(app)
    assert client.get("/invoices/export", params={"format": "csv"}).status_code == 401


def test_unsupported_format_is_rejected():
    client = TestClient(app)
    create_invoice(client, "owner-a", "INV-1")
    response = client.get("/invoices/export", params={"format": "pdf"}, headers=auth_headers("owner-a"))
    assert response.status_code == 400
    assert "Supported formats are: excel, csv" in response.json()["detail"]


def test_csv_export_contains_only_the_callers_invoices():
    client = TestClient(app)
    create_invoice(client, "owner-a", "A-1")
    create_invoice(client, "owner-a", "A-2")
    create_invoice(client, "owner-b", "B-1")

    response = client.get("/invoices/export", params={"format": "csv"}, headers=auth_headers("owner-a"))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    expected_name = f"invoices_{date.today().isoformat()}.csv"
    assert response.headers["content-disposition"] == f'attachment; filename="{expected_name}"'
    rows = csv_rows(response)
    assert len(rows) == 3
    assert sorted(row[0] for row in rows[1:]) == ["A-1", "A-2"]
    assert '"Ravi, Kumar"' in response.content.decode("utf-8")


def test_export_selected_ids_ignores_foreign_ids():
    client = TestClient(app)
    first = create_invoice(client, "owner-a", "A-1")
    create_invoice(client, "owner-a", "A-2")
    foreign = create_invoice(client, "owner-b", "B-1")

    response = client.get(
        "/invoices/export",
        params={"format": "csv", "invoiceIds": [first, foreign]},
        headers=auth_headers("owner-a"),
    )

    assert response.status_code == 200
    assert [row[0] for row in csv_rows(response)[1:]] == ["A-1"]


def test_export_ids_accept_comma_separated_values():
    client = TestClient(app)
    first = create_invoice(client, "owner-a", "A-1")
    second = create_invoice(client, "owner-a", "A-2")
    create_invoice(client, "owner-a", "A-3")

    response = client.get(
        "/invoices/export",
        params={"format": "csv", "invoiceIds": f"{first},{second}"},
        headers=auth_headers("owner-a"),
    )
    assert sorted(row[0] for row in csv_rows(response)[1:]) == ["A-1", "A-2"]


def test_export_with_only_foreign_ids_is_empty_and_rejected():
    client = TestClient(app)
    create_invoice(client, "owner-a", "A-1")
    foreign = create_invoice(client, "owner-b", "B-1")

    response = client.get(
        "/invoices/export", params={"format": "csv", "invoiceIds": foreign}, headers=auth_headers("owner-a")
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "No invoices found to export"


def test_export_without_invoices_is_rejected():
    client = TestClient(app)
    response = client.get("/invoices/export", params={"format": "excel"}, headers=auth_headers("owner-a"))
    assert response.status_code == 400


def test_excel_export():
    client = TestClient(app)
    create_invoice(client, "owner-a", "A-1")

    response = client.get("/invoices/export", params={"format": "excel"}, headers=auth_headers("owner-a"))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert f"invoices_{date.today().isoformat()}.xlsx" in response.headers["content-disposition"]
    sheet = load_workbook(io.BytesIO(response.content)).active
    assert sheet.max_row == 2
    assert sheet["A2"].value == "A-1"
    assert sheet["I2"].value == pytest.approx(1180.0)


def test_excel_export_skips_invoice_with_control_characters():
    client = TestClient(app)
    create_invoice(client, "owner-a", "A-1")
    create_invoice(client, "owner-a", "A-2", customer="bad\x01name")

    response = client.get("/invoices/export", params={"format": "excel"}, headers=auth_headers("owner-a"))

    assert response.status_code == 200
    sheet = load_workbook(io.BytesIO(response.content)).active
    assert sheet.max_row == 2
    assert sheet["A2"].value == "A-1"
