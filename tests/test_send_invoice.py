from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from invoizo.app.core.exceptions import EmailDeliveryError
from invoizo.app.core.security import create_access_token
from invoizo.app.db.base import Base
from invoizo.app.db.session import engine
from invoizo.app.main import app
from invoizo.app.services.email import EmailService, get_email_service


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def email_service():
    service = MagicMock(spec=EmailService)
    app.dependency_overrides[get_email_service] = lambda: service
    yield service
    app.dependency_overrides.pop(get_email_service, None)


def auth_headers(owner_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(owner_id)}"}


def create_invoice(client: TestClient, owner_id: str) -> str:
    response = client.post("/invoices", json={"details": {"number": "INV-3"}}, headers=auth_headers(owner_id))
    assert response.status_code == 200
    return response.json()["id"]


def send(client: TestClient, owner_id: str, **form):
    files = {"file": ("invoice.pdf", b"%PDF-1.4 test", "application/pdf")}
    return client.post("/invoices/sendinvoice", files=files, data=form, headers=auth_headers(owner_id))


def test_send_invoice_emails_attachment_and_marks_draft_sent(email_service):
    client = TestClient(app)
    invoice_id = create_invoice(client, "owner-a")

    response = send(client, "owner-a", email="ravi@example.com", invoice_id=invoice_id)

    assert response.status_code == 200
    assert response.json() == {"message": "Invoice sent successfully!"}
    email_service.send_invoice_email.assert_called_once()
    args, kwargs = email_service.send_invoice_email.call_args
    assert args == ("ravi@example.com", b"%PDF-1.4 test")
    assert kwargs["filename"] == "invoice.pdf"

    stored = client.get(f"/invoices/{invoice_id}", headers=auth_headers("owner-a")).json()
    assert stored["status"] == "SENT"
    assert stored["sent_at"] is not None


def test_send_invoice_with_invalid_email_is_rejected(email_service):
    client = TestClient(app)
    response = send(client, "owner-a", email="not-an-email")
    assert response.status_code == 400
    email_service.send_invoice_email.assert_not_called()


def test_send_invoice_mail_failure_is_server_error(email_service):
    client = TestClient(app)
    email_service.send_invoice_email.side_effect = EmailDeliveryError("Failed to send email: connection refused")

    response = send(client, "owner-a", email="ravi@example.com")

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to send email: connection refused"


def test_send_invoice_for_foreign_invoice_still_sends_but_does_not_touch_it(email_service):
    client = TestClient(app)
    invoice_id = create_invoice(client, "owner-a")

    response = send(client, "owner-b", email="ravi@example.com", invoice_id=invoice_id)

    assert response.status_code == 200
    stored = client.get(f"/invoices/{invoice_id}", headers=auth_headers("owner-a")).json()
    assert stored["status"] == "DRAFT"


def test_send_invoice_requires_authentication(email_service):
    client = TestClient(app)
    files = {"file": ("invoice.pdf", b"%PDF", "application/pdf")}
    response = client.post("/invoices/sendinvoice", files=files, data={"email": "ravi@example.com"})
    assert response.status_code == 401
