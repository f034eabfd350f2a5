import logging
import smtplib
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from invoizo.app.core.exceptions import EmailDeliveryError
from invoizo.app.core.settings import get_settings

logger = logging.getLogger(__name__)

INVOICE_EMAIL_SUBJECT = "Your Invoice"
INVOICE_EMAIL_BODY = "Please find your invoice attached."


class EmailService:
    """Outgoing mail over SMTP for invoices and payment reminders."""

    def __init__(
        self,
        smtp_host: Optional[str] = None,
        smtp_port: int = 587,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        from_email: str = "",
        use_tls: bool = True,
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.from_email = from_email or smtp_user or ""
        self.use_tls = use_tls

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host)

    def _deliver(self, msg: MIMEMultipart, to_email: str) -> None:
        if not self.is_configured:
            raise EmailDeliveryError("Email is not configured: SMTP_HOST is missing")
        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=10) as server:
                if self.use_tls:
                    server.starttls()
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, [to_email], msg.as_string())
        except smtplib.SMTPAuthenticationError as exc:
            logger.error("SMTP Authentication failed. Check email credentials.")
            raise EmailDeliveryError("Failed to send email: SMTP authentication failed") from exc
        except smtplib.SMTPException as exc:
            logger.error(f"SMTP error sending to {to_email}: {exc}")
            raise EmailDeliveryError(f"Failed to send email: {exc}") from exc
        except OSError as exc:
            logger.error(f"Network error sending email to {to_email}: {exc}")
            raise EmailDeliveryError(f"Failed to send email: {exc}") from exc
        logger.info(f"Email sent successfully to {to_email}")

    def send_email(self, to_email: str, subject: str, text_content: str) -> None:
        msg = MIMEMultipart()
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = to_email
        msg.attach(MIMEText(text_content, "plain", "utf-8"))
        self._deliver(msg, to_email)

    def send_invoice_email(
        self,
        to_email: str,
        content: bytes,
        filename: str = "invoice.pdf",
        content_type: str = "application/pdf",
    ) -> None:
        """Send the rendered invoice document as an attachment."""
        msg = MIMEMultipart()
        msg["Subject"] = INVOICE_EMAIL_SUBJECT
        msg["From"] = self.from_email
        msg["To"] = to_email
        msg.attach(MIMEText(INVOICE_EMAIL_BODY, "plain", "utf-8"))

        subtype = content_type.split("/", 1)[1] if "/" in content_type else "octet-stream"
        attachment = MIMEApplication(content, _subtype=subtype)
        attachment.add_header("Content-Disposition", "attachment", filename=filename)
        msg.attach(attachment)
        self._deliver(msg, to_email)


def get_email_service() -> EmailService:
    settings = get_settings()
    return EmailService(
        smtp_host=settings.SMTP_HOST,
        smtp_port=settings.SMTP_PORT,
        smtp_user=settings.SMTP_USER,
        smtp_password=settings.SMTP_PASSWORD,
        from_email=settings.MAIL_FROM,
        use_tls=settings.SMTP_USE_TLS,
    )
