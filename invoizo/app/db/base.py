from invoizo.app.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all
from invoizo.app.models.invoice import Invoice  # noqa: F401
from invoizo.app.models.invoice_item import InvoiceItem  # noqa: F401
from invoizo.app.models.payment_reminder import PaymentReminder  # noqa: F401
