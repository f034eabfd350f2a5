"""Enumerations shared by models, schemas and services."""

from enum import Enum


class InvoiceStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    VIEWED = "VIEWED"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class TransactionType(str, Enum):
    INTRA_STATE = "INTRA_STATE"
    INTER_STATE = "INTER_STATE"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class ReminderType(str, Enum):
    TWO_DAYS_BEFORE = "TWO_DAYS_BEFORE"
    DUE_DATE = "DUE_DATE"
    OVERDUE = "OVERDUE"
