"""GST calculation for invoice items and invoices.

Intra-state supplies split the tax evenly into CGST and SGST; inter-state
supplies carry it entirely as IGST. Amounts are plain floats without rounding.
"""

from dataclasses import asdict, dataclass
from typing import Iterable, NamedTuple, Optional

from invoizo.app.core.enums import TransactionType
from invoizo.app.core.validation import validate_range

GST_RATE_MIN = 0.0
GST_RATE_MAX = 28.0


class ItemGST(NamedTuple):
    cgst: float
    sgst: float
    igst: float
    total: float
    total_with_gst: float


@dataclass
class GSTDetails:
    cgst_total: float = 0.0
    sgst_total: float = 0.0
    igst_total: float = 0.0
    gst_total: float = 0.0

    def as_dict(self) -> dict:
        return asdict(self)


def validate_gst_rate(gst_rate: Optional[float]) -> None:
    validate_range(gst_rate, GST_RATE_MIN, GST_RATE_MAX, "GST rate", unit="percent")


def _transaction_type(value) -> TransactionType:
    if value is None:
        return TransactionType.INTRA_STATE
    return TransactionType(value)


def calculate_item_gst(amount: float, gst_rate: Optional[float], transaction_type=None) -> ItemGST:
    """GST split for a base ``amount`` (already multiplied by quantity)."""
    validate_gst_rate(gst_rate)
    base = amount or 0.0
    gst = base * gst_rate / 100
    if _transaction_type(transaction_type) is TransactionType.INTER_STATE:
        cgst, sgst, igst = 0.0, 0.0, gst
    else:
        cgst = sgst = gst / 2
        igst = 0.0
    total = cgst + sgst + igst
    return ItemGST(cgst=cgst, sgst=sgst, igst=igst, total=total, total_with_gst=base + total)


def item_base_amount(item) -> float:
    return (item.qty or 0) * (item.amount or 0.0)


def calculate_invoice_gst(items: Iterable, transaction_type=None) -> GSTDetails:
    details = GSTDetails()
    for item in items or []:
        gst_rate = item.gst_rate if item.gst_rate is not None else 0.0
        item_gst = calculate_item_gst(item_base_amount(item), gst_rate, transaction_type)
        details.cgst_total += item_gst.cgst
        details.sgst_total += item_gst.sgst
        details.igst_total += item_gst.igst
    details.gst_total = details.cgst_total + details.sgst_total + details.igst_total
    return details


def recalculate_invoice_gst(invoice) -> GSTDetails:
    """Rewrite every item's derived GST fields and the invoice's aggregated ``gst_details``."""
    for item in invoice.items:
        if item.gst_rate is None:
            item.gst_rate = 0.0
        item_gst = calculate_item_gst(item_base_amount(item), item.gst_rate, invoice.transaction_type)
        item.cgst_amount = item_gst.cgst
        item.sgst_amount = item_gst.sgst
        item.igst_amount = item_gst.igst
        item.total_with_gst = item_gst.total_with_gst
    details = calculate_invoice_gst(invoice.items, invoice.transaction_type)
    invoice.gst_details = details.as_dict()
    return details


def invoice_subtotal(invoice) -> float:
    return sum(item_base_amount(item) for item in invoice.items or [])


def invoice_total(invoice) -> float:
    """Subtotal plus GST when GST details exist, otherwise subtotal plus the legacy flat tax."""
    subtotal = invoice_subtotal(invoice)
    if invoice.gst_details:
        return subtotal + (invoice.gst_details.get("gst_total") or 0.0)
    return subtotal + (invoice.tax or 0.0)
