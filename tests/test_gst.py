from types import SimpleNamespace

import pytest

from invoizo.app.core.enums import TransactionType
from invoizo.app.core.exceptions import InvoiceValidationError
from invoizo.app.services.gst import (
    calculate_invoice_gst,
    calculate_item_gst,
    invoice_subtotal,
    invoice_total,
    recalculate_invoice_gst,
)


def _item(qty=1, amount=0.0, gst_rate=0.0):
    return SimpleNamespace(
        qty=qty,
        amount=amount,
        gst_rate=gst_rate,
        cgst_amount=None,
        sgst_amount=None,
        igst_amount=None,
        total_with_gst=None,
    )


def test_intra_state_18_percent_on_1000():
    result = calculate_item_gst(1000.0, 18.0, TransactionType.INTRA_STATE)
    assert result.cgst == pytest.approx(90.0, abs=1e-4)
    assert result.sgst == pytest.approx(90.0, abs=1e-4)
    assert result.igst == 0.0
    assert result.total == pytest.approx(180.0, abs=1e-4)
    assert result.total_with_gst == pytest.approx(1180.0, abs=1e-4)


def test_inter_state_puts_everything_in_igst():
    result = calculate_item_gst(1000.0, 18.0, TransactionType.INTER_STATE)
    assert result.cgst == 0.0
    assert result.sgst == 0.0
    assert result.igst == pytest.approx(180.0, abs=1e-4)
    assert result.total_with_gst == pytest.approx(1180.0, abs=1e-4)


def test_missing_transaction_type_defaults_to_intra_state():
    result = calculate_item_gst(200.0, 5.0, None)
    assert result.cgst == pytest.approx(5.0, abs=1e-4)
    assert result.sgst == pytest.approx(5.0, abs=1e-4)
    assert result.igst == 0.0


@pytest.mark.parametrize("rate", [0.0, 5.0, 12.0, 28.0])
def test_rates_inside_range_are_accepted(rate):
    result = calculate_item_gst(500.0, rate, "INTRA_STATE")
    assert result.total == pytest.approx(500.0 * rate / 100, abs=1e-4)
    assert result.cgst == result.sgst


@pytest.mark.parametrize("rate", [-0.01, 28.01, 100.0, None])
def test_rates_outside_range_are_rejected(rate):
    with pytest.raises(InvoiceValidationError) as exc_info:
        calculate_item_gst(500.0, rate, TransactionType.INTRA_STATE)
    assert exc_info.value.message == "GST rate must be between 0 and 28 percent"


def test_invoice_gst_sums_items_by_quantity():
    items = [_item(qty=2, amount=500.0, gst_rate=18.0), _item(qty=1, amount=100.0, gst_rate=5.0)]
    details = calculate_invoice_gst(items, TransactionType.INTRA_STATE)
    assert details.cgst_total == pytest.approx(92.5, abs=1e-4)
    assert details.sgst_total == pytest.approx(92.5, abs=1e-4)
    assert details.igst_total == 0.0
    assert details.gst_total == pytest.approx(185.0, abs=1e-4)


def test_invoice_gst_empty_list_is_all_zeros():
    details = calculate_invoice_gst([], TransactionType.INTER_STATE)
    assert details.as_dict() == {"cgst_total": 0.0, "sgst_total": 0.0, "igst_total": 0.0, "gst_total": 0.0}


def test_recalculate_writes_item_fields_and_invoice_totals():
    invoice = SimpleNamespace(
        items=[_item(qty=3, amount=100.0, gst_rate=12.0), _item(qty=1, amount=50.0, gst_rate=None)],
        transaction_type="INTER_STATE",
        gst_details=None,
        tax=0.0,
    )
    recalculate_invoice_gst(invoice)

    first, second = invoice.items
    assert first.igst_amount == pytest.approx(36.0, abs=1e-4)
    assert first.cgst_amount == 0.0 and first.sgst_amount == 0.0
    assert first.total_with_gst == pytest.approx(336.0, abs=1e-4)
    assert second.gst_rate == 0.0
    assert second.total_with_gst == pytest.approx(50.0, abs=1e-4)

    assert invoice.gst_details["igst_total"] == pytest.approx(36.0, abs=1e-4)
    assert invoice.gst_details["gst_total"] == pytest.approx(
        invoice.gst_details["cgst_total"] + invoice.gst_details["sgst_total"] + invoice.gst_details["igst_total"]
    )
    for item in invoice.items:
        assert item.total_with_gst == pytest.approx(
            item.qty * item.amount + item.cgst_amount + item.sgst_amount + item.igst_amount
        )


def test_invoice_total_uses_gst_when_present_else_flat_tax():
    items = [_item(qty=2, amount=100.0)]
    with_gst = SimpleNamespace(items=items, gst_details={"gst_total": 36.0}, tax=10.0)
    without_gst = SimpleNamespace(items=items, gst_details=None, tax=10.0)

    assert invoice_subtotal(with_gst) == 200.0
    assert invoice_total(with_gst) == pytest.approx(236.0)
    assert invoice_total(without_gst) == pytest.approx(210.0)
