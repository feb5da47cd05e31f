from datetime import date
from types import SimpleNamespace

import pytest

from jari_erp.config import settings
from jari_erp.errors import InvalidInput, NotFound
from jari_erp.models import ChallanStatus, GSTType, InvoiceStatus
from jari_erp.schemas import ChallanCreate, ClientCreate, InvoiceCreate, InvoiceLineCreate, OrderCreate
from jari_erp.services import billing, clients


def _invoice(client_state=None, status=InvoiceStatus.DRAFT, **kwargs):
    return InvoiceCreate(
        client_name="Surat Textiles",
        client_state=settings.COMPANY_STATE if client_state is None else client_state,
        lines=[InvoiceLineCreate(product_key="real_jari", quantity=2, rate=15000)],
        status=status,
        **kwargs,
    )


def test_intra_state_split():
    lines = [SimpleNamespace(quantity=2, rate=15000)]
    totals = billing.compute_invoice_totals(lines, "Gujarat", "gujarat", 18)
    assert totals["gst_type"] == GSTType.CGST_SGST
    assert totals["subtotal"] == 30000
    assert totals["cgst_amount"] == 2700
    assert totals["sgst_amount"] == 2700
    assert totals["igst_amount"] == 0
    assert totals["grand_total"] == 35400


def test_inter_state_split():
    lines = [SimpleNamespace(quantity=2, rate=15000)]
    totals = billing.compute_invoice_totals(lines, "maharashtra", "gujarat", 18)
    assert totals["gst_type"] == GSTType.IGST
    assert totals["cgst_amount"] == 0
    assert totals["sgst_amount"] == 0
    assert totals["igst_amount"] == 5400
    assert totals["total_tax"] == 5400


def test_rounding_is_half_up():
    # 0.5 kg at 101 = 50.5 taxable
    lines = [SimpleNamespace(quantity=0.5, rate=101)]
    totals = billing.compute_invoice_totals(lines, "gujarat", "gujarat", 18)
    assert totals["subtotal"] == 51
    # 51 * 9% = 4.59
    assert totals["cgst_amount"] == 5


def test_issue_invoice_numbers_and_lines(session):
    first = billing.issue_invoice(session, _invoice())
    second = billing.issue_invoice(session, _invoice(client_state="maharashtra"))

    year = date.today().year
    assert first.invoice_number == f"INV-{year}-001"
    assert second.invoice_number == f"INV-{year}-002"
    assert second.gst_type == GSTType.IGST

    lines = billing.invoice_lines(session, first.id)
    assert len(lines) == 1
    assert lines[0].hsn_code == "5605"
    assert lines[0].taxable_value == 30000


def test_issue_invoice_requires_lines(session):
    with pytest.raises(InvalidInput):
        billing.issue_invoice(session, InvoiceCreate(client_name="X", lines=[]))


def test_issue_invoice_unknown_client(session):
    with pytest.raises(NotFound):
        billing.issue_invoice(session, _invoice(client_id=99))


def test_negative_gst_rate_rejected(session):
    with pytest.raises(InvalidInput):
        billing.issue_invoice(session, _invoice(gst_rate=-18))
    assert billing.list_invoices(session) == []


def test_draft_from_order(session):
    client = clients.add_client(
        session, ClientCreate(client_name="Varanasi Sarees", state="uttar pradesh", gstin="09ABCDE1234F1Z5")
    )
    order = clients.add_order(
        session, OrderCreate(client_id=client.id, product_key="silver", quantity=2, amount=150000)
    )

    draft = billing.draft_invoice_from_order(session, order.id)

    assert draft["client_name"] == "Varanasi Sarees"
    assert draft["client_state"] == "uttar pradesh"
    assert draft["lines"][0]["hsn_code"] == "7106"
    assert draft["lines"][0]["rate"] == 75000


def test_challan_amounts_for_period(session):
    billing.issue_invoice(session, _invoice(invoice_date=date(2024, 7, 10)))
    billing.issue_invoice(session, _invoice(client_state="maharashtra", invoice_date=date(2024, 7, 20)))
    billing.issue_invoice(session, _invoice(invoice_date=date(2024, 8, 1)))

    amounts = billing.challan_amounts_for_period(session, "2024-07")

    assert amounts == {"tax_period": "2024-07", "cgst_amount": 2700, "sgst_amount": 2700, "igst_amount": 5400}


def test_create_challan_autofills_from_period(session):
    billing.issue_invoice(session, _invoice(invoice_date=date(2024, 7, 10)))

    challan = billing.create_challan(session, ChallanCreate(tax_period="2024-07", interest_amount=100))

    assert challan.cgst_amount == 2700
    assert challan.sgst_amount == 2700
    assert challan.total_payable == 5500
    assert challan.gstin == settings.COMPANY_GSTIN
    assert challan.status == ChallanStatus.PENDING


def test_challan_with_nothing_payable_rejected(session):
    with pytest.raises(InvalidInput):
        billing.create_challan(session, ChallanCreate(tax_period="2024-07"))


def test_bad_tax_period(session):
    with pytest.raises(InvalidInput):
        billing.create_challan(session, ChallanCreate(tax_period="July", cgst_amount=10))


def test_billing_summary(session):
    invoice = billing.issue_invoice(session, _invoice())
    billing.issue_invoice(session, _invoice())
    billing.update_invoice_status(session, invoice.id, InvoiceStatus.PAID)
    challan = billing.create_challan(session, ChallanCreate(tax_period="2024-07", cgst_amount=500))
    billing.create_challan(session, ChallanCreate(tax_period="2024-08", cgst_amount=700))
    billing.update_challan_status(session, challan.id, ChallanStatus.PAID)

    summary = billing.billing_summary(session)

    assert summary == {
        "total_invoices": 2,
        "paid_invoices": 1,
        "pending_challans": 1,
        "total_gst_collected": 10800,
        "total_gst_paid": 500,
    }
