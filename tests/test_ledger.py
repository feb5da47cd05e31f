import pytest
from sqlmodel import select

from jari_erp.config import settings
from jari_erp.errors import InvalidInput
from jari_erp.models import (
    ChallanStatus,
    InvoiceStatus,
    PaymentStatus,
    Transaction,
    TransactionCategory,
    TransactionSource,
    TransactionType,
)
from jari_erp.schemas import ChallanCreate, InvoiceCreate, InvoiceLineCreate
from jari_erp.services import billing, ledger


def _entries(session, document_type):
    return session.exec(select(Transaction).where(Transaction.document_type == document_type)).all()


def _issue(session, status=InvoiceStatus.ISSUED):
    return billing.issue_invoice(
        session,
        InvoiceCreate(
            client_name="Surat Textiles",
            client_state=settings.COMPANY_STATE,
            lines=[InvoiceLineCreate(product_key="real_jari", quantity=2, rate=15000)],
            status=status,
        ),
    )


def _challan(session, status=ChallanStatus.PENDING):
    return billing.create_challan(
        session, ChallanCreate(tax_period="2024-07", cgst_amount=1000, sgst_amount=1000, status=status)
    )


def test_invoice_paid_round_trip(session):
    invoice = _issue(session)
    assert _entries(session, ledger.INVOICE_DOC) == []

    billing.update_invoice_status(session, invoice.id, InvoiceStatus.PAID)
    entries = _entries(session, ledger.INVOICE_DOC)
    assert len(entries) == 1
    entry = entries[0]
    assert entry.txn_type == TransactionType.CREDIT
    assert entry.category == TransactionCategory.SALES
    assert entry.source == TransactionSource.INVOICE
    assert entry.amount == 35400
    assert entry.ledger_key == f"invoice:{invoice.id}"
    assert entry.description == "Invoice Payment - Surat Textiles"
    assert ledger.total_revenue(session) == 35400

    billing.update_invoice_status(session, invoice.id, InvoiceStatus.ISSUED)
    assert _entries(session, ledger.INVOICE_DOC) == []
    assert ledger.total_revenue(session) == 0


def test_invoice_paid_twice_keeps_one_entry(session):
    invoice = _issue(session)
    billing.update_invoice_status(session, invoice.id, InvoiceStatus.PAID)
    billing.update_invoice_status(session, invoice.id, InvoiceStatus.PAID)
    assert len(_entries(session, ledger.INVOICE_DOC)) == 1


def test_invoice_created_paid_is_booked_at_once(session):
    _issue(session, status=InvoiceStatus.PAID)
    assert len(_entries(session, ledger.INVOICE_DOC)) == 1


def test_invoice_cancelled_from_paid_removes_entry(session):
    invoice = _issue(session, status=InvoiceStatus.PAID)
    billing.update_invoice_status(session, invoice.id, InvoiceStatus.CANCELLED)
    assert _entries(session, ledger.INVOICE_DOC) == []


def test_challan_paid_twice_keeps_one_entry(session):
    challan = _challan(session)
    billing.update_challan_status(session, challan.id, ChallanStatus.PAID)
    billing.update_challan_status(session, challan.id, ChallanStatus.PAID)

    entries = _entries(session, ledger.CHALLAN_DOC)
    assert len(entries) == 1
    assert entries[0].txn_type == TransactionType.DEBIT
    assert entries[0].category == TransactionCategory.GST
    assert entries[0].amount == 2000
    assert entries[0].description == "GST Payment - 2024-07"


def test_challan_filed_keeps_entry(session):
    challan = _challan(session, status=ChallanStatus.PAID)
    billing.update_challan_status(session, challan.id, ChallanStatus.FILED)
    assert len(_entries(session, ledger.CHALLAN_DOC)) == 1

    billing.update_challan_status(session, challan.id, ChallanStatus.PENDING)
    assert len(_entries(session, ledger.CHALLAN_DOC)) == 1


def test_challan_paid_to_pending_removes_entry(session):
    challan = _challan(session, status=ChallanStatus.PAID)
    billing.update_challan_status(session, challan.id, ChallanStatus.PENDING)
    assert _entries(session, ledger.CHALLAN_DOC) == []


def test_manual_entries_and_summary(session):
    invoice = _issue(session)
    billing.update_invoice_status(session, invoice.id, InvoiceStatus.PAID)
    _issue(session)
    ledger.add_manual_transaction(
        session, "Copper purchase", TransactionType.DEBIT, 8000, category=TransactionCategory.PURCHASE
    )
    ledger.add_manual_transaction(
        session, "Electricity bill", TransactionType.DEBIT, 1500, status=PaymentStatus.PENDING
    )

    assert ledger.summary(session) == {
        "total_revenue": 35400,
        "total_expenses": 8000,
        "profit": 27400,
        "outstanding_receivables": 35400,
        "outstanding_payments": 1500,
    }

    manual = ledger.list_transactions(session, source=TransactionSource.MANUAL)
    assert {entry.description for entry in manual} == {"Copper purchase", "Electricity bill"}


def test_manual_entry_requires_positive_amount(session):
    with pytest.raises(InvalidInput):
        ledger.add_manual_transaction(session, "Nothing", TransactionType.CREDIT, 0)


def test_reconcile_restores_missing_entries(session):
    invoice = _issue(session, status=InvoiceStatus.PAID)
    challan = _challan(session, status=ChallanStatus.PAID)
    for entry in session.exec(select(Transaction)).all():
        session.delete(entry)
    session.commit()

    result = ledger.reconcile_document_entries(session)

    assert result == {"created": 2, "removed": 0}
    assert ledger.find_document_entry(session, ledger.INVOICE_DOC, invoice.id).amount == invoice.grand_total
    assert ledger.find_document_entry(session, ledger.CHALLAN_DOC, challan.id).amount == 2000
    assert ledger.reconcile_document_entries(session) == {"created": 0, "removed": 0}
