"""Financial ledger.

System-managed entries are owned by a document (an invoice, a GST challan or
a payroll month) and identified by the pair ``(document_type, document_id)``,
which the table keeps unique. Creating an entry for a document that already
has one is a no-op and reversing a payment deletes the entry outright, so the
ledger can always be rebuilt from the documents themselves. Manual entries
carry no document and are never touched by synchronization.
"""
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from jari_erp.db import transaction
from jari_erp.errors import InvalidInput
from jari_erp.models import (
    ChallanStatus,
    GSTChallan,
    Invoice,
    InvoiceStatus,
    PaymentStatus,
    Transaction,
    TransactionCategory,
    TransactionSource,
    TransactionType,
)

logger = logging.getLogger(__name__)

INVOICE_DOC = "invoice"
CHALLAN_DOC = "challan"
PAYROLL_DOC = "payroll"


def ledger_key(document_type: str, document_id) -> str:
    return f"{document_type}:{document_id}"


def find_document_entry(session: Session, document_type: str, document_id) -> Optional[Transaction]:
    return session.exec(
        select(Transaction)
        .where(
            Transaction.document_type == document_type,
            Transaction.document_id == str(document_id),
        )
        .with_for_update()
    ).first()


def record_document_entry(session: Session, entry: Transaction) -> Transaction:
    """Insert ``entry`` unless its document already owns one."""
    with transaction(session):
        existing = find_document_entry(session, entry.document_type, entry.document_id)
        if existing:
            return existing
        session.add(entry)
        session.flush()
    logger.info("Ledger entry %s: %s %s", entry.ledger_key, entry.txn_type.value, entry.amount)
    return entry


def remove_document_entry(session: Session, document_type: str, document_id) -> bool:
    with transaction(session):
        existing = find_document_entry(session, document_type, document_id)
        if not existing:
            return False
        session.delete(existing)
    logger.info("Ledger entry %s removed", ledger_key(document_type, document_id))
    return True


def invoice_entry(invoice: Invoice) -> Transaction:
    return Transaction(
        description=f"Invoice Payment - {invoice.client_name}",
        txn_type=TransactionType.CREDIT,
        amount=invoice.grand_total,
        txn_date=date.today(),
        status=PaymentStatus.PAID,
        source=TransactionSource.INVOICE,
        category=TransactionCategory.SALES,
        reference_id=invoice.id,
        reference_number=invoice.invoice_number,
        document_type=INVOICE_DOC,
        document_id=str(invoice.id),
    )


def challan_entry(challan: GSTChallan) -> Transaction:
    return Transaction(
        description=f"GST Payment - {challan.tax_period}",
        txn_type=TransactionType.DEBIT,
        amount=challan.total_payable,
        txn_date=date.today(),
        status=PaymentStatus.PAID,
        source=TransactionSource.GST_CHALLAN,
        category=TransactionCategory.GST,
        reference_id=challan.id,
        reference_number=challan.challan_number,
        document_type=CHALLAN_DOC,
        document_id=str(challan.id),
    )


def sync_invoice(session: Session, invoice: Invoice, new_status: InvoiceStatus) -> None:
    old_status = invoice.status
    if new_status == InvoiceStatus.PAID and old_status != InvoiceStatus.PAID:
        record_document_entry(session, invoice_entry(invoice))
    elif old_status == InvoiceStatus.PAID and new_status != InvoiceStatus.PAID:
        remove_document_entry(session, INVOICE_DOC, invoice.id)


def sync_challan(session: Session, challan: GSTChallan, new_status: ChallanStatus) -> None:
    old_status = challan.status
    if new_status == ChallanStatus.PAID and old_status != ChallanStatus.PAID:
        record_document_entry(session, challan_entry(challan))
    elif old_status == ChallanStatus.PAID and new_status == ChallanStatus.PENDING:
        remove_document_entry(session, CHALLAN_DOC, challan.id)


def add_manual_transaction(
    session: Session,
    description: str,
    txn_type: TransactionType,
    amount: int,
    category: TransactionCategory = TransactionCategory.OTHER,
    status: PaymentStatus = PaymentStatus.PAID,
    txn_date: Optional[date] = None,
) -> Transaction:
    if amount <= 0:
        raise InvalidInput("Amount must be > 0")
    entry = Transaction(
        description=description,
        txn_type=txn_type,
        amount=amount,
        txn_date=txn_date or date.today(),
        status=status,
        source=TransactionSource.MANUAL,
        category=category,
    )
    with transaction(session):
        session.add(entry)
    session.refresh(entry)
    logger.info("Manual %s entry of %s: %s", txn_type.value, amount, description)
    return entry


def list_transactions(
    session: Session,
    txn_type: Optional[TransactionType] = None,
    source: Optional[TransactionSource] = None,
    category: Optional[TransactionCategory] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[Transaction]:
    query = select(Transaction)
    if txn_type:
        query = query.where(Transaction.txn_type == txn_type)
    if source:
        query = query.where(Transaction.source == source)
    if category:
        query = query.where(Transaction.category == category)
    if start:
        query = query.where(Transaction.txn_date >= start)
    if end:
        query = query.where(Transaction.txn_date <= end)
    return session.exec(query.order_by(Transaction.txn_date.desc(), Transaction.id.desc())).all()


def _sum(session: Session, *conditions) -> int:
    total = session.exec(select(func.coalesce(func.sum(Transaction.amount), 0)).where(*conditions)).one()
    return int(total)


def total_revenue(session: Session) -> int:
    return _sum(session, Transaction.txn_type == TransactionType.CREDIT, Transaction.status == PaymentStatus.PAID)


def total_expenses(session: Session) -> int:
    return _sum(session, Transaction.txn_type == TransactionType.DEBIT, Transaction.status == PaymentStatus.PAID)


def outstanding_payments(session: Session) -> int:
    return _sum(session, Transaction.status.in_([PaymentStatus.PENDING, PaymentStatus.OVERDUE]))


def outstanding_receivables(session: Session) -> int:
    # Issued-but-unpaid invoices never reach the ledger.
    total = session.exec(
        select(func.coalesce(func.sum(Invoice.grand_total), 0)).where(Invoice.status == InvoiceStatus.ISSUED)
    ).one()
    return int(total)


def summary(session: Session) -> dict:
    revenue = total_revenue(session)
    expenses = total_expenses(session)
    return {
        "total_revenue": revenue,
        "total_expenses": expenses,
        "profit": revenue - expenses,
        "outstanding_receivables": outstanding_receivables(session),
        "outstanding_payments": outstanding_payments(session),
    }


def reconcile_document_entries(session: Session) -> dict:
    """Bring invoice and challan entries back in line with document status.

    PAID documents get their entry if it is missing, invoices that are not
    PAID and PENDING challans lose theirs. A FILED challan keeps whatever it
    has, matching what a status change to FILED does.
    """
    created = removed = 0
    with transaction(session):
        for invoice in session.exec(select(Invoice)).all():
            has_entry = find_document_entry(session, INVOICE_DOC, invoice.id) is not None
            if invoice.status == InvoiceStatus.PAID and not has_entry:
                record_document_entry(session, invoice_entry(invoice))
                created += 1
            elif invoice.status != InvoiceStatus.PAID and has_entry:
                remove_document_entry(session, INVOICE_DOC, invoice.id)
                removed += 1
        for challan in session.exec(select(GSTChallan)).all():
            has_entry = find_document_entry(session, CHALLAN_DOC, challan.id) is not None
            if challan.status == ChallanStatus.PAID and not has_entry:
                record_document_entry(session, challan_entry(challan))
                created += 1
            elif challan.status == ChallanStatus.PENDING and has_entry:
                remove_document_entry(session, CHALLAN_DOC, challan.id)
                removed += 1
    logger.info("Ledger reconciled: %s created, %s removed", created, removed)
    return {"created": created, "removed": removed}
