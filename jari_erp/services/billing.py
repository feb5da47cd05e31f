import logging
import re
from datetime import date
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from jari_erp.config import settings
from jari_erp.db import transaction
from jari_erp.errors import InvalidInput, NotFound
from jari_erp.models import (
    ChallanStatus,
    Client,
    GSTChallan,
    GSTType,
    Invoice,
    InvoiceLine,
    InvoiceStatus,
    Order,
)
from jari_erp.schemas import ChallanCreate, InvoiceCreate
from jari_erp.services import ledger
from jari_erp.services.money import D, percent_of, rupees

logger = logging.getLogger(__name__)

DEFAULT_HSN_CODE = "5605"

HSN_CODES: Dict[str, str] = {
    "real_jari": "5605",
    "imitation_jari": "5605",
    "silver": "7106",
    "copper": "7403",
    "polyester_yarn": "5402",
}

PRODUCT_RATES: Dict[str, int] = {
    "real_jari": 15000,
    "imitation_jari": 3000,
    "silver": 75000,
    "copper": 800,
    "polyester_yarn": 200,
}

TAX_PERIOD_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def _same_state(client_state: str, company_state: str) -> bool:
    # A client without a state is billed as intra-state.
    if not client_state:
        return True
    return client_state.strip().lower() == company_state.strip().lower()


def line_taxable_value(quantity, rate) -> int:
    return rupees(D(quantity) * D(rate))


def compute_invoice_totals(lines: Iterable, client_state: str, company_state: str,
                           gst_rate: float) -> dict:
    """GST split for a set of lines.

    Each line needs ``quantity`` and ``rate``. An intra-state sale splits the
    rate evenly into CGST and SGST; an inter-state sale carries it all as IGST.
    """
    if gst_rate < 0:
        raise InvalidInput("GST rate cannot be negative")
    subtotal = sum(line_taxable_value(line.quantity, line.rate) for line in lines)
    if _same_state(client_state, company_state):
        gst_type = GSTType.CGST_SGST
        cgst_rate = sgst_rate = gst_rate / 2
        igst_rate = 0.0
    else:
        gst_type = GSTType.IGST
        cgst_rate = sgst_rate = 0.0
        igst_rate = gst_rate
    cgst_amount = percent_of(subtotal, cgst_rate)
    sgst_amount = percent_of(subtotal, sgst_rate)
    igst_amount = percent_of(subtotal, igst_rate)
    total_tax = cgst_amount + sgst_amount + igst_amount
    return {
        "gst_type": gst_type,
        "cgst_rate": cgst_rate,
        "sgst_rate": sgst_rate,
        "igst_rate": igst_rate,
        "subtotal": subtotal,
        "cgst_amount": cgst_amount,
        "sgst_amount": sgst_amount,
        "igst_amount": igst_amount,
        "total_tax": total_tax,
        "grand_total": subtotal + total_tax,
    }


def _next_number(session: Session, column, prefix: str) -> str:
    taken = session.exec(select(func.count()).where(column.startswith(prefix))).one()
    seq = int(taken) + 1
    while session.exec(select(column).where(column == f"{prefix}{seq:03d}")).first():
        seq += 1
    return f"{prefix}{seq:03d}"


def next_invoice_number(session: Session, on: Optional[date] = None) -> str:
    on = on or date.today()
    return _next_number(session, Invoice.invoice_number, f"INV-{on.year}-")


def next_challan_number(session: Session, on: Optional[date] = None) -> str:
    on = on or date.today()
    return _next_number(session, GSTChallan.challan_number, f"GST-{on.year}-{on.month:02d}-")


def list_invoices(session: Session, status: Optional[InvoiceStatus] = None) -> List[Invoice]:
    query = select(Invoice)
    if status:
        query = query.where(Invoice.status == status)
    return session.exec(query.order_by(Invoice.id.desc())).all()


def get_invoice(session: Session, invoice_id: int) -> Invoice:
    invoice = session.get(Invoice, invoice_id)
    if not invoice:
        raise NotFound("Invoice", invoice_id)
    return invoice


def invoice_lines(session: Session, invoice_id: int) -> List[InvoiceLine]:
    return session.exec(
        select(InvoiceLine).where(InvoiceLine.invoice_id == invoice_id).order_by(InvoiceLine.position)
    ).all()


def draft_invoice_from_order(session: Session, order_id: int) -> dict:
    """Pre-fill an invoice from an order: client snapshot plus one line."""
    order = session.get(Order, order_id)
    if not order:
        raise NotFound("Order", order_id)
    client = session.get(Client, order.client_id) if order.client_id else None
    rate = PRODUCT_RATES.get(order.product_key)
    if rate is None:
        rate = float(D(order.amount) / D(order.quantity)) if order.quantity else 0.0
    return {
        "invoice_number": next_invoice_number(session),
        "order_id": order.id,
        "client_id": order.client_id,
        "client_name": client.client_name if client else order.client_name,
        "client_address": client.billing_address if client else "",
        "client_gstin": client.gstin if client else "",
        "client_state": client.state if client else "",
        "lines": [
            {
                "product_key": order.product_key,
                "hsn_code": HSN_CODES.get(order.product_key, DEFAULT_HSN_CODE),
                "quantity": order.quantity,
                "rate": rate,
                "taxable_value": order.amount,
            }
        ],
    }


def issue_invoice(session: Session, data: InvoiceCreate) -> Invoice:
    if not data.lines:
        raise InvalidInput("At least one line item is required")
    for line in data.lines:
        if line.quantity <= 0:
            raise InvalidInput(f"{line.product_key} qty must be > 0")
        if line.rate < 0:
            raise InvalidInput(f"{line.product_key} rate cannot be negative")

    with transaction(session):
        client = None
        if data.client_id is not None:
            client = session.get(Client, data.client_id)
            if not client:
                raise NotFound("Client", data.client_id)
        if data.order_id is not None and not session.get(Order, data.order_id):
            raise NotFound("Order", data.order_id)

        invoice_number = data.invoice_number or next_invoice_number(session)
        if session.exec(select(Invoice).where(Invoice.invoice_number == invoice_number)).first():
            raise InvalidInput(f"Invoice number {invoice_number} already exists")

        client_name = data.client_name or (client.client_name if client else "")
        if not client_name:
            raise InvalidInput("Client name is required")
        client_state = data.client_state or (client.state if client else "")
        company_state = settings.COMPANY_STATE
        gst_rate = settings.GST_RATE if data.gst_rate is None else data.gst_rate
        totals = compute_invoice_totals(data.lines, client_state, company_state, gst_rate)

        invoice = Invoice(
            invoice_number=invoice_number,
            invoice_date=data.invoice_date or date.today(),
            order_id=data.order_id,
            client_id=data.client_id,
            client_name=client_name,
            client_address=data.client_address or (client.billing_address if client else ""),
            client_gstin=data.client_gstin or (client.gstin if client else ""),
            client_state=client_state,
            company_state=company_state,
            status=data.status,
            **totals,
        )
        session.add(invoice)
        session.flush()

        for position, line in enumerate(data.lines):
            session.add(
                InvoiceLine(
                    invoice_id=invoice.id,
                    position=position,
                    product_key=line.product_key,
                    hsn_code=line.hsn_code or HSN_CODES.get(line.product_key, DEFAULT_HSN_CODE),
                    quantity=line.quantity,
                    rate=line.rate,
                    taxable_value=line_taxable_value(line.quantity, line.rate),
                )
            )

        if invoice.status == InvoiceStatus.PAID:
            ledger.record_document_entry(session, ledger.invoice_entry(invoice))
    session.refresh(invoice)
    logger.info(
        "Invoice %s issued to %s for %s (%s)",
        invoice.invoice_number, invoice.client_name, invoice.grand_total, invoice.status.value,
    )
    return invoice


def update_invoice_status(session: Session, invoice_id: int, status: InvoiceStatus) -> Invoice:
    with transaction(session):
        invoice = session.exec(select(Invoice).where(Invoice.id == invoice_id).with_for_update()).first()
        if not invoice:
            raise NotFound("Invoice", invoice_id)
        if invoice.status == status:
            return invoice
        previous = invoice.status
        ledger.sync_invoice(session, invoice, status)
        invoice.status = status
        session.add(invoice)
    session.refresh(invoice)
    logger.info("Invoice %s: %s -> %s", invoice.invoice_number, previous.value, status.value)
    return invoice


def challan_amounts_for_period(session: Session, tax_period: str) -> dict:
    """Tax collected on invoices dated within ``tax_period`` (YYYY-MM)."""
    if not TAX_PERIOD_RE.match(tax_period):
        raise InvalidInput("Tax period must be YYYY-MM")
    year, month = (int(part) for part in tax_period.split("-"))
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    row = session.exec(
        select(
            func.coalesce(func.sum(Invoice.cgst_amount), 0),
            func.coalesce(func.sum(Invoice.sgst_amount), 0),
            func.coalesce(func.sum(Invoice.igst_amount), 0),
        ).where(Invoice.invoice_date >= start, Invoice.invoice_date < end)
    ).one()
    return {
        "tax_period": tax_period,
        "cgst_amount": int(row[0]),
        "sgst_amount": int(row[1]),
        "igst_amount": int(row[2]),
    }


def list_challans(session: Session, status: Optional[ChallanStatus] = None) -> List[GSTChallan]:
    query = select(GSTChallan)
    if status:
        query = query.where(GSTChallan.status == status)
    return session.exec(query.order_by(GSTChallan.id.desc())).all()


def get_challan(session: Session, challan_id: int) -> GSTChallan:
    challan = session.get(GSTChallan, challan_id)
    if not challan:
        raise NotFound("Challan", challan_id)
    return challan


def create_challan(session: Session, data: ChallanCreate) -> GSTChallan:
    if not TAX_PERIOD_RE.match(data.tax_period):
        raise InvalidInput("Tax period must be YYYY-MM")
    for name in ("cgst_amount", "sgst_amount", "igst_amount", "interest_amount", "penalty_amount"):
        value = getattr(data, name)
        if value is not None and value < 0:
            raise InvalidInput(f"{name} cannot be negative")

    with transaction(session):
        period = challan_amounts_for_period(session, data.tax_period)
        cgst = period["cgst_amount"] if data.cgst_amount is None else data.cgst_amount
        sgst = period["sgst_amount"] if data.sgst_amount is None else data.sgst_amount
        igst = period["igst_amount"] if data.igst_amount is None else data.igst_amount
        total_payable = cgst + sgst + igst + data.interest_amount + data.penalty_amount
        if total_payable <= 0:
            raise InvalidInput("Total payable must be > 0")

        challan_number = data.challan_number or next_challan_number(session)
        if session.exec(select(GSTChallan).where(GSTChallan.challan_number == challan_number)).first():
            raise InvalidInput(f"Challan number {challan_number} already exists")

        challan = GSTChallan(
            challan_number=challan_number,
            tax_period=data.tax_period,
            gstin=data.gstin or settings.COMPANY_GSTIN,
            cgst_amount=cgst,
            sgst_amount=sgst,
            igst_amount=igst,
            interest_amount=data.interest_amount,
            penalty_amount=data.penalty_amount,
            total_payable=total_payable,
            payment_mode=data.payment_mode,
            status=data.status,
        )
        session.add(challan)
        session.flush()

        if challan.status == ChallanStatus.PAID:
            ledger.record_document_entry(session, ledger.challan_entry(challan))
    session.refresh(challan)
    logger.info(
        "Challan %s for %s created: %s payable (%s)",
        challan.challan_number, challan.tax_period, challan.total_payable, challan.status.value,
    )
    return challan


def update_challan_status(session: Session, challan_id: int, status: ChallanStatus) -> GSTChallan:
    with transaction(session):
        challan = session.exec(
            select(GSTChallan).where(GSTChallan.id == challan_id).with_for_update()
        ).first()
        if not challan:
            raise NotFound("Challan", challan_id)
        if challan.status == status:
            return challan
        previous = challan.status
        ledger.sync_challan(session, challan, status)
        challan.status = status
        session.add(challan)
    session.refresh(challan)
    logger.info("Challan %s: %s -> %s", challan.challan_number, previous.value, status.value)
    return challan


def billing_summary(session: Session) -> dict:
    total_invoices = session.exec(select(func.count()).select_from(Invoice)).one()
    paid_invoices = session.exec(
        select(func.count()).select_from(Invoice).where(Invoice.status == InvoiceStatus.PAID)
    ).one()
    pending_challans = session.exec(
        select(func.count()).select_from(GSTChallan).where(GSTChallan.status == ChallanStatus.PENDING)
    ).one()
    gst_collected = session.exec(select(func.coalesce(func.sum(Invoice.total_tax), 0))).one()
    gst_paid = session.exec(
        select(func.coalesce(func.sum(GSTChallan.total_payable), 0)).where(
            GSTChallan.status == ChallanStatus.PAID
        )
    ).one()
    return {
        "total_invoices": int(total_invoices),
        "paid_invoices": int(paid_invoices),
        "pending_challans": int(pending_challans),
        "total_gst_collected": int(gst_collected),
        "total_gst_paid": int(gst_paid),
    }
