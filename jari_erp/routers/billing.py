from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from jari_erp.config import settings
from jari_erp.db import get_session
from jari_erp.models import ChallanStatus, GSTChallan, Invoice, InvoiceStatus
from jari_erp.schemas import (
    BillingSummary,
    ChallanCreate,
    ChallanStatusUpdate,
    InvoiceCreate,
    InvoiceDraft,
    InvoiceLineRead,
    InvoiceRead,
    InvoiceStatusUpdate,
    InvoiceTotals,
    PeriodTaxAmounts,
)
from jari_erp.routers.auth import require_permission
from jari_erp.services import billing, clients

router = APIRouter(prefix="/api/billing", tags=["billing"])


def _invoice_read(session: Session, invoice: Invoice) -> InvoiceRead:
    lines = [InvoiceLineRead(**line.model_dump()) for line in billing.invoice_lines(session, invoice.id)]
    return InvoiceRead(**invoice.model_dump(), lines=lines)


@router.get("/invoices", response_model=List[InvoiceRead])
def list_invoices(
    request: Request,
    status: Optional[InvoiceStatus] = None,
    session: Session = Depends(get_session),
):
    require_permission(request, session, "billing")
    return [_invoice_read(session, invoice) for invoice in billing.list_invoices(session, status)]


@router.post("/invoices", response_model=InvoiceRead)
def create_invoice(payload: InvoiceCreate, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "billing_edit")
    invoice = billing.issue_invoice(session, payload)
    return _invoice_read(session, invoice)


@router.post("/invoices/preview", response_model=InvoiceTotals)
def preview_invoice(payload: InvoiceCreate, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "billing")
    client_state = payload.client_state
    if payload.client_id is not None:
        client = clients.get_client(session, payload.client_id)
        client_state = client_state or client.state
    gst_rate = settings.GST_RATE if payload.gst_rate is None else payload.gst_rate
    return billing.compute_invoice_totals(payload.lines, client_state, settings.COMPANY_STATE, gst_rate)


@router.get("/invoices/from-order/{order_id}", response_model=InvoiceDraft)
def draft_from_order(order_id: int, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "billing")
    return billing.draft_invoice_from_order(session, order_id)


@router.get("/invoices/{invoice_id}", response_model=InvoiceRead)
def get_invoice(invoice_id: int, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "billing")
    return _invoice_read(session, billing.get_invoice(session, invoice_id))


@router.put("/invoices/{invoice_id}/status", response_model=InvoiceRead)
def update_invoice_status(
    invoice_id: int,
    payload: InvoiceStatusUpdate,
    request: Request,
    session: Session = Depends(get_session),
):
    require_permission(request, session, "billing_edit")
    invoice = billing.update_invoice_status(session, invoice_id, payload.status)
    return _invoice_read(session, invoice)


@router.get("/challans", response_model=List[GSTChallan])
def list_challans(
    request: Request,
    status: Optional[ChallanStatus] = None,
    session: Session = Depends(get_session),
):
    require_permission(request, session, "billing")
    return billing.list_challans(session, status)


@router.post("/challans", response_model=GSTChallan)
def create_challan(payload: ChallanCreate, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "billing_edit")
    return billing.create_challan(session, payload)


@router.get("/challans/period/{tax_period}", response_model=PeriodTaxAmounts)
def period_amounts(tax_period: str, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "billing")
    return billing.challan_amounts_for_period(session, tax_period)


@router.get("/challans/{challan_id}", response_model=GSTChallan)
def get_challan(challan_id: int, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "billing")
    return billing.get_challan(session, challan_id)


@router.put("/challans/{challan_id}/status", response_model=GSTChallan)
def update_challan_status(
    challan_id: int,
    payload: ChallanStatusUpdate,
    request: Request,
    session: Session = Depends(get_session),
):
    require_permission(request, session, "billing_edit")
    return billing.update_challan_status(session, challan_id, payload.status)


@router.get("/summary", response_model=BillingSummary)
def summary(request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "billing")
    return billing.billing_summary(session)
