from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from jari_erp.db import get_session
from jari_erp.models import Transaction, TransactionCategory, TransactionSource, TransactionType
from jari_erp.schemas import FinanceSummary, ManualTransactionCreate
from jari_erp.routers.auth import require_permission
from jari_erp.services import ledger

router = APIRouter(prefix="/api/finance", tags=["finance"])


@router.get("/transactions", response_model=List[Transaction])
def list_transactions(
    request: Request,
    txn_type: Optional[TransactionType] = None,
    source: Optional[TransactionSource] = None,
    category: Optional[TransactionCategory] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    session: Session = Depends(get_session),
):
    require_permission(request, session, "finance")
    return ledger.list_transactions(
        session, txn_type=txn_type, source=source, category=category, start=start, end=end
    )


@router.post("/transactions", response_model=Transaction)
def create_transaction(
    payload: ManualTransactionCreate, request: Request, session: Session = Depends(get_session)
):
    require_permission(request, session, "finance_manual_entry")
    return ledger.add_manual_transaction(
        session,
        description=payload.description,
        txn_type=payload.txn_type,
        amount=payload.amount,
        category=payload.category,
        status=payload.status,
        txn_date=payload.txn_date,
    )


@router.get("/summary", response_model=FinanceSummary)
def summary(request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "finance")
    return ledger.summary(session)


@router.post("/reconcile")
def reconcile(request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "finance_manual_entry")
    return ledger.reconcile_document_entries(session)
