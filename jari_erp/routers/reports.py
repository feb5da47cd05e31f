from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from jari_erp.db import get_session
from jari_erp.schemas import DashboardRead
from jari_erp.routers.auth import require_permission
from jari_erp.services.dashboard import dashboard

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/dashboard", response_model=DashboardRead)
def dashboard_report(request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "dashboard")
    return dashboard(session)
