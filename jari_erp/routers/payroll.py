from typing import List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session

from jari_erp.db import get_session
from jari_erp.models import PayrollRecord, SalaryConfig
from jari_erp.schemas import PayrollSummary, SalaryConfigUpdate
from jari_erp.routers.auth import require_permission
from jari_erp.services import payroll

router = APIRouter(prefix="/api/payroll", tags=["payroll"])


@router.get("/configs", response_model=List[SalaryConfig])
def list_configs(request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "payroll")
    return payroll.list_salary_configs(session)


@router.get("/configs/{employee_id}", response_model=SalaryConfig)
def get_config(employee_id: int, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "payroll")
    return payroll.get_salary_config(session, employee_id)


@router.put("/configs/{employee_id}", response_model=SalaryConfig)
def update_config(
    employee_id: int,
    payload: SalaryConfigUpdate,
    request: Request,
    session: Session = Depends(get_session),
):
    require_permission(request, session, "payroll_edit")
    return payroll.update_salary_config(session, employee_id, payload)


@router.get("/processed", response_model=List[str])
def processed_months(request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "payroll")
    return payroll.processed_months(session)


@router.get("/{month}", response_model=List[PayrollRecord])
def month_records(month: str, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "payroll")
    return payroll.get_for_month(session, month)


@router.get("/{month}/summary", response_model=PayrollSummary)
def month_summary(month: str, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "payroll")
    return payroll.monthly_summary(session, month)


@router.get("/{month}/employees/{employee_id}", response_model=PayrollRecord)
def employee_payroll(month: str, employee_id: int, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "payroll")
    return payroll.find_record(session, employee_id, month)


@router.post("/{month}/process")
def process_month(month: str, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "payroll_edit")
    if not payroll.process(session, month):
        return JSONResponse(status_code=409, content={"processed": False})
    return {"processed": True, "month": month}
