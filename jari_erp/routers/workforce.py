from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from jari_erp.db import get_session
from jari_erp.models import AttendanceRecord, Employee
from jari_erp.schemas import (
    AttendanceStats,
    AttendanceUpdate,
    AttendanceUpsert,
    EmployeeAttendanceFlag,
    EmployeeCreate,
)
from jari_erp.routers.auth import require_permission
from jari_erp.services import attendance, employees

router = APIRouter(prefix="/api/workforce", tags=["workforce"])


@router.get("/employees", response_model=List[Employee])
def list_employees(request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "workforce")
    return employees.list_employees(session)


@router.post("/employees", response_model=Employee)
def create_employee(payload: EmployeeCreate, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "workforce_add_employee")
    return employees.add_employee(session, payload)


@router.get("/employees/{employee_id}", response_model=Employee)
def get_employee(employee_id: int, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "workforce")
    return employees.get_employee(session, employee_id)


@router.put("/employees/{employee_id}/attendance", response_model=Employee)
def set_attendance_flag(
    employee_id: int,
    payload: EmployeeAttendanceFlag,
    request: Request,
    session: Session = Depends(get_session),
):
    require_permission(request, session, "workforce_attendance")
    return employees.set_attendance_flag(session, employee_id, payload.attendance)


@router.get("/attendance", response_model=List[AttendanceRecord])
def attendance_for_date(
    request: Request,
    work_date: Optional[date] = None,
    session: Session = Depends(get_session),
):
    require_permission(request, session, "workforce")
    return attendance.for_date(session, work_date or date.today())


@router.post("/attendance", response_model=AttendanceRecord)
def record_attendance(payload: AttendanceUpsert, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "workforce_attendance")
    return attendance.upsert(session, payload)


@router.put("/attendance/{employee_id}/{work_date}", response_model=AttendanceRecord)
def update_attendance(
    employee_id: int,
    work_date: date,
    payload: AttendanceUpdate,
    request: Request,
    session: Session = Depends(get_session),
):
    require_permission(request, session, "workforce_attendance")
    return attendance.update(session, employee_id, work_date, payload)


@router.get("/employees/{employee_id}/attendance", response_model=List[AttendanceRecord])
def employee_attendance(
    employee_id: int,
    request: Request,
    start: Optional[date] = None,
    end: Optional[date] = None,
    session: Session = Depends(get_session),
):
    require_permission(request, session, "workforce")
    employees.get_employee(session, employee_id)
    return attendance.for_employee(session, employee_id, start, end)


@router.get("/employees/{employee_id}/attendance/stats", response_model=AttendanceStats)
def employee_attendance_stats(
    employee_id: int,
    start: date,
    end: date,
    request: Request,
    session: Session = Depends(get_session),
):
    require_permission(request, session, "workforce")
    employees.get_employee(session, employee_id)
    return attendance.stats(session, employee_id, start, end)
