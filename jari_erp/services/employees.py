import logging
from typing import List

from sqlmodel import Session, select

from jari_erp.db import transaction
from jari_erp.errors import InvalidInput, NotFound
from jari_erp.models import AttendanceStatus, Employee
from jari_erp.schemas import EmployeeCreate
from jari_erp.services import payroll

logger = logging.getLogger(__name__)


def list_employees(session: Session) -> List[Employee]:
    return session.exec(select(Employee).order_by(Employee.id)).all()


def get_employee(session: Session, employee_id: int) -> Employee:
    employee = session.get(Employee, employee_id)
    if not employee:
        raise NotFound("Employee", employee_id)
    return employee


def add_employee(session: Session, data: EmployeeCreate) -> Employee:
    """Register an employee together with the default salary config for their role."""
    with transaction(session):
        exists = session.exec(select(Employee).where(Employee.employee_code == data.employee_code)).first()
        if exists:
            raise InvalidInput(f"Employee code {data.employee_code} already exists")
        employee = Employee.model_validate(data)
        session.add(employee)
        session.flush()
        payroll.add_default_salary_config(session, employee)
    session.refresh(employee)
    logger.info("Added employee %s (%s)", employee.employee_code, employee.role.value)
    return employee


def set_attendance_flag(session: Session, employee_id: int, status: AttendanceStatus) -> Employee:
    with transaction(session):
        employee = get_employee(session, employee_id)
        employee.attendance = status
        session.add(employee)
    session.refresh(employee)
    logger.info("Employee %s marked %s", employee.employee_code, status.value)
    return employee
