"""Monthly payroll.

Draft payroll is a pure function of the month's attendance and each
employee's salary configuration and is recomputed on every read. Processing
a month stores the records as PROCESSED, books one salary debit in the
ledger and adds the month to the processed set. A processed month stays
locked: processing it again is refused and there is no way to unprocess it.
"""
import calendar
import logging
import re
from datetime import date
from typing import List, Tuple

from sqlmodel import Session, select

from jari_erp.db import transaction
from jari_erp.errors import InvalidInput, NotFound
from jari_erp.models import (
    AttendanceRecord,
    AttendanceStatus,
    Employee,
    EmployeeRole,
    PaymentStatus,
    PayrollRecord,
    PayrollStatus,
    ProcessedMonth,
    SalaryConfig,
    Transaction,
    TransactionCategory,
    TransactionSource,
    TransactionType,
)
from jari_erp.schemas import SalaryConfigUpdate
from jari_erp.services import ledger
from jari_erp.services.money import D, percent_of, rupees

logger = logging.getLogger(__name__)

MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

WORKING_DAYS_BASIS = 26
SHIFT_HOURS = 8
OVERTIME_MULTIPLIER = D("1.5")

ROLE_BASE_SALARY = {
    EmployeeRole.SUPERVISOR: 35000,
    EmployeeRole.OPERATOR: 22000,
    EmployeeRole.TECHNICIAN: 28000,
    EmployeeRole.HELPER: 15000,
}
DEFAULT_BASE_SALARY = 18000


def month_bounds(month: str) -> Tuple[date, date]:
    """First day of ``month`` and first day of the following month."""
    if not MONTH_RE.match(month or ""):
        raise InvalidInput("Month must be YYYY-MM")
    year, month_num = (int(part) for part in month.split("-"))
    start = date(year, month_num, 1)
    end = date(year + 1, 1, 1) if month_num == 12 else date(year, month_num + 1, 1)
    return start, end


def working_days(month: str) -> int:
    """Days in the month less its Sundays."""
    start, _ = month_bounds(month)
    days_in_month = calendar.monthrange(start.year, start.month)[1]
    sundays = sum(
        1 for day in range(1, days_in_month + 1)
        if date(start.year, start.month, day).weekday() == calendar.SUNDAY
    )
    return days_in_month - sundays


def derived_rates(base_monthly_salary: int) -> Tuple[int, int]:
    per_day = D(base_monthly_salary) / WORKING_DAYS_BASIS
    return rupees(per_day), rupees(per_day / SHIFT_HOURS * OVERTIME_MULTIPLIER)


def default_salary_config(employee: Employee) -> SalaryConfig:
    base = ROLE_BASE_SALARY.get(employee.role, DEFAULT_BASE_SALARY)
    per_day, overtime_rate = derived_rates(base)
    return SalaryConfig(
        employee_id=employee.id,
        base_monthly_salary=base,
        per_day_salary=per_day,
        overtime_rate=overtime_rate,
        allowances=percent_of(base, 10),
        pf_percent=12.0,
        esi_percent=0.75,
        other_deductions=0,
    )


def add_default_salary_config(session: Session, employee: Employee) -> SalaryConfig:
    with transaction(session):
        existing = session.exec(select(SalaryConfig).where(SalaryConfig.employee_id == employee.id)).first()
        if existing:
            return existing
        config = default_salary_config(employee)
        session.add(config)
    return config


def list_salary_configs(session: Session) -> List[SalaryConfig]:
    return session.exec(select(SalaryConfig).order_by(SalaryConfig.employee_id)).all()


def get_salary_config(session: Session, employee_id: int) -> SalaryConfig:
    config = session.exec(select(SalaryConfig).where(SalaryConfig.employee_id == employee_id)).first()
    if not config:
        raise NotFound("Salary config for employee", employee_id)
    return config


def update_salary_config(session: Session, employee_id: int, changes: SalaryConfigUpdate) -> SalaryConfig:
    values = changes.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in values.items():
        if value < 0:
            raise InvalidInput(f"{key} cannot be negative")
    with transaction(session):
        config = get_salary_config(session, employee_id)
        for key, value in values.items():
            setattr(config, key, value)
        if "base_monthly_salary" in values:
            config.per_day_salary, config.overtime_rate = derived_rates(config.base_monthly_salary)
        session.add(config)
    session.refresh(config)
    logger.info("Salary config updated for employee %s", employee_id)
    return config


def calculate(session: Session, employee_id: int, month: str) -> PayrollRecord:
    """Draft payroll for one employee; nothing is written."""
    start, end = month_bounds(month)
    if not session.get(Employee, employee_id):
        raise NotFound("Employee", employee_id)
    config = get_salary_config(session, employee_id)

    records = session.exec(
        select(AttendanceRecord).where(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.work_date >= start,
            AttendanceRecord.work_date < end,
        )
    ).all()

    def count(*statuses: AttendanceStatus) -> int:
        return sum(1 for record in records if record.status in statuses)

    present_days = count(AttendanceStatus.PRESENT, AttendanceStatus.LATE)
    half_days = count(AttendanceStatus.HALF_DAY)
    overtime_hours = sum(record.overtime_hours or 0 for record in records)

    effective_days = D(present_days) + D(half_days) * D("0.5")
    basic_salary = rupees(D(config.per_day_salary) * effective_days)
    overtime_pay = rupees(D(config.overtime_rate) * D(overtime_hours))
    gross_salary = basic_salary + overtime_pay + config.allowances

    pf_deduction = percent_of(basic_salary, config.pf_percent)
    esi_deduction = percent_of(gross_salary, config.esi_percent)
    total_deductions = pf_deduction + esi_deduction + config.other_deductions

    return PayrollRecord(
        employee_id=employee_id,
        month=month,
        working_days=working_days(month),
        present_days=present_days,
        half_days=half_days,
        absent_days=count(AttendanceStatus.ABSENT),
        late_days=count(AttendanceStatus.LATE),
        leave_days=count(AttendanceStatus.ON_LEAVE),
        overtime_hours=overtime_hours,
        basic_salary=basic_salary,
        overtime_pay=overtime_pay,
        allowances=config.allowances,
        gross_salary=gross_salary,
        pf_deduction=pf_deduction,
        esi_deduction=esi_deduction,
        other_deductions=config.other_deductions,
        total_deductions=total_deductions,
        net_salary=gross_salary - total_deductions,
        status=PayrollStatus.DRAFT,
    )


def generate_month(session: Session, month: str) -> List[PayrollRecord]:
    month_bounds(month)
    records = []
    configured = set(session.exec(select(SalaryConfig.employee_id)).all())
    for employee in session.exec(select(Employee).order_by(Employee.id)).all():
        if employee.id not in configured:
            logger.warning("Employee %s has no salary config; left out of %s payroll", employee.id, month)
            continue
        records.append(calculate(session, employee.id, month))
    return records


def _stored(session: Session, month: str) -> List[PayrollRecord]:
    return session.exec(
        select(PayrollRecord).where(PayrollRecord.month == month).order_by(PayrollRecord.employee_id)
    ).all()


def get_for_month(session: Session, month: str) -> List[PayrollRecord]:
    month_bounds(month)
    stored = _stored(session, month)
    if stored:
        return stored
    return generate_month(session, month)


def is_processed(session: Session, month: str) -> bool:
    return session.get(ProcessedMonth, month) is not None


def processed_months(session: Session) -> List[str]:
    return session.exec(select(ProcessedMonth.month).order_by(ProcessedMonth.month)).all()


def salary_entry(month: str, amount: int) -> Transaction:
    start, _ = month_bounds(month)
    label = date(start.year, start.month, 15).strftime("%B %Y")
    return Transaction(
        description=f"Salary Payment - {label}",
        txn_type=TransactionType.DEBIT,
        amount=amount,
        txn_date=date.today(),
        status=PaymentStatus.PAID,
        source=TransactionSource.MANUAL,
        category=TransactionCategory.SALARY,
        reference_number=month,
        document_type=ledger.PAYROLL_DOC,
        document_id=month,
    )


def process(session: Session, month: str) -> bool:
    """Lock ``month``'s payroll. Returns False if it was already processed."""
    month_bounds(month)
    with transaction(session):
        if session.exec(
            select(ProcessedMonth).where(ProcessedMonth.month == month).with_for_update()
        ).first():
            logger.warning("Payroll for %s already processed", month)
            return False

        records = generate_month(session, month)
        for stale in _stored(session, month):
            session.delete(stale)
        session.flush()

        processed_on = date.today()
        for record in records:
            record.status = PayrollStatus.PROCESSED
            record.processed_date = processed_on
            session.add(record)

        total_net = sum(record.net_salary for record in records)
        session.add(ProcessedMonth(month=month))
        ledger.record_document_entry(session, salary_entry(month, total_net))
    logger.info("Payroll for %s processed: %s employees, net %s", month, len(records), total_net)
    return True


def monthly_summary(session: Session, month: str) -> dict:
    records = get_for_month(session, month)
    return {
        "month": month,
        "total_employees": len(records),
        "total_gross_salary": sum(record.gross_salary for record in records),
        "total_deductions": sum(record.total_deductions for record in records),
        "total_net_salary": sum(record.net_salary for record in records),
        "status": PayrollStatus.PROCESSED if is_processed(session, month) else PayrollStatus.DRAFT,
    }


def find_record(session: Session, employee_id: int, month: str) -> PayrollRecord:
    """Stored record if the month is processed, otherwise a fresh draft.

    An employee left out of a processed month has no record for it.
    """
    stored = session.exec(
        select(PayrollRecord).where(PayrollRecord.employee_id == employee_id, PayrollRecord.month == month)
    ).first()
    if stored:
        return stored
    if is_processed(session, month):
        raise NotFound("Payroll record", f"{employee_id}/{month}")
    return calculate(session, employee_id, month)
