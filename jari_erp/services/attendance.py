import logging
import re
from datetime import date
from typing import List, Optional

from sqlmodel import Session, select

from jari_erp.db import transaction
from jari_erp.errors import InvalidInput, NotFound
from jari_erp.models import AttendanceRecord, AttendanceStatus, Employee
from jari_erp.schemas import AttendanceUpdate, AttendanceUpsert

logger = logging.getLogger(__name__)

CLOCK_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _check_fields(check_in: Optional[str], check_out: Optional[str], overtime: Optional[float]) -> None:
    for value in (check_in, check_out):
        if value and not CLOCK_RE.match(value):
            raise InvalidInput(f"Invalid time {value}, expected HH:MM")
    if overtime is not None and overtime < 0:
        raise InvalidInput("Overtime hours cannot be negative")


def _find(session: Session, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
    return session.exec(
        select(AttendanceRecord)
        .where(AttendanceRecord.employee_id == employee_id, AttendanceRecord.work_date == work_date)
        .with_for_update()
    ).first()


def upsert(session: Session, data: AttendanceUpsert) -> AttendanceRecord:
    """Write the attendance fact for (employee, day); a second write replaces the first."""
    _check_fields(data.check_in_time, data.check_out_time, data.overtime_hours)
    with transaction(session):
        if not session.get(Employee, data.employee_id):
            raise NotFound("Employee", data.employee_id)
        record = _find(session, data.employee_id, data.work_date)
        if record is None:
            record = AttendanceRecord(employee_id=data.employee_id, work_date=data.work_date, status=data.status)
        record.status = data.status
        record.check_in_time = data.check_in_time
        record.check_out_time = data.check_out_time
        record.notes = data.notes
        record.overtime_hours = data.overtime_hours or 0.0
        session.add(record)
    session.refresh(record)
    logger.info("Attendance %s on %s: %s", record.employee_id, record.work_date, record.status.value)
    return record


def update(session: Session, employee_id: int, work_date: date, changes: AttendanceUpdate) -> AttendanceRecord:
    values = changes.model_dump(exclude_unset=True)
    _check_fields(values.get("check_in_time"), values.get("check_out_time"), values.get("overtime_hours"))
    with transaction(session):
        record = _find(session, employee_id, work_date)
        if not record:
            raise NotFound("Attendance record", f"{employee_id}/{work_date}")
        for key, value in values.items():
            if key == "status" and value is None:
                continue
            if key == "overtime_hours":
                value = value or 0.0
            setattr(record, key, value)
        session.add(record)
    session.refresh(record)
    logger.info("Attendance %s on %s updated", employee_id, work_date)
    return record


def for_date(session: Session, work_date: date) -> List[AttendanceRecord]:
    return session.exec(
        select(AttendanceRecord)
        .where(AttendanceRecord.work_date == work_date)
        .order_by(AttendanceRecord.employee_id)
    ).all()


def for_employee(session: Session, employee_id: int, start: Optional[date] = None,
                 end: Optional[date] = None) -> List[AttendanceRecord]:
    query = select(AttendanceRecord).where(AttendanceRecord.employee_id == employee_id)
    if start:
        query = query.where(AttendanceRecord.work_date >= start)
    if end:
        query = query.where(AttendanceRecord.work_date <= end)
    return session.exec(query.order_by(AttendanceRecord.work_date)).all()


def stats(session: Session, employee_id: int, start: date, end: date) -> dict:
    records = for_employee(session, employee_id, start, end)

    def count(status: AttendanceStatus) -> int:
        return sum(1 for record in records if record.status == status)

    return {
        "total": len(records),
        "present": count(AttendanceStatus.PRESENT),
        "absent": count(AttendanceStatus.ABSENT),
        "half_day": count(AttendanceStatus.HALF_DAY),
        "late": count(AttendanceStatus.LATE),
        "on_leave": count(AttendanceStatus.ON_LEAVE),
        "total_overtime_hours": sum(record.overtime_hours or 0 for record in records),
    }
