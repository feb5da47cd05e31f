from datetime import date

import pytest

from jari_erp.errors import InvalidInput, NotFound
from jari_erp.models import AttendanceStatus, Employee
from jari_erp.schemas import AttendanceUpdate, AttendanceUpsert
from jari_erp.services import attendance, employees

DAY = date(2024, 7, 1)


def test_upsert_replaces_record_for_same_day(session, operator_employee):
    attendance.upsert(
        session, AttendanceUpsert(employee_id=operator_employee.id, work_date=DAY, status=AttendanceStatus.ABSENT)
    )
    record = attendance.upsert(
        session,
        AttendanceUpsert(
            employee_id=operator_employee.id,
            work_date=DAY,
            status=AttendanceStatus.LATE,
            check_in_time="09:40",
        ),
    )

    records = attendance.for_date(session, DAY)
    assert len(records) == 1
    assert records[0].id == record.id
    assert records[0].status == AttendanceStatus.LATE
    assert records[0].check_in_time == "09:40"


def test_upsert_unknown_employee(session):
    with pytest.raises(NotFound):
        attendance.upsert(session, AttendanceUpsert(employee_id=55, work_date=DAY, status=AttendanceStatus.PRESENT))


def test_invalid_clock_time(session, operator_employee):
    with pytest.raises(InvalidInput):
        attendance.upsert(
            session,
            AttendanceUpsert(
                employee_id=operator_employee.id,
                work_date=DAY,
                status=AttendanceStatus.PRESENT,
                check_in_time="25:00",
            ),
        )


def test_update_existing_record(session, operator_employee):
    attendance.upsert(
        session, AttendanceUpsert(employee_id=operator_employee.id, work_date=DAY, status=AttendanceStatus.PRESENT)
    )
    record = attendance.update(session, operator_employee.id, DAY, AttendanceUpdate(overtime_hours=2.5))
    assert record.status == AttendanceStatus.PRESENT
    assert record.overtime_hours == 2.5


def test_update_missing_record(session, operator_employee):
    with pytest.raises(NotFound):
        attendance.update(session, operator_employee.id, DAY, AttendanceUpdate(status=AttendanceStatus.ABSENT))


def test_stats(session, operator_employee):
    statuses = [AttendanceStatus.PRESENT, AttendanceStatus.PRESENT, AttendanceStatus.HALF_DAY, AttendanceStatus.ABSENT]
    for day, status in enumerate(statuses, start=1):
        attendance.upsert(
            session,
            AttendanceUpsert(
                employee_id=operator_employee.id,
                work_date=date(2024, 7, day),
                status=status,
                overtime_hours=1 if status == AttendanceStatus.PRESENT else 0,
            ),
        )

    stats = attendance.stats(session, operator_employee.id, date(2024, 7, 1), date(2024, 7, 31))

    assert stats == {
        "total": 4,
        "present": 2,
        "absent": 1,
        "half_day": 1,
        "late": 0,
        "on_leave": 0,
        "total_overtime_hours": 2,
    }


def test_attendance_flag(session, operator_employee):
    employees.set_attendance_flag(session, operator_employee.id, AttendanceStatus.ON_LEAVE)
    assert session.get(Employee, operator_employee.id).attendance == AttendanceStatus.ON_LEAVE
