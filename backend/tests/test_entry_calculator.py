"""
由出勤紀錄產生薪資單之單元測試。
期間 2025/1/1~1/31（基準 30 天），月薪 3000 → 日薪 100、時薪 12.5。
"""
from datetime import date

import pytest

from planilla.payroll.deductions import resolve_actual_deductions, resolve_manual_advances
from planilla.payroll.entry_calculator import (
    compute_entry,
    ensure_period_open,
    payroll_period_days,
    recalculate_entry,
)
from planilla.payroll.summary import summarize_entry
from planilla.schemas import Adjustment, AttendanceRecord, Employee, PayrollPeriod

PERIOD = PayrollPeriod(id=1, month=1, year=2025, start_date=date(2025, 1, 1), end_date=date(2025, 1, 31), working_days=30)


def _employee(**kwargs):
    data = dict(id=1, first_name="Ana", last_name="Perez", base_salary=3000, daily_hours=8,
                pension_rate=0.13, health_rate=0.09, absence_sunday_penalty=True)
    data.update(kwargs)
    return Employee(**data)


RECORDS = [
    AttendanceRecord(date=date(2025, 1, 1), status="PRESENT", holiday_worked=True),
    AttendanceRecord(date=date(2025, 1, 6), status="ABSENT"),
    AttendanceRecord(date=date(2025, 1, 7), status="TARDY", minutes_late=30),
    AttendanceRecord(date=date(2025, 1, 8), status="PERMISSION", permission_hours=4),
    AttendanceRecord(date=date(2025, 1, 9), status="PRESENT", extra_hours=2),
    # 週日出勤
    AttendanceRecord(date=date(2025, 1, 12), status="PRESENT"),
]

ADJUSTMENTS = [
    Adjustment(type="BONUS", concept="Bono", amount=50),
    Adjustment(type="ADVANCE", concept="Adelanto", amount=300),
    Adjustment(type="DEDUCTION", concept="EPP", amount=20),
]


def test_compute_entry_amounts():
    entry = compute_entry(PERIOD, _employee(), RECORDS, ADJUSTMENTS)
    b = entry.breakdown
    assert entry.daily_rate == 100
    assert entry.hourly_rate == 12.5
    assert entry.base_salary == 3000
    # 1 天缺勤 + 當週週日加扣 1 天
    assert entry.attendance.absence_penalty_days == 1
    assert entry.absence_days == 2
    assert b.absence_deduction == 200
    assert b.tardiness_deduction == 6.25
    assert b.permission_deduction == 50
    assert b.overtime_bonus == 25
    assert b.holiday_bonus == 100
    assert b.weekend_sunday_bonus == 100
    assert b.manual_bonuses == 50
    assert b.manual_deductions == 320
    assert b.manual_advances == 300
    assert entry.gross_earnings == 3275
    assert entry.pension_amount == pytest.approx(392.44)
    assert entry.health_amount == pytest.approx(294.75)
    assert entry.net_pay == pytest.approx(2306.31)


def test_compute_entry_attendance_facts():
    facts = compute_entry(PERIOD, _employee(), RECORDS, ADJUSTMENTS).attendance
    assert facts.total_records == 6
    assert facts.worked_days == 4
    assert facts.recorded_absence_days == 1
    assert facts.permission_days == 1
    assert facts.permission_hours == 4
    assert facts.tardiness_minutes == 30
    assert facts.overtime_hours == 2
    assert facts.holiday_days == 1
    assert facts.weekend_sunday_days == 1
    assert facts.eligible_days == 30
    assert facts.period_days == 30
    assert facts.sunday_penalty_applied is True
    assert facts.period_start == date(2025, 1, 1)


def test_no_sunday_penalty_when_disabled():
    entry = compute_entry(PERIOD, _employee(absence_sunday_penalty=False), RECORDS)
    assert entry.absence_days == 1
    assert entry.attendance.absence_penalty_days == 0


def test_custom_penalty_policy():
    entry = compute_entry(PERIOD, _employee(), RECORDS, penalty_policy=lambda dates: 0)
    assert entry.attendance.absence_penalty_days == 0
    assert entry.attendance.penalty_weeks == 0


def test_new_hire_prorated_base():
    """1/16 到職：可計薪 16 天、底薪 3000 × 16/30，到職前之紀錄不計"""
    entry = compute_entry(PERIOD, _employee(start_date=date(2025, 1, 16)), RECORDS)
    assert entry.attendance.eligible_days == 16
    assert entry.base_salary == 1600
    assert entry.attendance.total_records == 0
    assert entry.absence_days == 0


def test_employee_outside_period():
    entry = compute_entry(PERIOD, _employee(end_date=date(2024, 12, 31)), RECORDS)
    assert entry.attendance.eligible_days == 0
    assert entry.base_salary == 0
    assert entry.net_pay == 0


def test_net_pay_not_negative():
    entry = compute_entry(PERIOD, _employee(), [], [Adjustment(type="DEDUCTION", amount=10000)])
    assert entry.net_pay == 0


def test_compute_entry_idempotent():
    first = compute_entry(PERIOD, _employee(), RECORDS, ADJUSTMENTS)
    second = compute_entry(PERIOD, _employee(), RECORDS, ADJUSTMENTS)
    assert first.model_dump() == second.model_dump()


def test_payroll_period_days():
    assert payroll_period_days(PERIOD) == 30
    assert payroll_period_days(PERIOD.model_copy(update={"working_days": 31})) == 30
    feb = PayrollPeriod(id=2, month=2, year=2025, start_date=date(2025, 2, 1), end_date=date(2025, 2, 28))
    assert payroll_period_days(feb) == 28


def test_generated_entry_feeds_summary():
    """產生之薪資單可直接彙總：預支不重複計入手動扣款"""
    entry = compute_entry(PERIOD, _employee(), RECORDS, ADJUSTMENTS)
    assert resolve_manual_advances(entry) == 300
    assert resolve_actual_deductions(entry) == pytest.approx(276.25)
    summary = summarize_entry(entry, PERIOD)
    assert summary.manual_deductions == pytest.approx(20)
    assert summary.day_info.penalty_days == 1


def test_closed_period_requires_flag():
    closed = PERIOD.model_copy(update={"status": "CLOSED"})
    with pytest.raises(ValueError):
        ensure_period_open(closed)
    ensure_period_open(closed, recalc_closed=True)


def test_recalculate_entry_keeps_identity():
    entry = compute_entry(PERIOD, _employee(), RECORDS, ADJUSTMENTS).model_copy(update={"id": 99})
    closed = PERIOD.model_copy(update={"status": "CLOSED"})
    with pytest.raises(ValueError):
        recalculate_entry(entry, closed, _employee(), [])
    updated = recalculate_entry(entry, closed, _employee(), [], recalc_closed=True)
    assert updated.id == 99
    assert updated.adjustments == entry.adjustments
    assert updated.absence_days == 0
