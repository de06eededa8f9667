"""
由每日出勤紀錄與調整項目產生單一員工之薪資單（純函式，Decimal 計算，四捨五入至 2 位）。

- 日薪 = 月薪 / 30；時薪 = 日薪 / 每日工時（預設 8）。
- 計薪期間天數：設定天數四捨五入並限制於 1~30，否則以起訖日實際天數，再無則 30。
- 有效在職區間 = 期間 ∩ [到職日, 離職日]；區間為空 → 可計薪 0 天。
  涵蓋整個期間者可計薪 = 計薪期間天數，否則取 min(區間天數, 計薪期間天數)。
- 只計入有效區間內之出勤紀錄。
- 淨額 = 總收入 - 缺勤 - 遲到 - 無薪請假 - 手動扣款（含預支）- 退休金，不小於 0；
  Essalud（雇主負擔）不自淨額扣除。
"""
import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, List, Optional, Tuple

from planilla.config import settings
from planilla.payroll.eligibility import count_inclusive_days
from planilla.rules.sunday_penalty import SundayPenaltyPolicy, get_sunday_penalty_policy
from planilla.schemas import (
    Adjustment,
    AttendanceFacts,
    AttendanceRecord,
    Employee,
    PayrollBreakdown,
    PayrollEntry,
    PayrollPeriod,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _dec(value: Any) -> Decimal:
    if value is None or value == "":
        return ZERO
    return Decimal(str(value))


def _round2(d: Decimal) -> Decimal:
    return d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _num(d: Decimal) -> float:
    return float(_round2(d))


def payroll_period_days(period: PayrollPeriod) -> int:
    """計薪期間天數（1~30）"""
    standard = settings.standard_month_days
    configured = period.working_days
    if configured is not None and configured > 0:
        days = int(_dec(configured).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    else:
        days = count_inclusive_days(period.start_date, period.end_date) or standard
    return max(1, min(days, standard))


def employment_window(period: PayrollPeriod, employee: Employee) -> Optional[Tuple[date, date]]:
    """期間與在職區間之交集；無交集回傳 None"""
    start, end = period.start_date, period.end_date
    if start is None or end is None:
        return None
    if employee.start_date and employee.start_date > start:
        start = employee.start_date
    if employee.end_date and employee.end_date < end:
        end = employee.end_date
    if start > end:
        return None
    return start, end


def compute_entry(
    period: PayrollPeriod,
    employee: Employee,
    attendance_records: Iterable[AttendanceRecord],
    adjustments: Iterable[Adjustment] = (),
    penalty_policy: Optional[SundayPenaltyPolicy] = None,
) -> PayrollEntry:
    adjustments = list(adjustments)
    monthly_base = _dec(employee.base_salary)
    daily_rate = monthly_base / Decimal(settings.standard_month_days)
    daily_hours = _dec(employee.daily_hours if employee.daily_hours else settings.hours_per_day_default)
    hourly_rate = daily_rate / daily_hours if daily_hours > 0 else ZERO

    period_days = payroll_period_days(period)
    calendar_days = count_inclusive_days(period.start_date, period.end_date) or settings.standard_month_days
    window = employment_window(period, employee)

    eligible_days = 0
    if window is not None:
        window_days = count_inclusive_days(*window) or 0
        if window_days > 0:
            eligible_days = period_days if window_days >= calendar_days else min(window_days, period_days)
            eligible_days = max(eligible_days, 1)

    worked_days = 0
    absence_days = 0
    permission_days = 0
    tardiness_minutes = 0
    holiday_days = 0.0
    weekend_sunday_days = 0
    considered = 0
    permission_hours = ZERO
    overtime_hours = ZERO
    absence_dates: List[date] = []

    for record in attendance_records:
        if window is None or not isinstance(record.date, date):
            continue
        if not window[0] <= record.date <= window[1]:
            continue
        considered += 1
        holiday_units = record.holiday_count
        if holiday_units is None:
            holiday_units = 1 if record.holiday_worked else 0
        holiday_units = max(holiday_units, 0)
        paid_permission = bool(record.permission_paid)
        worked_status = record.status in ("PRESENT", "TARDY") or (record.status == "PERMISSION" and paid_permission)
        # weekday(): 6 = 週日
        if worked_status and record.date.weekday() == 6:
            weekend_sunday_days += 1
        holiday_days += holiday_units

        if record.status == "ABSENT":
            absence_days += 1
            if employee.absence_sunday_penalty:
                absence_dates.append(record.date)
            continue

        if record.status == "PERMISSION" and not paid_permission:
            permission_days += 1
            hours = _dec(record.permission_hours) if record.permission_hours else daily_hours
            permission_hours += hours if hours > 0 else daily_hours
        else:
            worked_days += 1
        if record.status == "TARDY":
            tardiness_minutes += record.minutes_late or 0
        extra = _dec(record.extra_hours)
        if extra > 0:
            overtime_hours += extra

    ratio = Decimal(eligible_days) / Decimal(period_days)
    base_salary = _round2(monthly_base * ratio)

    worked_days = min(worked_days, eligible_days)
    recorded_absence = min(absence_days, eligible_days)
    permission_days = min(permission_days, eligible_days)

    penalty_weeks = 0
    if employee.absence_sunday_penalty and absence_dates:
        policy = penalty_policy or get_sunday_penalty_policy()
        penalty_weeks = max(int(policy(absence_dates)), 0)
    penalty_days = min(penalty_weeks, max(eligible_days - recorded_absence, 0))
    charged_absence = min(eligible_days, recorded_absence + penalty_days)

    tardiness_deduction = _round2(hourly_rate * Decimal(tardiness_minutes) / Decimal(60)) if tardiness_minutes > 0 else ZERO
    absence_deduction = _round2(daily_rate * Decimal(charged_absence))
    permission_deduction = _round2(hourly_rate * permission_hours)
    overtime_bonus = _round2(hourly_rate * overtime_hours)
    holiday_bonus = _round2(daily_rate * _dec(holiday_days))
    weekend_sunday_bonus = _round2(daily_rate * Decimal(weekend_sunday_days))

    manual_bonuses = ZERO
    manual_deductions = ZERO
    manual_advances = ZERO
    for adj in adjustments:
        amount = _dec(adj.amount)
        if adj.type == "BONUS":
            manual_bonuses += amount
        else:
            manual_deductions += amount
            if adj.type == "ADVANCE":
                manual_advances += amount
    manual_bonuses = _round2(manual_bonuses)
    manual_deductions = _round2(manual_deductions)
    manual_advances = _round2(manual_advances)

    gross = base_salary + overtime_bonus + holiday_bonus + weekend_sunday_bonus + manual_bonuses
    statutory_deductions = absence_deduction + tardiness_deduction + permission_deduction
    pension_rate = _dec(employee.pension_rate)
    health_rate = _dec(employee.health_rate)
    pension_amount = _round2((gross - statutory_deductions) * pension_rate) if pension_rate > 0 else ZERO
    health_amount = _round2(gross * health_rate) if health_rate > 0 else ZERO
    net_pay = max(_round2(gross - statutory_deductions - manual_deductions - pension_amount), ZERO)

    logger.debug(
        "compute entry employee=%s period=%s eligible=%s/%s net=%s",
        employee.id, period.id, eligible_days, period_days, net_pay,
    )
    attendance = AttendanceFacts(
        total_records=considered,
        worked_days=worked_days,
        absence_days=charged_absence,
        recorded_absence_days=recorded_absence,
        absence_penalty_days=penalty_days,
        penalty_weeks=penalty_weeks,
        sunday_penalty_applied=bool(employee.absence_sunday_penalty and penalty_days > 0),
        tardiness_minutes=tardiness_minutes,
        permission_days=permission_days,
        permission_hours=_num(permission_hours),
        overtime_hours=_num(overtime_hours),
        holiday_days=holiday_days,
        weekend_sunday_days=weekend_sunday_days,
        eligible_days=eligible_days,
        period_days=period_days,
        start_date=employee.start_date,
        period_start=period.start_date,
        period_end=period.end_date,
    )
    breakdown = PayrollBreakdown(
        monthly_base=_num(monthly_base),
        base_salary=_num(base_salary),
        daily_rate=_num(daily_rate),
        hourly_rate=_num(hourly_rate),
        absence_deduction=_num(absence_deduction),
        permission_deduction=_num(permission_deduction),
        tardiness_deduction=_num(tardiness_deduction),
        manual_advances=_num(manual_advances),
        manual_deductions=_num(manual_deductions),
        overtime_bonus=_num(overtime_bonus),
        holiday_bonus=_num(holiday_bonus),
        weekend_sunday_bonus=_num(weekend_sunday_bonus),
        manual_bonuses=_num(manual_bonuses),
        absence_penalty_days=penalty_days,
        period_days=period_days,
        eligible_days=eligible_days,
    )
    return PayrollEntry(
        period_id=period.id,
        employee_id=employee.id,
        employee=employee,
        base_salary=_num(base_salary),
        daily_rate=_num(daily_rate),
        hourly_rate=_num(hourly_rate),
        worked_days=worked_days,
        absence_days=charged_absence,
        tardiness_minutes=tardiness_minutes,
        permission_days=permission_days,
        permission_hours=_num(permission_hours),
        overtime_hours=_num(overtime_hours),
        holiday_days=holiday_days,
        holiday_bonus=_num(holiday_bonus),
        bonuses_total=_num(overtime_bonus + holiday_bonus + manual_bonuses + weekend_sunday_bonus),
        deductions_total=_num(manual_deductions + statutory_deductions),
        pension_amount=_num(pension_amount),
        health_amount=_num(health_amount),
        gross_earnings=_num(gross),
        net_pay=_num(net_pay),
        breakdown=breakdown,
        attendance=attendance,
        adjustments=adjustments,
    )


def ensure_period_open(period: PayrollPeriod, recalc_closed: bool = False) -> None:
    if period.status == "CLOSED" and not recalc_closed:
        raise ValueError("El periodo está cerrado. Habilita recalcClosed para recalcular.")


def recalculate_entry(
    entry: PayrollEntry,
    period: PayrollPeriod,
    employee: Employee,
    attendance_records: Iterable[AttendanceRecord],
    recalc_closed: bool = False,
    penalty_policy: Optional[SundayPenaltyPolicy] = None,
) -> PayrollEntry:
    """以現有薪資單之調整項目重算，保留 id"""
    ensure_period_open(period, recalc_closed)
    result = compute_entry(period, employee, attendance_records, entry.adjustments, penalty_policy)
    return result.model_copy(update={"id": entry.id})
