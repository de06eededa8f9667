"""
薪資單欄位取值順序（唯一定義處）。

同一數值可能同時存在於薪資單本身、內嵌出勤彙總（attendance）與金額明細（breakdown）。
各欄位依下表順序取第一個有限數值；全部缺漏時 resolve_optional 回傳 None、
resolve_value 回傳 0。所有計算模組一律經此取值，不在使用處各自串接 fallback。
"""
from datetime import date
from typing import Any, Dict, Optional, Tuple

from planilla.payroll.units import first_number

ENTRY = "entry"
ATTENDANCE = "attendance"
BREAKDOWN = "breakdown"

RESOLUTION_ORDER: Dict[str, Tuple[Tuple[str, str], ...]] = {
    # 出勤計數：薪資單欄位優先（重算後寫回），其次出勤彙總
    "worked_days": ((ENTRY, "worked_days"), (ATTENDANCE, "worked_days")),
    "absence_days": ((ENTRY, "absence_days"), (ATTENDANCE, "absence_days")),
    "tardiness_minutes": ((ENTRY, "tardiness_minutes"), (ATTENDANCE, "tardiness_minutes")),
    "permission_days": ((ENTRY, "permission_days"), (ATTENDANCE, "permission_days")),
    "permission_hours": ((ENTRY, "permission_hours"), (ATTENDANCE, "permission_hours")),
    "holiday_days": ((ENTRY, "holiday_days"), (ATTENDANCE, "holiday_days")),
    "overtime_hours": ((ATTENDANCE, "overtime_hours"), (ENTRY, "overtime_hours")),
    "absence_penalty_days": ((ATTENDANCE, "absence_penalty_days"), (BREAKDOWN, "absence_penalty_days")),
    "weekend_sunday_days": ((ATTENDANCE, "weekend_sunday_days"),),
    # 期間天數
    "eligible_days": ((ATTENDANCE, "eligible_days"), (BREAKDOWN, "eligible_days")),
    "period_days": ((ATTENDANCE, "period_days"), (BREAKDOWN, "period_days")),
    # 金額
    "monthly_base": ((BREAKDOWN, "monthly_base"), (ENTRY, "base_salary")),
    "prorated_base": ((ENTRY, "base_salary"), (BREAKDOWN, "base_salary"), (BREAKDOWN, "monthly_base")),
    "daily_rate": ((BREAKDOWN, "daily_rate"), (ENTRY, "daily_rate")),
    "hourly_rate": ((BREAKDOWN, "hourly_rate"), (ENTRY, "hourly_rate")),
    "holiday_bonus": ((BREAKDOWN, "holiday_bonus"), (ENTRY, "holiday_bonus")),
    "overtime_bonus": ((BREAKDOWN, "overtime_bonus"),),
    "weekend_sunday_bonus": ((BREAKDOWN, "weekend_sunday_bonus"),),
    "manual_bonuses": ((BREAKDOWN, "manual_bonuses"),),
    "absence_deduction": ((BREAKDOWN, "absence_deduction"),),
    "permission_deduction": ((BREAKDOWN, "permission_deduction"),),
    "tardiness_deduction": ((BREAKDOWN, "tardiness_deduction"),),
    "manual_deductions": ((BREAKDOWN, "manual_deductions"),),
    "manual_advances": ((BREAKDOWN, "manual_advances"),),
    "bonuses_total": ((ENTRY, "bonuses_total"),),
    "pension_amount": ((ENTRY, "pension_amount"),),
    "health_amount": ((ENTRY, "health_amount"),),
    "net_pay": ((ENTRY, "net_pay"),),
}


def _source(entry: Any, name: str) -> Any:
    if name == ENTRY:
        return entry
    return getattr(entry, name, None)


def resolve_optional(entry: Any, field: str) -> Optional[float]:
    order = RESOLUTION_ORDER[field]
    return first_number(*(getattr(_source(entry, src), attr, None) for src, attr in order))


def resolve_value(entry: Any, field: str) -> float:
    value = resolve_optional(entry, field)
    return value if value is not None else 0.0


def resolve_start_date(entry: Any, employee: Any = None) -> Optional[date]:
    """到職日：出勤彙總 → 員工資料（名冊優先，其次薪資單內嵌）→ 出勤彙總之期間起日"""
    attendance = getattr(entry, "attendance", None)
    employee = employee or getattr(entry, "employee", None)
    for candidate in (
        getattr(attendance, "start_date", None),
        getattr(employee, "start_date", None),
        getattr(attendance, "period_start", None),
    ):
        if isinstance(candidate, date):
            return candidate
    return None
