"""
薪資單實付天數計算（核心按比例演算法）。

步驟：
1. 每日工時：units.hours_per_day（日薪 ÷ 時薪，預設 8）。
2. 無薪請假時數滿一天者折為請假天數（extra = floor(時數 / 每日工時)），餘數保留為時數；
   「20 小時」與「2 天 + 4 小時」在 8 小時制下完全相同。
3. 扣除天數 = 缺勤 + 請假（含折算）+ 週日加扣 + 期初空窗；扣除時數 = 請假餘數 + 遲到分鐘 / 60。
4. 實付天數 = max(總天數 - 扣除天數 - 扣除時數 / 每日工時, 0)；
   分別以基準天數（計薪）與期間實際天數（顯示）計算，計薪結果不超過可計薪天數。
5. 未提供出勤天數（或 <= 0）且已知可計薪天數時，以
   可計薪 - (缺勤 + 請假 + 週日加扣) 回推，不小於 0。
"""
import logging
import math
from typing import Any, Optional

from planilla.config import settings
from planilla.payroll.facts import resolve_optional, resolve_value
from planilla.payroll.formatting import format_days_with_hours, plain_number
from planilla.payroll.units import hours_per_day as resolve_hours_per_day, is_finite_number
from planilla.schemas import DayInfo

logger = logging.getLogger(__name__)


def _positive(value: Any) -> Optional[float]:
    if is_finite_number(value) and value > 0:
        return float(value)
    return None


def compute_day_info(
    entry: Any,
    base_days: Optional[float] = None,
    display_days_fallback: Optional[float] = None,
    initial_gap_days: Optional[float] = None,
    eligible_days_override: Optional[float] = None,
) -> DayInfo:
    """
    計算單一薪資單之實付天數與顯示字串（「N días M horas / 期間天數」）。
    base_days 預設 30；initial_gap_days 為期初未到職天數（eligibility.gap_days），
    視同缺勤扣除且不重複扣款；eligible_days_override 為可計薪天數上限。
    """
    breakdown = getattr(entry, "breakdown", None)
    per_day = resolve_hours_per_day(breakdown)

    base = _positive(base_days) or float(settings.standard_month_days)
    display_days = (
        resolve_optional(entry, "period_days")
        or _positive(display_days_fallback)
        or base
    )

    worked_days = resolve_value(entry, "worked_days")
    absence_days = resolve_value(entry, "absence_days")
    tardiness_minutes = resolve_value(entry, "tardiness_minutes")
    penalty_days = resolve_value(entry, "absence_penalty_days")
    permission_days_recorded = resolve_value(entry, "permission_days")
    raw_permission_hours = resolve_value(entry, "permission_hours")

    permission_days_for_calc = permission_days_recorded
    permission_hours_balance = max(raw_permission_hours, 0.0)
    extra_permission_days = math.floor(permission_hours_balance / per_day)
    permission_days_for_calc += extra_permission_days
    permission_hours_balance -= extra_permission_days * per_day

    if is_finite_number(eligible_days_override):
        recorded_eligible = float(eligible_days_override)
    else:
        recorded_eligible = resolve_optional(entry, "eligible_days")

    gap_days = max(float(initial_gap_days), 0.0) if is_finite_number(initial_gap_days) else 0.0

    deduction_days = absence_days + permission_days_for_calc + penalty_days + gap_days
    deduction_hours = permission_hours_balance + tardiness_minutes / 60

    def net_days_from(total: float) -> float:
        return max(total - deduction_days - deduction_hours / per_day, 0.0)

    net_days = net_days_from(base)
    if recorded_eligible is not None:
        net_days = min(recorded_eligible, net_days)
    net_days_display = net_days_from(display_days)

    days_text = format_days_with_hours(net_days_display, per_day)
    display = f"{days_text} / {plain_number(display_days)}" if display_days > 0 else days_text

    if worked_days <= 0 and recorded_eligible is not None:
        worked_days = max(
            max(recorded_eligible, 0.0) - (absence_days + permission_days_for_calc + penalty_days),
            0.0,
        )

    logger.debug(
        "day info entry=%s net_days=%.4f display=%s",
        getattr(entry, "id", None), net_days, display,
    )
    return DayInfo(
        base_days=base,
        display_days=display_days,
        hours_per_day=per_day,
        net_days=net_days,
        net_days_display=net_days_display,
        display=display,
        permission_days_recorded=permission_days_recorded,
        raw_permission_hours=raw_permission_hours,
        permission_days_for_calc=permission_days_for_calc,
        permission_hours_balance=permission_hours_balance,
        tardiness_minutes=tardiness_minutes,
        absence_days=absence_days,
        worked_days=worked_days,
        penalty_days=penalty_days,
    )
