"""
期間可計薪天數之純函式（新進員工首月按比例）。

規則：
- 期間天數：設定之 working_days 介於 1~30 → 取其（四捨五入）；否則以起訖日（含）實際天數；
  再無則 30 天。
- 無到職日與離職日，或在職區間涵蓋整期：整期可計薪，空窗 0 天。
- 到職日晚於期間訖日或離職日早於期間起日：可計薪 0 天，空窗 = 期間天數。
- 其餘：有效起日 = max(到職日, 期間起日)、有效訖日 = min(離職日, 期間訖日)；
  可計薪 = 有效訖日 - 有效起日 + 1（含頭尾），
  不小於 0、不超過期間天數；空窗 = 期間天數 - 可計薪。
- 例：期間 1/1~1/31（working_days=31）、1/16 到職 → 期間 31 天、可計薪 16 天、空窗 15 天。
"""
from datetime import date
from typing import Any, Optional

from planilla.config import settings
from planilla.payroll.units import is_finite_number, round_half_up
from planilla.schemas import EligibilityInfo


def count_inclusive_days(start: Optional[date], end: Optional[date]) -> Optional[int]:
    """起訖日（含頭尾）天數；缺日期或訖日早於起日回傳 None"""
    if not isinstance(start, date) or not isinstance(end, date):
        return None
    if end < start:
        return None
    return (end - start).days + 1


def period_day_count(period: Any) -> int:
    """期間天數：設定天數（1~30）→ 起訖日實際天數 → 30"""
    configured = getattr(period, "working_days", None)
    if is_finite_number(configured):
        rounded = int(round_half_up(configured))
        if 1 <= rounded <= settings.standard_month_days:
            return rounded
    counted = count_inclusive_days(getattr(period, "start_date", None), getattr(period, "end_date", None))
    if counted:
        return counted
    return settings.standard_month_days


def entry_eligibility(period: Any, start_date: Optional[date], end_date: Optional[date] = None) -> EligibilityInfo:
    """依期間起訖日與員工到職/離職日計算可計薪天數與空窗天數"""
    day_count = period_day_count(period)
    full = EligibilityInfo(period_day_count=day_count, eligible_days=day_count, gap_days=0)
    period_start = getattr(period, "start_date", None)
    period_end = getattr(period, "end_date", None)
    if count_inclusive_days(period_start, period_end) is None:
        return full
    has_start = isinstance(start_date, date)
    has_end = isinstance(end_date, date)
    if not has_start and not has_end:
        return full
    if (has_start and start_date > period_end) or (has_end and end_date < period_start):
        return EligibilityInfo(period_day_count=day_count, eligible_days=0, gap_days=day_count)
    effective_start = max(start_date, period_start) if has_start else period_start
    effective_end = min(end_date, period_end) if has_end else period_end
    if effective_start == period_start and effective_end == period_end:
        return full
    eligible = max((effective_end - effective_start).days + 1, 0)
    eligible = min(eligible, day_count)
    gap = max(day_count - eligible, 0)
    return EligibilityInfo(period_day_count=day_count, eligible_days=eligible, gap_days=gap)
