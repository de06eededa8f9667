"""
薪資單彙總：組合可計薪天數、實付天數與扣款拆解，不另做運算。

付款單、各區報表與累計報表皆以 summarize_entry 之結果為唯一來源。
"""
import logging
from typing import Any, Iterable, List, Optional

from planilla.payroll.day_info import compute_day_info
from planilla.payroll.deductions import (
    resolve_actual_deductions,
    resolve_deduction_components,
    resolve_manual_advances,
)
from planilla.payroll.eligibility import entry_eligibility
from planilla.payroll.facts import resolve_optional, resolve_start_date, resolve_value
from planilla.payroll.units import round_half_up
from planilla.schemas import (
    AREA_ALL,
    AREA_VALUES,
    DEFAULT_AREA,
    AreaReport,
    AreaReportRow,
    EntrySummary,
    PayrollEntry,
    PeriodTotals,
    SummaryStat,
)

logger = logging.getLogger(__name__)

# (key, label, 是否一律列出)
SUMMARY_STAT_LABELS = (
    ("base", "Sueldos base", True),
    ("holidays", "Feriados", False),
    ("extras", "Horas extras", False),
    ("bonuses", "Bonos", False),
    ("deductions", "Descuentos", False),
    ("pensions", "Pensiones", False),
    ("advances", "Adelantos", False),
    ("net", "Neto acumulado", True),
)


def resolve_area(entry: Any, employee: Any = None) -> str:
    """員工區域：名冊 → 薪資單內嵌員工 → OPERATIVE"""
    for source in (employee, getattr(entry, "employee", None)):
        area = getattr(source, "area", None)
        if area in AREA_VALUES:
            return area
    return DEFAULT_AREA


def employee_name(employee: Any) -> str:
    if employee is None:
        return ""
    return f"{getattr(employee, 'last_name', '')} {getattr(employee, 'first_name', '')}".strip()


def summarize_entry(entry: PayrollEntry, period: Any, employee: Any = None) -> EntrySummary:
    employee = employee or entry.employee
    start_date = resolve_start_date(entry, employee)
    eligibility = entry_eligibility(period, start_date, getattr(employee, "end_date", None))
    # 薪資單已記錄之可計薪天數較小時以其為上限（例：期中離職）
    recorded = resolve_optional(entry, "eligible_days")
    if recorded is not None and recorded < eligibility.eligible_days:
        eligible = max(int(round_half_up(recorded)), 0)
        eligibility = eligibility.model_copy(update={
            "eligible_days": eligible,
            "gap_days": max(eligibility.period_day_count - eligible, eligibility.gap_days),
        })
    day_info = compute_day_info(
        entry,
        base_days=eligibility.period_day_count,
        display_days_fallback=eligibility.period_day_count,
        initial_gap_days=eligibility.gap_days,
        eligible_days_override=eligibility.eligible_days,
    )
    components = resolve_deduction_components(entry)
    return EntrySummary(
        entry_id=entry.id,
        employee_id=entry.employee_id,
        employee_name=employee_name(employee),
        area=resolve_area(entry, employee),
        remuneration=resolve_value(entry, "prorated_base"),
        monthly_base=resolve_value(entry, "monthly_base"),
        prorated_base=resolve_value(entry, "prorated_base"),
        overtime=resolve_value(entry, "overtime_bonus"),
        holiday_bonus=resolve_value(entry, "holiday_bonus"),
        weekend_sunday_bonus=resolve_value(entry, "weekend_sunday_bonus"),
        weekend_sunday_days=resolve_value(entry, "weekend_sunday_days"),
        manual_bonuses=resolve_value(entry, "manual_bonuses"),
        absence=components.absence,
        permission=components.permission,
        tardiness=components.tardiness,
        manual_deductions=components.manual,
        manual_advances=resolve_manual_advances(entry),
        actual_deductions=components.total(),
        pension_amount=resolve_value(entry, "pension_amount"),
        health_amount=resolve_value(entry, "health_amount"),
        net_pay=resolve_value(entry, "net_pay"),
        start_date=start_date,
        days_display=day_info.display,
        worked_days=day_info.worked_days,
        absence_days=day_info.absence_days,
        tardiness_minutes=day_info.tardiness_minutes,
        permission_days_recorded=day_info.permission_days_recorded,
        permission_hours=day_info.raw_permission_hours,
        holiday_days=resolve_value(entry, "holiday_days"),
        eligibility=eligibility,
        day_info=day_info,
    )


def period_totals(entries: Iterable[PayrollEntry]) -> PeriodTotals:
    """期間合計；加班 + 週日加給與手動獎金皆為 0 時，以 bonuses_total - 國定假日加給 代替加班"""
    totals = PeriodTotals()
    for entry in entries:
        holiday_bonus = resolve_value(entry, "holiday_bonus")
        extras = resolve_value(entry, "overtime_bonus") + resolve_value(entry, "weekend_sunday_bonus")
        manual = resolve_value(entry, "manual_bonuses")
        if extras <= 0 and manual <= 0:
            extras = max(resolve_value(entry, "bonuses_total") - holiday_bonus, 0.0)
        totals.base += resolve_value(entry, "monthly_base")
        totals.holidays += holiday_bonus
        totals.extras += extras
        totals.bonuses += manual
        totals.deductions += resolve_actual_deductions(entry)
        totals.pensions += resolve_value(entry, "pension_amount")
        totals.advances += resolve_manual_advances(entry)
        totals.net += resolve_value(entry, "net_pay")
    return totals


def period_summary_stats(totals: Optional[PeriodTotals]) -> List[SummaryStat]:
    if totals is None:
        return []
    stats = []
    for key, label, always in SUMMARY_STAT_LABELS:
        value = getattr(totals, key)
        if always or abs(value) > 0.005:
            stats.append(SummaryStat(key=key, label=label, value=value))
    return stats


def area_report(entries: Iterable[PayrollEntry], period: Any, area: str = AREA_ALL) -> AreaReport:
    """各區報表列（薪資單 + 彙總），依姓名排序"""
    area = (area or AREA_ALL).upper()
    if area != AREA_ALL and area not in AREA_VALUES:
        raise ValueError(f"未知區域: {area}")
    rows: List[AreaReportRow] = []
    for entry in entries:
        summary = summarize_entry(entry, period)
        if area != AREA_ALL and summary.area != area:
            continue
        rows.append(AreaReportRow(entry=entry, summary=summary))
    rows.sort(key=lambda row: row.summary.employee_name.lower())
    net_total = sum(row.summary.net_pay for row in rows)
    logger.debug("area report area=%s rows=%d net=%.2f", area, len(rows), net_total)
    return AreaReport(area=area, rows=rows, net_total=net_total)
