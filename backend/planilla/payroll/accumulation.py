"""
多期間累計（acumulado）：每位員工各期淨額、實發（淨額 + 預支）與扣款。

- 期間依年月排序，重複之期間 id 只計一次；超過 max_accumulation_months 期 → ValueError。
- 任一期間之薪資單尚未取得（details 缺 key 或為 None）→ ready=False 且 rows 為空，
  不以 0 代替缺漏期間。
- 額外項目（預支、國定假日 + 週日加給、手動獎金、加班）依期間與區域另行加總，
  與每人淨額無關（已內含於淨額，但需另列為發放項目）。
- 付款狀態為每位員工一個布林值（與期間無關），只用於拆分已付/待付，不影響計算結果。
"""
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from planilla.config import settings
from planilla.payroll.deductions import (
    resolve_actual_deductions,
    resolve_deduction_components,
    resolve_manual_advances,
)
from planilla.payroll.facts import resolve_value
from planilla.payroll.summary import employee_name, resolve_area
from planilla.schemas import (
    AREA_ALL,
    AREA_BUCKETS,
    AREA_VALUES,
    BANK_TYPE_LABELS,
    AccumulationMonth,
    AccumulationRow,
    AccumulationSummary,
    AccumulationTotals,
    AccumulationView,
    DeductionBreakdown,
    ExtrasTotals,
    PaymentSplit,
    PayrollEntry,
    PayrollPeriod,
    month_label,
)

logger = logging.getLogger(__name__)

EMPTY_MARK = "—"
PAYMENT_FILTERS = ("ALL", "PAID", "UNPAID")
ACCOUNT_FILTERS = ("ALL", "WITH", "WITHOUT")


def resolve_bank_label(value: Optional[str]) -> str:
    if not value:
        return EMPTY_MARK
    return BANK_TYPE_LABELS.get(value, value)


def _first_text(*sources: Any, attr: str) -> str:
    for source in sources:
        value = getattr(source, attr, None)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def _sorted_periods(periods: Iterable[PayrollPeriod]) -> List[PayrollPeriod]:
    """依年月排序；同一 id 重複選取只計一次"""
    unique: Dict[int, PayrollPeriod] = {}
    for period in periods:
        unique.setdefault(period.id, period)
    return sorted(unique.values(), key=lambda p: (p.year, p.month))


def _empty_area_map(factory) -> Dict[str, Any]:
    return {bucket: factory() for bucket in AREA_BUCKETS}


def _sum_rows(rows: Sequence[AccumulationRow], month_count: int) -> AccumulationTotals:
    totals = AccumulationTotals(
        month_totals=[0.0] * month_count,
        month_totals_paid=[0.0] * month_count,
        month_totals_deductions=[0.0] * month_count,
    )
    for row in rows:
        for index in range(month_count):
            totals.month_totals[index] += row.per_month[index]
            totals.month_totals_paid[index] += row.per_month_paid[index]
            totals.month_totals_deductions[index] += row.per_month_deductions[index]
        totals.total += row.total
        totals.total_paid += row.total_paid
        totals.total_deductions += row.total_deductions
        totals.employees += 1
    return totals


def _fill_bank_fields(row: AccumulationRow, roster_employee: Any, entry_employee: Any) -> None:
    """名冊優先，其次薪資單內嵌員工；已有值者不覆寫（取各期第一個非空值）"""
    account = _first_text(roster_employee, entry_employee, attr="account_number")
    cci = _first_text(roster_employee, entry_employee, attr="cci")
    yape_plin = _first_text(roster_employee, entry_employee, attr="phone")
    bank_type = getattr(roster_employee, "bank_type", None) or getattr(entry_employee, "bank_type", None)
    bank = resolve_bank_label(bank_type)
    if row.account == EMPTY_MARK and account:
        row.account = account
    if row.cci == EMPTY_MARK and cci:
        row.cci = cci
    if row.yape_plin == EMPTY_MARK and yape_plin:
        row.yape_plin = yape_plin
    if row.bank == EMPTY_MARK and bank != EMPTY_MARK:
        row.bank = bank
    row.has_account = any(v != EMPTY_MARK for v in (row.account, row.cci, row.yape_plin))


def build_accumulation(
    periods: Iterable[PayrollPeriod],
    details_by_period: Mapping[int, Optional[List[PayrollEntry]]],
    employees: Optional[Iterable[Any]] = None,
    payments: Optional[Mapping[int, bool]] = None,
    max_periods: Optional[int] = None,
) -> AccumulationSummary:
    ordered = _sorted_periods(periods)
    limit = max_periods if max_periods is not None else settings.max_accumulation_months
    if len(ordered) > limit:
        raise ValueError(f"Selecciona como máximo {limit} periodos para el acumulado.")
    if not ordered:
        return AccumulationSummary(
            ready=True,
            area_extras=_empty_area_map(ExtrasTotals),
        )

    months = [AccumulationMonth(id=p.id, label=month_label(p.year, p.month)) for p in ordered]
    missing = [p.id for p in ordered if details_by_period.get(p.id) is None]
    if missing:
        logger.warning("accumulation not ready, missing periods=%s", missing)
        return AccumulationSummary(
            ready=False,
            months=months,
            area_extras=_empty_area_map(ExtrasTotals),
        )

    roster = {emp.id: emp for emp in (employees or [])}
    payments = payments or {}
    month_count = len(ordered)
    rows_by_employee: Dict[int, AccumulationRow] = {}
    month_breakdown = [DeductionBreakdown() for _ in ordered]
    month_advances = [0.0] * month_count
    month_holidays = [0.0] * month_count
    month_bonuses = [0.0] * month_count
    month_overtime = [0.0] * month_count
    area_extras = _empty_area_map(ExtrasTotals)

    for index, period in enumerate(ordered):
        for entry in details_by_period[period.id]:
            roster_employee = roster.get(entry.employee_id)
            employee = roster_employee or entry.employee
            area = resolve_area(entry, roster_employee)

            row = rows_by_employee.get(entry.employee_id)
            if row is None:
                row = AccumulationRow(
                    employee_id=entry.employee_id,
                    employee=employee,
                    employee_name=employee_name(employee),
                    area=area,
                    per_month=[0.0] * month_count,
                    per_month_paid=[0.0] * month_count,
                    per_month_deductions=[0.0] * month_count,
                    paid=bool(payments.get(entry.employee_id, False)),
                )
                rows_by_employee[entry.employee_id] = row
            elif row.employee is None and employee is not None:
                row.employee = employee
                row.employee_name = employee_name(employee)
            row.area = area
            _fill_bank_fields(row, roster_employee, entry.employee)

            net = resolve_value(entry, "net_pay")
            advances = resolve_manual_advances(entry)
            deductions = resolve_actual_deductions(entry)
            row.per_month[index] += net
            row.per_month_paid[index] += net + advances
            row.per_month_deductions[index] += deductions
            row.total += net
            row.total_paid += net + advances
            row.total_deductions += deductions

            month_breakdown[index].add(resolve_deduction_components(entry))
            holidays = resolve_value(entry, "holiday_bonus") + resolve_value(entry, "weekend_sunday_bonus")
            bonuses = resolve_value(entry, "manual_bonuses")
            overtime = resolve_value(entry, "overtime_bonus")
            month_advances[index] += advances
            month_holidays[index] += holidays
            month_bonuses[index] += bonuses
            month_overtime[index] += overtime
            for bucket in (AREA_ALL, area):
                extras = area_extras[bucket]
                extras.advances += advances
                extras.holidays += holidays
                extras.bonuses += bonuses
                extras.overtime += overtime

    rows = sorted(rows_by_employee.values(), key=lambda r: r.employee_name.lower())
    totals = _sum_rows(rows, month_count)
    total_breakdown = DeductionBreakdown()
    for breakdown in month_breakdown:
        total_breakdown.add(breakdown)

    area_totals: Dict[str, AccumulationTotals] = {}
    payment_split: Dict[str, PaymentSplit] = {}
    for bucket in AREA_BUCKETS:
        bucket_rows = rows if bucket == AREA_ALL else [r for r in rows if r.area == bucket]
        area_totals[bucket] = totals if bucket == AREA_ALL else _sum_rows(bucket_rows, month_count)
        payment_split[bucket] = PaymentSplit(
            paid=_sum_rows([r for r in bucket_rows if r.paid], month_count),
            pending=_sum_rows([r for r in bucket_rows if not r.paid], month_count),
        )

    logger.debug(
        "accumulation periods=%s rows=%d total=%.2f", [p.id for p in ordered], len(rows), totals.total
    )
    return AccumulationSummary(
        ready=True,
        months=months,
        rows=rows,
        month_totals=totals.month_totals,
        month_totals_paid=totals.month_totals_paid,
        month_totals_deductions=totals.month_totals_deductions,
        month_deduction_breakdown=month_breakdown,
        total_deduction_breakdown=total_breakdown,
        month_advances=month_advances,
        month_holidays=month_holidays,
        month_bonuses=month_bonuses,
        month_overtime=month_overtime,
        total=totals.total,
        total_paid=totals.total_paid,
        total_deductions=totals.total_deductions,
        total_advances=sum(month_advances),
        total_holidays=sum(month_holidays),
        total_bonuses=sum(month_bonuses),
        total_overtime=sum(month_overtime),
        area_extras=area_extras,
        area_totals=area_totals,
        payment_split=payment_split,
    )


def filter_accumulation(
    summary: AccumulationSummary,
    payments: Optional[Mapping[int, bool]] = None,
    area: str = AREA_ALL,
    payment_filter: str = "ALL",
    account_filter: str = "ALL",
) -> AccumulationView:
    """依區域、付款狀態、是否有帳戶篩選列，並以可見列重算合計"""
    area = (area or AREA_ALL).upper()
    payment_filter = (payment_filter or "ALL").upper()
    account_filter = (account_filter or "ALL").upper()
    if area != AREA_ALL and area not in AREA_VALUES:
        raise ValueError(f"未知區域: {area}")
    if payment_filter not in PAYMENT_FILTERS:
        raise ValueError(f"付款篩選須為 {'/'.join(PAYMENT_FILTERS)}")
    if account_filter not in ACCOUNT_FILTERS:
        raise ValueError(f"帳戶篩選須為 {'/'.join(ACCOUNT_FILTERS)}")

    visible = []
    for row in summary.rows:
        if area != AREA_ALL and row.area != area:
            continue
        paid = payments.get(row.employee_id, False) if payments is not None else row.paid
        if payment_filter == "PAID" and not paid:
            continue
        if payment_filter == "UNPAID" and paid:
            continue
        if account_filter == "WITH" and not row.has_account:
            continue
        if account_filter == "WITHOUT" and row.has_account:
            continue
        visible.append(row)

    totals = _sum_rows(visible, len(summary.months))
    return AccumulationView(
        months=summary.months,
        rows=visible,
        month_totals=totals.month_totals,
        month_totals_paid=totals.month_totals_paid,
        month_totals_deductions=totals.month_totals_deductions,
        total=totals.total,
        total_paid=totals.total_paid,
        total_deductions=totals.total_deductions,
    )


def default_accumulation_selection(
    periods: Iterable[PayrollPeriod], today: Optional[date] = None, count: Optional[int] = None
) -> List[int]:
    """預設選取：本月之前最近 N 期（新到舊）；皆無則取最新 N 期"""
    today = today or date.today()
    count = count or settings.default_accumulation_months
    newest_first = sorted(periods, key=lambda p: (p.year, p.month), reverse=True)
    current = (today.year, today.month)
    past = [p for p in newest_first if (p.year, p.month) < current]
    chosen = past or newest_first
    return [p.id for p in chosen[:count]]
