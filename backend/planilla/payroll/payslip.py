"""
個人付款單（boleta）明細列：收入與扣款各列附說明字串。

金額一律取自 summary.summarize_entry；此處只負責天數/時數說明文字與列的取捨：
金額為 0 之列不列出（Remuneración consolidada 一律列出）。
"""
from typing import Any, List

from planilla.payroll.formatting import (
    format_days_and_explicit_hours,
    format_days_with_hours,
    format_days_with_partial_hours,
    format_hours_or_zero,
    plain_number,
)
from planilla.payroll.facts import resolve_value
from planilla.payroll.summary import summarize_entry
from planilla.payroll.units import normalize_quantity
from planilla.schemas import PENSION_SYSTEM_LABELS, PayrollEntry, Payslip, PayslipLine, month_label


def _days_label(days: float) -> str:
    return f"{plain_number(days)} {'día' if days == 1 else 'días'}"


def _line(label: str, detail: str, amount: float) -> PayslipLine:
    return PayslipLine(label=label, detail=detail, amount=amount)


def build_payslip(entry: PayrollEntry, period: Any) -> Payslip:
    summary = summarize_entry(entry, period)
    day_info = summary.day_info
    eligibility = summary.eligibility
    per_day = day_info.hours_per_day

    # 實付天數 = 扣款後底薪 ÷ 日薪（無日薪時以月薪 ÷ 基準天數）
    penalties = summary.manual_deductions + summary.tardiness
    permit_absence_amount = summary.absence + summary.permission
    daily_rate = resolve_value(entry, "daily_rate")
    if daily_rate > 0:
        base_day_rate = daily_rate
    elif summary.monthly_base > 0 and day_info.base_days > 0:
        base_day_rate = summary.monthly_base / day_info.base_days
    else:
        base_day_rate = 0.0
    net_base_amount = max(summary.remuneration - permit_absence_amount - penalties, 0.0)
    if base_day_rate > 0:
        paid_days = net_base_amount / base_day_rate
    else:
        paid_days = day_info.worked_days or day_info.net_days_display
    paid_days_line = format_days_with_partial_hours(paid_days, 0, per_day)

    eligible_days = eligibility.eligible_days
    eligible_days_line = format_days_and_explicit_hours(eligible_days, per_day)

    # 請假顯示天數：記錄之請假（含時數折算），不超過可計薪與實付天數之差
    unpaid_difference = max(eligible_days - normalize_quantity(paid_days, 1e-2), 0.0)
    permission_total = normalize_quantity(
        max(day_info.permission_days_recorded + day_info.raw_permission_hours / per_day, 0.0),
        per_day * 0.05,
    )
    derived_permission = normalize_quantity(unpaid_difference, per_day * 0.05)
    has_unpaid = normalize_quantity(permit_absence_amount, 0.01) > 0
    if not has_unpaid:
        permission_display_days = 0.0
    elif permission_total > 0 and derived_permission > 0:
        permission_display_days = min(permission_total, derived_permission)
    else:
        permission_display_days = permission_total

    penalty_days = day_info.penalty_days
    absence_detail = _days_label(day_info.absence_days)
    if penalty_days > 0:
        plural = "" if penalty_days == 1 else "s"
        absence_detail += f" · +{plain_number(penalty_days)} domingo{plural} descontado{plural}"
    permit_absence_detail = f"{absence_detail} · {format_days_with_hours(permission_display_days, per_day)}"

    bonus_parts = []
    if summary.holiday_days > 0:
        bonus_parts.append(f"Feriados {_days_label(summary.holiday_days)}")
    if summary.weekend_sunday_days > 0:
        bonus_parts.append(f"Domingos {_days_label(summary.weekend_sunday_days)}")
    if summary.manual_bonuses > 0:
        bonus_parts.append("Bonos manuales")
    bonus_amount = summary.holiday_bonus + summary.weekend_sunday_bonus + summary.manual_bonuses

    employee = entry.employee
    pension_system = getattr(employee, "pension_system", None)
    pension_label = PENSION_SYSTEM_LABELS.get(pension_system, "Pensión") if pension_system else "Pensión"
    contribution_parts = []
    if summary.pension_amount > 0:
        contribution_parts.append(pension_label)
    if summary.health_amount > 0:
        contribution_parts.append("Essalud")
    contributions = summary.pension_amount + summary.health_amount

    overtime_hours = resolve_value(entry, "overtime_hours")
    earnings = [_line("Remuneración consolidada", paid_days_line, summary.remuneration)]
    if summary.overtime > 0:
        earnings.append(_line("Horas extras", format_hours_or_zero(overtime_hours), summary.overtime))
    if bonus_amount > 0:
        earnings.append(_line("Bonos especiales", " · ".join(bonus_parts) or "—", bonus_amount))

    deductions: List[PayslipLine] = []
    if permit_absence_amount > 0:
        deductions.append(_line("Permisos / faltas", permit_absence_detail, permit_absence_amount))
    if summary.manual_advances > 0:
        deductions.append(_line("Adelantos", "Pagos adelantados registrados", summary.manual_advances))
    if penalties > 0:
        deductions.append(_line("Penalidades / tardanzas", "Descuentos automáticos", penalties))
    if contributions > 0:
        deductions.append(_line("Aportes", " + ".join(contribution_parts) or "—", contributions))

    return Payslip(
        entry_id=entry.id,
        employee_id=entry.employee_id,
        employee_name=summary.employee_name,
        period_label=month_label(period.year, period.month),
        start_date=summary.start_date,
        paid_days_line=paid_days_line,
        eligible_days_line=eligible_days_line,
        earnings=earnings,
        deductions=deductions,
        total_earnings=sum(line.amount for line in earnings),
        total_deductions=sum(line.amount for line in deductions),
        net_pay=summary.net_pay,
    )
