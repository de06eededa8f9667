"""
扣款拆解：缺勤、無薪請假、遲到、手動扣款（已扣除預支）四項，皆不為負。

預支（ADVANCE）在原始帳上屬於手動扣款，但在累計/發放報表中另列為「已先發放」，
因此手動扣款分項 = max(0, 手動扣款 - 預支)，避免重複計為一般罰扣。
付款單、彙總、累計報表一律經本模組取得扣款數值。
"""
from typing import Any, List

from planilla.payroll.facts import resolve_optional, resolve_value
from planilla.payroll.units import to_number
from planilla.schemas import DeductionBreakdown, DeductionPart

# 小於此值視為 0（不列入明細）
DISPLAY_THRESHOLD = 0.005

DEDUCTION_LABELS = {
    "absence": "Faltas",
    "permission": "Permisos sin goce",
    "tardiness": "Tardanzas",
    "manual": "Penalidades/ajustes",
}


def resolve_manual_advances(entry: Any) -> float:
    """
    預支合計：breakdown.manual_advances 為有限數值時優先（不小於 0）；
    否則加總 type=ADVANCE 之調整金額（略過非有限金額）。
    """
    recorded = resolve_optional(entry, "manual_advances")
    if recorded is not None:
        return max(recorded, 0.0)
    total = 0.0
    for adjustment in getattr(entry, "adjustments", None) or []:
        if getattr(adjustment, "type", None) != "ADVANCE":
            continue
        total += to_number(getattr(adjustment, "amount", None))
    return total


def resolve_deduction_components(entry: Any) -> DeductionBreakdown:
    """四項扣款（缺漏欄位視為 0）"""
    advances = resolve_manual_advances(entry)
    manual_raw = resolve_value(entry, "manual_deductions")
    return DeductionBreakdown(
        absence=max(resolve_value(entry, "absence_deduction"), 0.0),
        permission=max(resolve_value(entry, "permission_deduction"), 0.0),
        tardiness=max(resolve_value(entry, "tardiness_deduction"), 0.0),
        manual=max(0.0, manual_raw - advances),
    )


def resolve_actual_deductions(entry: Any) -> float:
    """實際扣款 = 四項合計（不小於 0）"""
    return resolve_deduction_components(entry).total()


def deduction_breakdown_parts(components: DeductionBreakdown) -> List[DeductionPart]:
    """有金額之扣款分項（供報表逐項列出）"""
    parts: List[DeductionPart] = []
    for key, label in DEDUCTION_LABELS.items():
        value = getattr(components, key)
        if value > DISPLAY_THRESHOLD:
            parts.append(DeductionPart(key=key, label=label, value=value))
    return parts
