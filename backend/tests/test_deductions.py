"""
扣款拆解單元測試。
測試：預支自手動扣款中分離、預支取值順序（明細優先，否則加總 ADVANCE 調整）、合計不為負。
"""
import pytest

from planilla.payroll.deductions import (
    deduction_breakdown_parts,
    resolve_actual_deductions,
    resolve_deduction_components,
    resolve_manual_advances,
)
from planilla.schemas import Adjustment, DeductionBreakdown, PayrollBreakdown, PayrollEntry


def _entry(breakdown=None, adjustments=None):
    return PayrollEntry(
        employee_id=1,
        breakdown=PayrollBreakdown(**(breakdown or {})),
        adjustments=adjustments or [],
    )


def test_advance_isolated_from_manual_deductions():
    """手動扣款 500、預支 200 → 手動分項 300"""
    entry = _entry({"manual_deductions": 500, "manual_advances": 200})
    assert resolve_deduction_components(entry).manual == 300


def test_advances_fallback_to_adjustments():
    """明細無預支 → 加總 ADVANCE 調整（100 + 50）"""
    entry = _entry(adjustments=[
        Adjustment(type="ADVANCE", amount=100),
        Adjustment(type="ADVANCE", amount=50),
        Adjustment(type="BONUS", amount=30),
        Adjustment(type="DEDUCTION", amount=20),
    ])
    assert resolve_manual_advances(entry) == 150


def test_advances_non_finite_breakdown_uses_adjustments():
    entry = _entry({"manual_advances": float("nan")}, [Adjustment(type="ADVANCE", amount=70)])
    assert resolve_manual_advances(entry) == 70


def test_advances_breakdown_preferred():
    entry = _entry({"manual_advances": 80}, [Adjustment(type="ADVANCE", amount=70)])
    assert resolve_manual_advances(entry) == 80


def test_advances_larger_than_manual_clamped():
    entry = _entry({"manual_deductions": 100, "manual_advances": 250})
    assert resolve_deduction_components(entry).manual == 0


def test_actual_deductions_sum_of_components():
    entry = _entry({
        "absence_deduction": 50,
        "permission_deduction": 12.5,
        "tardiness_deduction": 6.25,
        "manual_deductions": 320,
        "manual_advances": 300,
    })
    components = resolve_deduction_components(entry)
    assert resolve_actual_deductions(entry) == pytest.approx(
        components.absence + components.permission + components.tardiness + components.manual
    )
    assert resolve_actual_deductions(entry) == pytest.approx(88.75)


def test_actual_deductions_never_negative():
    """負值分項視為 0；缺漏明細合計 0"""
    entry = _entry({"absence_deduction": -50, "tardiness_deduction": -1})
    assert resolve_actual_deductions(entry) == 0
    assert resolve_actual_deductions(_entry()) == 0


def test_breakdown_parts_only_nonzero():
    parts = deduction_breakdown_parts(DeductionBreakdown(absence=50, permission=0, tardiness=0.001, manual=20))
    assert [p.key for p in parts] == ["absence", "manual"]
    assert parts[0].label == "Faltas"
