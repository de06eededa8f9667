"""
實付天數計算單元測試。
測試：期中到職空窗扣除、請假時數折算天數、遲到換算、可計薪上限、出勤天數回推、單調性。
"""
import pytest

from planilla.payroll.day_info import compute_day_info
from planilla.schemas import AttendanceFacts, PayrollBreakdown, PayrollEntry


def _entry(attendance=None, breakdown=None, **fields):
    return PayrollEntry(
        employee_id=1,
        attendance=AttendanceFacts(**(attendance or {})),
        breakdown=PayrollBreakdown(**(breakdown or {"daily_rate": 80, "hourly_rate": 10})),
        **fields,
    )


def test_new_hire_gap_reduces_net_days():
    """基準 31 天、空窗 15 天、可計薪 16 天、無缺勤 → 實付 16 天"""
    info = compute_day_info(_entry(), base_days=31, initial_gap_days=15, eligible_days_override=16)
    assert info.net_days == pytest.approx(16)
    assert info.display == "16 días / 31"


def test_permission_hours_roll_into_days():
    """每日 8 小時、請假 20 小時 → 2 天 + 4 小時（2.5 天）"""
    info = compute_day_info(_entry(attendance={"permission_hours": 20, "permission_days": 0}), base_days=30)
    assert info.hours_per_day == 8
    assert info.permission_days_for_calc == 2
    assert info.permission_hours_balance == pytest.approx(4)
    assert info.net_days == pytest.approx(27.5)
    assert info.display == "27 días 4 horas / 30"


def test_tardiness_minutes_deducted_as_hours():
    info = compute_day_info(_entry(attendance={"tardiness_minutes": 240}), base_days=30)
    assert info.net_days == pytest.approx(29.5)


def test_entry_counters_preferred_over_attendance():
    """薪資單欄位優先於出勤彙總"""
    info = compute_day_info(_entry(attendance={"absence_days": 5}, absence_days=2), base_days=30)
    assert info.absence_days == 2
    assert info.net_days == pytest.approx(28)


def test_penalty_days_deducted():
    info = compute_day_info(_entry(attendance={"absence_days": 1, "absence_penalty_days": 1}), base_days=30)
    assert info.penalty_days == 1
    assert info.net_days == pytest.approx(28)


def test_eligible_days_caps_net_days():
    info = compute_day_info(_entry(), base_days=30, eligible_days_override=20)
    assert info.net_days == 20
    # 顯示天數不受上限影響
    assert info.net_days_display == 30


def test_display_days_from_period_days():
    info = compute_day_info(_entry(attendance={"period_days": 31}), base_days=30)
    assert info.display_days == 31
    assert info.display == "31 días / 31"


def test_worked_days_backfilled():
    """未提供出勤天數 → 可計薪 - (缺勤 + 請假 + 週日加扣)"""
    entry = _entry(attendance={"eligible_days": 20, "absence_days": 2, "permission_days": 1})
    info = compute_day_info(entry, base_days=30)
    assert info.worked_days == 17


def test_worked_days_kept_when_supplied():
    entry = _entry(attendance={"eligible_days": 20, "absence_days": 2, "worked_days": 15})
    assert compute_day_info(entry, base_days=30).worked_days == 15


def test_net_days_never_negative():
    info = compute_day_info(_entry(attendance={"absence_days": 45}), base_days=30)
    assert info.net_days == 0
    assert info.net_days_display == 0


def test_net_days_monotonic_in_absences():
    """缺勤每增加 1 天，實付天數不增加"""
    previous = None
    for absences in range(0, 35):
        info = compute_day_info(
            _entry(attendance={"absence_days": absences, "permission_hours": 3, "tardiness_minutes": 45}),
            base_days=30,
            initial_gap_days=4,
        )
        if previous is not None:
            assert info.net_days <= previous
        previous = info.net_days


def test_missing_inputs_default_to_zero():
    info = compute_day_info(PayrollEntry(employee_id=1))
    assert info.base_days == 30
    assert info.hours_per_day == 8
    assert info.net_days == 30
