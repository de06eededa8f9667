"""日數/時數顯示字串單元測試（西文單複數、時數補零、近整數不出現小數）。"""
from planilla.payroll.formatting import (
    format_days_and_explicit_hours,
    format_days_with_hours,
    format_days_with_partial_hours,
    format_hours_detailed,
    format_hours_or_zero,
    format_hours_quantity,
    plain_number,
)


def test_days_with_hours():
    assert format_days_with_hours(2.5, 8) == "2 días 4 horas"
    assert format_days_with_hours(1, 8) == "1 día"
    assert format_days_with_hours(0.5, 8) == "4 horas"
    assert format_days_with_hours(0, 8) == "0 días"


def test_days_with_hours_drift():
    """反覆換算之誤差不顯示為小數"""
    assert format_days_with_hours(6.9999999, 8) == "7 días"


def test_days_with_hours_invalid_input():
    assert format_days_with_hours(None, 8) == "0 días"
    assert format_days_with_hours(-3, 8) == "0 días"


def test_days_and_explicit_hours():
    assert format_days_and_explicit_hours(2.5, 8) == "2 días y 04 horas"
    assert format_days_and_explicit_hours(1, 8) == "1 día"
    assert format_days_and_explicit_hours(30, 8) == "30 días"


def test_days_with_partial_hours():
    assert format_days_with_partial_hours(29, 0, 8) == "29 días"
    assert format_days_with_partial_hours(2, 3, 8) == "2 días y 03 horas"
    # 四捨五入後達一天 → 進位
    assert format_days_with_partial_hours(2, 7.6, 8) == "3 días"


def test_hours_strings():
    assert format_hours_quantity(1) == "1 hora"
    assert format_hours_quantity(1.5) == "1.50 horas"
    assert format_hours_quantity(0) == ""
    assert format_hours_or_zero(0) == "0 horas"
    assert format_hours_or_zero(None) == "0 horas"
    assert format_hours_detailed(4) == "04 horas"
    assert format_hours_detailed(0) == ""
    assert format_hours_detailed(0, True) == "00 horas"


def test_plain_number():
    assert plain_number(30.0) == "30"
    assert plain_number(2.5) == "2.50"
