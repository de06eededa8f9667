"""日數/時數顯示字串（西文：día/días、hora/horas）。金額格式不在此處理。"""
import math
from typing import Any

from planilla.config import settings
from planilla.payroll.units import is_finite_number, round_half_up


def _safe_hours_per_day(hours_per_day: Any) -> float:
    if is_finite_number(hours_per_day) and hours_per_day > 0:
        return float(hours_per_day)
    return float(settings.hours_per_day_default)


def plain_number(value: Any) -> str:
    """整數值不帶小數點（30.0 → "30"）"""
    if not is_finite_number(value):
        return "0"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


def format_integer_days(days: int) -> str:
    return f"{days} {'día' if days == 1 else 'días'}"


def format_hours_quantity(hours: Any) -> str:
    """時數；<= 0 或非有限值回傳空字串"""
    if not is_finite_number(hours):
        return ""
    rounded = round_half_up(hours, 2)
    if rounded <= 0:
        return ""
    nearest = round_half_up(rounded)
    safe = nearest if abs(rounded - nearest) < 1e-2 else rounded
    text = str(int(safe)) if float(safe).is_integer() else f"{safe:.2f}"
    return f"{text} {'hora' if safe == 1 else 'horas'}"


def format_hours_detailed(hours: Any, always_show: bool = False) -> str:
    """整數時數補零兩位（04 horas）"""
    finite = is_finite_number(hours)
    rounded = round_half_up(hours, 2) if finite else 0.0
    if not always_show and (not finite or rounded <= 0):
        return ""
    safe = max(rounded, 0.0)
    if abs(round_half_up(safe) - safe) < 1e-6:
        text = str(int(round_half_up(safe))).zfill(2)
    else:
        text = f"{safe:.2f}"
    return f"{text} {'hora' if safe == 1 else 'horas'}"


def format_hours_or_zero(hours: Any) -> str:
    return format_hours_quantity(hours if hours is not None else 0) or "0 horas"


def format_days_with_hours(days_value: Any, hours_per_day: Any = None) -> str:
    """小數天數拆成「N días M horas」；剩餘時數達一天者進位為一天"""
    per_day = _safe_hours_per_day(hours_per_day)
    safe_value = max(float(days_value), 0.0) if is_finite_number(days_value) else 0.0
    total_hours = safe_value * per_day
    whole_days = math.floor(total_hours / per_day + 1e-6)
    remaining_hours = total_hours - whole_days * per_day
    if remaining_hours < 1e-4:
        remaining_hours = 0.0
    if remaining_hours >= per_day - 1e-4:
        whole_days += 1
        remaining_hours = 0.0
    hours_text = format_hours_quantity(remaining_hours)
    day_label = "día" if whole_days == 1 else "días"
    if whole_days <= 0 and hours_text:
        return hours_text
    if not hours_text:
        return f"{whole_days} {day_label}"
    return f"{whole_days} {day_label} {hours_text}"


def format_days_and_explicit_hours(days_value: Any, hours_per_day: Any = None) -> str:
    """「N días y 04 horas」；整天時只顯示天數"""
    per_day = _safe_hours_per_day(hours_per_day)
    safe_value = max(float(days_value), 0.0) if is_finite_number(days_value) else 0.0
    whole_days = math.floor(safe_value + 1e-6)
    fractional = safe_value - whole_days
    remainder_hours = round_half_up(fractional * per_day, 2)
    display_days = whole_days
    if remainder_hours >= per_day - 0.01:
        display_days += 1
        remainder_hours = 0.0
    days_label = format_integer_days(display_days)
    if remainder_hours < 0.01:
        return days_label
    return f"{days_label} y {format_hours_detailed(remainder_hours, True)}"


def format_days_with_partial_hours(days: Any, hours: Any = 0, hours_per_day: Any = None) -> str:
    """天數 + 額外時數；四捨五入後時數達一天則進位"""
    per_day = _safe_hours_per_day(hours_per_day)
    days = float(days) if is_finite_number(days) else 0.0
    hours = float(hours) if is_finite_number(hours) else 0.0
    base_days = math.floor(days + 1e-6)
    total_hours = max(0.0, (days - base_days) * per_day + hours)
    rounded_hours = round_half_up(total_hours)
    if rounded_hours >= per_day:
        return format_integer_days(base_days + 1)
    day_label = format_integer_days(base_days)
    if rounded_hours <= 0:
        return day_label
    return f"{day_label} y {format_hours_detailed(rounded_hours, True)}"
