"""
日/時換算與數值正規化之純函式。

- 每日工時：日薪 ÷ 時薪 之比值（限制在 4~24），無法取得時預設 8 小時。
- 接近整數之數量（誤差 < 0.01）一律取整，避免反覆日/時換算後出現「6.999999 días」。
- 缺漏或非有限數值（None、NaN、inf、空字串）一律視為 0，不拋錯。
"""
import math
from typing import Any, Optional, Union

from planilla.config import settings

Number = Union[int, float]

QUANTITY_EPSILON = 1e-2


def is_finite_number(value: Any) -> bool:
    """int/float（不含 bool）且為有限值"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def to_number(value: Any) -> float:
    """轉為 float；None、空字串、非有限值或無法解析者回傳 0"""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def first_number(*candidates: Any) -> Optional[float]:
    """依序回傳第一個有限數值；皆無則 None"""
    for candidate in candidates:
        if is_finite_number(candidate):
            return float(candidate)
    return None


def round_half_up(value: float, digits: int = 0) -> float:
    """四捨五入（.5 進位），與 Python round 的銀行家捨入不同"""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def hours_per_day(breakdown: Any) -> float:
    """
    每日工時換算係數。
    日薪與時薪皆有值且比值為正的有限數 → 比值限制在 [4, 24]；否則預設 8。
    """
    daily_rate = first_number(getattr(breakdown, "daily_rate", None))
    hourly_rate = first_number(getattr(breakdown, "hourly_rate", None))
    if daily_rate and hourly_rate:
        ratio = daily_rate / hourly_rate
        if math.isfinite(ratio) and ratio > 0:
            return min(max(ratio, settings.hours_per_day_min), settings.hours_per_day_max)
    return float(settings.hours_per_day_default)


def normalize_quantity(value: Any, epsilon: float = QUANTITY_EPSILON) -> Number:
    """
    接近整數則取整：|x - 最近整數| < epsilon → 該整數；|x| < epsilon → 0；其餘原值。
    非有限值回傳 0。結果具冪等性：normalize(normalize(x)) == normalize(x)。
    """
    if not is_finite_number(value):
        return 0
    nearest = round(value)
    if abs(value - nearest) < epsilon:
        return int(nearest)
    if abs(value) < epsilon:
        return 0
    return value
