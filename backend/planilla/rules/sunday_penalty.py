"""
週日缺勤扣薪規則：依 config/payroll_rules.yaml 套用，可替換。
同一週內平日缺勤達門檻者，加扣該週週日（視同缺勤一天）。
policy 為 (缺勤日期列表) -> 加扣天數 之可呼叫物件，產生薪資單時可注入自訂規則。
"""
import logging
from collections import Counter
from datetime import date, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional

import yaml

from planilla.config import settings

logger = logging.getLogger(__name__)

SundayPenaltyPolicy = Callable[[List[date]], int]

WEEK_STARTS = ("monday", "sunday")


def _default_rule() -> Dict[str, Any]:
    """內建預設（與 YAML 同），無檔案時使用"""
    return {
        "id": "weekday_absence_loses_sunday",
        "name": "平日缺勤扣當週週日",
        "week_start": "monday",
        "min_absences_per_week": 1,
        "max_penalty_days_per_week": 1,
    }


def _load_rule() -> Dict[str, Any]:
    path = settings.resolved_rules_file
    if not path.exists():
        return _default_rule()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        logger.warning("無法讀取規則檔 %s，改用內建預設", path, exc_info=True)
        return _default_rule()
    section = data.get("sunday_penalty") if isinstance(data, dict) else data
    if not isinstance(data, dict) or not isinstance(section or {}, dict):
        logger.warning("規則檔格式錯誤 %s（須為 mapping），改用內建預設", path)
        return _default_rule()
    rule = _default_rule()
    rule.update(section or {})
    logger.debug("sunday penalty rule loaded from %s: %s", path, rule)
    return rule


def week_key(value: date, week_start: str = "monday") -> date:
    """該日所屬週之起始日"""
    if week_start not in WEEK_STARTS:
        raise ValueError(f"week_start 須為 {'/'.join(WEEK_STARTS)}")
    # weekday(): 0 = 週一 ... 6 = 週日
    offset = value.weekday() if week_start == "monday" else (value.weekday() + 1) % 7
    return value - timedelta(days=offset)


def count_penalty_days(absence_dates: Iterable[date], rule: Optional[Dict[str, Any]] = None) -> int:
    rule = rule or _load_rule()
    week_start = rule.get("week_start", "monday")
    min_absences = max(int(rule.get("min_absences_per_week", 1)), 1)
    per_week = max(int(rule.get("max_penalty_days_per_week", 1)), 0)
    weeks = Counter(week_key(d, week_start) for d in absence_dates)
    penalized = sum(1 for count in weeks.values() if count >= min_absences)
    return penalized * per_week


def get_sunday_penalty_policy(rule: Optional[Dict[str, Any]] = None) -> SundayPenaltyPolicy:
    rule = rule or _load_rule()

    def policy(absence_dates: List[date]) -> int:
        return count_penalty_days(absence_dates, rule)

    return policy


def get_sunday_penalty_rule() -> Dict[str, Any]:
    """取得目前載入之週日扣薪規則（供後台檢視）"""
    return _load_rule()
