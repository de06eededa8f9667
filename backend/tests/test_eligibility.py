"""
期間可計薪天數單元測試。
測試：無到職日、期中到職、期中離職、到職晚於期間、到職日 = 期間起日、期間天數來源。
"""
from datetime import date

from planilla.payroll.eligibility import count_inclusive_days, entry_eligibility, period_day_count
from planilla.schemas import PayrollPeriod


def _period(**kwargs):
    data = dict(id=1, month=1, year=2025, start_date=date(2025, 1, 1), end_date=date(2025, 1, 31), working_days=30)
    data.update(kwargs)
    return PayrollPeriod(**data)


def test_no_start_date_full_eligibility():
    """無到職日：整期可計薪、空窗 0"""
    info = entry_eligibility(_period(), None)
    assert info.eligible_days == info.period_day_count == 30
    assert info.gap_days == 0


def test_start_after_period_end():
    """到職日晚於期間訖日：可計薪 0、空窗 = 期間天數"""
    info = entry_eligibility(_period(), date(2025, 2, 1))
    assert info.eligible_days == 0
    assert info.gap_days == info.period_day_count


def test_start_on_period_start():
    info = entry_eligibility(_period(), date(2025, 1, 1))
    assert info.eligible_days == info.period_day_count
    assert info.gap_days == 0


def test_start_before_period_start():
    info = entry_eligibility(_period(), date(2024, 6, 1))
    assert info.eligible_days == 30
    assert info.gap_days == 0


def test_new_hire_mid_period():
    """1/1~1/31（working_days=31）、1/16 到職 → 期間 31、可計薪 16、空窗 15"""
    info = entry_eligibility(_period(working_days=31), date(2025, 1, 16))
    assert info.period_day_count == 31
    assert info.eligible_days == 16
    assert info.gap_days == 15


def test_missing_period_dates_full_eligibility():
    info = entry_eligibility(_period(start_date=None, end_date=None), date(2025, 1, 16))
    assert info.eligible_days == 30
    assert info.gap_days == 0


def test_period_day_count_sources():
    assert period_day_count(_period(working_days=26)) == 26
    # 超出 1~30 改用起訖日實際天數
    assert period_day_count(_period(working_days=31)) == 31
    assert period_day_count(_period(working_days=None, month=2, start_date=date(2025, 2, 1), end_date=date(2025, 2, 28))) == 28
    assert period_day_count(_period(working_days=None, start_date=None, end_date=None)) == 30


def test_count_inclusive_days():
    assert count_inclusive_days(date(2025, 1, 16), date(2025, 1, 31)) == 16
    assert count_inclusive_days(date(2025, 2, 1), date(2025, 1, 31)) is None
    assert count_inclusive_days(None, date(2025, 1, 31)) is None


def test_leaver_end_date_clips_eligibility():
    """1/15 離職：可計薪 15 天、空窗 15 天"""
    info = entry_eligibility(_period(), None, date(2025, 1, 15))
    assert info.eligible_days == 15
    assert info.gap_days == 15


def test_hire_and_leave_within_period():
    info = entry_eligibility(_period(), date(2025, 1, 6), date(2025, 1, 20))
    assert info.eligible_days == 15
    assert info.gap_days == 15


def test_end_date_before_period_not_eligible():
    info = entry_eligibility(_period(), None, date(2024, 12, 31))
    assert info.eligible_days == 0
    assert info.gap_days == 30


def test_end_date_after_period_full_eligibility():
    info = entry_eligibility(_period(), date(2024, 6, 1), date(2025, 3, 31))
    assert info.eligible_days == 30
    assert info.gap_days == 0
