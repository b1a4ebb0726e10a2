"""Unit tests for billing periods and date range presets"""

import pytest
from datetime import date, timedelta
from finance_tracker.domain.billing import calculate_date_range
from finance_tracker.domain.exceptions import ValidationError
from finance_tracker.domain.models import BillingPeriod, DateRangeType


def test_billing_period_rejects_start_after_end():
    """Test start > end is invalid"""
    with pytest.raises(ValidationError, match="Start date cannot be after end date"):
        BillingPeriod(start=date(2025, 6, 2), end=date(2025, 6, 1))


def test_billing_period_rejects_more_than_90_days():
    """Test 91-day period is invalid"""
    with pytest.raises(ValidationError, match="cannot exceed 90 days"):
        BillingPeriod(start=date(2025, 1, 1), end=date(2025, 1, 1) + timedelta(days=91))


def test_billing_period_accepts_exactly_90_days_and_single_day():
    """Test boundary values are valid"""
    BillingPeriod(start=date(2025, 1, 1), end=date(2025, 1, 1) + timedelta(days=90))
    BillingPeriod(start=date(2025, 1, 1), end=date(2025, 1, 1))


def test_epoch_bounds_cover_whole_local_days():
    """Test bounds run from local midnight to 23:59:59 on the last day"""
    period = BillingPeriod(start=date(2025, 6, 1), end=date(2025, 6, 30))

    start_ts, end_ts = period.epoch_bounds()

    assert end_ts - start_ts == 30 * 24 * 3600 - 1


def test_current_month_range():
    """Test current month runs from the 1st to today"""
    period = calculate_date_range(DateRangeType.CURRENT_MONTH, today=date(2025, 10, 19))

    assert period == BillingPeriod(start=date(2025, 10, 1), end=date(2025, 10, 19))


def test_current_month_falls_back_to_last_month_early_in_month():
    """Test day 1-5 switches to the previous full month"""
    period = calculate_date_range(DateRangeType.CURRENT_MONTH, today=date(2025, 10, 3))

    assert period == BillingPeriod(start=date(2025, 9, 1), end=date(2025, 9, 30))


def test_last_month_in_january_wraps_year():
    """Test last month from January is the previous December"""
    period = calculate_date_range(DateRangeType.LAST_MONTH, today=date(2025, 1, 20))

    assert period == BillingPeriod(start=date(2024, 12, 1), end=date(2024, 12, 31))


def test_last_3_months_on_first_of_month():
    """Test three months back from the 1st fits in 90 days"""
    period = calculate_date_range(DateRangeType.LAST_3_MONTHS, today=date(2025, 3, 1))

    assert period == BillingPeriod(start=date(2024, 12, 1), end=date(2025, 3, 1))


def test_last_year_exceeds_limit():
    """Test calendar year presets fail validation"""
    with pytest.raises(ValidationError):
        calculate_date_range(DateRangeType.LAST_YEAR, today=date(2025, 10, 19))


def test_custom_range_requires_both_bounds():
    """Test custom range without an end date"""
    with pytest.raises(ValidationError, match="requires both"):
        calculate_date_range(DateRangeType.CUSTOM, start_date=date(2025, 1, 1))


def test_custom_range():
    """Test custom bounds pass through"""
    period = calculate_date_range(
        DateRangeType.CUSTOM,
        start_date=date(2025, 2, 1),
        end_date=date(2025, 2, 14),
    )

    assert period.start == date(2025, 2, 1)
    assert period.end == date(2025, 2, 14)
