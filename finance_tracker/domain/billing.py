"""Billing period presets"""

from datetime import date, timedelta
from typing import Optional

from finance_tracker.domain.exceptions import ValidationError
from finance_tracker.domain.models import BillingPeriod, DateRangeType

# Early in the month there is too little data for a useful current-month summary
EARLY_MONTH_CUTOFF_DAY = 5


def _first_of_month(day: date) -> date:
    return day.replace(day=1)


def _shift_months(first: date, months: int) -> date:
    index = first.year * 12 + (first.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def calculate_date_range(
    range_type: DateRangeType,
    today: Optional[date] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> BillingPeriod:
    """
    Build a billing period for a preset range.

    - current_month: 1st of this month → today (falls back to last_month on day 1-5)
    - last_month: 1st → last day of previous month
    - last_3_months: 1st of the month three months back → today
    - current_year / last_year: calendar years
    - custom: explicit start_date and end_date

    Ranges longer than 90 days (years, and last_3_months late in a month)
    fail BillingPeriod validation.

    Raises:
        ValidationError: Missing custom bounds or an invalid resulting period
    """
    today = today or date.today()

    if range_type == DateRangeType.CURRENT_MONTH and today.day <= EARLY_MONTH_CUTOFF_DAY:
        range_type = DateRangeType.LAST_MONTH

    if range_type == DateRangeType.CURRENT_MONTH:
        return BillingPeriod(start=_first_of_month(today), end=today)

    if range_type == DateRangeType.LAST_MONTH:
        this_month = _first_of_month(today)
        return BillingPeriod(start=_shift_months(this_month, -1), end=this_month - timedelta(days=1))

    if range_type == DateRangeType.LAST_3_MONTHS:
        return BillingPeriod(start=_shift_months(_first_of_month(today), -3), end=today)

    if range_type == DateRangeType.CURRENT_YEAR:
        return BillingPeriod(start=date(today.year, 1, 1), end=today)

    if range_type == DateRangeType.LAST_YEAR:
        return BillingPeriod(start=date(today.year - 1, 1, 1), end=date(today.year - 1, 12, 31))

    if range_type == DateRangeType.CUSTOM:
        if start_date is None or end_date is None:
            raise ValidationError("Custom date range requires both start_date and end_date")
        return BillingPeriod(start=start_date, end=end_date)

    raise ValidationError(f"Invalid date range type: {range_type}")
