import enum
from datetime import date, datetime
from typing import Optional, Union

from dateutil import parser as date_parser

from certtracker.db.models import NotificationKind

DateInput = Union[date, datetime, str, None]


class ExpiryBucket(enum.Enum):
    """Urgency classification of a validity end date, most urgent first."""

    OVERDUE = "overdue"
    DAY_BEFORE = "day-before"
    WEEK = "week"
    TWO_WEEKS = "2-weeks"
    MONTH = "month"
    THREE_MONTHS = "3-months"
    SIX_MONTHS = "6-months"
    SAFE = "safe"


MILESTONE_LABELS = {
    ExpiryBucket.OVERDUE: "Overdue",
    ExpiryBucket.DAY_BEFORE: "1 Day Before Expiry",
    ExpiryBucket.WEEK: "1 Week Before Expiry",
    ExpiryBucket.TWO_WEEKS: "2 Weeks Before Expiry",
    ExpiryBucket.MONTH: "1 Month Before Expiry",
    ExpiryBucket.THREE_MONTHS: "3 Months Before Expiry",
    ExpiryBucket.SIX_MONTHS: "6 Months Before Expiry",
    ExpiryBucket.SAFE: "Valid",
}


class ExpiryCalculator:
    """Calendar arithmetic used by the expiry ladder"""

    @staticmethod
    def days_until(end: date, today: date) -> int:
        """Whole days from today to end, midnight to midnight"""
        return (end - today).days

    @staticmethod
    def months_until(end: date, today: date) -> int:
        """Elapsed calendar months, borrowing one when end's day is earlier"""
        months = (end.year * 12 + end.month) - (today.year * 12 + today.month)
        if end.day < today.day:
            months -= 1
        return months


def coerce_date(value: DateInput) -> Optional[date]:
    """
    Reduce a date-like value to a calendar date.

    Returns None for missing or unparseable input.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return date_parser.isoparse(text).date()
        except (ValueError, OverflowError):
            return None
    return None


def classify(validity_end: DateInput, today: DateInput) -> ExpiryBucket:
    """
    Classify a validity end date relative to today.

    The first matching rule wins:

    - no end date → safe
    - end date before today → overdue
    - ≤ 1 day → day-before, ≤ 7 days → week, ≤ 14 days → 2-weeks
    - ≤ 1 calendar month → month, ≤ 3 → 3-months, ≤ 6 → 6-months
    - otherwise → safe

    Malformed input never raises; it classifies as safe.
    """
    end = coerce_date(validity_end)
    current = coerce_date(today)
    if end is None or current is None:
        return ExpiryBucket.SAFE

    if end < current:
        return ExpiryBucket.OVERDUE

    days = ExpiryCalculator.days_until(end, current)
    if days <= 1:
        return ExpiryBucket.DAY_BEFORE
    if days <= 7:
        return ExpiryBucket.WEEK
    if days <= 14:
        return ExpiryBucket.TWO_WEEKS

    months = ExpiryCalculator.months_until(end, current)
    if months <= 1:
        return ExpiryBucket.MONTH
    if months <= 3:
        return ExpiryBucket.THREE_MONTHS
    if months <= 6:
        return ExpiryBucket.SIX_MONTHS

    return ExpiryBucket.SAFE


def milestone_label(bucket: ExpiryBucket) -> str:
    return MILESTONE_LABELS[bucket]


def notification_kind(bucket: ExpiryBucket) -> NotificationKind:
    if bucket is ExpiryBucket.OVERDUE:
        return NotificationKind.OVERDUE
    return NotificationKind.REMINDER


def milestone_key(scheme: str, bucket: ExpiryBucket) -> str:
    """Suppression unit in the audit log, e.g. ``SCHEME_A:3-months``"""
    return f"{scheme}:{bucket.value}"
