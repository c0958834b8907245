"""Reminder scheduling policy.

Decides whether a document is due for a reminder on a given calendar day and
which urgency tier the reminder belongs to. Pure functions, no I/O.
"""
from datetime import date, datetime
from enum import Enum

DEFAULT_FREQUENCY = "30_days"

# Days-before-expiry at which a reminder fires, per user frequency setting.
FREQUENCY_THRESHOLDS: dict[str, frozenset[int]] = {
    "30_days": frozenset({30, 14, 7, 3, 1, 0}),
    "14_days": frozenset({14, 7, 3, 1, 0}),
    "7_days": frozenset({7, 3, 1, 0}),
    "3_days": frozenset({3, 1, 0}),
    "1_day": frozenset({1, 0}),
}


class ReminderTier(str, Enum):
    """Urgency classification stored as Reminder.reminder_type."""

    EXPIRED = "expired"
    EXPIRES_TODAY = "expires_today"
    EXPIRES_SOON = "expires_soon"
    EXPIRES_WEEK = "expires_week"
    EXPIRES_TWO_WEEKS = "expires_two_weeks"
    EXPIRES_MONTH = "expires_month"


def to_calendar_date(value: date | datetime | str) -> date:
    """Coerce a date, datetime or ISO string to a calendar day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    # Tolerate full timestamps, only the day part matters
    return date.fromisoformat(value[:10])


def days_until_expiry(today: date | datetime | str, expiration_date: date | datetime | str) -> int:
    """Whole calendar days from today to the expiration date (negative once expired)."""
    return (to_calendar_date(expiration_date) - to_calendar_date(today)).days


def thresholds_for(frequency: str | None) -> frozenset[int]:
    return FREQUENCY_THRESHOLDS.get(frequency or DEFAULT_FREQUENCY, FREQUENCY_THRESHOLDS[DEFAULT_FREQUENCY])


def is_reminder_due(
    today: date | datetime | str,
    expiration_date: date | datetime | str,
    frequency: str | None,
) -> bool:
    """Return True if a reminder should go out today.

    Expired documents are due every day until they are renewed or cancelled.
    Otherwise the reminder fires only on the threshold days implied by the
    frequency; unknown or missing frequencies fall back to ``30_days``.
    """
    days = days_until_expiry(today, expiration_date)
    if days < 0:
        return True
    return days in thresholds_for(frequency)


def classify_urgency(days: int) -> ReminderTier:
    """Map days-until-expiry to an urgency tier."""
    if days < 0:
        return ReminderTier.EXPIRED
    if days == 0:
        return ReminderTier.EXPIRES_TODAY
    if days <= 3:
        return ReminderTier.EXPIRES_SOON
    if days <= 7:
        return ReminderTier.EXPIRES_WEEK
    if days <= 14:
        return ReminderTier.EXPIRES_TWO_WEEKS
    return ReminderTier.EXPIRES_MONTH
