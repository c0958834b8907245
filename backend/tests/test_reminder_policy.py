import os
import sys
from datetime import date, datetime, timedelta

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.services.reminder_policy import (
    FREQUENCY_THRESHOLDS,
    ReminderTier,
    classify_urgency,
    days_until_expiry,
    is_reminder_due,
)

TODAY = date(2025, 3, 1)


def test_days_until_expiry_ignores_time_of_day():
    assert days_until_expiry(datetime(2025, 3, 1, 23, 59), "2025-03-02") == 1
    assert days_until_expiry("2025-03-01T00:00:01", date(2025, 3, 1)) == 0
    assert days_until_expiry(TODAY, "2025-02-26") == -3


@pytest.mark.parametrize("frequency", list(FREQUENCY_THRESHOLDS))
def test_only_threshold_days_are_due(frequency):
    thresholds = FREQUENCY_THRESHOLDS[frequency]
    for days in range(0, 45):
        expiry = TODAY + timedelta(days=days)
        assert is_reminder_due(TODAY, expiry, frequency) is (days in thresholds)


@pytest.mark.parametrize("frequency", [*FREQUENCY_THRESHOLDS, None, "weekly"])
def test_expired_documents_are_always_due(frequency):
    for days_ago in (1, 3, 100):
        assert is_reminder_due(TODAY, TODAY - timedelta(days=days_ago), frequency)


@pytest.mark.parametrize("frequency", [None, "", "weekly"])
def test_unknown_frequency_uses_thirty_day_schedule(frequency):
    assert is_reminder_due(TODAY, TODAY + timedelta(days=30), frequency)
    assert is_reminder_due(TODAY, TODAY + timedelta(days=14), frequency)
    assert not is_reminder_due(TODAY, TODAY + timedelta(days=20), frequency)


def test_one_day_frequency():
    assert is_reminder_due(TODAY, TODAY + timedelta(days=1), "1_day")
    assert is_reminder_due(TODAY, TODAY, "1_day")
    assert not is_reminder_due(TODAY, TODAY + timedelta(days=3), "1_day")


@pytest.mark.parametrize(
    ("days", "tier"),
    [
        (-5, ReminderTier.EXPIRED),
        (0, ReminderTier.EXPIRES_TODAY),
        (1, ReminderTier.EXPIRES_SOON),
        (2, ReminderTier.EXPIRES_SOON),
        (3, ReminderTier.EXPIRES_SOON),
        (4, ReminderTier.EXPIRES_WEEK),
        (7, ReminderTier.EXPIRES_WEEK),
        (10, ReminderTier.EXPIRES_TWO_WEEKS),
        (14, ReminderTier.EXPIRES_TWO_WEEKS),
        (20, ReminderTier.EXPIRES_MONTH),
        (30, ReminderTier.EXPIRES_MONTH),
    ],
)
def test_classify_urgency(days, tier):
    assert classify_urgency(days) is tier


def test_tier_values_are_stored_strings():
    assert classify_urgency(7).value == "expires_week"
    assert classify_urgency(-1) == "expired"
