"""Booking-urgency classifier tests."""
from datetime import date, timedelta

import pytest

from tripflow.agent.urgency import classify
from tripflow.models.domain import BookingCategory


class TestCategoryBoundaries:

    @pytest.mark.parametrize("days, category", [
        (0, BookingCategory.LAST_MINUTE),
        (14, BookingCategory.LAST_MINUTE),
        (15, BookingCategory.SHORT_NOTICE),
        (60, BookingCategory.SHORT_NOTICE),
        (61, BookingCategory.ADVANCE),
        (180, BookingCategory.ADVANCE),
        (181, BookingCategory.FAR_ADVANCE),
        (400, BookingCategory.FAR_ADVANCE),
    ])
    def test_days_until_travel(self, today, days, category):
        start = today + timedelta(days=days)
        timeline = classify(start, start + timedelta(days=6), today)

        assert timeline.days_until_travel == days
        assert timeline.category is category
        assert timeline.strategy

    def test_last_minute_note_mentions_days(self, today):
        timeline = classify(today + timedelta(days=5), today + timedelta(days=9), today)

        assert "5 days" in timeline.urgency_note


class TestEdgeCases:

    def test_past_start_is_flagged(self, today):
        timeline = classify(today - timedelta(days=3), today, today)

        assert timeline.days_until_travel == -3
        assert timeline.category is BookingCategory.LAST_MINUTE
        assert "past" in timeline.urgency_note

    def test_end_before_start_is_rejected(self, today):
        with pytest.raises(ValueError):
            classify(date(2025, 3, 22), date(2025, 3, 15), today)
