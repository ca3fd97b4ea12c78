"""Booking-urgency classification of a resolved trip date range."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from tripflow.models.domain import BookingCategory, BookingTimeline


@dataclass(frozen=True)
class UrgencyRule:
    applies: Callable[[int], bool]
    category: BookingCategory
    strategy: str
    note: Callable[[int], str]


# Evaluated in order on days until travel; first match wins
URGENCY_RULES: list[UrgencyRule] = [
    UrgencyRule(
        lambda days: days < 0,
        BookingCategory.LAST_MINUTE,
        "Travel date has passed",
        lambda days: "⚠️ The travel dates you mentioned are in the past. Did you mean a different year?",
    ),
    UrgencyRule(
        lambda days: days <= 14,
        BookingCategory.LAST_MINUTE,
        "Last-minute deals and flexible options",
        lambda days: f"🚨 Traveling in {days} days! I'll focus on available hotels and flexible bookings.",
    ),
    UrgencyRule(
        lambda days: days <= 60,
        BookingCategory.SHORT_NOTICE,
        "Mix of advance deals and remaining availability",
        lambda days: f"⏰ {days} days until travel. Good time for deals with decent availability.",
    ),
    UrgencyRule(
        lambda days: days <= 180,
        BookingCategory.ADVANCE,
        "Early bird discounts and better selection",
        lambda days: f"📅 {days // 30} months ahead, great for early bird rates and prime locations.",
    ),
    UrgencyRule(
        lambda days: True,
        BookingCategory.FAR_ADVANCE,
        "Maximum choice and long-term deals",
        lambda days: f"🎯 {days // 30} months ahead, plenty of time for the best deals and locations.",
    ),
]


def classify(start_date: date, end_date: date, today: Optional[date] = None) -> BookingTimeline:
    """
    Booking timeline of a trip.

    daysUntilTravel is counted in whole calendar days from today to the start date.
    """
    if end_date < start_date:
        raise ValueError("end_date precedes start_date")
    days = (start_date - (today or date.today())).days
    rule = next(rule for rule in URGENCY_RULES if rule.applies(days))
    return BookingTimeline(
        days_until_travel=days,
        category=rule.category,
        strategy=rule.strategy,
        urgency_note=rule.note(days),
    )
