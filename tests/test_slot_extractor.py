"""
Slot Extractor tests.

Checks:
1. Traveler counts (digits, number words, phrases)
2. Budget amounts and currencies
3. Yes/no and itinerary replies
4. Explicit change intents
"""
import pytest

from tripflow.agent.slot_extractor import (
    budget_distribution,
    detect_change_intent,
    extract_budget,
    extract_travelers,
    format_money,
    is_affirmative,
    strip_origin,
    wants_itinerary,
)


# ==================== TRAVELERS ====================

class TestTravelers:

    @pytest.mark.parametrize("text, expected", [
        ("2", 2),
        ("two of us", 2),
        ("We are 4 people", 4),
        ("a family of four", 4),
        ("just me", 1),
        ("my wife and I", 2),
        ("-1", -1),
        ("25", 25),
    ])
    def test_counts(self, text, expected):
        assert extract_travelers(text) == expected

    def test_nothing_countable(self):
        assert extract_travelers("lots of friends") is None


# ==================== BUDGET ====================

class TestBudget:

    @pytest.mark.parametrize("text, amount, currency", [
        ("$3,000", 3000, "USD"),
        ("£2500", 2500, "GBP"),
        ("2.5k euros", 2500, "EUR"),
        ("around 4000 dollars", 4000, "USD"),
        ("5000", 5000, None),
    ])
    def test_amounts(self, text, amount, currency):
        budget = extract_budget(text)

        assert budget.amount == amount
        assert budget.currency == currency

    def test_negative_amount(self):
        """'-50' parses, but as a non-positive amount"""
        assert extract_budget("-50").amount == -50

    def test_no_amount(self):
        assert extract_budget("not sure yet") is None

    def test_distribution_sums_to_total(self):
        rows = budget_distribution(1000)

        assert [category for category, _, _ in rows] == [
            "accommodation", "transport", "activities", "food", "misc",
        ]
        assert sum(amount for _, amount, _ in rows) == pytest.approx(1000)
        assert rows[0] == ("accommodation", 400, 40)

    def test_multi_city_shifts_to_transport(self):
        rows = dict((category, percent) for category, _, percent in budget_distribution(1000, multi_city=True))

        assert rows["accommodation"] == 35
        assert rows["transport"] == 30
        assert sum(rows.values()) == 100

    def test_format_money(self):
        assert format_money(3000, "USD") == "$3,000"
        assert format_money(1500.5, "CAD") == "1,500.50 CAD"


# ==================== REPLIES ====================

class TestReplies:

    @pytest.mark.parametrize("text", ["yes", "Yes, that's right", "correct!", "sounds good"])
    def test_affirmative(self, text):
        assert is_affirmative(text)

    @pytest.mark.parametrize("text", ["no", "No, that's wrong", "not right", "March 20-27"])
    def test_not_affirmative(self, text):
        assert not is_affirmative(text)

    def test_itinerary_request(self):
        assert wants_itinerary("Create my plan")
        assert wants_itinerary("let's go ahead")
        assert not wants_itinerary("I like museums")

    def test_strip_origin(self):
        assert strip_origin("I'm flying from Boston.") == "boston"
        assert strip_origin("Chicago") == "chicago"


# ==================== CHANGE INTENT ====================

class TestChangeIntent:

    @pytest.mark.parametrize("text, slot, value", [
        ("Change destination to Rome", "destination", "Rome"),
        ("please update my budget to $4000", "budget", "$4000"),
        ("change the travel dates to March 3-10", "dates", "March 3-10"),
        ("Switch travelers to 3.", "travelers", "3"),
        ("change departure city to New York", "origin", "New York"),
    ])
    def test_detected(self, text, slot, value):
        intent = detect_change_intent(text)

        assert intent.slot == slot
        assert intent.value == value

    def test_plain_answer_is_not_a_change(self):
        assert detect_change_intent("I love Rome") is None
