"""
Slot Extractor.

Direct parsing of the slots that need no analyzer of their own:
traveler count, budget amount and currency, yes/no replies, itinerary
requests and explicit "change X to Y" intents.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


# ==================== NUMBERS ====================

NUMBER_WORDS = {
    "a": 1, "an": 1, "one": 1, "single": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11,
    "twelve": 12, "thirteen": 13, "fourteen": 14, "fifteen": 15, "sixteen": 16,
    "seventeen": 17, "eighteen": 18, "nineteen": 19, "twenty": 20, "couple of": 2,
    "a couple of": 2, "a few": 3, "few": 3,
}
NUMBER_PATTERN = "|".join(re.escape(w) for w in sorted(NUMBER_WORDS, key=len, reverse=True))


def parse_count(token: str) -> Optional[int]:
    """'10' → 10, 'two' → 2, 'a' → 1."""
    token = token.strip().lower()
    if token.lstrip("-").isdigit():
        return int(token)
    return NUMBER_WORDS.get(token)


# ==================== TRAVELERS ====================

TRAVELER_PHRASES = [
    (re.compile(r"\b(?:just me|only me|myself|solo|alone|by myself)\b"), 1),
    (re.compile(r"\b(?:couple|my (?:wife|husband|partner|girlfriend|boyfriend) and (?:i|me)|"
                r"me and my (?:wife|husband|partner|girlfriend|boyfriend))\b"), 2),
]
TRAVELER_NUMBER = re.compile(rf"(?<![\w.])(-?\d+)(?!\w|\.\d)|\b({NUMBER_PATTERN})\b")


def extract_travelers(text: str) -> Optional[int]:
    """
    Traveler count from a reply.

    Returns the raw number (possibly ≤0 or too large, validation is the
    caller's job) or None when nothing countable was said.
    """
    lowered = " ".join(text.lower().split())
    for match in TRAVELER_NUMBER.finditer(lowered):
        if match.group(1) is not None:
            return int(match.group(1))
        # "a family of four" must not read as "a" == 1
        if match.group(2) not in ("a", "an"):
            return NUMBER_WORDS[match.group(2)]
    for pattern, count in TRAVELER_PHRASES:
        if pattern.search(lowered):
            return count
    return None


# ==================== BUDGET ====================

CURRENCY_SYMBOLS = {"$": "USD", "£": "GBP", "€": "EUR", "¥": "JPY"}
CURRENCY_WORDS = {
    "usd": "USD", "dollar": "USD", "dollars": "USD", "bucks": "USD",
    "gbp": "GBP", "pound": "GBP", "pounds": "GBP", "quid": "GBP",
    "eur": "EUR", "euro": "EUR", "euros": "EUR",
    "jpy": "JPY", "yen": "JPY",
    "cad": "CAD", "aud": "AUD", "chf": "CHF", "nzd": "NZD", "inr": "INR",
}
CURRENCY_SIGNS = {"USD": "$", "GBP": "£", "EUR": "€", "JPY": "¥"}

BUDGET_AMOUNT = re.compile(
    r"(?P<sign>-|−|minus\s+)?\s*(?P<symbol>[$£€¥])?\s*(?P<sign2>-)?\s*"
    r"(?P<number>\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)\s*(?P<suffix>k\b|thousand\b)?"
)
CURRENCY_WORD = re.compile(r"\b(" + "|".join(CURRENCY_WORDS) + r")\b")


@dataclass
class BudgetAmount:
    amount: float
    currency: Optional[str]     # None when the reply did not name one


def extract_budget(text: str) -> Optional[BudgetAmount]:
    """
    Amount and currency from a budget reply.

    "$3,000" → 3000 USD, "2.5k euros" → 2500 EUR, "-50" → -50.
    """
    lowered = text.lower()
    match = BUDGET_AMOUNT.search(lowered)
    if match is None:
        return None

    amount = float(match.group("number").replace(",", ""))
    if match.group("suffix"):
        amount *= 1000
    if match.group("sign") or match.group("sign2"):
        amount = -amount

    currency = None
    if match.group("symbol"):
        currency = CURRENCY_SYMBOLS[match.group("symbol")]
    else:
        word = CURRENCY_WORD.search(lowered)
        if word:
            currency = CURRENCY_WORDS[word.group(1)]
    return BudgetAmount(amount=amount, currency=currency)


def format_money(amount: float, currency: str) -> str:
    sign = CURRENCY_SIGNS.get(currency)
    number = f"{amount:,.0f}" if amount == int(amount) else f"{amount:,.2f}"
    return f"{sign}{number}" if sign else f"{number} {currency}"


# Percent of the total per category
BUDGET_SPLIT = [
    ("accommodation", 40),
    ("transport", 25),
    ("activities", 15),
    ("food", 15),
    ("misc", 5),
]
MULTI_CITY_SHIFT = 5   # points moved from accommodation to transport


def budget_distribution(amount: float, multi_city: bool = False) -> list[tuple[str, float, int]]:
    """(category, amount, percentage) rows summing to the total."""
    rows = []
    for category, percent in BUDGET_SPLIT:
        if multi_city and category == "accommodation":
            percent -= MULTI_CITY_SHIFT
        elif multi_city and category == "transport":
            percent += MULTI_CITY_SHIFT
        rows.append((category, round(amount * percent / 100, 2), percent))
    return rows


# ==================== YES / NO ====================

AFFIRMATIVE = re.compile(
    r"\b(?:yes|yeah|yep|yup|sure|correct|right|exactly|confirm(?:ed)?|ok|okay|"
    r"sounds good|looks good|perfect|absolutely)\b"
)
NEGATION = re.compile(r"\b(?:no|not|nope|wrong|incorrect|isn't|don't)\b")


def is_affirmative(text: str) -> bool:
    lowered = text.lower()
    return bool(AFFIRMATIVE.search(lowered)) and not NEGATION.search(lowered)


ITINERARY_REQUEST = re.compile(r"\b(?:create|start|begin|proceed|go ahead|generate|build)\b")


def wants_itinerary(text: str) -> bool:
    return bool(ITINERARY_REQUEST.search(text.lower()))


# ==================== ORIGIN ====================

ORIGIN_FILLER = re.compile(
    r"^(?:i(?:'m| am| will be| would be| will)?\s+)?(?:we(?:'re| are| will be)?\s+)?"
    r"(?:flying|leaving|departing|traveling|travelling|coming|starting|going)?\s*"
    r"(?:out\s+of|from)\s+"
)


def strip_origin(text: str) -> str:
    """'I'm flying from Boston' → 'boston'."""
    lowered = " ".join(text.lower().split()).strip(" .!?")
    return ORIGIN_FILLER.sub("", lowered, count=1)


# ==================== CHANGE INTENT ====================

CHANGE_TARGETS = {
    "destination": "destination",
    "origin": "origin",
    "departure": "origin",
    "departure city": "origin",
    "home city": "origin",
    "dates": "dates",
    "date": "dates",
    "travel dates": "dates",
    "budget": "budget",
    "travelers": "travelers",
    "travellers": "travelers",
    "number of travelers": "travelers",
    "people": "travelers",
    "group size": "travelers",
}
CHANGE_INTENT = re.compile(
    r"^(?:i want to |i'd like to |i would like to |please |can you |let's )?"
    r"(?:change|switch|update|set|make)\s+(?:my |the |our )?"
    r"(?P<target>" + "|".join(sorted(map(re.escape, CHANGE_TARGETS), key=len, reverse=True)) + r")"
    r"\s+(?:to|into)\s+(?P<value>.+?)[.!]?$"
)


@dataclass
class ChangeIntent:
    slot: str
    value: str


def detect_change_intent(text: str) -> Optional[ChangeIntent]:
    """'Change destination to Rome' → ChangeIntent('destination', 'Rome')."""
    normalized = " ".join(text.split())
    match = CHANGE_INTENT.match(normalized.lower())
    if match is None:
        return None
    # Keep the user's original casing of the value
    value = normalized[match.start("value"):match.end("value")]
    logger.debug(f"Change intent: {match.group('target')} → {value!r}")
    return ChangeIntent(slot=CHANGE_TARGETS[match.group("target")], value=value)
