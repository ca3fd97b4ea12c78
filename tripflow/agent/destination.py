"""
Destination Analyzer.

Classifies a raw destination utterance into city / country / region /
multi-city / comprehensive-tour / unknown and produces either a normalized
value or a clarification question.

Pipeline:
    raw text
      │
      ▼
    strip_filler  ("I want to go to ...", trailing "for 10 days ...")
      │
      ▼
    detect_scope  (ordered SCOPE_DETECTORS, first match wins)
      │
      ├─ comprehensive + known country ─► comprehensive-tour (tier question)
      ├─ multi, ≥2 cities ──────────────► multi-city (strategy question)
      ▼
    lexicon lookup: city ─► country (needs specification) ─► region ─► assumed city
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Optional

from tripflow.agent.lexicon import CountryInfo, Lexicon, default_lexicon
from tripflow.models.domain import (
    DestinationType,
    DurationRange,
    RouteType,
    ScopeKind,
    TripScope,
)

logger = logging.getLogger(__name__)


# ==================== PHRASE CLEANUP ====================

FILLER_PHRASES = [
    "i would like to go to", "i'd like to go to", "i want to go to", "i wanna go to",
    "i would like to visit", "i'd like to visit", "i want to visit",
    "i am planning to go to", "i'm planning to go to", "i plan to visit",
    "i am planning a trip to", "i'm planning a trip to", "we are planning a trip to",
    "i am going to", "i'm going to", "i am traveling to", "i'm traveling to",
    "we want to go to", "we want to visit", "we'd like to visit", "we would like to visit",
    "take me to", "let me go to", "planning a trip to", "a trip to", "trip to",
    "going to", "traveling to", "travelling to", "visiting", "visit",
    "fly to", "stay in", "to",
]
_FILLER_RE = re.compile(
    r"^(?:" + "|".join(re.escape(p) for p in sorted(FILLER_PHRASES, key=len, reverse=True)) + r")\s+"
)
# "I want to explore ..." - generic intent prefix left after the fixed phrases
_INTENT_RE = re.compile(
    r"^(?:i|we)\s+(?:would like|'d like|want|wanna|plan|am planning|are planning|hope)\s+to\s+"
)
_ARTICLE_RE = re.compile(r"^(?:the|a|an)\s+")

_MONTHS = (
    "january|february|march|april|may|june|july|august|september|october|november|december"
)
TRAILING_DETAILS = re.compile(
    r"\s+(?:"
    r"for\s+(?:a|an|\d+|one|two|three|four|five|six|seven|eight|nine|ten|a\s+few|several)\b"
    r"|with\s+(?:a|an|my|our|the)\b"
    r"|in\s+(?:" + _MONTHS + r"|spring|summer|autumn|fall|winter)\b"
    r"|(?:next|this)\s+(?:week|month|year|spring|summer|autumn|fall|winter)\b"
    r"|on\s+a\s+budget\b"
    r"|from\s+"
    r"|starting\s+"
    r").*$"
)


def strip_filler(raw: str) -> str:
    """Isolate the destination phrase (lowercased)."""
    text = " ".join(raw.lower().split())
    text = text.strip(" .!?")
    text = _FILLER_RE.sub("", text, count=1)
    text = _INTENT_RE.sub("", text, count=1)
    text = _ARTICLE_RE.sub("", text, count=1)
    text = TRAILING_DETAILS.sub("", text)
    return text.strip(" .!?,")


def title_case(phrase: str) -> str:
    return " ".join(word.capitalize() for word in phrase.split())


# ==================== SCOPE DETECTION ====================

COMPREHENSIVE_SIGNALS = [
    "whole of", "entire", "all of", "complete", "comprehensive", "grand tour",
    "full tour", "explore all", "see everything", "tour of", "around", "circuit",
    "full experience",
]
REGIONAL_SIGNALS = [
    "region", "area", "coast", "north", "south", "east", "west",
    "highlands", "lowlands", "countryside", "islands",
]


def _word_re(signals: list[str]) -> re.Pattern:
    return re.compile(r"\b(?:" + "|".join(re.escape(s) for s in signals) + r")\b")


_COMPREHENSIVE_RE = _word_re(sorted(COMPREHENSIVE_SIGNALS, key=len, reverse=True))
_REGIONAL_RE = _word_re(REGIONAL_SIGNALS)
_JOINER_RE = re.compile(
    r"\s*(?:&|\+)\s*|\s+(?:and then|and|plus|as well as|along with|combined with|followed by|then)\s+"
)
_LAST_ITEM_RE = re.compile(r"\s+(?:and|&)\s+|\s*&\s*")
_TOKEN_PREFIX_RE = re.compile(r"^(?:and|both|also|then|the)\s+")
_REMAINDER_PREFIX_RE = re.compile(r"^(?:(?:of|the|in|tour|to)\s+)+")


@dataclass
class ScopeDetection:
    scope: ScopeKind
    signals: list[str] = field(default_factory=list)
    cities: list[str] = field(default_factory=list)
    remainder: str = ""     # phrase with the scope signals removed


def _detect_comprehensive(phrase: str, lexicon: Lexicon) -> Optional[ScopeDetection]:
    signals = _COMPREHENSIVE_RE.findall(phrase)
    if not signals:
        return None
    remainder = _COMPREHENSIVE_RE.sub(" ", phrase)
    remainder = " ".join(remainder.split())
    remainder = _REMAINDER_PREFIX_RE.sub("", remainder)
    remainder = re.sub(r"\s+tour$", "", remainder).strip(" ,")
    return ScopeDetection(ScopeKind.COMPREHENSIVE, signals=signals, remainder=remainder)


def _clean_token(token: str) -> str:
    return _TOKEN_PREFIX_RE.sub("", token.strip(" .!?,")).strip()


def _clean_cities(tokens: list[str], lexicon: Lexicon) -> list[str]:
    cities: list[str] = []
    for token in tokens:
        token = _clean_token(token)
        known = lexicon.lookup_city(token)
        if known is None and (len(token) <= 2 or lexicon.lookup_country(token) is not None):
            continue    # countries are not route stops
        city = known or title_case(token)
        if city not in cities:
            cities.append(city)
    return cities


def _split_list(phrase: str) -> Optional[tuple[list[str], list[str]]]:
    """List items and joiners of "a, b and c" / "a and b", or None."""
    if "," in phrase:
        parts = [part.strip() for part in phrase.split(",")]
        last = parts.pop()
        parts.extend(_LAST_ITEM_RE.split(last))
        return parts, [",", "and"]
    if _JOINER_RE.search(phrase):
        return _JOINER_RE.split(phrase), [m.strip() for m in _JOINER_RE.findall(phrase)]
    return None


def drop_country_qualifier(phrase: str, lexicon: Lexicon) -> str:
    """'rome, italy' → 'rome'."""
    head, comma, tail = phrase.rpartition(",")
    head = head.strip(" ,")
    if comma and head and lexicon.lookup_country(_clean_token(tail)) is not None:
        return head
    return phrase


def _country_list(phrase: str, lexicon: Lexicon) -> list[CountryInfo]:
    """Countries of "italy and france"; empty unless every item is a known country."""
    split = _split_list(phrase)
    if split is None:
        return []
    countries: list[CountryInfo] = []
    for part in split[0]:
        token = _clean_token(part)
        if not token:
            continue
        info = lexicon.lookup_country(token)
        if info is None:
            return []
        if info not in countries:
            countries.append(info)
    return countries if len(countries) >= 2 else []


def _detect_multi(phrase: str, lexicon: Lexicon) -> Optional[ScopeDetection]:
    if lexicon.lookup_city(phrase) or lexicon.lookup_country(phrase):
        return None

    split = _split_list(phrase)
    if split is None:
        return None
    parts, signals = split

    cities = _clean_cities(parts, lexicon)
    if len(cities) < 2:
        return None
    return ScopeDetection(ScopeKind.MULTI, signals=signals, cities=cities, remainder=phrase)


def _detect_regional(phrase: str, lexicon: Lexicon) -> Optional[ScopeDetection]:
    signals = _REGIONAL_RE.findall(phrase)
    if not signals:
        return None
    return ScopeDetection(ScopeKind.REGIONAL, signals=signals, remainder=phrase)


# Ordered: first match wins
SCOPE_DETECTORS: list[tuple[ScopeKind, Callable[[str, Lexicon], Optional[ScopeDetection]]]] = [
    (ScopeKind.COMPREHENSIVE, _detect_comprehensive),
    (ScopeKind.MULTI, _detect_multi),
    (ScopeKind.REGIONAL, _detect_regional),
]


def detect_scope(
    phrase: str,
    lexicon: Optional[Lexicon] = None,
    skip: tuple[ScopeKind, ...] = (),
) -> ScopeDetection:
    """Structural shape of a cleaned destination phrase."""
    lexicon = lexicon or default_lexicon
    for kind, detector in SCOPE_DETECTORS:
        if kind in skip:
            continue
        detection = detector(phrase, lexicon)
        if detection is not None:
            return detection
    return ScopeDetection(ScopeKind.SINGLE, remainder=phrase)


# ==================== ANALYSIS ====================

@dataclass
class DestinationAnalysis:
    type: DestinationType
    normalized: Optional[str]
    trip_scope: Optional[TripScope] = None
    needs_specification: bool = False
    suggestions: list[str] = field(default_factory=list)
    regions: list[str] = field(default_factory=list)
    clarification_question: Optional[str] = None

    @property
    def resolved(self) -> bool:
        """A single destination that can be filled and locked right away."""
        return self.type in (DestinationType.CITY, DestinationType.REGION) and not self.needs_specification


def multi_city_question(cities: list[str]) -> str:
    n = len(cities)
    return (
        f"I noticed you mentioned: {', '.join(cities)}.\n\n"
        "I can plan this in two different ways:\n\n"
        "🏙️ Single-city base: one hotel in one city, with day trips to nearby places\n"
        f"🗺️ Multi-city tour: {' → '.join(cities)}, separate stays in each city "
        f"({n * 2}-{n * 4} days recommended)\n\n"
        "Which approach do you prefer? Say \"single city\" (or name the city) or \"multi-city tour\"."
    )


def tour_question(country: str, suggestions: list[str], regions: list[str]) -> str:
    cities = ", ".join(suggestions[:4])
    if len(suggestions) > 4:
        cities += f" and {len(suggestions) - 4} more"
    lines = [
        f"🌍 A grand {country} adventure!",
        "",
        f"A comprehensive tour of {country} can cover {cities}.",
    ]
    if regions:
        lines.append(f"Regions: {', '.join(regions)}")
    lines += [
        "",
        "Which type of tour interests you?",
        "• Classic route (10-14 days): the main highlights",
        "• Grand tour (15-21 days): deep exploration with hidden gems",
        "• Express tour (7-10 days): greatest hits only",
    ]
    return "\n".join(lines)


def _country_question(country: str, suggestions: list[str], regions: list[str]) -> str:
    lines = [
        f"{country} is a fantastic choice! Which part of {country} interests you most?",
        "",
    ]
    lines += [f"• {city}" for city in suggestions[:3]]
    if regions:
        lines += ["", f"Or by region: {' • '.join(regions)}"]
    lines += ["", "You can also name several cities for a multi-city trip."]
    return "\n".join(lines)


def _countries_question(countries: list[CountryInfo]) -> str:
    names = [info.name for info in countries]
    joined = ", ".join(names[:-1]) + f" and {names[-1]}"
    lines = [f"{joined} sound wonderful! Which cities would you like to visit?", ""]
    lines += [f"• {info.name}: {', '.join(info.suggestions[:3])}" for info in countries]
    lines += ["", "Name one city, or several for a multi-city trip (e.g. \"Rome and Paris\")."]
    return "\n".join(lines)


def analyze(raw: str, lexicon: Optional[Lexicon] = None) -> DestinationAnalysis:
    """
    Classify a destination utterance.

    Args:
        raw: What the user said
        lexicon: Place lookup service (static tables by default)

    Returns:
        DestinationAnalysis with either a normalized value or a clarification question
    """
    lexicon = lexicon or default_lexicon
    phrase = strip_filler(raw)
    if not phrase:
        return DestinationAnalysis(
            type=DestinationType.UNKNOWN,
            normalized=None,
            clarification_question="Where would you like to go? A city, a country or several cities all work.",
        )
    phrase = drop_country_qualifier(phrase, lexicon)

    detection = detect_scope(phrase, lexicon)
    logger.debug(f"Destination scope for {phrase!r}: {detection.scope.value} {detection.signals}")

    if detection.scope is ScopeKind.COMPREHENSIVE:
        info = lexicon.lookup_country(detection.remainder) if detection.remainder else None
        if info is not None:
            suggestions = list(info.suggestions)
            regions = list(info.regions)
            return DestinationAnalysis(
                type=DestinationType.COMPREHENSIVE_TOUR,
                normalized=f"Complete {info.name} Tour",
                trip_scope=TripScope(
                    scope=ScopeKind.COMPREHENSIVE,
                    detected_cities=suggestions,
                    estimated_duration=DurationRange(min=10, max=21),
                    route_type=RouteType.CIRCULAR,
                    country=info.name,
                ),
                suggestions=suggestions,
                regions=regions,
                clarification_question=tour_question(info.name, suggestions, regions),
            )
        # Not a country we can tour: treat the rest as an ordinary destination
        phrase = detection.remainder or phrase
        detection = detect_scope(phrase, lexicon, skip=(ScopeKind.COMPREHENSIVE,))

    if detection.scope is ScopeKind.MULTI:
        cities = detection.cities
        n = len(cities)
        return DestinationAnalysis(
            type=DestinationType.MULTI_CITY,
            normalized=" + ".join(cities),
            trip_scope=TripScope(
                scope=ScopeKind.MULTI,
                detected_cities=cities,
                estimated_duration=DurationRange(min=n * 2, max=n * 4),
                route_type=RouteType.LINEAR,
            ),
            suggestions=list(cities),
            clarification_question=multi_city_question(cities),
        )

    countries = _country_list(phrase, lexicon)
    if countries:
        suggestions = [city for info in countries for city in info.suggestions[:3]]
        return DestinationAnalysis(
            type=DestinationType.COUNTRY,
            normalized=" + ".join(info.name for info in countries),
            trip_scope=TripScope(
                scope=ScopeKind.MULTI,
                estimated_duration=DurationRange(min=len(countries) * 4, max=len(countries) * 7),
            ),
            needs_specification=True,
            suggestions=suggestions,
            clarification_question=_countries_question(countries),
        )

    city = lexicon.lookup_city(phrase)
    if city is not None:
        return DestinationAnalysis(
            type=DestinationType.CITY,
            normalized=city,
            trip_scope=TripScope(
                scope=ScopeKind.SINGLE,
                estimated_duration=DurationRange(min=3, max=7),
                route_type=RouteType.HUB_AND_SPOKE,
            ),
        )

    info = lexicon.lookup_country(phrase)
    if info is not None:
        suggestions = list(info.suggestions)
        regions = list(info.regions)
        return DestinationAnalysis(
            type=DestinationType.COUNTRY,
            normalized=info.name,
            trip_scope=TripScope(
                scope=ScopeKind.SINGLE,
                estimated_duration=DurationRange(min=3, max=21),
                country=info.name,
            ),
            needs_specification=True,
            suggestions=suggestions,
            regions=regions,
            clarification_question=_country_question(info.name, suggestions, regions),
        )

    if detection.scope is ScopeKind.REGIONAL:
        return DestinationAnalysis(
            type=DestinationType.REGION,
            normalized=title_case(phrase),
            trip_scope=TripScope(
                scope=ScopeKind.REGIONAL,
                estimated_duration=DurationRange(min=5, max=10),
                route_type=RouteType.LINEAR,
            ),
        )

    # Unrecognized: assume good faith, it is a city we do not know
    return DestinationAnalysis(
        type=DestinationType.CITY,
        normalized=title_case(phrase),
        trip_scope=TripScope(
            scope=ScopeKind.SINGLE,
            estimated_duration=DurationRange(min=3, max=7),
            route_type=RouteType.HUB_AND_SPOKE,
        ),
    )
