"""
Route/Tour Selector.

Builds multi-city plans: the preliminary plan of a multi-city request, the
Classic / Grand / Express tiers of a comprehensive country tour, night
allocation and the classification of the user's route replies.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from tripflow.agent.lexicon import Lexicon, default_lexicon
from tripflow.models.domain import (
    CityPriority,
    CityStop,
    DateRange,
    MultiCityPlan,
    RoutePlan,
    RouteType,
    TourStyle,
)


# ==================== TOUR TIERS ====================

@dataclass(frozen=True)
class TourTier:
    style: TourStyle
    label: str
    days_hint: str
    keywords: tuple[str, ...]
    numbers: tuple[int, ...]
    city_limit: Optional[int]          # None: every detected city
    total_days: int
    route_type: RouteType
    nights: Callable[[int], int]       # index → nights
    priority: Callable[[int], CityPriority]


TOUR_TIERS: list[TourTier] = [
    TourTier(
        style=TourStyle.CLASSIC,
        label="Classic Route",
        days_hint="10-14 days",
        keywords=("classic",),
        numbers=(10, 14),
        city_limit=4,
        total_days=12,
        route_type=RouteType.CIRCULAR,
        nights=lambda i: 3 if i == 0 else 2,
        priority=lambda i: CityPriority.PRIMARY if i == 0 else CityPriority.SECONDARY,
    ),
    TourTier(
        style=TourStyle.GRAND,
        label="Grand Tour",
        days_hint="15-21 days",
        keywords=("grand",),
        numbers=(15, 21),
        city_limit=None,
        total_days=18,
        route_type=RouteType.CIRCULAR,
        nights=lambda i: 3 if i < 2 else 2,
        priority=lambda i: CityPriority.PRIMARY if i < 3 else CityPriority.SECONDARY,
    ),
    TourTier(
        style=TourStyle.EXPRESS,
        label="Express Tour",
        days_hint="7-10 days",
        keywords=("express", "quick", "short"),
        numbers=(7, 8),
        city_limit=3,
        total_days=8,
        route_type=RouteType.LINEAR,
        nights=lambda i: 3 if i == 0 else 2,
        priority=lambda i: CityPriority.PRIMARY,
    ),
]


def match_tier(reply: str) -> Optional[TourTier]:
    """Tier named in a reply: keywords first, then day counts ("classic", "14 days")."""
    lowered = reply.lower()
    for tier in TOUR_TIERS:
        if any(re.search(rf"\b{word}\b", lowered) for word in tier.keywords):
            return tier
    numbers = {int(n) for n in re.findall(r"\d+", lowered)}
    for tier in TOUR_TIERS:
        if numbers & set(tier.numbers):
            return tier
    return None


def tier_options() -> str:
    return "\n".join(f"• {tier.label} ({tier.days_hint})" for tier in TOUR_TIERS)


def build_tier_plan(tier: TourTier, country: str, cities: list[str]) -> MultiCityPlan:
    selected = cities if tier.city_limit is None else cities[:tier.city_limit]
    return MultiCityPlan(
        cities=[
            CityStop(
                name=city,
                country=country,
                nights=tier.nights(index),
                priority=tier.priority(index),
                position=index + 1,
            )
            for index, city in enumerate(selected)
        ],
        route=RoutePlan(sequence=list(selected), total_days=tier.total_days, route_type=tier.route_type),
        style=tier.style,
    )


# ==================== MULTI-CITY PLANS ====================

def build_preliminary_plan(
    cities: list[str],
    max_days: Optional[int] = None,
    lexicon: Optional[Lexicon] = None,
) -> MultiCityPlan:
    """Plan recorded when a multi-city request is detected, before any strategy choice."""
    lexicon = lexicon or default_lexicon
    total_days = max_days or len(cities) * 4
    nights = math.ceil(total_days / len(cities))
    return MultiCityPlan(
        cities=[
            CityStop(
                name=city,
                country=lexicon.country_of(city) or "Unknown",
                nights=nights,
                priority=CityPriority.PRIMARY if index == 0 else CityPriority.SECONDARY,
                position=index + 1,
            )
            for index, city in enumerate(cities)
        ],
        route=RoutePlan(sequence=list(cities), total_days=total_days, route_type=RouteType.LINEAR),
    )


def allocate_nights(city_count: int, total_nights: int) -> list[int]:
    """Spread nights evenly, extra nights to the earliest cities, at least one each."""
    if city_count <= 0:
        return []
    base, extra = divmod(max(total_nights, city_count), city_count)
    return [base + (1 if index < extra else 0) for index in range(city_count)]


def rebalance_plan(plan: MultiCityPlan, date_range: DateRange) -> MultiCityPlan:
    """Fit a multi-city style plan to the locked trip length."""
    if plan.style is not TourStyle.MULTI_CITY:
        return plan
    for stop, nights in zip(plan.cities, allocate_nights(len(plan.cities), date_range.nights)):
        stop.nights = nights
    plan.route.total_days = date_range.days
    return plan


def describe_plan(plan: MultiCityPlan) -> str:
    stays = ", ".join(f"{stop.name} ({stop.nights} nights)" for stop in plan.cities)
    return (
        f"📍 Route: {' → '.join(plan.route.sequence)}\n"
        f"📅 Duration: {plan.route.total_days} days\n"
        f"🏨 Stays: {stays}"
    )


# ==================== REPLIES ====================

class RouteReply(str, Enum):
    CONFIRM = "confirm"      # keep / accept the multi-city tour
    SINGLE = "single"        # single-city base, city not named yet
    CITY = "city"            # a specific city was picked
    UNKNOWN = "unknown"


CONFIRM_WORDS = re.compile(
    r"\b(?:yes|yeah|yep|sure|ok|okay|confirm|sounds good|looks good|let's do it|go ahead|"
    r"create|plan|multi[- ]?city|tour|all of them|every city)\b"
)
SINGLE_WORDS = re.compile(r"\b(?:single|focus|just one|one city|base)\b")
# "only Rome" narrows the trip to a city; "yes, just go ahead" does not
RESTRICT_WORDS = re.compile(r"\b(?:only|just)\b")
NEGATIVE_WORDS = re.compile(r"\b(?:no|nope|not)\b")


def match_city(reply: str, cities: list[str], lexicon: Optional[Lexicon] = None) -> Optional[str]:
    """City of `cities` mentioned in the reply, by name or by a known alias."""
    lexicon = lexicon or default_lexicon
    lowered = reply.lower()
    for city in cities:
        if re.search(rf"\b{re.escape(city.lower())}\b", lowered):
            return city
    canonical = lexicon.lookup_city(lowered.strip(" .!?"))
    if canonical in cities:
        return canonical
    return None


def classify_route_reply(
    reply: str,
    cities: list[str],
    lexicon: Optional[Lexicon] = None,
) -> tuple[RouteReply, Optional[str]]:
    city = match_city(reply, cities, lexicon)
    lowered = reply.lower()
    if SINGLE_WORDS.search(lowered):
        return (RouteReply.CITY, city) if city else (RouteReply.SINGLE, None)
    restricted = RESTRICT_WORDS.search(lowered) is not None
    if city and restricted:
        return RouteReply.CITY, city
    if CONFIRM_WORDS.search(lowered) and not NEGATIVE_WORDS.search(lowered):
        return RouteReply.CONFIRM, None
    if city:
        return RouteReply.CITY, city
    if restricted:
        return RouteReply.SINGLE, None
    return RouteReply.UNKNOWN, None
