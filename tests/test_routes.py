"""Route/Tour Selector tests."""
from datetime import date

import pytest

from tripflow.agent.routes import (
    RouteReply,
    TOUR_TIERS,
    allocate_nights,
    build_preliminary_plan,
    build_tier_plan,
    classify_route_reply,
    match_tier,
    rebalance_plan,
)
from tripflow.models.domain import CityPriority, DateRange, RouteType, TourStyle

ITALY = ["Rome", "Milan", "Venice", "Florence", "Naples"]
CITIES = ["London", "Paris", "Rome"]


def tier(style: TourStyle):
    return next(t for t in TOUR_TIERS if t.style is style)


# ==================== TIERS ====================

class TestTierSelection:

    @pytest.mark.parametrize("reply, style", [
        ("classic", TourStyle.CLASSIC),
        ("The Grand tour please", TourStyle.GRAND),
        ("something quick", TourStyle.EXPRESS),
        ("14 days", TourStyle.CLASSIC),
        ("about 21 days", TourStyle.GRAND),
    ])
    def test_match(self, reply, style):
        assert match_tier(reply).style is style

    def test_no_match(self):
        assert match_tier("hmm, not sure") is None


class TestTierPlans:

    def test_classic(self):
        plan = build_tier_plan(tier(TourStyle.CLASSIC), "Italy", ITALY)

        assert plan.city_names == ["Rome", "Milan", "Venice", "Florence"]
        assert [stop.nights for stop in plan.cities] == [3, 2, 2, 2]
        assert plan.cities[0].priority is CityPriority.PRIMARY
        assert plan.cities[1].priority is CityPriority.SECONDARY
        assert plan.route.total_days == 12
        assert plan.route.route_type is RouteType.CIRCULAR
        assert plan.style is TourStyle.CLASSIC
        assert not plan.confirmed

    def test_grand_keeps_every_city(self):
        plan = build_tier_plan(tier(TourStyle.GRAND), "Italy", ITALY)

        assert len(plan.cities) == 5
        assert [stop.nights for stop in plan.cities] == [3, 3, 2, 2, 2]
        assert [stop.priority for stop in plan.cities][:3] == [CityPriority.PRIMARY] * 3
        assert plan.route.total_days == 18

    def test_express(self):
        plan = build_tier_plan(tier(TourStyle.EXPRESS), "Italy", ITALY)

        assert len(plan.cities) == 3
        assert plan.route.route_type is RouteType.LINEAR
        assert all(stop.priority is CityPriority.PRIMARY for stop in plan.cities)
        assert [stop.position for stop in plan.cities] == [1, 2, 3]


# ==================== MULTI-CITY ====================

class TestMultiCityPlans:

    def test_preliminary_plan(self):
        plan = build_preliminary_plan(CITIES, max_days=12)

        assert plan.city_names == CITIES
        assert [stop.nights for stop in plan.cities] == [4, 4, 4]
        assert [stop.country for stop in plan.cities] == ["United Kingdom", "France", "Italy"]
        assert plan.route.total_days == 12
        assert plan.style is None

    def test_unknown_city_country(self):
        plan = build_preliminary_plan(["Paris", "Gotham"])

        assert plan.cities[1].country == "Unknown"
        assert plan.route.total_days == 8

    @pytest.mark.parametrize("count, nights, expected", [
        (3, 7, [3, 2, 2]),
        (3, 9, [3, 3, 3]),
        (3, 2, [1, 1, 1]),
        (0, 5, []),
    ])
    def test_allocate_nights(self, count, nights, expected):
        assert allocate_nights(count, nights) == expected

    def test_rebalance_to_trip_length(self):
        plan = build_preliminary_plan(CITIES, max_days=12)
        plan.style = TourStyle.MULTI_CITY

        rebalance_plan(plan, DateRange(start_date=date(2025, 3, 15), end_date=date(2025, 3, 22)))

        assert [stop.nights for stop in plan.cities] == [3, 2, 2]
        assert plan.route.total_days == 8

    def test_tier_plans_are_not_rebalanced(self):
        plan = build_tier_plan(tier(TourStyle.CLASSIC), "Italy", ITALY)

        rebalance_plan(plan, DateRange(start_date=date(2025, 3, 15), end_date=date(2025, 3, 22)))

        assert plan.route.total_days == 12


# ==================== REPLIES ====================

class TestRouteReplies:

    @pytest.mark.parametrize("reply, expected", [
        ("yes", (RouteReply.CONFIRM, None)),
        ("Multi-city tour please", (RouteReply.CONFIRM, None)),
        ("just Paris", (RouteReply.CITY, "Paris")),
        ("Rome", (RouteReply.CITY, "Rome")),
        ("single city", (RouteReply.SINGLE, None)),
        ("yes, just go ahead", (RouteReply.CONFIRM, None)),
        ("only Rome please", (RouteReply.CITY, "Rome")),
        ("just one", (RouteReply.SINGLE, None)),
        ("no", (RouteReply.UNKNOWN, None)),
        ("hmm", (RouteReply.UNKNOWN, None)),
    ])
    def test_classify(self, reply, expected):
        assert classify_route_reply(reply, CITIES) == expected
