"""
Dialogue State Machine.

Pattern: slot filling with explicit states and slot locking.

Expected-slot order (derived from the state by next_expected_slot):

    destination ──[multi-city / country tour]──► destination-scope
      │                                              │
      ▼◄─────────────────────────────────────────────┘
    origin
      │
      ▼
    dates ──► dates-confirm ──[no]──► dates
                  │
                  ▼ [yes: lock + booking timeline]
    travelers
      │
      ▼
    budget ──[unconfirmed multi-city plan]──► route-confirmation
      │                                            │
      ▼◄───────────────────────────────────────────┘
    preferences-or-create ──[create]──► complete

One turn (LangGraph):

    START -> guard -> [route_turn] -> <slot>_handler -> END
                            |
                            +-- (rejected / blank) ---------> END

Guarantees:
- A locked slot is never overwritten without an explicit change request
- Ambiguous input returns a clarification and changes nothing
- Rejected and clarifying turns leave the stored TripState untouched
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable, Optional, TypedDict

from langgraph.graph import END, StateGraph

from tripflow.agent import dates as date_parser
from tripflow.agent import destination as destination_analyzer
from tripflow.agent import urgency
from tripflow.agent.lexicon import Lexicon, default_lexicon
from tripflow.agent.routes import (
    TOUR_TIERS,
    RouteReply,
    build_preliminary_plan,
    build_tier_plan,
    classify_route_reply,
    describe_plan,
    match_city,
    match_tier,
    rebalance_plan,
    tier_options,
)
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
from tripflow.core.debug_logger import DebugLogger
from tripflow.core.errors import (
    MissingConversationIdError,
    StaleStateError,
    StateStoreError,
    UnknownSlotError,
)
from tripflow.core.monitoring import track_performance
from tripflow.core.session import StateStore, validate_conversation_id
from tripflow.models.domain import (
    BookingCategory,
    BudgetShare,
    DestinationType,
    DurationRange,
    ExpectedSlot,
    RouteType,
    ScopeKind,
    TourStyle,
    TripScope,
    TripState,
)

logger = logging.getLogger(__name__)


# ==================== TURN OUTCOME ====================

class TurnStatus(str, Enum):
    ACCEPTED = "accepted"                        # transition applied and persisted
    CLARIFICATION = "clarification"              # question returned, nothing changed
    REJECTED_VALIDATION = "rejected_validation"  # bad value or slot out of order
    REJECTED_LOCKED = "rejected_locked"          # slot locked, explicit change needed


@dataclass
class TurnOutcome:
    """What a slot handler decided."""
    status: TurnStatus
    message: str
    locked: bool = False
    changed: bool = False
    ask_next: bool = True               # append the question of the next expected slot
    needs_clarification: bool = False
    suggestions: list[str] = field(default_factory=list)

    @classmethod
    def accepted(cls, message: str, locked: bool = False, ask_next: bool = True,
                 needs_clarification: bool = False, suggestions: Optional[list[str]] = None) -> "TurnOutcome":
        return cls(TurnStatus.ACCEPTED, message, locked=locked, changed=True, ask_next=ask_next,
                   needs_clarification=needs_clarification, suggestions=suggestions or [])

    @classmethod
    def clarify(cls, message: str, suggestions: Optional[list[str]] = None) -> "TurnOutcome":
        return cls(TurnStatus.CLARIFICATION, message, ask_next=False,
                   needs_clarification=True, suggestions=suggestions or [])

    @classmethod
    def invalid(cls, message: str) -> "TurnOutcome":
        return cls(TurnStatus.REJECTED_VALIDATION, message, ask_next=False)


@dataclass
class TurnResult:
    """Caller-facing result of process_turn."""
    status: TurnStatus
    confirmation_text: str
    needs_clarification: bool
    locked: bool
    expected_slot: ExpectedSlot
    state: TripState
    suggestions: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status is TurnStatus.ACCEPTED


# ==================== SLOT ORDER ====================

SLOT_ORDER: list[ExpectedSlot] = [
    ExpectedSlot.DESTINATION,
    ExpectedSlot.DESTINATION_SCOPE,
    ExpectedSlot.ORIGIN,
    ExpectedSlot.DATES,
    ExpectedSlot.DATES_CONFIRM,
    ExpectedSlot.TRAVELERS,
    ExpectedSlot.BUDGET,
    ExpectedSlot.ROUTE_CONFIRMATION,
    ExpectedSlot.PREFERENCES_OR_CREATE,
    ExpectedSlot.COMPLETE,
]
SLOT_RANK = {slot: rank for rank, slot in enumerate(SLOT_ORDER)}

# Sub-states and the slot whose lock they are guarding
OWNING_SLOT = {
    ExpectedSlot.DESTINATION_SCOPE: "destination",
    ExpectedSlot.ROUTE_CONFIRMATION: "destination",
    ExpectedSlot.DATES_CONFIRM: "dates",
}
MAIN_SLOTS = {
    ExpectedSlot.DESTINATION, ExpectedSlot.ORIGIN, ExpectedSlot.DATES,
    ExpectedSlot.TRAVELERS, ExpectedSlot.BUDGET,
}


def next_expected_slot(trip: TripState) -> ExpectedSlot:
    """The single place deciding which answer the dialogue waits for."""
    destination = trip.destination
    if destination.pending_scope:
        return ExpectedSlot.DESTINATION_SCOPE
    if not destination.filled:
        return ExpectedSlot.DESTINATION
    if not trip.origin.filled:
        return ExpectedSlot.ORIGIN
    if not trip.dates.filled:
        return ExpectedSlot.DATES
    if not trip.dates.locked:
        return ExpectedSlot.DATES_CONFIRM
    if not trip.travelers.filled:
        return ExpectedSlot.TRAVELERS
    if not trip.budget.filled:
        return ExpectedSlot.BUDGET
    if trip.multi_city_plan is not None and not trip.multi_city_plan.confirmed:
        return ExpectedSlot.ROUTE_CONFIRMATION
    if trip.itinerary_requested:
        return ExpectedSlot.COMPLETE
    return ExpectedSlot.PREFERENCES_OR_CREATE


def parse_slot_name(slot_name: str) -> ExpectedSlot:
    try:
        return ExpectedSlot(slot_name.strip().lower().replace("_", "-"))
    except ValueError:
        raise UnknownSlotError(f"Unknown slot: {slot_name!r}") from None


# ==================== PROMPTS ====================

SLOT_QUESTIONS = {
    ExpectedSlot.DESTINATION: "Where would you like to go?",
    ExpectedSlot.ORIGIN: "What city will you be departing from?",
    ExpectedSlot.DATES: (
        "When would you like to travel? You can say things like "
        "\"March 15-22\" or \"10 days starting March 15\"."
    ),
    ExpectedSlot.TRAVELERS: "How many people will be traveling?",
    ExpectedSlot.BUDGET: "What's your approximate budget for this trip? (e.g. \"$3000\" or \"£2500\")",
    ExpectedSlot.PREFERENCES_OR_CREATE: (
        "Would you like to add any preferences (hotel type, activities, dietary needs), "
        "or shall I start creating your itinerary? Say \"create my plan\" when you're ready!"
    ),
    ExpectedSlot.COMPLETE: (
        "I have all the information I need and I'm creating your itinerary. "
        "To adjust something, say \"change budget to ...\" (or destination, origin, dates, travelers)."
    ),
}

SLOT_LABELS = {
    "destination": "destination",
    "origin": "departure city",
    "dates": "travel dates",
    "travelers": "number of travelers",
    "budget": "budget",
}
CHANGE_KEYWORDS = {
    "destination": "destination",
    "origin": "origin",
    "dates": "dates",
    "travelers": "travelers",
    "budget": "budget",
}

BOOKING_STRATEGY_LINES = {
    BookingCategory.LAST_MINUTE: "🚨 Booking strategy: last-minute travel! I'll prioritize available options and flexible bookings.",
    BookingCategory.SHORT_NOTICE: "⏰ Booking strategy: good timing for deals with decent selection still available.",
    BookingCategory.ADVANCE: "📅 Booking strategy: perfect timing for early bird discounts and premium locations.",
    BookingCategory.FAR_ADVANCE: "🎯 Booking strategy: excellent timing! Maximum choice and the best long-term deals.",
}


def describe_slot(trip: TripState, name: str) -> str:
    """Display form of a filled slot."""
    if name == "dates" and trip.dates.normalized is not None:
        period = trip.dates.normalized
        return date_parser.format_range(period.start_date, period.end_date)
    if name == "travelers" and trip.travelers.normalized is not None:
        count = trip.travelers.normalized
        return f"{count} {'person' if count == 1 else 'people'}"
    if name == "budget" and trip.budget.normalized is not None:
        return format_money(trip.budget.normalized, trip.budget.currency)
    return str(trip.slot(name).normalized)


def prompt_for_slot(trip: TripState, lexicon: Optional[Lexicon] = None) -> str:
    """The question to ask for the current expected slot."""
    slot = trip.expected_slot
    if slot is ExpectedSlot.DESTINATION_SCOPE:
        scope = trip.destination.trip_scope
        cities = scope.detected_cities if scope else []
        if trip.destination.type is DestinationType.COMPREHENSIVE_TOUR:
            country = scope.country if scope and scope.country else "the country"
            info = (lexicon or default_lexicon).lookup_country(country)
            regions = list(info.regions) if info is not None else []
            return destination_analyzer.tour_question(country, cities, regions)
        return destination_analyzer.multi_city_question(cities)
    if slot is ExpectedSlot.DATES_CONFIRM:
        return f"I understand you want to travel {describe_slot(trip, 'dates')}. Is that correct?"
    if slot is ExpectedSlot.ROUTE_CONFIRMATION:
        plan = trip.multi_city_plan
        return (
            f"🗺️ Your {len(plan.cities)}-city route is ready for confirmation:\n"
            f"{describe_plan(plan)}\n\n"
            "Shall I go ahead with this route? Say \"yes\", or name one city to focus on it."
        )
    return SLOT_QUESTIONS[slot]


# ==================== TURN GRAPH STATE ====================

@dataclass
class TurnContext:
    """Per-turn inputs the handlers need besides the state."""
    lexicon: Lexicon
    today: date
    lead_days: int = date_parser.DEFAULT_LEAD_DAYS
    max_travelers: int = 20
    default_currency: str = "USD"


class TurnState(TypedDict, total=False):
    trip: TripState                 # working copy, mutated by handlers
    slot: ExpectedSlot
    raw_value: str
    explicit_change: bool
    context: TurnContext
    outcome: Optional[TurnOutcome]


# ==================== HELPERS ====================

def _collapse_to_city(trip: TripState, city: str) -> None:
    """Single-city focus: lock the city and discard the multi-city plan."""
    trip.destination.clear()
    trip.destination.fill(city, city, lock=True)
    trip.destination.type = DestinationType.CITY
    trip.destination.trip_scope = TripScope(
        scope=ScopeKind.SINGLE,
        estimated_duration=DurationRange(min=3, max=7),
        route_type=RouteType.HUB_AND_SPOKE,
    )
    trip.multi_city_plan = None
    _refresh_budget_distribution(trip)


def _refresh_budget_distribution(trip: TripState) -> None:
    if trip.budget.normalized is None:
        return
    multi_city = trip.multi_city_plan is not None
    trip.budget.distribution = [
        BudgetShare(category=category, amount=amount, percentage=percentage)
        for category, amount, percentage in budget_distribution(trip.budget.normalized, multi_city)
    ]


def _single_city_message(city: str) -> str:
    return (
        f"Perfect! Let's focus on {city} for your trip.\n"
        f"🏨 One excellent base in {city}, with nearby attractions as day trips."
    )


def _which_city_question(cities: list[str]) -> str:
    options = "\n".join(f"• {city}" for city in cities)
    return (
        f"Which city would you like as your base?\n{options}\n\n"
        f"Just say the name of the city (e.g. \"{cities[0]}\")."
    )


# ==================== NODES ====================

def guard(state: TurnState) -> dict:
    """
    Lock check, then slot-order check.

    Sets an outcome only when the turn must not reach a handler.
    """
    trip = state["trip"]
    slot = state["slot"]
    lexicon = state["context"].lexicon
    raw_value = state["raw_value"]

    owning = OWNING_SLOT.get(slot, slot.value if slot in MAIN_SLOTS else None)
    if owning is not None and trip.slot(owning).locked and not (state["explicit_change"] and slot in MAIN_SLOTS):
        label = SLOT_LABELS[owning]
        return {"outcome": TurnOutcome(
            TurnStatus.REJECTED_LOCKED,
            f"Your {label} is already locked in as {describe_slot(trip, owning)}. "
            f"Say 'change {CHANGE_KEYWORDS[owning]} to ...' to modify it.",
            locked=True,
            ask_next=False,
        )}

    expected = trip.expected_slot
    already_filled = slot in MAIN_SLOTS and trip.slot(slot.value).filled
    if slot is not expected and not already_filled:
        in_order = slot in MAIN_SLOTS and SLOT_RANK[slot] <= SLOT_RANK[expected]
        if not in_order:
            return {"outcome": TurnOutcome.invalid(
                f"Let's take one thing at a time. {prompt_for_slot(trip, lexicon)}"
            )}

    if not raw_value.strip():
        return {"outcome": TurnOutcome.clarify(f"I didn't catch that. {prompt_for_slot(trip, lexicon)}")}

    return {"outcome": None}


def destination_handler(state: TurnState) -> dict:
    trip = state["trip"]
    raw_value = state["raw_value"].strip()
    ctx = state["context"]

    analysis = destination_analyzer.analyze(raw_value, ctx.lexicon)

    if analysis.type is DestinationType.UNKNOWN or analysis.needs_specification:
        return {"outcome": TurnOutcome.clarify(analysis.clarification_question, analysis.suggestions)}

    if analysis.type in (DestinationType.MULTI_CITY, DestinationType.COMPREHENSIVE_TOUR):
        # Recorded, not filled: the strategy is chosen in destination-scope
        trip.destination.clear()
        trip.destination.value = raw_value
        trip.destination.normalized = analysis.normalized
        trip.destination.type = analysis.type
        trip.destination.trip_scope = analysis.trip_scope
        trip.multi_city_plan = None
        if analysis.type is DestinationType.MULTI_CITY:
            duration = analysis.trip_scope.estimated_duration
            trip.multi_city_plan = build_preliminary_plan(
                analysis.trip_scope.detected_cities,
                duration.max if duration else None,
                ctx.lexicon,
            )
        _refresh_budget_distribution(trip)
        return {"trip": trip, "outcome": TurnOutcome.accepted(
            analysis.clarification_question,
            ask_next=False,
            needs_clarification=True,
            suggestions=analysis.suggestions,
        )}

    trip.destination.clear()
    trip.destination.fill(raw_value, analysis.normalized, lock=True)
    trip.destination.type = analysis.type
    trip.destination.trip_scope = analysis.trip_scope
    trip.multi_city_plan = None
    _refresh_budget_distribution(trip)
    return {"trip": trip, "outcome": TurnOutcome.accepted(
        f"Your destination is {analysis.normalized}; I've locked that in.",
        locked=True,
    )}


def destination_scope_handler(state: TurnState) -> dict:
    trip = state["trip"]
    raw_value = state["raw_value"].strip()
    ctx = state["context"]
    scope = trip.destination.trip_scope
    cities = scope.detected_cities if scope else []

    if trip.destination.type is DestinationType.COMPREHENSIVE_TOUR:
        tier = match_tier(raw_value)
        if tier is not None:
            country = scope.country if scope and scope.country else "Unknown"
            trip.multi_city_plan = build_tier_plan(tier, country, cities)
            trip.destination.fill(trip.destination.value, trip.destination.normalized)
            _refresh_budget_distribution(trip)
            plan = trip.multi_city_plan
            return {"trip": trip, "outcome": TurnOutcome.accepted(
                f"🌟 {tier.label} of {country} selected!\n{describe_plan(plan)}\n\n"
                "I'll confirm the route with you once dates, travelers and budget are set."
            )}
        city = match_city(raw_value, cities, ctx.lexicon)
        if city is not None:
            _collapse_to_city(trip, city)
            return {"trip": trip, "outcome": TurnOutcome.accepted(_single_city_message(city), locked=True)}
        return {"outcome": TurnOutcome.clarify(
            f"Please choose one of these tours:\n{tier_options()}\n\nOr name a single city to focus on.",
            [tier.label for tier in TOUR_TIERS],
        )}

    reply, city = classify_route_reply(raw_value, cities, ctx.lexicon)
    if reply is RouteReply.CITY:
        _collapse_to_city(trip, city)
        return {"trip": trip, "outcome": TurnOutcome.accepted(_single_city_message(city), locked=True)}
    if reply is RouteReply.CONFIRM and trip.multi_city_plan is not None:
        trip.multi_city_plan.style = TourStyle.MULTI_CITY
        trip.destination.fill(trip.destination.value, trip.destination.normalized)
        _refresh_budget_distribution(trip)
        return {"trip": trip, "outcome": TurnOutcome.accepted(
            f"Great, a multi-city tour: {' → '.join(trip.multi_city_plan.route.sequence)}. "
            "I'll confirm the route with you once dates, travelers and budget are set."
        )}
    if reply is RouteReply.SINGLE:
        return {"outcome": TurnOutcome.clarify(_which_city_question(cities), cities)}
    return {"outcome": TurnOutcome.clarify(destination_analyzer.multi_city_question(cities), cities)}


def origin_handler(state: TurnState) -> dict:
    trip = state["trip"]
    raw_value = state["raw_value"].strip()
    ctx = state["context"]

    if not trip.destination.filled:
        return {"outcome": TurnOutcome.invalid("Please confirm your destination first.")}

    analysis = destination_analyzer.analyze(strip_origin(raw_value), ctx.lexicon)
    if analysis.type is DestinationType.UNKNOWN:
        return {"outcome": TurnOutcome.clarify(SLOT_QUESTIONS[ExpectedSlot.ORIGIN])}
    if analysis.needs_specification:
        return {"outcome": TurnOutcome.clarify(
            f"Which city in {analysis.normalized} will you depart from? "
            f"For example {', '.join(analysis.suggestions[:3])}.",
            analysis.suggestions,
        )}
    if analysis.type in (DestinationType.MULTI_CITY, DestinationType.COMPREHENSIVE_TOUR):
        return {"outcome": TurnOutcome.clarify("Please name just one city you'll be departing from.")}
    if analysis.normalized == trip.destination.normalized:
        return {"outcome": TurnOutcome.invalid(
            f"{analysis.normalized} is your destination. Which city will you be departing from?"
        )}

    trip.origin.fill(raw_value, analysis.normalized, lock=True)
    return {"trip": trip, "outcome": TurnOutcome.accepted(
        f"Got it! Flying from {analysis.normalized} to {trip.destination.normalized}.",
        locked=True,
    )}


def _offer_dates(trip: TripState, raw_value: str, result: date_parser.DateParseResult, ctx: TurnContext) -> TurnOutcome:
    """Fill dates unlocked and echo the interpretation back for confirmation."""
    trip.dates.clear()
    trip.dates.fill(raw_value, result.date_range)
    note = urgency.classify(result.start_date, result.end_date, ctx.today).urgency_note
    message = f"I understand you want to travel {result.interpretation}."
    if note:
        message += f"\n\n{note}"
    message += "\n\nIs that correct? (Yes to confirm, or tell me the right dates)"
    return TurnOutcome.accepted(message, ask_next=False)


def dates_handler(state: TurnState) -> dict:
    trip = state["trip"]
    raw_value = state["raw_value"].strip()
    ctx = state["context"]

    result = date_parser.parse(raw_value, today=ctx.today, lead_days=ctx.lead_days)
    if not result.success:
        return {"outcome": TurnOutcome.clarify(result.clarification_question)}
    return {"trip": trip, "outcome": _offer_dates(trip, raw_value, result, ctx)}


def dates_confirm_handler(state: TurnState) -> dict:
    trip = state["trip"]
    raw_value = state["raw_value"].strip()
    ctx = state["context"]

    if is_affirmative(raw_value):
        period = trip.dates.normalized
        trip.dates.lock()
        trip.dates.booking_timeline = urgency.classify(period.start_date, period.end_date, ctx.today)
        if trip.multi_city_plan is not None and trip.multi_city_plan.confirmed:
            rebalance_plan(trip.multi_city_plan, period)
        return {"trip": trip, "outcome": TurnOutcome.accepted(
            f"Perfect! Travel dates locked in: {describe_slot(trip, 'dates')}.",
            locked=True,
        )}

    # "No, March 16-23": the correction is offered for confirmation in the same turn
    result = date_parser.parse(raw_value, today=ctx.today, lead_days=ctx.lead_days)
    if result.success:
        return {"trip": trip, "outcome": _offer_dates(trip, raw_value, result, ctx)}

    trip.dates.clear()
    if result.needs_clarification and result.pattern != date_parser.FALLBACK_PATTERN:
        return {"trip": trip, "outcome": TurnOutcome.accepted(result.clarification_question, ask_next=False)}
    return {"trip": trip, "outcome": TurnOutcome.accepted("No problem! Please tell me your travel dates again.")}


def travelers_handler(state: TurnState) -> dict:
    trip = state["trip"]
    raw_value = state["raw_value"].strip()
    ctx = state["context"]

    count = extract_travelers(raw_value)
    if count is None or not 1 <= count <= ctx.max_travelers:
        return {"outcome": TurnOutcome.invalid(
            f"Please provide a number between 1 and {ctx.max_travelers} for travelers."
        )}

    trip.travelers.fill(raw_value, count, lock=True)
    noun = "traveler" if count == 1 else "travelers"
    return {"trip": trip, "outcome": TurnOutcome.accepted(f"Perfect! {count} {noun}, locked in.", locked=True)}


def _trip_summary(trip: TripState) -> str:
    lines = [
        "Excellent! I have all the essential information:",
        f"📍 Destination: {trip.destination.normalized}",
        f"✈️ Departing from: {trip.origin.normalized}",
        f"📅 Travel dates: {describe_slot(trip, 'dates')}",
        f"👥 Travelers: {describe_slot(trip, 'travelers')}",
        f"💰 Budget: {describe_slot(trip, 'budget')}",
    ]
    timeline = trip.dates.booking_timeline
    if timeline is not None:
        lines += ["", BOOKING_STRATEGY_LINES[timeline.category]]
    return "\n".join(lines)


def budget_handler(state: TurnState) -> dict:
    trip = state["trip"]
    raw_value = state["raw_value"].strip()
    ctx = state["context"]

    budget = extract_budget(raw_value)
    if budget is None or budget.amount <= 0:
        return {"outcome": TurnOutcome.invalid("Please provide a valid budget amount (e.g. \"$2000\").")}

    trip.budget.fill(raw_value, budget.amount, lock=True)
    trip.budget.currency = budget.currency or ctx.default_currency
    _refresh_budget_distribution(trip)
    return {"trip": trip, "outcome": TurnOutcome.accepted(_trip_summary(trip), locked=True)}


def route_confirmation_handler(state: TurnState) -> dict:
    trip = state["trip"]
    raw_value = state["raw_value"].strip()
    ctx = state["context"]
    plan = trip.multi_city_plan
    cities = plan.city_names

    reply, city = classify_route_reply(raw_value, cities, ctx.lexicon)
    if reply is RouteReply.CONFIRM:
        if trip.dates.locked:
            rebalance_plan(plan, trip.dates.normalized)
        plan.confirmed = True
        trip.destination.lock()
        return {"trip": trip, "outcome": TurnOutcome.accepted(
            f"🎉 Your {len(cities)}-city adventure is confirmed!\n{describe_plan(plan)}",
            locked=True,
        )}
    if reply is RouteReply.CITY:
        _collapse_to_city(trip, city)
        return {"trip": trip, "outcome": TurnOutcome.accepted(_single_city_message(city), locked=True)}
    if reply is RouteReply.SINGLE:
        return {"outcome": TurnOutcome.clarify(_which_city_question(cities), cities)}
    return {"outcome": TurnOutcome.clarify(
        "I'd like to confirm your travel plans. Would you prefer:\n"
        f"🗺️ Multi-city tour: {', '.join(cities)}\n"
        "🏙️ Single-city focus: explore just one destination in depth",
        cities,
    )}


def preferences_handler(state: TurnState) -> dict:
    trip = state["trip"]
    raw_value = state["raw_value"].strip()

    if wants_itinerary(raw_value):
        trip.itinerary_requested = True
        plan = trip.multi_city_plan
        if plan is not None and plan.confirmed:
            what = f"{len(plan.cities)}-city adventure"
            details = "flights between cities, hotels in each location, transport connections and activities"
        else:
            what = "personalized itinerary"
            details = "flights, hotels and activities"
        return {"trip": trip, "outcome": TurnOutcome.accepted(
            f"Perfect! I'll start creating your {what} for {trip.destination.normalized}. "
            f"This will include {details} that match your budget and preferences.",
            ask_next=False,
        )}

    trip.preferences.append(raw_value)
    return {"trip": trip, "outcome": TurnOutcome.accepted(
        "Got it! I've noted your preferences. Anything else, or shall I create your itinerary now? "
        "Say \"create my plan\" when you're ready!",
        ask_next=False,
    )}


def complete_handler(state: TurnState) -> dict:
    return {"outcome": TurnOutcome(
        TurnStatus.ACCEPTED,
        SLOT_QUESTIONS[ExpectedSlot.COMPLETE],
        ask_next=False,
    )}


HANDLER_NODES: dict[ExpectedSlot, tuple[str, Callable[[TurnState], dict]]] = {
    ExpectedSlot.DESTINATION: ("destination_handler", destination_handler),
    ExpectedSlot.DESTINATION_SCOPE: ("destination_scope_handler", destination_scope_handler),
    ExpectedSlot.ORIGIN: ("origin_handler", origin_handler),
    ExpectedSlot.DATES: ("dates_handler", dates_handler),
    ExpectedSlot.DATES_CONFIRM: ("dates_confirm_handler", dates_confirm_handler),
    ExpectedSlot.TRAVELERS: ("travelers_handler", travelers_handler),
    ExpectedSlot.BUDGET: ("budget_handler", budget_handler),
    ExpectedSlot.ROUTE_CONFIRMATION: ("route_confirmation_handler", route_confirmation_handler),
    ExpectedSlot.PREFERENCES_OR_CREATE: ("preferences_handler", preferences_handler),
    ExpectedSlot.COMPLETE: ("complete_handler", complete_handler),
}


def route_turn(state: TurnState) -> str:
    """Conditional edge after guard."""
    if state.get("outcome") is not None:
        return "rejected"
    return HANDLER_NODES[state["slot"]][0]


def build_turn_graph():
    """
    One dialogue turn as a LangGraph graph.

    Returns:
        Compiled graph
    """
    workflow = StateGraph(TurnState)

    workflow.add_node("guard", guard)
    for name, handler in HANDLER_NODES.values():
        workflow.add_node(name, handler)

    workflow.set_entry_point("guard")

    routes = {name: name for name, _ in HANDLER_NODES.values()}
    routes["rejected"] = END
    workflow.add_conditional_edges("guard", route_turn, routes)

    for name, _ in HANDLER_NODES.values():
        workflow.add_edge(name, END)

    return workflow.compile()


turn_graph = build_turn_graph()


# ==================== ENGINE ====================

class DialogueEngine:
    """
    Orchestrator of conversation turns.

    Holds no conversation state itself: every turn is load → update → save
    against the injected StateStore.
    """

    def __init__(
        self,
        store: StateStore,
        lexicon: Optional[Lexicon] = None,
        today_provider: Callable[[], date] = date.today,
        booking_lead_days: int = date_parser.DEFAULT_LEAD_DAYS,
        max_travelers: int = 20,
        default_currency: str = "USD",
        debug_logger: Optional[DebugLogger] = None,
    ):
        self.store = store
        self.lexicon = lexicon or default_lexicon
        self.today_provider = today_provider
        self.booking_lead_days = booking_lead_days
        self.max_travelers = max_travelers
        self.default_currency = default_currency
        self.debug_logger = debug_logger or DebugLogger(enabled=False)

    @classmethod
    def from_settings(cls, settings, store: StateStore) -> "DialogueEngine":
        return cls(
            store,
            booking_lead_days=settings.BOOKING_LEAD_DAYS,
            max_travelers=settings.MAX_TRAVELERS,
            default_currency=settings.DEFAULT_CURRENCY,
            debug_logger=DebugLogger(enabled=settings.DEBUG_LOGS, log_file=settings.DEBUG_LOG_FILE),
        )

    # ---------- pure transition ----------

    def update(
        self,
        state: TripState,
        slot: ExpectedSlot,
        raw_value: str,
        explicit_change_requested: bool = False,
    ) -> tuple[TripState, TurnOutcome]:
        """
        Apply one answer to a state.

        Never mutates `state`. Returns the same object when nothing changed.
        """
        context = TurnContext(
            lexicon=self.lexicon,
            today=self.today_provider(),
            lead_days=self.booking_lead_days,
            max_travelers=self.max_travelers,
            default_currency=self.default_currency,
        )
        result = turn_graph.invoke({
            "trip": state.model_copy(deep=True),
            "slot": slot,
            "raw_value": raw_value or "",
            "explicit_change": explicit_change_requested,
            "context": context,
            "outcome": None,
        })
        outcome: TurnOutcome = result["outcome"]

        if outcome.status is not TurnStatus.ACCEPTED or not outcome.changed:
            return state, outcome

        new_state: TripState = result["trip"]
        if explicit_change_requested:
            new_state.itinerary_requested = False
        new_state.expected_slot = next_expected_slot(new_state)
        return new_state, outcome

    # ---------- persistence ----------

    def _conversation_id(self, conversation_id: Optional[str]) -> str:
        if conversation_id is None or not conversation_id.strip():
            raise MissingConversationIdError("conversationId is required")
        return validate_conversation_id(conversation_id.strip())

    def _load(self, conversation_id: str) -> Optional[TripState]:
        try:
            return self.store.load(conversation_id)
        except StateStoreError:
            logger.exception(f"[{conversation_id}] State store load failed")
            raise

    def _save(self, state: TripState, expected_version: int) -> None:
        try:
            self.store.save(state, expected_version=expected_version)
        except StaleStateError as e:
            logger.warning(f"[{state.conversation_id}] {e}")
            raise
        except StateStoreError:
            logger.exception(f"[{state.conversation_id}] State store save failed")
            raise

    def get_state(self, conversation_id: Optional[str]) -> TripState:
        """Stored state, created and saved on first contact."""
        conversation_id = self._conversation_id(conversation_id)
        state = self._load(conversation_id)
        if state is None:
            state = TripState.create(conversation_id)
            self._save(state, expected_version=-1)
            logger.info(f"[{conversation_id}] New conversation")
        return state

    # ---------- turns ----------

    @track_performance("process_turn")
    def process_turn(
        self,
        conversation_id: Optional[str],
        slot_name: Optional[str],
        raw_value: str,
        explicit_change_requested: bool = False,
    ) -> TurnResult:
        """
        Process one user answer: load, update, save.

        Args:
            conversation_id: Conversation key in the state store
            slot_name: Targeted slot; None answers the expected slot
            raw_value: What the user said
            explicit_change_requested: The user asked to change a locked slot

        Raises:
            MissingConversationIdError, InvalidConversationIdError, UnknownSlotError,
            StaleStateError, StateStoreError
        """
        conversation_id = self._conversation_id(conversation_id)
        requested_slot = parse_slot_name(slot_name) if slot_name else None
        loaded = self._load(conversation_id)
        is_new = loaded is None
        state = loaded if loaded is not None else TripState.create(conversation_id)
        slot = requested_slot or state.expected_slot

        new_state, outcome = self.update(state, slot, raw_value, explicit_change_requested)

        if new_state is not state:
            new_state.version = state.version + 1
            new_state.touch()
            self._save(new_state, expected_version=-1 if is_new else state.version)
            logger.info(
                f"[{conversation_id}] {slot.value} accepted: "
                f"{state.expected_slot.value} → {new_state.expected_slot.value}"
            )
        else:
            if is_new:
                self._save(state, expected_version=-1)
            if outcome.status is not TurnStatus.ACCEPTED:
                logger.info(f"[{conversation_id}] {slot.value} {outcome.status.value}")

        message = outcome.message
        if outcome.status is TurnStatus.ACCEPTED and outcome.ask_next:
            message = f"{message}\n\n{prompt_for_slot(new_state, self.lexicon)}"

        needs_clarification = outcome.needs_clarification or (
            outcome.status is TurnStatus.ACCEPTED
            and new_state.expected_slot in (ExpectedSlot.DESTINATION_SCOPE, ExpectedSlot.ROUTE_CONFIRMATION)
        )

        self.debug_logger.log_turn(
            conversation_id=conversation_id,
            slot=slot.value,
            raw_value=raw_value or "",
            status=outcome.status.value,
            expected_slot=new_state.expected_slot.value,
            slots={name: new_state.slot(name).model_dump(mode="json", include={"value", "filled", "locked"})
                   for name in CHANGE_KEYWORDS},
            version=new_state.version,
        )

        return TurnResult(
            status=outcome.status,
            confirmation_text=message,
            needs_clarification=needs_clarification,
            locked=outcome.locked,
            expected_slot=new_state.expected_slot,
            state=new_state,
            suggestions=outcome.suggestions,
        )

    def process_message(self, conversation_id: Optional[str], message: str) -> TurnResult:
        """
        Free-text entry point.

        "Change destination to Rome" is routed as an explicit change of that
        slot; anything else answers the expected slot.
        """
        intent = detect_change_intent(message or "")
        if intent is not None:
            return self.process_turn(conversation_id, intent.slot, intent.value, explicit_change_requested=True)
        return self.process_turn(conversation_id, None, message or "")
