"""
Domain models of the trip-planning dialogue.

One conversation owns exactly one TripState. Business rules:
- A slot's normalized value is only meaningful when filled=True
- Only locked slots are authoritative trip input
- multi_city_plan exists only for multi-city / comprehensive-tour destinations
- Serialized form (the stored JSON document) uses camelCase keys
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# ==================== ENUMS ====================

class ExpectedSlot(str, Enum):
    """Which answer the dialogue is waiting for (exactly one at a time)."""
    DESTINATION = "destination"
    DESTINATION_SCOPE = "destination-scope"          # single base vs tour / tour tier
    ROUTE_CONFIRMATION = "route-confirmation"        # accept the multi-city route
    ORIGIN = "origin"
    DATES = "dates"
    DATES_CONFIRM = "dates-confirm"                  # echo interpretation before locking
    TRAVELERS = "travelers"
    BUDGET = "budget"
    PREFERENCES_OR_CREATE = "preferences-or-create"
    COMPLETE = "complete"


class DestinationType(str, Enum):
    CITY = "city"
    COUNTRY = "country"
    REGION = "region"
    MULTI_CITY = "multi-city"
    COMPREHENSIVE_TOUR = "comprehensive-tour"
    UNKNOWN = "unknown"


class ScopeKind(str, Enum):
    """Structural shape of a destination request."""
    SINGLE = "single"
    MULTI = "multi"
    REGIONAL = "regional"
    COMPREHENSIVE = "comprehensive"


class RouteType(str, Enum):
    LINEAR = "linear"
    CIRCULAR = "circular"
    HUB_AND_SPOKE = "hub-and-spoke"


class BookingCategory(str, Enum):
    LAST_MINUTE = "last-minute"
    SHORT_NOTICE = "short-notice"
    ADVANCE = "advance"
    FAR_ADVANCE = "far-advance"


class CityPriority(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    OPTIONAL = "optional"


class TourStyle(str, Enum):
    """Which proposal produced a multi-city plan."""
    MULTI_CITY = "multi-city"
    CLASSIC = "classic"
    GRAND = "grand"
    EXPRESS = "express"


SLOT_NAMES = ("destination", "origin", "dates", "travelers", "budget")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model: snake_case in Python, camelCase in the stored document."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ==================== SCOPE / TIMELINE ====================

class DurationRange(CamelModel):
    """Recommended trip length in days."""
    min: int
    max: int


class TripScope(CamelModel):
    scope: ScopeKind
    detected_cities: list[str] = Field(default_factory=list)
    estimated_duration: Optional[DurationRange] = None
    route_type: Optional[RouteType] = None
    country: Optional[str] = None    # comprehensive tours: the country being toured


class BookingTimeline(CamelModel):
    """Booking-urgency classification, stored once dates are locked."""
    days_until_travel: int
    category: BookingCategory
    strategy: str
    urgency_note: Optional[str] = None


class DateRange(CamelModel):
    """Inclusive calendar range of the trip."""
    start_date: date
    end_date: date

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    @property
    def nights(self) -> int:
        return (self.end_date - self.start_date).days


class BudgetShare(CamelModel):
    category: str       # accommodation | transport | activities | food | misc
    amount: float
    percentage: int


# ==================== SLOTS ====================

T = TypeVar("T")


class Slot(CamelModel, Generic[T]):
    """
    One named piece of trip information.

    filled: value captured. locked: confirmed, never asked again.
    """
    value: Optional[str] = None          # what the user actually said
    normalized: Optional[T] = None       # canonical form used by downstream search
    filled: bool = False
    locked: bool = False

    def fill(self, value: str, normalized: T, lock: bool = False) -> None:
        self.value = value
        self.normalized = normalized
        self.filled = True
        self.locked = lock

    def lock(self) -> None:
        if not self.filled:
            raise ValueError("cannot lock an empty slot")
        self.locked = True

    def clear(self) -> None:
        self.value = None
        self.normalized = None
        self.filled = False
        self.locked = False

    @property
    def authoritative(self) -> Optional[T]:
        """Normalized value, but only once the slot is locked."""
        return self.normalized if self.locked else None


class DestinationSlot(Slot[str]):
    type: Optional[DestinationType] = None
    trip_scope: Optional[TripScope] = None

    @property
    def pending_scope(self) -> bool:
        """Multi-city / tour request captured, strategy not chosen yet."""
        return not self.filled and self.type in (
            DestinationType.MULTI_CITY,
            DestinationType.COMPREHENSIVE_TOUR,
        )

    def clear(self) -> None:
        super().clear()
        self.type = None
        self.trip_scope = None


class DatesSlot(Slot[DateRange]):
    booking_timeline: Optional[BookingTimeline] = None

    def clear(self) -> None:
        super().clear()
        self.booking_timeline = None


class BudgetSlot(Slot[float]):
    currency: str = "USD"
    distribution: list[BudgetShare] = Field(default_factory=list)


# ==================== MULTI-CITY PLAN ====================

class CityStop(CamelModel):
    name: str
    country: str
    nights: int
    priority: CityPriority
    position: int       # 1-based order in the route


class RoutePlan(CamelModel):
    sequence: list[str]
    total_days: int
    route_type: RouteType


class TransportLeg(CamelModel):
    from_city: str = Field(alias="from")
    to_city: str = Field(alias="to")
    method: str         # flight | train | bus | car | ferry
    duration: str
    estimated_cost: float


class MultiCityPlan(CamelModel):
    cities: list[CityStop]
    route: RoutePlan
    transport: list[TransportLeg] = Field(default_factory=list)
    confirmed: bool = False
    style: Optional[TourStyle] = None    # None until the user picks a strategy

    @property
    def city_names(self) -> list[str]:
        return [city.name for city in self.cities]


# ==================== TRIP STATE ====================

class TripState(CamelModel):
    """
    The single persisted aggregate of a conversation.

    Mutated exclusively by the dialogue state machine.
    """
    conversation_id: str
    expected_slot: ExpectedSlot = ExpectedSlot.DESTINATION

    destination: DestinationSlot = Field(default_factory=DestinationSlot)
    origin: Slot[str] = Field(default_factory=Slot[str])
    dates: DatesSlot = Field(default_factory=DatesSlot)
    travelers: Slot[int] = Field(default_factory=Slot[int])
    budget: BudgetSlot = Field(default_factory=BudgetSlot)

    multi_city_plan: Optional[MultiCityPlan] = None
    preferences: list[str] = Field(default_factory=list)
    itinerary_requested: bool = False

    version: int = 0
    last_updated: datetime = Field(default_factory=utcnow)

    @classmethod
    def create(cls, conversation_id: str) -> "TripState":
        """Fresh state: all slots empty, waiting for a destination."""
        return cls(conversation_id=conversation_id)

    def slot(self, name: str) -> Slot:
        if name not in SLOT_NAMES:
            raise KeyError(name)
        return getattr(self, name)

    def touch(self) -> None:
        self.last_updated = utcnow()

    def missing_required(self) -> list[str]:
        """Slots that are not yet authoritative (filled AND locked)."""
        return [name for name in SLOT_NAMES if not self.slot(name).locked]

    def is_complete(self) -> bool:
        return not self.missing_required()

    def can_search_hotels(self) -> tuple[bool, list[str]]:
        return self._searchable("destination", "dates")

    def can_search_activities(self) -> tuple[bool, list[str]]:
        return self._searchable("destination", "dates")

    def _searchable(self, *names: str) -> tuple[bool, list[str]]:
        missing = [name for name in names if not (self.slot(name).filled and self.slot(name).locked)]
        return not missing, missing

    def to_dict(self) -> dict:
        """Serialization to the stored JSON document."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_dict(cls, data: dict) -> "TripState":
        return cls.model_validate(data)
