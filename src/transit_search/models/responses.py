from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

from transit_search.models.catalog import FareBand, ServiceCalendar, TransitMode, TripStop


class StopResult(BaseModel):
    stop_id: str
    stop_code: str | None = None
    stop_name: str
    stop_lon: float | None = None
    stop_lat: float | None = None
    locality: str | None = None
    timezone: str | None = None
    mode: TransitMode
    distance_meters: float | None = Field(
        default=None, description="Distance from search coordinates (geo search only)"
    )


class SearchStopsResponse(BaseModel):
    stops: list[StopResult]
    count: int = Field(description="Number of stops returned")


# Trip Search Models


class StopResolutionInfo(BaseModel):
    """How a stop reference was resolved."""

    query: str = Field(description="Original stop id or public code")
    resolved_stop_id: str | None = None
    resolved_stop_name: str | None = None
    resolved_stop_code: str | None = None
    resolved: bool
    error: str | None = None


class TripResult(BaseModel):
    """A matched trip annotated with journey metrics for the requested segment."""

    trip_id: str
    number: str
    name: str | None = None
    operator: str
    mode: TransitMode
    classes: list[str] = Field(default_factory=list)
    amenities: list[str] = Field(default_factory=list)

    # Segment
    origin_stop_id: str
    origin_seq: int
    origin_platform: str | None = None
    destination_stop_id: str
    destination_seq: int
    num_stops: int = Field(description="Number of stops travelled (including endpoints)")

    # Metrics
    departure_time: datetime = Field(description="Departure from the origin stop")
    arrival_time: datetime = Field(description="Arrival at the destination stop")
    duration_minutes: int
    cheapest_fare: float | None = Field(default=None, description="Lowest fare band minimum")
    fare_currency: str | None = Field(default=None, description="Currency of the first fare band")

    # Engagement
    popularity: int = 0
    view_count: int = 0


class SearchTripsResponse(BaseModel):
    """Response from search_trips."""

    origin_resolution: StopResolutionInfo
    destination_resolution: StopResolutionInfo

    items: list[TripResult] = Field(default_factory=list)

    date: str | None = Field(default=None, description="Travel date YYYY-MM-DD, if given")
    sort: str = Field(description="Effective sort mode")
    page: int
    limit: int
    total: int = Field(description="Matches before pagination")
    has_more: bool
    count: int = Field(description="Number of items on this page")

    success: bool
    error: str | None = None


# Trip Detail Models


class TripStopDetail(BaseModel):
    """Ordered stop with stop-catalog metadata merged in."""

    seq: int
    stop_id: str
    stop_code: str | None = None
    name: str | None = None
    locality: str | None = None
    timezone: str | None = None
    stop_lon: float | None = None
    stop_lat: float | None = None
    arrival: datetime | None = None
    departure: datetime | None = None
    platform: str | None = None
    distance_km: float | None = None


class TripDetailResponse(BaseModel):
    """Full trip record including ordered stops."""

    trip_id: str
    number: str
    name: str | None = None
    operator: str
    mode: TransitMode
    classes: list[str]
    amenities: list[str]
    calendar: ServiceCalendar
    fares: list[FareBand]
    stops: list[TripStopDetail]
    popularity: int
    view_count: int
    region: str | None = None


class TripScheduleResponse(BaseModel):
    trip_id: str
    date: str | None = None
    active: bool = Field(description="Whether the trip operates on the date (true if no date)")
    stops: list[TripStop]


class StopVisit(BaseModel):
    """A trip calling at a stop, with the times at that stop."""

    trip_id: str
    number: str
    name: str | None = None
    operator: str
    mode: TransitMode
    seq: int
    arrival: datetime | None = None
    departure: datetime | None = None
    platform: str | None = None


class TripsAtStopResponse(BaseModel):
    stop: StopResult | None = None
    date: str | None = None
    items: list[StopVisit] = Field(default_factory=list)
    count: int
    error: str | None = None


# Discovery Models


class SuggestMatchType(str, Enum):
    PREFIX = "prefix"
    SUBSTRING = "substring"
    FUZZY = "fuzzy"


class TripSuggestion(BaseModel):
    trip_id: str
    number: str
    name: str | None = None
    operator: str
    mode: TransitMode
    label: str = Field(description="Display label, e.g. 'Coastal Express · RailCo'")
    score: float = Field(description="Match score (0-100)")
    match_type: SuggestMatchType
    matched_field: Literal["number", "name", "operator"]


class SuggestResponse(BaseModel):
    query: str
    suggestions: list[TripSuggestion]
    count: int


class OperatorSummary(BaseModel):
    operator: str
    trip_count: int
    fare_min: float | None = Field(default=None, description="Lowest observed band minimum")
    fare_max: float | None = Field(default=None, description="Highest observed band maximum")


class OperatorsResponse(BaseModel):
    operators: list[OperatorSummary]
    count: int
    mode: TransitMode | None = None


class TripSummary(BaseModel):
    trip_id: str
    number: str
    name: str | None = None
    operator: str
    mode: TransitMode
    classes: list[str] = Field(default_factory=list)
    popularity: int
    view_count: int
    region: str | None = None


class TrendingResponse(BaseModel):
    trips: list[TripSummary]
    count: int
    region: str | None = None


# Commerce Models (advisory only)


class FareQuote(BaseModel):
    """Price quote for a class and passenger count.

    The hold expiry is a soft window: nothing is reserved and no inventory is
    decremented, so concurrent quotes for the same band can both succeed.
    """

    trip_id: str
    number: str
    operator: str
    date: str | None = None
    class_code: str
    origin_seq: int | None = None
    destination_seq: int | None = None
    passengers: int
    unit_amount: float
    total_amount: float
    currency: str
    hold_expiry: datetime = Field(description="After this instant the quote is stale")


class Seat(BaseModel):
    seat: str
    available: bool = True


class SeatCoach(BaseModel):
    coach: str
    rows: int
    cols: int
    layout: list[list[Seat]]


class SeatMap(BaseModel):
    """Synthetic seat layout. Never reflects real occupancy."""

    trip_id: str | None = None
    class_code: str
    coaches: list[SeatCoach]


class AvailabilityResponse(BaseModel):
    trip_id: str
    date: str | None = None
    class_code: str | None = None
    active: bool = Field(description="Trip operates on the date")
    class_offered: bool = Field(description="Requested class exists on the trip")
    available: bool


class LiveStatus(str, Enum):
    UNKNOWN = "unknown"


class LiveStatusResponse(BaseModel):
    operator: str | None = None
    number: str | None = None
    date: str | None = None
    status: LiveStatus = LiveStatus.UNKNOWN
    last_updated: datetime


# Geometry Models (RFC 7946 shaped, positions are [lon, lat])


class LineGeometry(BaseModel):
    type: Literal["LineString"] = "LineString"
    coordinates: list[tuple[float, float]]


class PointGeometry(BaseModel):
    type: Literal["Point"] = "Point"
    coordinates: tuple[float, float]


class Feature(BaseModel):
    type: Literal["Feature"] = "Feature"
    geometry: LineGeometry | PointGeometry
    properties: dict[str, Any] = Field(default_factory=dict)


class RouteFeatureCollection(BaseModel):
    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: list[Feature] = Field(default_factory=list)
