"""Pydantic models for catalog entities (stops and scheduled trips)."""

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator


class TransitMode(str, Enum):
    """Which domain a stop or trip belongs to."""

    BUS = "bus"
    TRAIN = "train"


class Stop(BaseModel):
    """A fixed location where trips pick up or drop off passengers."""

    stop_id: str
    stop_code: str | None = Field(default=None, description="Public code")
    stop_name: str
    stop_lon: float | None = Field(default=None, ge=-180, le=180)
    stop_lat: float | None = Field(default=None, ge=-90, le=90)
    locality: str | None = None
    timezone: str | None = Field(default=None, description="IANA timezone")
    mode: TransitMode = TransitMode.BUS
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def coordinates(self) -> tuple[float, float] | None:
        """Position as (longitude, latitude), or None if unknown."""
        if self.stop_lon is None or self.stop_lat is None:
            return None
        return (self.stop_lon, self.stop_lat)


class ServiceCalendar(BaseModel):
    """Weekly operating pattern plus validity window.

    A missing start or end date leaves that side of the window open.
    """

    monday: bool = True
    tuesday: bool = True
    wednesday: bool = True
    thursday: bool = True
    friday: bool = True
    saturday: bool = True
    sunday: bool = True
    start_date: date | None = None
    end_date: date | None = None

    @model_validator(mode="after")
    def _check_window(self) -> "ServiceCalendar":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError(
                f"validity start {self.start_date} is after end {self.end_date}"
            )
        return self


class TripStop(BaseModel):
    """One entry of a trip's ordered stop list (stop_times-like)."""

    seq: int = Field(ge=0, description="Stop sequence index")
    stop_id: str
    name: str | None = Field(default=None, description="Denormalised stop label")
    arrival: datetime | None = None
    departure: datetime | None = None
    platform: str | None = None
    distance_km: float | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_times(self) -> "TripStop":
        if self.arrival is not None and self.departure is not None:
            try:
                out_of_order = self.arrival > self.departure
            except TypeError as e:
                raise ValueError(
                    f"stop {self.seq}: cannot mix offset-aware and naive timestamps"
                ) from e
            if out_of_order:
                raise ValueError(f"stop {self.seq}: arrival is after departure")
        return self


class FareBand(BaseModel):
    """Price range for one travel class."""

    class_code: str
    currency: str = "INR"
    min: float = Field(ge=0)
    max: float | None = Field(default=None, ge=0)


class Trip(BaseModel):
    """One scheduled service with ordered stops, calendar and fare bands."""

    trip_id: str
    number: str
    name: str | None = None
    operator: str
    mode: TransitMode = TransitMode.BUS
    classes: list[str] = Field(default_factory=list)
    amenities: list[str] = Field(default_factory=list)
    calendar: ServiceCalendar = Field(default_factory=ServiceCalendar)
    stops: list[TripStop] = Field(default_factory=list)
    fares: list[FareBand] = Field(default_factory=list)
    # Stored route geometry, GeoJSON-like. Left unvalidated so a bad shape
    # degrades route rendering instead of rejecting the whole trip.
    geometry: Any = None
    popularity: int = Field(default=0, ge=0)
    view_count: int = Field(default=0, ge=0)
    region: str | None = None
    is_active: bool = True
    metadata: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _order_stops(self) -> "Trip":
        ordered = sorted(self.stops, key=lambda s: s.seq)
        seen: set[int] = set()
        for stop in ordered:
            if stop.seq in seen:
                raise ValueError(f"trip {self.trip_id}: duplicate stop sequence {stop.seq}")
            seen.add(stop.seq)

        awareness = {
            ts.tzinfo is not None
            for stop in ordered
            for ts in (stop.arrival, stop.departure)
            if ts is not None
        }
        if len(awareness) > 1:
            raise ValueError(
                f"trip {self.trip_id}: cannot mix offset-aware and naive timestamps"
            )
        self.stops = ordered
        return self
