"""
Domain models (Pydantic).

These types represent the stable "contract" between layers:
- location fixes flowing in from a location source (`LocationSample`)
- outbound search calls (`SearchRequest`)
- raw provider payloads (`SearchResponse`, `RawPlace`, ...)
- the provider-agnostic output delivered to listeners (`PlaceRecord`)

Raw payload models follow the Google Places JSON field names, which is the only
provider shipped today; other providers can build these models directly.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class LocationSample(BaseModel):
    """One location fix. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    # 0..100, higher is better.
    accuracy: float = 0.0
    provider: str = "unknown"
    timestamp: int = 0

    def __str__(self) -> str:
        return (
            f"LocationSample(lat={self.latitude}, lon={self.longitude}, accuracy={self.accuracy}, "
            f"provider={self.provider!r}, timestamp={self.timestamp})"
        )


class SearchRequest(BaseModel):
    """A nearby-places search issued for one accepted sample."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    radius_m: int = Field(..., gt=0)
    place_type: str | None = None


class RawLatLng(BaseModel):
    lat: float
    lng: float


class RawGeometry(BaseModel):
    location: RawLatLng


class RawDayTime(BaseModel):
    # Either an index (Sunday = 0) or a day name; the mapper normalizes it.
    day: int | str
    time: str


class RawPeriod(BaseModel):
    open: RawDayTime
    close: RawDayTime | None = None


class RawOpeningHours(BaseModel):
    open_now: bool | None = None
    periods: list[RawPeriod] | None = None


class RawPlace(BaseModel):
    """One entry of a provider's search result, as received."""

    model_config = ConfigDict(extra="ignore")

    geometry: RawGeometry
    types: list[str] = Field(default_factory=list)
    permanently_closed: bool = False
    opening_hours: RawOpeningHours | None = None
    name: str | None = None
    place_id: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _closed_from_business_status(cls, data: Any) -> Any:
        # Newer payloads replace `permanently_closed` with `business_status`.
        if isinstance(data, dict) and "permanently_closed" not in data:
            if data.get("business_status") == "CLOSED_PERMANENTLY":
                data = {**data, "permanently_closed": True}
        return data


class SearchResponse(BaseModel):
    """A single page of search results.

    `next_page_token` is parsed but never followed.
    """

    model_config = ConfigDict(extra="ignore")

    results: list[RawPlace] = Field(default_factory=list)
    next_page_token: str | None = None


class PlaceRecord(BaseModel):
    """Structured, provider-agnostic representation of one nearby place."""

    location: tuple[float, float]
    types: list[str] = Field(default_factory=list)
    permanently_closed: bool = False
    # Present only when the provider supplied opening-hours data.
    open_now: bool | None = None
    # (open_day, open_time, close_day, close_time); present only when periods were supplied.
    hours: list[tuple[int, str, int, str]] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting absent `openNow` / `hours` entirely."""
        out: dict[str, Any] = {
            "location": [self.location[0], self.location[1]],
            "types": list(self.types),
            "permanentlyClosed": self.permanently_closed,
        }
        if self.open_now is not None:
            out["openNow"] = self.open_now
        if self.hours is not None:
            out["hours"] = [list(period) for period in self.hours]
        return out
