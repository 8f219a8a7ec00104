"""
Raw search result -> `PlaceRecord`.

This is a field-by-field transcription; it never drops or reorders entries:
- opening-hours periods keep the provider's order
- days become indexes into `WEEKDAYS` (Sunday = 0, the Google convention)
- no opening-hours block means neither `open_now` nor `hours` is set
"""

from __future__ import annotations

from nearbyplaces.domain.models import PlaceRecord, RawDayTime, RawPeriod, RawPlace, SearchResponse

WEEKDAYS: tuple[str, ...] = (
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
)


def day_index(day: int | str) -> int:
    """Return the `WEEKDAYS` index for an integer day or a day name."""
    if isinstance(day, int):
        if not 0 <= day < len(WEEKDAYS):
            raise ValueError(f"Day index out of range: {day}")
        return day
    key = day.strip().lower()
    if key.isdigit():
        return day_index(int(key))
    if key not in WEEKDAYS:
        raise ValueError(f"Unknown day of week: {day!r}")
    return WEEKDAYS.index(key)


def _period_tuple(period: RawPeriod) -> tuple[int, str, int, str]:
    opened: RawDayTime = period.open
    # Always-open places report a single `open` entry with no `close`.
    closed: RawDayTime = period.close if period.close is not None else period.open
    return (day_index(opened.day), opened.time, day_index(closed.day), closed.time)


class PlaceResultMapper:
    """Converts provider payloads into `PlaceRecord`s."""

    def map(self, raw: RawPlace) -> PlaceRecord:
        location = raw.geometry.location
        open_now: bool | None = None
        hours: list[tuple[int, str, int, str]] | None = None

        if raw.opening_hours is not None:
            open_now = raw.opening_hours.open_now
            if raw.opening_hours.periods is not None:
                hours = [_period_tuple(p) for p in raw.opening_hours.periods]

        return PlaceRecord(
            location=(location.lat, location.lng),
            types=list(raw.types),
            permanently_closed=raw.permanently_closed,
            open_now=open_now,
            hours=hours,
        )

    def map_response(self, response: SearchResponse) -> list[PlaceRecord]:
        return [self.map(place) for place in response.results]
