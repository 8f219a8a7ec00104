"""
Typed events consumed by the scheduler's control loop.

Collaborator callbacks never touch scheduler state directly; they enqueue one of these.
"""

from __future__ import annotations

from dataclasses import dataclass

from nearbyplaces.domain.models import LocationSample, SearchResponse


@dataclass(frozen=True)
class SampleReceived:
    sample: LocationSample


@dataclass(frozen=True)
class SearchCompleted:
    request_id: int
    response: SearchResponse | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Stop:
    """Sentinel that ends the control loop."""


Event = SampleReceived | SearchCompleted | Stop
