"""
Collaborator contracts consumed by `InvocationScheduler`.

Concrete collaborators implement these structurally (no inheritance required):
- `LocationSource`: produces `LocationSample`s once armed
- `SearchProvider`: performs one nearby search (blocking; the scheduler runs it off-thread)
- `EventSink`: receives delivered places and error messages
"""

from __future__ import annotations

from typing import Callable, Protocol

from nearbyplaces.domain.models import LocationSample, PlaceRecord, SearchRequest, SearchResponse

SampleListener = Callable[[LocationSample], None]


class LocationSource(Protocol):
    def bind(self, listener: SampleListener) -> None: ...

    def arm(
        self,
        *,
        one_shot: bool,
        interval_seconds: int,
        duration_seconds: int,
        use_gps: bool,
        use_network: bool,
        good_enough_accuracy: int,
    ) -> None: ...

    def disarm(self) -> None: ...


class SearchProvider(Protocol):
    def check_ready(self) -> None:
        """Raise `InvalidConfiguration` if the provider cannot be called (e.g. missing API key)."""
        ...

    def search(self, request: SearchRequest) -> SearchResponse: ...


class EventSink(Protocol):
    """Listener for scheduler output.

    Both methods are called from the scheduler's control-loop thread. `deliver` runs while
    the scheduler's re-entrant lock is held, so a sink may call back into the scheduler (e.g.
    to disable it) but other threads wait until it returns. A sink that needs another thread
    (a UI loop) should hand the data over rather than block on it.
    """

    def deliver(self, places: list[PlaceRecord]) -> None: ...

    def report_error(self, message: str) -> None: ...
