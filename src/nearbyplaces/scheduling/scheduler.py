"""
Location-gated invocation scheduler.

`InvocationScheduler` turns an asynchronous stream of location samples into a filtered
sequence of nearby-place searches:

    location source -> SampleReceived -> GatingPolicy.accept -> SearchProvider.search (pool)
        -> SearchCompleted -> PlaceResultMapper -> EventSink.deliver / report_error

Threading model:
- collaborator callbacks only enqueue typed events (`nearbyplaces.scheduling.events`)
- one control-loop thread consumes the queue in order
- searches run on a thread pool and post their completion back onto the queue
- public methods (`enable_*`, `configure`, ...) may be called from any thread; all state
  transitions happen under one lock

Delivery rule:
A successful result is delivered only if the feature is still enabled *and* has not been
toggled since the request was issued. Errors are always reported.

Prior-location memory survives disable/enable; call `reset_prior_location()` to clear it.
"""

from __future__ import annotations

import itertools
import logging
import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, NoReturn, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from nearbyplaces.config.settings import Settings
from nearbyplaces.core.errors import InvalidConfiguration, TransientSearchFailure
from nearbyplaces.core.time import epoch_millis
from nearbyplaces.domain.models import LocationSample, SearchRequest, SearchResponse
from nearbyplaces.domain.place_types import normalize_place_type
from nearbyplaces.places.mapper import PlaceResultMapper
from nearbyplaces.scheduling.events import Event, SampleReceived, SearchCompleted, Stop
from nearbyplaces.scheduling.gating import GatingPolicy
from nearbyplaces.scheduling.interfaces import EventSink, LocationSource, SearchProvider

logger = logging.getLogger(__name__)

TEST_LOCATION_FORMAT = "Expecting the following format for location: (<latitude> <longitude>)"


class Mode(str, Enum):
    ONE_SHOT = "one_shot"
    SCHEDULED = "scheduled"


class Phase(str, Enum):
    DISABLED = "disabled"
    ARMED = "armed"
    # One-shot only: the single request is in flight.
    INVOKING = "invoking"


@dataclass(frozen=True)
class SchedulerState:
    """Snapshot of scheduler state. Replaced (never mutated) under the scheduler lock."""

    mode: Mode = Mode.ONE_SHOT
    enabled: bool = False
    phase: Phase = Phase.DISABLED
    default_interval_seconds: int = 180
    default_duration_seconds: int = 10
    prior_accepted_location: LocationSample | None = None


def parse_test_location(value: Any) -> tuple[float, float] | None:
    """Validate a `(lat, lon)` override; returns None for an absent value."""
    if value is None:
        return None
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence) or len(value) != 2:
        raise ValueError(TEST_LOCATION_FORMAT)
    lat, lon = value
    for part in (lat, lon):
        if isinstance(part, bool) or not isinstance(part, (int, float)):
            raise ValueError(TEST_LOCATION_FORMAT)
    return (float(lat), float(lon))


class SchedulerConfig(BaseModel):
    """Validated configuration for one scheduler."""

    model_config = ConfigDict(frozen=True)

    policy: GatingPolicy = Field(default_factory=GatingPolicy)
    radius_m: int = Field(100, gt=0)
    place_type: str | None = None
    interval_seconds: int = Field(180, gt=0)
    duration_seconds: int = Field(10, gt=0)
    test_location: tuple[float, float] | None = None

    @field_validator("place_type", mode="before")
    @classmethod
    def _check_place_type(cls, value: Any) -> str | None:
        return normalize_place_type(value)

    @field_validator("test_location", mode="before")
    @classmethod
    def _check_test_location(cls, value: Any) -> tuple[float, float] | None:
        return parse_test_location(value)


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()))
        msg = str(err.get("msg", "")).removeprefix("Value error, ")
        parts.append(f"{field}: {msg}" if field else msg)
    return "; ".join(parts)


@dataclass(frozen=True)
class _InFlight:
    session: int
    timer: threading.Timer | None


class InvocationScheduler:
    """Mode-aware (one-shot / scheduled) location-gated search scheduler."""

    def __init__(
        self,
        location_source: LocationSource,
        search_provider: SearchProvider,
        sink: EventSink,
        *,
        config: SchedulerConfig | None = None,
        mapper: PlaceResultMapper | None = None,
        search_timeout_seconds: float | None = None,
        max_workers: int = 2,
    ):
        self._location_source = location_source
        self._search_provider = search_provider
        self._sink = sink
        self._mapper = mapper or PlaceResultMapper()
        self._search_timeout_seconds = search_timeout_seconds

        self._config = config or SchedulerConfig()
        self._state = SchedulerState(
            default_interval_seconds=self._config.interval_seconds,
            default_duration_seconds=self._config.duration_seconds,
        )

        # RLock: a location source may call the listener synchronously from inside arm().
        self._lock = threading.RLock()
        self._cond = threading.Condition(self._lock)
        self._session = 0
        self._pending_events = 0
        self._in_flight: dict[int, _InFlight] = {}
        self._request_ids = itertools.count(1)
        self._closed = False

        self._inbox: queue.Queue[Event] = queue.Queue()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="nearbyplaces-search")
        self._loop = threading.Thread(target=self._run, name="nearbyplaces-scheduler", daemon=True)
        self._loop.start()

        location_source.bind(self.on_sample_received)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        location_source: LocationSource,
        search_provider: SearchProvider,
        sink: EventSink,
    ) -> "InvocationScheduler":
        loc = settings.location
        scheduler = cls(
            location_source,
            search_provider,
            sink,
            search_timeout_seconds=settings.search.timeout_seconds,
            max_workers=settings.search.max_workers,
        )
        try:
            try:
                policy = GatingPolicy(
                    minimum_location_change_m=loc.minimum_location_change_m,
                    good_enough_accuracy=loc.good_enough_accuracy,
                    use_gps=loc.use_gps,
                    use_network=loc.use_network,
                )
            except ValidationError as exc:
                scheduler._fail_configuration(_format_validation_error(exc))
            scheduler.configure(
                policy,
                radius_m=settings.places.nearby_radius_m,
                place_type=settings.places.place_type,
                interval_seconds=loc.default_interval_seconds,
                duration_seconds=loc.default_duration_seconds,
                test_location=loc.test_location,
            )
        except InvalidConfiguration:
            scheduler.close()
            raise
        return scheduler

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> SchedulerState:
        with self._lock:
            return self._state

    @property
    def config(self) -> SchedulerConfig:
        with self._lock:
            return self._config

    def configure(
        self,
        policy: GatingPolicy,
        *,
        radius_m: int,
        place_type: str | None = None,
        interval_seconds: int,
        duration_seconds: int,
        test_location: Any = None,
    ) -> SchedulerConfig:
        """Validate and apply configuration.

        Takes effect for future samples; a running scheduled session keeps its current
        interval/duration until it is re-enabled.

        Raises:
            InvalidConfiguration: After reporting the problem through the sink.
        """
        try:
            config = SchedulerConfig(
                policy=policy,
                radius_m=radius_m,
                place_type=place_type,
                interval_seconds=interval_seconds,
                duration_seconds=duration_seconds,
                test_location=test_location,
            )
        except ValidationError as exc:
            self._fail_configuration(_format_validation_error(exc))

        with self._lock:
            self._config = config
            self._state = replace(
                self._state,
                default_interval_seconds=config.interval_seconds,
                default_duration_seconds=config.duration_seconds,
            )
        logger.debug("Configured scheduler: %s", config)
        return config

    def enable_once(self, test_location: Any = None) -> None:
        """Run one sample -> search -> deliver cycle, then disable.

        With a test location (argument or configured), a synthetic sample is processed
        immediately instead of arming the location source. Gating still applies.
        """
        try:
            override = parse_test_location(test_location)
        except ValueError as exc:
            self._fail_configuration(str(exc))

        location = override or self.config.test_location
        if location is None:
            self._check_ready()

        with self._lock:
            if self._closed:
                raise RuntimeError("Scheduler is closed.")
            if self._state.mode is Mode.ONE_SHOT and self._state.phase is Phase.INVOKING:
                logger.info("One-shot search already in flight; ignoring enable_once().")
                return

            config = self._config
            if self._state.enabled:
                self._location_source.disarm()
            self._session += 1
            self._state = replace(self._state, mode=Mode.ONE_SHOT, enabled=True, phase=Phase.ARMED)

            if location is not None:
                lat, lon = location
                sample = LocationSample(
                    latitude=lat, longitude=lon, accuracy=100.0, provider="test", timestamp=epoch_millis()
                )
                logger.info("Using test location lat=%.6f lon=%.6f", lat, lon)
                self._post(SampleReceived(sample))
                return

            policy = config.policy
            self._location_source.arm(
                one_shot=True,
                interval_seconds=config.interval_seconds,
                duration_seconds=config.duration_seconds,
                use_gps=policy.use_gps,
                use_network=policy.use_network,
                good_enough_accuracy=policy.good_enough_accuracy,
            )
        logger.info("One-shot nearby search armed.")

    def enable_scheduled(self, on: bool) -> None:
        """Start (`on=True`) or stop periodic sampling + searching.

        Stopping never fails; it disarms the source and suppresses delivery of any search
        still in flight.
        """
        if on:
            self._check_ready()

        with self._lock:
            if on and self._closed:
                raise RuntimeError("Scheduler is closed.")

            was_enabled = self._state.enabled
            if was_enabled:
                self._location_source.disarm()
            self._session += 1
            self._state = replace(
                self._state,
                mode=Mode.SCHEDULED,
                enabled=on,
                phase=Phase.ARMED if on else Phase.DISABLED,
            )

            if on:
                config = self._config
                policy = config.policy
                self._location_source.arm(
                    one_shot=False,
                    interval_seconds=config.interval_seconds,
                    duration_seconds=config.duration_seconds,
                    use_gps=policy.use_gps,
                    use_network=policy.use_network,
                    good_enough_accuracy=policy.good_enough_accuracy,
                )
                logger.info(
                    "Scheduled nearby search enabled (interval=%ss duration=%ss).",
                    config.interval_seconds,
                    config.duration_seconds,
                )
            elif was_enabled:
                logger.info("Scheduled nearby search disabled; %d search(es) in flight.", len(self._in_flight))

    def reset_prior_location(self) -> None:
        with self._lock:
            self._state = replace(self._state, prior_accepted_location=None)

    def on_sample_received(self, sample: LocationSample) -> None:
        """Location source callback."""
        self._post(SampleReceived(sample))

    def on_search_result(self, request_id: int, response: SearchResponse) -> None:
        """Search completion callback."""
        self._post(SearchCompleted(request_id, response=response))

    def on_search_failure(self, request_id: int, error: BaseException) -> None:
        """Search failure callback."""
        self._post(SearchCompleted(request_id, error=error))

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until no events are queued and no search is in flight.

        Returns False if `timeout` elapsed first.
        """
        with self._cond:
            return self._cond.wait_for(lambda: self._pending_events == 0 and not self._in_flight, timeout)

    def close(self, timeout: float | None = 5.0) -> None:
        """Disarm, stop the control loop and release worker threads."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            if self._state.enabled:
                self._location_source.disarm()
            self._session += 1
            self._state = replace(self._state, enabled=False, phase=Phase.DISABLED)
            for flight in self._in_flight.values():
                if flight.timer is not None:
                    flight.timer.cancel()
            self._in_flight.clear()
            self._cond.notify_all()

        self._inbox.put(Stop())
        self._loop.join(timeout)
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> "InvocationScheduler":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fail_configuration(self, message: str) -> NoReturn:
        logger.warning("Invalid configuration: %s", message)
        self._sink.report_error(message)
        raise InvalidConfiguration(message)

    def _check_ready(self) -> None:
        try:
            self._search_provider.check_ready()
        except InvalidConfiguration as exc:
            self._fail_configuration(str(exc))

    def _post(self, event: Event) -> None:
        with self._cond:
            if self._closed:
                logger.debug("Scheduler closed; dropping %s", type(event).__name__)
                return
            self._pending_events += 1
            self._inbox.put(event)

    def _run(self) -> None:
        while True:
            event = self._inbox.get()
            if isinstance(event, Stop):
                return
            try:
                if isinstance(event, SampleReceived):
                    self._handle_sample(event.sample)
                elif isinstance(event, SearchCompleted):
                    self._handle_completion(event)
            except Exception:
                # The loop must outlive a misbehaving sink or provider.
                logger.exception("Error while handling %s", type(event).__name__)
            finally:
                with self._cond:
                    self._pending_events -= 1
                    self._cond.notify_all()

    def _handle_sample(self, sample: LocationSample) -> None:
        with self._lock:
            state = self._state
            if not state.enabled or state.phase is not Phase.ARMED:
                logger.debug("Not armed; ignoring %s", sample)
                return

            config = self._config
            one_shot = state.mode is Mode.ONE_SHOT
            if one_shot:
                self._location_source.disarm()

            if not config.policy.accept(sample, state.prior_accepted_location):
                logger.info(
                    "Location change below %sm; ignoring %s",
                    config.policy.minimum_location_change_m,
                    sample,
                )
                if one_shot:
                    self._state = replace(state, enabled=False, phase=Phase.DISABLED)
                return

            request = SearchRequest(
                latitude=sample.latitude,
                longitude=sample.longitude,
                radius_m=config.radius_m,
                place_type=config.place_type,
            )
            request_id = next(self._request_ids)
            timer = None
            if self._search_timeout_seconds is not None:
                timer = threading.Timer(
                    self._search_timeout_seconds,
                    self.on_search_failure,
                    args=(
                        request_id,
                        TransientSearchFailure(f"Search timed out after {self._search_timeout_seconds}s"),
                    ),
                )
                timer.daemon = True
            self._in_flight[request_id] = _InFlight(session=self._session, timer=timer)
            self._state = replace(
                state,
                prior_accepted_location=sample,
                phase=Phase.INVOKING if one_shot else Phase.ARMED,
            )

        logger.info(
            "Searching nearby places (request=%d lat=%.6f lon=%.6f radius=%dm type=%s)",
            request_id,
            request.latitude,
            request.longitude,
            request.radius_m,
            request.place_type,
        )
        if timer is not None:
            timer.start()
        future = self._executor.submit(self._search_provider.search, request)
        future.add_done_callback(lambda f: self._on_future_done(request_id, f))

    def _on_future_done(self, request_id: int, future: Future) -> None:
        if future.cancelled():
            self.on_search_failure(request_id, TransientSearchFailure("Search cancelled"))
            return
        exc = future.exception()
        if exc is not None:
            self.on_search_failure(request_id, exc)
        else:
            self.on_search_result(request_id, future.result())

    def _handle_completion(self, event: SearchCompleted) -> None:
        with self._lock:
            flight = self._in_flight.pop(event.request_id, None)
            if flight is None:
                logger.info("Discarding late completion for request %d", event.request_id)
                return
            if flight.timer is not None:
                flight.timer.cancel()

            state = self._state
            current = flight.session == self._session
            deliver = event.ok and current and state.enabled
            if current and state.mode is Mode.ONE_SHOT and state.phase is Phase.INVOKING:
                self._state = replace(state, enabled=False, phase=Phase.DISABLED)

        if not event.ok:
            message = str(event.error) or type(event.error).__name__
            logger.warning("Search request %d failed: %s", event.request_id, message)
            self._sink.report_error(message)
            return

        if not deliver:
            logger.info("Feature disabled since request %d was issued; suppressing delivery.", event.request_id)
            return

        try:
            places = self._mapper.map_response(event.response)  # type: ignore[arg-type]
        except ValueError as exc:
            logger.warning("Search request %d returned an unusable result: %s", event.request_id, exc)
            self._sink.report_error(f"Malformed search result: {exc}")
            return
        if event.response.next_page_token:
            logger.debug("Ignoring next_page_token for request %d", event.request_id)

        # Every enable/disable/close starts a new session. Re-check while holding the lock so a
        # disable that returned during mapping is honoured; the RLock lets the sink re-enter.
        with self._lock:
            if flight.session != self._session:
                logger.info("Feature toggled while mapping request %d; suppressing delivery.", event.request_id)
                return
            logger.info("Delivering %d place(s) for request %d", len(places), event.request_id)
            self._sink.deliver(places)
