"""
Scanning location source.

Turns a fix reader (any callable returning the latest raw fix, or None) into armed
sampling passes:
- each pass polls the reader for at most `duration_seconds`
- it stops early at the first fix with accuracy >= `good_enough_accuracy`,
  otherwise it emits the most accurate fix seen during the pass
- one-shot mode runs a single pass; periodic mode repeats every `interval_seconds`
- fixes tagged `gps` / `network` are skipped when that provider is switched off

Accuracy filtering lives here, not in the scheduler: samples handed to the listener are
already "good enough" for gating.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator

from nearbyplaces.core.time import epoch_millis
from nearbyplaces.domain.models import LocationSample
from nearbyplaces.scheduling.interfaces import SampleListener

logger = logging.getLogger(__name__)

FixReader = Callable[[], "LocationSample | None"]


@dataclass(frozen=True)
class ScanParams:
    one_shot: bool
    interval_seconds: int
    duration_seconds: int
    use_gps: bool
    use_network: bool
    good_enough_accuracy: int


def provider_allowed(provider: str, *, use_gps: bool, use_network: bool) -> bool:
    tag = provider.strip().lower()
    if tag == "gps":
        return use_gps
    if tag == "network":
        return use_network
    return True


class ScanningLocationSource:
    """`LocationSource` that samples a fix reader on a background thread."""

    def __init__(self, read_fix: FixReader, *, poll_seconds: float = 1.0):
        self._read_fix = read_fix
        self._poll_seconds = float(poll_seconds)
        self._listener: SampleListener | None = None
        self._lock = threading.Lock()
        self._stop: threading.Event | None = None

    def bind(self, listener: SampleListener) -> None:
        self._listener = listener

    def arm(
        self,
        *,
        one_shot: bool,
        interval_seconds: int,
        duration_seconds: int,
        use_gps: bool,
        use_network: bool,
        good_enough_accuracy: int,
    ) -> None:
        params = ScanParams(
            one_shot=one_shot,
            interval_seconds=interval_seconds,
            duration_seconds=duration_seconds,
            use_gps=use_gps,
            use_network=use_network,
            good_enough_accuracy=good_enough_accuracy,
        )
        stop = threading.Event()
        with self._lock:
            if self._stop is not None:
                self._stop.set()
            self._stop = stop
        thread = threading.Thread(target=self._run, args=(stop, params), name="nearbyplaces-location", daemon=True)
        thread.start()
        logger.debug("Location source armed: %s", params)

    def disarm(self) -> None:
        # Never joins: callers may hold locks the scan thread needs to finish its callback.
        with self._lock:
            stop, self._stop = self._stop, None
        if stop is not None:
            stop.set()
            logger.debug("Location source disarmed.")

    @property
    def armed(self) -> bool:
        with self._lock:
            return self._stop is not None

    def _run(self, stop: threading.Event, params: ScanParams) -> None:
        while not stop.is_set():
            fix = self.scan(stop, params)
            listener = self._listener
            if fix is not None and listener is not None and not stop.is_set():
                listener(fix)
            elif fix is None:
                logger.info("No usable location fix within %ss.", params.duration_seconds)

            if params.one_shot:
                with self._lock:
                    if self._stop is stop:
                        self._stop = None
                return
            if stop.wait(params.interval_seconds):
                return

    def scan(self, stop: threading.Event, params: ScanParams) -> LocationSample | None:
        """Run one sampling pass and return the chosen fix (or None)."""
        deadline = time.monotonic() + params.duration_seconds
        best: LocationSample | None = None
        while True:
            fix = self._read_fix()
            if fix is not None and provider_allowed(
                fix.provider, use_gps=params.use_gps, use_network=params.use_network
            ):
                if fix.accuracy >= params.good_enough_accuracy:
                    return fix
                if best is None or fix.accuracy > best.accuracy:
                    best = fix

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return best
            if stop.wait(min(self._poll_seconds, remaining)):
                return None


def iter_fixes_jsonl(path: str | Path) -> Iterator[LocationSample]:
    """Yield fixes from a JSON-lines file.

    Each line is an object with `lat`, `lon` and optional `accuracy`, `provider`,
    `timestamp` (epoch millis; defaults to the time the line is read).
    """
    with Path(path).open(encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            try:
                row = json.loads(line)
                yield LocationSample(
                    latitude=float(row["lat"]),
                    longitude=float(row["lon"]),
                    accuracy=float(row.get("accuracy", 100)),
                    provider=str(row.get("provider", "gps")),
                    timestamp=int(row.get("timestamp") or epoch_millis()),
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise ValueError(f"{path}:{lineno}: invalid fix ({exc})") from exc


def replay_reader(fixes: Iterable[LocationSample]) -> FixReader:
    """Return a reader that yields `fixes` one per call, then None forever."""
    it = iter(fixes)
    lock = threading.Lock()

    def read() -> LocationSample | None:
        with lock:
            return next(it, None)

    return read
