"""
NearbyPlaces CLI entrypoint.

This CLI is intended for quick local demos and debugging:
- `once`: one-shot search at a fixed test location
- `replay`: scheduled mode driven by fixes replayed from a JSON-lines file

All gating/scheduling logic lives in `nearbyplaces.scheduling.scheduler`.
"""

from __future__ import annotations

import argparse
import json
import sys
import threading
import time
from typing import Any

from nearbyplaces.config.settings import Settings, get_settings
from nearbyplaces.core.env import resolve_project_path
from nearbyplaces.core.errors import InvalidConfiguration
from nearbyplaces.core.logging import configure_logging
from nearbyplaces.core.time import from_epoch_millis
from nearbyplaces.domain.models import LocationSample, PlaceRecord
from nearbyplaces.location.scanning import ScanningLocationSource, iter_fixes_jsonl, replay_reader
from nearbyplaces.places.google import GooglePlacesClient
from nearbyplaces.scheduling.scheduler import InvocationScheduler


class _PrintingSink:
    """EventSink that writes delivered places to stdout and errors to stderr."""

    def __init__(self, *, as_json: bool):
        self._as_json = as_json
        self._lock = threading.Lock()
        self.deliveries = 0
        self.errors = 0

    def deliver(self, places: list[PlaceRecord]) -> None:
        with self._lock:
            self.deliveries += 1
            if self._as_json:
                print(json.dumps([p.to_dict() for p in places], ensure_ascii=False, indent=2))
                return
            print(f"Nearby places ({len(places)}):")
            for i, place in enumerate(places, start=1):
                lat, lng = place.location
                status = "closed" if place.permanently_closed else ""
                if place.open_now is not None:
                    status = status or ("open now" if place.open_now else "closed now")
                print(f"{i:>2}. ({lat:.6f}, {lng:.6f}) {', '.join(place.types)}  {status}".rstrip())

    def report_error(self, message: str) -> None:
        with self._lock:
            self.errors += 1
            print(f"error: {message}", file=sys.stderr)


def _apply_cli_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Return a copy of settings with CLI flags applied (the cached settings are not mutated)."""
    places_update: dict[str, Any] = {}
    if args.radius is not None:
        places_update["nearby_radius_m"] = int(args.radius)
    if args.type is not None:
        places_update["place_type"] = args.type

    location_update: dict[str, Any] = {}
    for flag, key in [
        ("min_change", "minimum_location_change_m"),
        ("interval", "default_interval_seconds"),
        ("duration", "default_duration_seconds"),
        ("accuracy", "good_enough_accuracy"),
    ]:
        value = getattr(args, flag, None)
        if value is not None:
            location_update[key] = value

    return settings.model_copy(
        update={
            "places": settings.places.model_copy(update=places_update),
            "location": settings.location.model_copy(update=location_update),
        }
    )


def _cmd_once(args: argparse.Namespace) -> int:
    settings = _apply_cli_overrides(get_settings(), args)
    sink = _PrintingSink(as_json=bool(args.json))

    # No live sensor here: the test location drives the single cycle.
    source = ScanningLocationSource(lambda: None)
    try:
        scheduler = InvocationScheduler.from_settings(settings, source, GooglePlacesClient(settings), sink)
    except InvalidConfiguration:
        return 2

    with scheduler:
        try:
            scheduler.enable_once(test_location=[float(args.lat), float(args.lon)])
        except InvalidConfiguration:
            return 2
        scheduler.wait_idle()
    return 1 if sink.errors else 0


def _cmd_replay(args: argparse.Namespace) -> int:
    settings = _apply_cli_overrides(get_settings(), args)
    sink = _PrintingSink(as_json=bool(args.json))

    fixes: list[LocationSample] = list(iter_fixes_jsonl(resolve_project_path(args.path)))
    if not fixes:
        print("No fixes to replay.", file=sys.stderr)
        return 1
    print(
        f"Replaying {len(fixes)} fix(es) from {from_epoch_millis(fixes[0].timestamp).isoformat()} "
        f"to {from_epoch_millis(fixes[-1].timestamp).isoformat()}",
        file=sys.stderr,
    )

    read = replay_reader(fixes)
    exhausted = threading.Event()

    def read_fix() -> LocationSample | None:
        fix = read()
        if fix is None:
            exhausted.set()
        return fix

    source = ScanningLocationSource(read_fix, poll_seconds=float(args.poll_seconds))
    try:
        scheduler = InvocationScheduler.from_settings(settings, source, GooglePlacesClient(settings), sink)
    except InvalidConfiguration:
        return 2

    with scheduler:
        try:
            scheduler.enable_scheduled(True)
        except InvalidConfiguration:
            return 2
        deadline = time.monotonic() + float(args.max_seconds) if args.max_seconds is not None else None
        while not exhausted.wait(0.2):
            if deadline is not None and time.monotonic() >= deadline:
                break
        scheduler.wait_idle(timeout=settings.app.http_timeout_seconds * 2)
        scheduler.enable_scheduled(False)
    return 1 if sink.errors else 0


def _add_common_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--radius", type=int, default=None, help="Search radius in meters.")
    p.add_argument("--type", type=str, default=None, help="Place type, e.g. cafe or restaurant.")
    p.add_argument("--json", action="store_true", help="Output machine-readable JSON")


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the NearbyPlaces CLI."""
    parser = argparse.ArgumentParser(prog="nearbyplaces")
    parser.add_argument("--log-level", type=str, default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    once = sub.add_parser("once", help="Search nearby places once at the given location.")
    once.add_argument("--lat", required=True, type=float)
    once.add_argument("--lon", required=True, type=float)
    _add_common_options(once)
    once.set_defaults(func=_cmd_once)

    rep = sub.add_parser("replay", help="Run scheduled searches driven by fixes from a JSON-lines file.")
    rep.add_argument("path", help="JSON-lines file with {lat, lon, accuracy?, provider?, timestamp?} per line")
    rep.add_argument("--min-change", dest="min_change", type=float, default=None, help="Meters; 0 disables.")
    rep.add_argument("--interval", type=int, default=None, help="Seconds between sampling passes.")
    rep.add_argument("--duration", type=int, default=None, help="Max seconds per sampling pass.")
    rep.add_argument("--accuracy", type=int, default=None, help="Good-enough accuracy (0..100).")
    rep.add_argument("--poll-seconds", dest="poll_seconds", type=float, default=0.2)
    rep.add_argument("--max-seconds", dest="max_seconds", type=float, default=None, help="Total time budget.")
    _add_common_options(rep)
    rep.set_defaults(func=_cmd_replay)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m nearbyplaces.cli`."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
