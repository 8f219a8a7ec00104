# src/nearbyplaces/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/nearbyplaces/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `GOOGLE_PLACES_API_KEY`, `NEARBYPLACES_LOG_LEVEL`)
- an external YAML file via `NEARBYPLACES_CONFIG_PATH`

Design rule:
- Tuning knobs live in YAML, not hard-coded in the scheduler.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from nearbyplaces.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `nearbyplaces.config`."""
    text = resources.files("nearbyplaces.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "NearbyPlaces"
    http_timeout_seconds: float = 15
    log_level: str = "INFO"


class LocationSettings(BaseModel):
    minimum_location_change_m: float = Field(0, ge=0)
    good_enough_accuracy: int = Field(80, ge=0, le=100)
    default_interval_seconds: int = Field(180, gt=0)
    default_duration_seconds: int = Field(10, gt=0)
    use_gps: bool = True
    use_network: bool = True
    # Raw value on purpose: the scheduler validates it and reports a readable error.
    test_location: Any = None


class PlacesSettings(BaseModel):
    nearby_radius_m: int = Field(100, gt=0)
    place_type: str | None = None


class SearchSettings(BaseModel):
    # None keeps the reference behaviour: wait for the provider as long as it takes.
    timeout_seconds: float | None = Field(default=None, gt=0)
    max_workers: int = Field(2, ge=1)


class GoogleSettings(BaseModel):
    base_url: str = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"
    api_key: str | None = None
    language: str | None = None


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    location: LocationSettings = Field(default_factory=LocationSettings)
    places: PlacesSettings = Field(default_factory=PlacesSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    google: GoogleSettings = Field(default_factory=GoogleSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("NEARBYPLACES_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    api_key = os.getenv("GOOGLE_PLACES_API_KEY")
    if api_key:
        data.setdefault("google", {})["api_key"] = api_key

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("NEARBYPLACES_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
