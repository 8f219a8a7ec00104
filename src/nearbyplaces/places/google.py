"""
Google Places Nearby Search client.

This module is responsible only for:
- building the Nearby Search query (location, radius, optional type, API key),
- translating transport / provider errors into `TransientSearchFailure`,
- parsing one result page into `SearchResponse`.

It intentionally does not schedule or gate calls; see `nearbyplaces.scheduling` for that.
Result pagination is not followed: `next_page_token` is returned as-is.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from nearbyplaces.config.settings import Settings
from nearbyplaces.core.errors import InvalidConfiguration, TransientSearchFailure
from nearbyplaces.core.http import get_json
from nearbyplaces.domain.models import SearchRequest, SearchResponse

logger = logging.getLogger(__name__)

# Statuses that carry a (possibly empty) result page.
_OK_STATUSES = {"OK", "ZERO_RESULTS"}


class GooglePlacesClient:
    """`SearchProvider` backed by the Google Places web service."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def check_ready(self) -> None:
        if not self._settings.google.api_key:
            raise InvalidConfiguration(
                "Google Places API key is not configured. Set GOOGLE_PLACES_API_KEY."
            )

    def _params(self, request: SearchRequest) -> dict[str, Any]:
        params: dict[str, Any] = {
            "location": f"{request.latitude},{request.longitude}",
            "radius": request.radius_m,
            "key": self._settings.google.api_key,
        }
        if request.place_type:
            params["type"] = request.place_type
        if self._settings.google.language:
            params["language"] = self._settings.google.language
        return params

    def search(self, request: SearchRequest) -> SearchResponse:
        """Run one Nearby Search request and return the first result page.

        Raises:
            InvalidConfiguration: If no API key is configured.
            TransientSearchFailure: On transport errors, non-2xx responses, or a provider
                status other than OK / ZERO_RESULTS.
        """
        self.check_ready()
        logger.info(
            "Google nearby search lat=%.6f lon=%.6f radius=%s type=%s",
            request.latitude,
            request.longitude,
            request.radius_m,
            request.place_type,
        )
        try:
            payload = get_json(
                self._settings.google.base_url,
                params=self._params(request),
                timeout_seconds=self._settings.app.http_timeout_seconds,
            )
        except httpx.HTTPError as exc:
            raise TransientSearchFailure(f"Google Places request failed: {exc}") from exc
        except ValueError as exc:
            raise TransientSearchFailure(f"Google Places returned invalid JSON: {exc}") from exc

        if not isinstance(payload, dict):
            raise TransientSearchFailure("Google Places returned an unexpected payload.")

        status = str(payload.get("status") or "")
        if status not in _OK_STATUSES:
            message = payload.get("error_message") or f"Google Places returned status {status or 'UNKNOWN'}"
            raise TransientSearchFailure(str(message), status=status or None)

        try:
            response = SearchResponse.model_validate(payload)
        except ValidationError as exc:
            raise TransientSearchFailure(f"Google Places returned malformed results: {exc}") from exc

        if response.next_page_token:
            logger.debug("Google returned a next_page_token; additional pages are not fetched.")
        return response
