"""
HTTP helpers for search providers.

Provider requests carry credentials as query parameters (Google Places uses `key=`), and
httpx puts the full URL into its status-error messages. Those messages end up in
`report_error`, so this module:
- logs requests with secret parameters masked,
- re-raises non-2xx responses with a message that names the status and host only.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "nearbyplaces/0.1.0"
SECRET_PARAMS = frozenset({"key", "api_key", "token", "access_token"})
REDACTED = "***"


def redact_params(params: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return a copy of `params` with credential values masked."""
    if not params:
        return {}
    return {k: (REDACTED if k.lower() in SECRET_PARAMS else v) for k, v in params.items()}


def get_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
    transport: httpx.BaseTransport | None = None,
) -> Any:
    """GET `url` and return the decoded JSON response.

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes. Status errors never
            include the query string.
        ValueError: If the response body is not valid JSON.
    """
    request_headers = {"User-Agent": DEFAULT_USER_AGENT}
    if headers:
        request_headers.update(headers)

    logger.debug("GET %s params=%s", url, redact_params(params))
    with httpx.Client(timeout=timeout_seconds, transport=transport) as client:
        resp = client.get(url, params=params, headers=request_headers)
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            host = exc.request.url.host
            raise httpx.HTTPStatusError(
                f"HTTP {resp.status_code} from {host}", request=exc.request, response=resp
            ) from None
        return resp.json()
