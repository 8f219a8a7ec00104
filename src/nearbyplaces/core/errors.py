"""
Error taxonomy.

- `InvalidConfiguration`: detected synchronously; blocks the triggering call from arming anything.
- `TransientSearchFailure`: detected asynchronously; always surfaced through `report_error`.

A result arriving after the feature was disabled is not an error: it is logged and dropped.
"""

from __future__ import annotations


class NearbyPlacesError(Exception):
    """Base class for errors raised by this package."""


class InvalidConfiguration(NearbyPlacesError, ValueError):
    """A configuration value is out of range or not recognized."""


class TransientSearchFailure(NearbyPlacesError, RuntimeError):
    """The search provider failed (I/O error, timeout, or provider-reported error)."""

    def __init__(self, message: str, *, status: str | None = None):
        super().__init__(message)
        self.status = status
