"""
Epoch timestamp helpers.

Location fixes carry integer epoch milliseconds; these helpers keep the conversion in one place.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone


def epoch_millis() -> int:
    """Current wall-clock time as integer epoch milliseconds."""
    return int(time.time() * 1000)


def from_epoch_millis(value: int) -> datetime:
    """Convert epoch milliseconds to a timezone-aware UTC datetime."""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
