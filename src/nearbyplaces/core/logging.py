"""
Logging setup for the CLI and embedding applications.

The packaged `logging.yaml` is the baseline; the effective level comes from, in order:
an explicit argument (CLI `--log-level`), `NEARBYPLACES_LOG_LEVEL`, then `app.log_level`.
"""

from __future__ import annotations

import copy
import logging.config

from nearbyplaces.config.settings import get_logging_config, get_settings


def configure_logging(level: str | None = None) -> str:
    """Apply the logging config and return the effective root level name."""
    config = copy.deepcopy(get_logging_config())
    effective = (level or get_settings().app.log_level).upper()

    config.setdefault("root", {})["level"] = effective
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict) and "level" in handler:
            handler["level"] = effective
    if effective == "DEBUG":
        # Surface request lines from the HTTP client only when debugging.
        config.setdefault("loggers", {}).setdefault("httpx", {})["level"] = "DEBUG"

    logging.config.dictConfig(config)
    return effective
