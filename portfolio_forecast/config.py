"""
Runtime configuration and logging setup.

Settings are read from environment variables so the same build can run
locally and behind a WSGI server:

    PORTFOLIO_FORECAST_MAX_YEARS              longest horizon a request may ask for
    PORTFOLIO_FORECAST_ALLOCATION_TOLERANCE   slack allowed when allocations are summed
    PORTFOLIO_FORECAST_CORS_ORIGINS           comma separated list of frontend origins
    PORTFOLIO_FORECAST_DEBUG                  "True" for console logs instead of JSON
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from typing import List

import structlog

SETTINGS_KEY = "PORTFOLIO_FORECAST_SETTINGS"

DEFAULT_MAX_FORECAST_YEARS = 200
DEFAULT_ALLOCATION_TOLERANCE = 1e-9
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass(frozen=True)
class Settings:
    max_forecast_years: int = DEFAULT_MAX_FORECAST_YEARS
    allocation_tolerance: float = DEFAULT_ALLOCATION_TOLERANCE
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    debug: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment, falling back to defaults."""
        raw_origins = os.getenv("PORTFOLIO_FORECAST_CORS_ORIGINS", "")
        return cls(
            max_forecast_years=int(
                os.getenv("PORTFOLIO_FORECAST_MAX_YEARS", DEFAULT_MAX_FORECAST_YEARS)
            ),
            allocation_tolerance=float(
                os.getenv("PORTFOLIO_FORECAST_ALLOCATION_TOLERANCE", DEFAULT_ALLOCATION_TOLERANCE)
            ),
            cors_origins=_split_origins(raw_origins) or list(DEFAULT_CORS_ORIGINS),
            debug=os.getenv("PORTFOLIO_FORECAST_DEBUG", "False") == "True",
        )


def configure_logging(debug: bool = False) -> None:
    """
    Configure structlog for the application.

    Debug mode renders colored console output; otherwise every event is a
    JSON line suitable for log aggregation.
    """
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=logging.INFO)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if debug:
        processors = shared_processors + [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,  # type: ignore
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
