"""Health status used by the API health-check."""

from portfolio_forecast import __version__
from portfolio_forecast.schemas.health import HealthResponse


def get_health_status() -> HealthResponse:
    """Report that the service is up, with the running package version."""
    return HealthResponse(status="ok", version=__version__)
