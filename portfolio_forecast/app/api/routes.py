"""HTTP routes for the Flask API."""

from http import HTTPStatus
from typing import Any, Dict

import structlog
from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError
from werkzeug.exceptions import BadRequest

from portfolio_forecast.config import SETTINGS_KEY, Settings
from portfolio_forecast.core.forecast import ForecastValidationError, forecast
from portfolio_forecast.core.health import get_health_status
from portfolio_forecast.schemas.forecast import ErrorResponse, ForecastRequest

logger = structlog.get_logger(__name__)

api_bp = Blueprint("api", __name__)


def _error(status: HTTPStatus, message: str):
    body = ErrorResponse(error=status.phrase, message=message)
    return jsonify(body.model_dump()), status


def _describe_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}" if location else first["msg"]


@api_bp.errorhandler(BadRequest)
def _handle_bad_request(exc: BadRequest):
    """Malformed or missing JSON bodies."""
    return _error(HTTPStatus.BAD_REQUEST, exc.description or "invalid request body")


@api_bp.errorhandler(ValidationError)
def _handle_validation_error(exc: ValidationError):
    """Convert Pydantic validation errors into JSON responses."""
    return _error(HTTPStatus.BAD_REQUEST, _describe_validation_error(exc))


@api_bp.errorhandler(ForecastValidationError)
def _handle_forecast_validation_error(exc: ForecastValidationError):
    return _error(HTTPStatus.BAD_REQUEST, str(exc))


@api_bp.errorhandler(Exception)
def _handle_unexpected_error(exc: Exception):
    logger.exception("forecast_failed", path=request.path)
    return _error(HTTPStatus.INTERNAL_SERVER_ERROR, "unexpected error while forecasting")


@api_bp.get("/health")
def health() -> Any:
    """Health-check endpoint."""
    return jsonify(get_health_status().model_dump())


@api_bp.post("/forecastPortfolio")
def forecast_portfolio() -> Any:
    """Forecast the posted portfolio year by year."""
    settings: Settings = current_app.config[SETTINGS_KEY]
    raw_payload: Dict[str, Any] = request.get_json(force=True, silent=False)
    payload = ForecastRequest.model_validate(raw_payload)
    result = forecast(
        payload,
        max_years=settings.max_forecast_years,
        allocation_tolerance=settings.allocation_tolerance,
    )
    return jsonify(result.model_dump(mode="json"))
