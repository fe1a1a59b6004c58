from __future__ import annotations

import pytest
from flask import Flask
from flask.testing import FlaskClient

from portfolio_forecast.app import create_app
from portfolio_forecast.config import Settings


@pytest.fixture()
def app() -> Flask:
    flask_app = create_app(Settings(max_forecast_years=100))
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    with app.test_client() as test_client:
        yield test_client
