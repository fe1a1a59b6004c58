"""Application factory and app-wide configuration."""

from typing import Optional

from flask import Flask
from flask_cors import CORS

from portfolio_forecast.app.api.routes import api_bp
from portfolio_forecast.config import SETTINGS_KEY, Settings, configure_logging


def create_app(settings: Optional[Settings] = None) -> Flask:
    """Build the Flask app instance."""
    settings = settings or Settings.from_env()
    configure_logging(debug=settings.debug)

    app = Flask(__name__)
    app.config[SETTINGS_KEY] = settings

    CORS(
        app,
        resources={r"/api/*": {"origins": settings.cors_origins}},
        supports_credentials=True,
    )

    app.register_blueprint(api_bp, url_prefix="/api")
    return app
