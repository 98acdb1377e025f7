"""
Invoicely — Application package.

Uses the *application factory* pattern so the app can be created with
different configurations (development, testing, production).
"""

import logging
import os

from flask import Flask, jsonify

from config import config_by_name

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """Build and return a fully configured Flask application."""
    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    if overrides:
        app.config.update(overrides)

    _configure_logging(app)

    # -- Extensions --------------------------------------------------------
    from invoicely.extensions import init_db, login_manager

    init_db(app)
    login_manager.init_app(app)

    # -- Blueprints --------------------------------------------------------
    from invoicely.api import api_bp

    app.register_blueprint(api_bp)

    # -- CLI ---------------------------------------------------------------
    from invoicely.cli import register_commands

    register_commands(app)

    # -- JSON errors for unknown routes ------------------------------------
    @app.errorhandler(404)
    def not_found(_error):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(_error):
        return jsonify({"error": "Method not allowed"}), 405

    app.logger.info("Invoicely started with %s config", config_name)
    return app


def _configure_logging(app: Flask) -> None:
    """Attach a single console handler to the package logger."""
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logger = logging.getLogger("invoicely")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
