"""Flask application factory with OpenTelemetry instrumentation."""

import logging

from flask import Flask

from taskflow.extensions import db, ma, server_session
from taskflow.telemetry import telemetry_enabled


def create_app(config_class: type | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config_class: Configuration class to use. Defaults to Config.

    Returns:
        Configured Flask application instance.
    """
    otel = telemetry_enabled()

    # Initialize telemetry BEFORE creating Flask app
    if otel:
        from taskflow.telemetry import get_otel_log_handler, instrument_flask_app, setup_telemetry

        setup_telemetry()

    app = Flask(__name__)

    # Instrument Flask app (needed for Gunicorn worker forks)
    if otel:
        instrument_flask_app(app)

    # Load configuration
    if config_class is None:
        from taskflow.config import Config

        config_class = Config
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    ma.init_app(app)

    from taskflow.middleware.auth import register_login_manager

    register_login_manager(app)

    # Sessions live in the application database
    app.config.setdefault("SESSION_SQLALCHEMY", db)
    _release_session_table(app.config["SESSION_SQLALCHEMY_TABLE"])
    server_session.init_app(app)

    # App-scoped collaborators, swapped out in tests
    from taskflow.context import EXTENSION_KEY, AppServices
    from taskflow.services.llm import AssistantClient
    from taskflow.services.mailer import Mailer

    app.extensions[EXTENSION_KEY] = AppServices(
        mailer=Mailer.from_config(app.config),
        assistant=AssistantClient.from_config(app.config),
    )

    # Register blueprints
    from taskflow.routes import ai_bp, auth_bp, health_bp, tasks_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(tasks_bp)
    app.register_blueprint(ai_bp)

    # Register error handlers
    from taskflow.errors import register_error_handlers

    register_error_handlers(app)

    # Register metrics middleware
    if otel:
        from taskflow.middleware.metrics import register_metrics_middleware

        register_metrics_middleware(app)

    # Attach OTel log handler after app setup
    if otel:
        handler = get_otel_log_handler()
        if handler:
            root_logger = logging.getLogger()
            if handler not in root_logger.handlers:
                root_logger.addHandler(handler)

    _configure_logging()

    # Create database tables
    with app.app_context():
        db.create_all()

    return app


def _release_session_table(name: str) -> None:
    """Forget a session table declared by an earlier app in this process.

    Flask-Session declares its model on ``db.metadata`` each time it is
    initialized, and the shared metadata refuses a second ``Table`` of the
    same name.
    """
    table = db.metadata.tables.get(name)
    if table is not None:
        db.metadata.remove(table)


def _configure_logging() -> None:
    """Configure logging for the application."""
    # App loggers propagate to root, where the OTel handler is
    logging.getLogger("taskflow").setLevel(logging.DEBUG)
    logging.getLogger("taskflow").propagate = True

    # Reduce noise from framework loggers
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    logging.getLogger("werkzeug").propagate = False

    # SQLAlchemy engine logs can be noisy
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
