"""Application factory for the voice gateway backend."""
from __future__ import annotations

import time
from http import HTTPStatus

from flask import Flask, jsonify
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool
from werkzeug.exceptions import HTTPException

from .config import Config, resolve_database_uri
from .extensions import cors, db, limiter
from .flows import FlowTrigger
from .providers import Api4ComClient, LigueLeadClient


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application instance."""
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO").upper())

    _configure_database_uri(app)
    db.init_app(app)

    allowed_origins = [
        origin.strip()
        for origin in (app.config.get("CORS_ALLOWED_ORIGINS") or "").split(",")
        if origin.strip()
    ]
    cors.init_app(
        app,
        resources={r"/*": {"origins": allowed_origins}},
        allow_headers=["Content-Type", "Authorization"],
    )

    limiter.init_app(app)

    from .api.health import bp as health_bp

    app.register_blueprint(health_bp)

    if app.config.get("ENABLE_LIGUELEAD_API", True):
        from .api.liguelead import bp as liguelead_bp

        liguelead = LigueLeadClient.from_config(app.config)
        if not liguelead.credentials.complete:
            app.logger.warning("APITOKEN and APPID are not both set; LigueLead calls will be rejected")
        app.extensions["liguelead"] = liguelead
        app.extensions["flow_trigger"] = FlowTrigger.from_config(app.config)
        app.register_blueprint(liguelead_bp, url_prefix=app.config.get("LIGUELEAD_URL_PREFIX") or None)

    if app.config.get("ENABLE_API4COM_API", True):
        from .api.api4com import bp as api4com_bp

        api4com = Api4ComClient.from_config(app.config)
        if not api4com.configured:
            app.logger.warning("API4COM_EMAIL and API4COM_PASSWORD are not set; Api4Com calls will fail")
        app.extensions["api4com"] = api4com
        app.register_blueprint(api4com_bp, url_prefix=app.config.get("API4COM_URL_PREFIX") or None)

    if app.config.get("ENABLE_USERS_API", True):
        from .api.users import bp as users_bp

        app.register_blueprint(users_bp, url_prefix=app.config.get("USERS_URL_PREFIX") or None)

    _register_error_handlers(app)

    with app.app_context():
        # Import models to ensure they are registered with SQLAlchemy before creating tables.
        from .models import api4com, user  # noqa: F401

        _initialize_database(app)

    return app


def _configure_database_uri(app: Flask) -> None:
    """Fall back to a local SQLite file when no database URL is configured."""

    if app.config.get("SQLALCHEMY_DATABASE_URI"):
        return

    uri, in_memory = resolve_database_uri(app.config.get("DB_PATH"))
    app.config["SQLALCHEMY_DATABASE_URI"] = uri
    if in_memory:
        app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    app.logger.info("Using database %s", uri)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(HTTPStatus.NOT_FOUND)
    def not_found(_error: HTTPException):
        return jsonify({"error": "Rota não encontrada"}), HTTPStatus.NOT_FOUND

    @app.errorhandler(HTTPStatus.INTERNAL_SERVER_ERROR)
    def internal_error(_error: Exception):
        return jsonify({"error": "Erro interno do servidor"}), HTTPStatus.INTERNAL_SERVER_ERROR


def _initialize_database(app: Flask) -> None:
    """Initialize the database with retry logic to handle delayed availability."""

    max_retries = int(app.config.get("DB_INIT_MAX_RETRIES", 30))
    retry_delay = float(app.config.get("DB_INIT_RETRY_DELAY", 2))

    for attempt in range(1, max_retries + 1):
        try:
            db.create_all()
            return
        except OperationalError as exc:
            if attempt >= max_retries:
                app.logger.exception("Database initialization failed after %s attempts.", attempt)
                raise

            app.logger.warning(
                "Database initialization attempt %s/%s failed: %s", attempt, max_retries, exc
            )
            time.sleep(retry_delay)


__all__ = ["Config", "create_app"]
