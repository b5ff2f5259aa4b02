"""ielts_app package – application factory and blueprint registration."""

from __future__ import annotations

import os
from time import perf_counter

import click
from flask import Flask, g, request
from flask_jwt_extended import JWTManager
from sqlalchemy import event

from config import resolve_config
from .blueprints import BLUEPRINTS
from .extensions import cors, db, jwt, migrate, limiter
from .logging_config import configure_logging, assign_request_id
from .metrics import record_request


def create_app(config_name: str | None = None) -> Flask:
    """Application factory used by both CLI and runtime servers."""

    app = Flask(__name__)
    _configure_app(app, config_name)
    configure_logging(app)
    _register_extensions(app)
    _register_blueprints(app)
    _register_shellcontext(app)
    _register_cli(app)
    _register_bootstrap(app)
    _register_request_hooks(app)

    return app


def _configure_app(app: Flask, config_name: str | None) -> None:
    env_name = config_name or os.getenv("FLASK_CONFIG")
    config_obj = resolve_config(env_name)
    app.config.from_object(config_obj)


def _register_extensions(app: Flask) -> None:
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    _configure_jwt(jwt)
    _configure_sqlite_engine(app)
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )
    limiter.default_limits = app.config.get("RATE_LIMIT_DEFAULTS", [])
    limiter.init_app(app)


def _register_blueprints(app: Flask) -> None:
    for blueprint, prefix in BLUEPRINTS:
        app.register_blueprint(blueprint, url_prefix=prefix)


def _register_shellcontext(app: Flask) -> None:
    # Lazy import inside function to avoid circular dependencies.
    from .models import ReadingTest, ReadingTestAttempt

    @app.shell_context_processor
    def shell_context():
        return {"db": db, "ReadingTest": ReadingTest, "ReadingTestAttempt": ReadingTestAttempt}


def _configure_jwt(jwt_manager: JWTManager) -> None:
    from flask import jsonify

    @jwt_manager.expired_token_loader
    def expired_token_callback(jwt_header, jwt_data):
        return jsonify({"message": "Token has expired"}), 401

    @jwt_manager.invalid_token_loader
    def invalid_token_callback(error_string):
        return jsonify({"message": "Invalid token", "error": error_string}), 401

    @jwt_manager.unauthorized_loader
    def missing_token_callback(error_string):
        return jsonify({"message": "Missing authorization token"}), 401


def _register_bootstrap(app: Flask) -> None:
    @app.before_request
    def ensure_schema():
        if app.config.get("_SCHEMA_READY"):
            return
        try:
            _ensure_schema(app)
            app.config["_SCHEMA_READY"] = True
        except Exception as exc:  # pragma: no cover - defensive logging
            app.logger.debug("Schema bootstrap skipped: %s", exc)
            app.config["_SCHEMA_READY"] = False


def _register_request_hooks(app: Flask) -> None:
    @app.before_request
    def start_request():
        assign_request_id()
        g.request_started_at = perf_counter()

    @app.after_request
    def finalize(response):
        request_id = getattr(g, "request_id", None)
        if request_id:
            response.headers["X-Request-ID"] = request_id
        started = getattr(g, "request_started_at", None)
        latency = perf_counter() - started if started else 0.0
        endpoint = request.endpoint or request.path
        record_request(request.method, endpoint, response.status_code, latency)
        return response


def _configure_sqlite_engine(app: Flask) -> None:
    uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
    if not uri.startswith("sqlite"):
        return
    busy_timeout_ms = int(app.config.get("SQLITE_BUSY_TIMEOUT_MS", 15000))

    with app.app_context():
        engine = db.engine

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, connection_record):  # pragma: no cover
            cursor = dbapi_connection.cursor()
            try:
                cursor.execute("PRAGMA journal_mode=WAL;")
                cursor.execute(f"PRAGMA busy_timeout={busy_timeout_ms};")
                cursor.execute("PRAGMA synchronous=NORMAL;")
            finally:
                cursor.close()


def _ensure_schema(app: Flask) -> None:
    with app.app_context():
        db.create_all()


def _register_cli(app: Flask) -> None:
    @app.cli.group("reading")
    def reading_group():
        """Reading test management commands."""

    @reading_group.command("generate-test")
    @click.option(
        "--level",
        type=click.Choice(["beginner", "intermediate", "advanced"]),
        default="intermediate",
        show_default=True,
        help="Difficulty level of the generated test.",
    )
    def generate_test_command(level: str) -> None:
        """Generate a three-passage reading test and store it."""

        from .services import reading_assembler, reading_service

        with app.app_context():
            _ensure_schema(app)
            result = reading_assembler.generate_complete_reading_test(level)
            if not result["success"]:
                raise click.ClickException(
                    f"Generation failed ({result['errorCode']}): {result['error']}"
                )
            test = reading_service.persist_generated_test(result["data"], created_by="cli")
            click.echo(
                f"Generated reading test {test.id}: {test.title} "
                f"({len(test.questions)} questions)."
            )

    @reading_group.command("stats")
    def stats_command() -> None:
        """Print reading test and attempt counts."""

        from .services import reading_service

        with app.app_context():
            _ensure_schema(app)
            summary = reading_service.count_summary()
        click.echo(
            f"Tests: {summary['tests']} ({summary['activeTests']} active), "
            f"attempts: {summary['attempts']}"
        )
