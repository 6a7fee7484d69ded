"""
ProjectHub
Flask Application Factory.

Usage:
    from projecthub import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask, abort, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy.exc import SQLAlchemyError

from projecthub.config import config
from projecthub.core.error_handlers import register_error_handlers
from projecthub.middleware.jwt_auth import init_jwt_middleware
from projecthub.middleware.logging_config import configure_logging
from projecthub.middleware.rate_limiter import init_rate_limits
from projecthub.middleware.security_headers import init_security_headers
from projecthub.middleware.timing import init_request_timing
from projecthub.models import db
from projecthub.services.login_throttle import init_login_throttle

logger = logging.getLogger(__name__)

# ── SQLite FK enforcement (global engine event) ─────────────────────────
from sqlalchemy import event as _sa_event, engine as _sa_engine


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],  # no global limit; applied per blueprint
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: One of "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    init_login_throttle(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()],
             supports_credentials=True)
    else:
        CORS(app)

    # ── Errors, headers, timing, session ─────────────────────────────────
    register_error_handlers(app)
    init_security_headers(app)
    init_request_timing(app)
    init_jwt_middleware(app)

    # ── Request guards (input length + Content-Type) ─────────────────────
    @app.before_request
    def _guard_request():
        max_len = app.config.get("MAX_CONTENT_LENGTH")
        if max_len and request.content_length and request.content_length > max_len:
            abort(413, description="Request body too large")
        if request.method in ("POST", "PUT", "PATCH") and request.path.startswith("/api/"):
            ct = request.content_type or ""
            if request.data and "json" not in ct:
                abort(415, description="Content-Type must be application/json")

    # ── Import all models so create_all / Alembic see them ───────────────
    from projecthub.models import people as _people_models    # noqa: F401
    from projecthub.models import project as _project_models  # noqa: F401
    from projecthub.models import finance as _finance_models  # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    os.makedirs(app.instance_path, exist_ok=True)
    with app.app_context():
        try:
            db.create_all()
            app.logger.info("db.create_all() completed successfully")
        except SQLAlchemyError as e:
            app.logger.warning("db.create_all() failed: %s", e)

    # ── Blueprints ───────────────────────────────────────────────────────
    from projecthub.blueprints.auth_bp import auth_bp
    from projecthub.blueprints.user_bp import user_bp
    from projecthub.blueprints.staff_bp import staff_bp
    from projecthub.blueprints.project_bp import project_bp
    from projecthub.blueprints.module_bp import module_bp
    from projecthub.blueprints.finance_bp import finance_bp
    from projecthub.blueprints.report_bp import report_bp
    from projecthub.blueprints.health_bp import health_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(user_bp)
    app.register_blueprint(staff_bp)
    app.register_blueprint(project_bp)
    app.register_blueprint(module_bp)
    app.register_blueprint(finance_bp)
    app.register_blueprint(report_bp)
    app.register_blueprint(health_bp)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("init-db")
    @click.option("--drop", is_flag=True, help="Drop all tables first.")
    def init_db_cmd(drop):
        """Create all tables (optionally dropping them first)."""
        if drop:
            db.drop_all()
            logger.warning("Dropped all tables.")
        db.create_all()
        click.echo("Database initialised.")

    @app.cli.command("create-admin")
    @click.option("--first-name", prompt=True)
    @click.option("--last-name", prompt=True)
    @click.option("--email", prompt=True)
    @click.password_option()
    def create_admin_cmd(first_name, last_name, email, password):
        """Create an Admin account with a password (first-run bootstrap)."""
        from projecthub.core.exceptions import ConflictError, ValidationError
        from projecthub.services.user_service import create_admin

        try:
            user = create_admin(first_name, last_name, email, password)
        except ValidationError as exc:
            raise click.ClickException(f"{exc}: {'; '.join(exc.details)}")
        except ConflictError as exc:
            raise click.ClickException(str(exc))
        click.echo(f"Admin {user.email} created (id={user.id}).")

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
