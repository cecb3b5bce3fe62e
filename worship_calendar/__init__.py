import logging
import os
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

from flask import Flask
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate, upgrade

from .config import config_by_name
from .models import db

# In-memory storage unless RATELIMIT_STORAGE_URI points elsewhere; counters
# reset on process restart.
limiter = Limiter(key_func=get_remote_address)
migrate = Migrate()


def create_app(config_name=None):
    # Load .env so gunicorn (production) picks up env vars too
    from dotenv import load_dotenv

    load_dotenv(Path(__file__).resolve().parent.parent / ".env")

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    config_cls = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_cls)
    if hasattr(config_cls, "init_app"):
        config_cls.init_app(app)

    if app.config.get("TRUST_PROXY"):
        from werkzeug.middleware.proxy_fix import ProxyFix

        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    _configure_logging(app)
    _check_calendar_settings(app)

    # Init extensions
    db.init_app(app)
    limiter.init_app(app)
    migrate.init_app(app, db, directory=str(Path(__file__).resolve().parent.parent / "migrations"))

    # Register blueprints
    from .schedule import routes  # noqa: F401  (attaches views to schedule_bp)
    from .schedule.common import schedule_bp

    app.register_blueprint(schedule_bp)

    from .errors import register_error_handlers

    register_error_handlers(app)

    @app.after_request
    def set_security_headers(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        if not app.debug:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    # Health check endpoints
    @app.route("/ping")
    def ping():
        return {
            "status": "ok",
            "timestamp": datetime.now(UTC).isoformat(),
        }, 200

    @app.route("/health")
    def health():
        result = {"timestamp": datetime.now(UTC).isoformat()}

        try:
            db.session.execute(db.text("SELECT 1"))
            result["database"] = {"status": "ok"}
        except Exception:
            app.logger.exception("Health check database probe failed.")
            db.session.rollback()
            result["database"] = {"status": "error", "error": "unavailable"}

        db_ok = result["database"]["status"] == "ok"
        result["status"] = "ok" if db_ok else "degraded"
        return result, 200 if db_ok else 503

    # Apply pending Alembic migrations on startup
    with app.app_context():
        upgrade()

    return app


def _check_calendar_settings(app):
    """Fail fast on service calendar settings generation could not use."""
    from .schedule.special_days import parse_special_day_keys

    try:
        weekday = int(app.config.get("PRINCIPAL_SERVICE_WEEKDAY", 6))
    except (TypeError, ValueError) as exc:
        raise RuntimeError("PRINCIPAL_SERVICE_WEEKDAY must be an integer between 0 (Monday) and 6 (Sunday)") from exc
    if not 0 <= weekday <= 6:
        raise RuntimeError("PRINCIPAL_SERVICE_WEEKDAY must be an integer between 0 (Monday) and 6 (Sunday)")
    app.config["PRINCIPAL_SERVICE_WEEKDAY"] = weekday

    try:
        keys = parse_special_day_keys(app.config.get("SERVICE_SPECIAL_DAYS", ""))
    except ValueError as exc:
        raise RuntimeError(f"SERVICE_SPECIAL_DAYS is invalid: {exc}") from exc
    app.config["SERVICE_SPECIAL_DAYS"] = keys


def _configure_logging(app):
    """Set up file-based logging with rotation for production."""
    if app.debug or app.testing:
        return

    log_dir = Path(app.config.get("LOG_DIR") or Path(app.root_path).parent / "logs")
    log_dir.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        log_dir / "worship_calendar.log",
        maxBytes=5 * 1024 * 1024,  # 5 MB
        backupCount=5,
    )
    file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    file_handler.setLevel(logging.INFO)
    app.logger.addHandler(file_handler)
    app.logger.setLevel(logging.INFO)
