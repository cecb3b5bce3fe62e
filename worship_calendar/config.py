import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or os.urandom(32).hex()
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", f"sqlite:///{BASE_DIR / 'worship_calendar.db'}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Service calendar generation
    PRINCIPAL_SERVICE_WEEKDAY = int(os.environ.get("PRINCIPAL_SERVICE_WEEKDAY", "6"))  # 0=Monday ... 6=Sunday
    SERVICE_SPECIAL_DAYS = os.environ.get(
        "SERVICE_SPECIAL_DAYS",
        "christmas_eve,ash_wednesday,maundy_thursday,good_friday",
    )

    # Administration
    ADMIN_API_TOKEN = os.environ.get("ADMIN_API_TOKEN", "")
    TRUST_PROXY = os.environ.get("TRUST_PROXY", "false").lower() == "true"

    # Rate limiting
    RATELIMIT_DEFAULT = os.environ.get("RATELIMIT_DEFAULT", "200 per hour")
    RATELIMIT_STORAGE_URI = os.environ.get("RATELIMIT_STORAGE_URI", "memory://")
    REGENERATE_RATE_LIMIT = os.environ.get("REGENERATE_RATE_LIMIT", "10 per minute")

    # Logging
    LOG_DIR = os.environ.get("LOG_DIR", str(BASE_DIR / "logs"))


class DevelopmentConfig(Config):
    DEBUG = True

    @classmethod
    def init_app(cls, app):
        if not os.environ.get("SECRET_KEY"):
            app.logger.warning("SECRET_KEY not set; using an ephemeral key.")
        if not app.config.get("ADMIN_API_TOKEN"):
            app.logger.warning("ADMIN_API_TOKEN not set; calendar regeneration is disabled.")


class ProductionConfig(Config):
    DEBUG = False
    TRUST_PROXY = os.environ.get("TRUST_PROXY", "true").lower() == "true"

    @classmethod
    def init_app(cls, app):
        secret_key = os.environ.get("SECRET_KEY", "").strip()
        if not secret_key:
            raise RuntimeError("SECRET_KEY environment variable must be set in production")
        if len(secret_key) < 32:
            raise RuntimeError(
                "SECRET_KEY is too short for production (minimum 32 characters). "
                'Generate one with: python -c "import secrets; print(secrets.token_hex(32))"'
            )

        admin_token = os.environ.get("ADMIN_API_TOKEN", "").strip()
        if len(admin_token) < 24:
            raise RuntimeError(
                "ADMIN_API_TOKEN must be set to at least 24 characters in production. "
                'Generate one with: python -c "import secrets; print(secrets.token_urlsafe(32))"'
            )
        lowered_token = admin_token.lower()
        weak_markers = ("changeme", "change-this", "replace", "secret", "example", "default")
        if any(marker in lowered_token for marker in weak_markers):
            raise RuntimeError("ADMIN_API_TOKEN appears to be a placeholder and is not allowed in production.")


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    RATELIMIT_ENABLED = False
    SECRET_KEY = "testing-secret-key"
    ADMIN_API_TOKEN = "testing-admin-token"
    PRINCIPAL_SERVICE_WEEKDAY = 6
    SERVICE_SPECIAL_DAYS = "christmas_eve,ash_wednesday,maundy_thursday,good_friday"


config_by_name = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
