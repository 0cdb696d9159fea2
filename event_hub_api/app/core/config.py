"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
API starts with no configuration at all; in a production deployment
you should override at least ``SECRET_KEY`` and
``EMAIL_VERIFICATION_SECRET``.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Event Hub API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    # Optional path of a log file.  Empty means console only.
    log_file: str = os.getenv("LOG_FILE", "")

    # Signing key for access tokens issued on login.
    secret_key: str = os.getenv("SECRET_KEY", "change_me")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))
    algorithm: str = os.getenv("ALGORITHM", "HS256")

    # Email verification and password reset tokens use their own key.
    email_verification_secret: str = os.getenv("EMAIL_VERIFICATION_SECRET", "change_me_too")
    verification_token_expire_hours: int = int(os.getenv("VERIFICATION_TOKEN_EXPIRE_HOURS", "24"))
    password_reset_expire_minutes: int = int(os.getenv("PASSWORD_RESET_EXPIRE_MINUTES", "60"))

    # Path or connection string for the SQLite database.  If a relative
    # path is provided, it will be resolved relative to the project root
    # by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "event_hub.db")

    # Outgoing mail metadata.  Messages are queued in the ``email_outbox``
    # table; a separate delivery worker is expected to pick them up.
    email_from: str = os.getenv("EMAIL_FROM", "no-reply@eventhub.local")
    contact_email: str = os.getenv("CONTACT_EMAIL", "support@eventhub.local")
    frontend_url: str = os.getenv("FRONTEND_URL", "http://localhost:3000")

    # Comma-separated list of origins allowed by the CORS middleware.
    cors_origins: str = os.getenv("CORS_ORIGINS", "*")


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables should
# be set before importing this module.
settings = Settings()
