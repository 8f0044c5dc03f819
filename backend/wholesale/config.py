# backend/wholesale/config.py
from __future__ import annotations
import os


def notification_dispatch_mode(backend: str, explicit: str | None = None) -> str:
    """Inline only when the sender is local; network backends wait for the CLI drain."""
    if explicit:
        return explicit
    return "deferred" if backend == "resend" else "inline"


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///wholesale.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Browser origins allowed to call the API (comma separated)
    CORS_ORIGINS = os.environ.get(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    )

    # bcrypt cost factor; only tests should lower it
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Notifications
    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@hemplifefarmers.com")
    EMAIL_FROM = os.environ.get("EMAIL_FROM", "Hemp Life Farmers <noreply@hemplifefarmers.com>")
    NOTIFICATION_BACKEND = os.environ.get("NOTIFICATION_BACKEND", "log")  # log | resend
    RESEND_API_KEY = os.environ.get("RESEND_API_KEY")
    RESEND_API_URL = os.environ.get("RESEND_API_URL", "https://api.resend.com/emails")
    NOTIFICATION_TIMEOUT_SECONDS = float(os.environ.get("NOTIFICATION_TIMEOUT_SECONDS", "10"))
    # inline: deliver right after the triggering commit, inside the request;
    # deferred: leave for `flask notifications dispatch` (run it from cron)
    NOTIFICATION_DISPATCH = notification_dispatch_mode(
        NOTIFICATION_BACKEND, os.environ.get("NOTIFICATION_DISPATCH")
    )
