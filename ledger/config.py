"""
Runtime configuration for the investment ledger.

All settings come from environment variables with local-development
defaults, so the service runs out of the box against a SQLite file.
"""

import os


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


# Database URL, defaults to SQLite for local development
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./investment_ledger.db")

# Set SQLALCHEMY_ECHO=1 to enable SQL logging
SQLALCHEMY_ECHO = os.getenv("SQLALCHEMY_ECHO") == "1"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# OpenTelemetry export
OTLP_ENABLED = os.getenv("OTLP_ENABLED", "true").lower() != "false"
OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT", "http://localhost:4318/v1/metrics")
OTLP_EXPORT_INTERVAL = _int_env("OTLP_EXPORT_INTERVAL", 5000)

# Holding list pagination
DEFAULT_PAGE_SIZE = _int_env("DEFAULT_PAGE_SIZE", 20)
MAX_PAGE_SIZE = _int_env("MAX_PAGE_SIZE", 100)

# Months before the current one covered by the default performance window
PERFORMANCE_WINDOW_MONTHS = _int_env("PERFORMANCE_WINDOW_MONTHS", 12)
