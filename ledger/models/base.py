"""Shared column helpers for the models."""

import uuid
from datetime import UTC, datetime


def utcnow() -> datetime:
    """Naive UTC timestamp (SQLite stores DateTime without a zone)."""
    return datetime.now(UTC).replace(tzinfo=None)


def generate_id() -> str:
    """Generate a unique row ID."""
    return str(uuid.uuid4())
