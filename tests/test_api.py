"""Tests for service-level endpoints and error payloads."""

import pytest

from ledger._version import VERSION
from ledger.exceptions import (
    ConcurrentModification,
    DeleteFailed,
    HoldingNotFound,
    InsufficientShares,
    InvalidTransaction,
)


@pytest.mark.asyncio
async def test_health(test_client):
    response = await test_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_version(test_client):
    response = await test_client.get("/api/version")
    assert response.status_code == 200
    data = response.json()
    assert data["version"] == VERSION
    assert data["api_version"] == "v1"


def test_error_reasons_and_statuses():
    assert (HoldingNotFound.status_code, HoldingNotFound.reason) == (404, "Investment not found")
    assert InsufficientShares().status_code == 400
    assert ConcurrentModification().status_code == 409
    assert DeleteFailed().status_code == 500
    assert DeleteFailed("Failed to delete investment transaction").reason.endswith("transaction")


def test_missing_fields_message():
    error = InvalidTransaction.missing(["shares", "price"])
    assert error.reason == "Missing required fields: shares, price"
    assert str(error) == error.reason
    assert isinstance(error, ValueError)
