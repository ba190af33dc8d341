"""Pydantic schemas for ledger transaction endpoints."""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field

from ledger.models import TransactionType


class TransactionCreate(BaseModel):
    """Request schema for recording a transaction.

    Buys and sells need ``shares`` and ``price``; dividends need ``amount``.
    Which fields are required depends on ``type`` and is enforced by the
    ledger service so the error can name what is missing.
    """

    type: TransactionType = Field(..., description="buy, sell or dividend")
    date: dt.date = Field(..., description="Economic date of the event")
    shares: Decimal | None = Field(
        default=None, gt=0, max_digits=20, decimal_places=8, description="Shares traded"
    )
    price: Decimal | None = Field(
        default=None, gt=0, max_digits=15, decimal_places=2, description="Price per share"
    )
    amount: Decimal | None = Field(
        default=None,
        gt=0,
        max_digits=15,
        decimal_places=2,
        description="Cash received (dividends only)",
    )
    notes: str | None = None


class TransactionResponse(BaseModel):
    """Response schema for a ledger row."""

    id: str
    holding_id: str
    type: TransactionType
    shares: Decimal | None
    price: Decimal | None
    amount: Decimal
    date: dt.date
    notes: str | None

    model_config = {"from_attributes": True}


class TransactionListResponse(BaseModel):
    """Response for listing a holding's transactions."""

    items: list[TransactionResponse] = Field(default_factory=list)
    total: int


class TransactionDeletedResponse(BaseModel):
    id: str
