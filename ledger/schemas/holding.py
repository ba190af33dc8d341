"""Pydantic schemas for holding endpoints."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from ledger.models import AssetClass, InvestmentType


# ============================================================================
# Requests
# ============================================================================


class HoldingCreate(BaseModel):
    """Request schema for creating a holding."""

    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    ticker: str | None = Field(default=None, max_length=20, description="Ticker symbol")
    asset_class: AssetClass = Field(..., description="Allocation bucket")
    type: InvestmentType = Field(..., description="Instrument type")
    shares: Decimal = Field(
        ..., ge=0, max_digits=20, decimal_places=8, description="Shares currently held"
    )
    purchase_price: Decimal = Field(
        ..., ge=0, max_digits=15, decimal_places=2, description="Average price paid per share"
    )
    current_price: Decimal = Field(
        ..., ge=0, max_digits=15, decimal_places=2, description="Latest market price"
    )
    purchase_date: date = Field(..., description="Date of first purchase")
    account_id: str = Field(..., min_length=1, description="Owning account reference")
    currency: str = Field(..., min_length=3, max_length=3, description="ISO currency code")
    notes: str | None = None
    dividend_yield: Decimal | None = Field(default=None, ge=0, max_digits=7, decimal_places=4)
    sector: str | None = Field(default=None, max_length=100)
    region: str | None = Field(default=None, max_length=100)

    @field_validator("ticker", "currency")
    @classmethod
    def uppercase(cls, v: str | None) -> str | None:
        return v.upper() if v else v


class HoldingUpdate(BaseModel):
    """Request schema for patching a holding. Omitted fields are left alone."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    ticker: str | None = Field(default=None, max_length=20)
    asset_class: AssetClass | None = None
    type: InvestmentType | None = None
    shares: Decimal | None = Field(default=None, ge=0, max_digits=20, decimal_places=8)
    purchase_price: Decimal | None = Field(default=None, ge=0, max_digits=15, decimal_places=2)
    current_price: Decimal | None = Field(default=None, ge=0, max_digits=15, decimal_places=2)
    purchase_date: date | None = None
    account_id: str | None = Field(default=None, min_length=1)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    notes: str | None = None
    dividend_yield: Decimal | None = Field(default=None, ge=0, max_digits=7, decimal_places=4)
    sector: str | None = Field(default=None, max_length=100)
    region: str | None = Field(default=None, max_length=100)

    @field_validator(
        "name",
        "asset_class",
        "type",
        "shares",
        "purchase_price",
        "current_price",
        "purchase_date",
        "account_id",
        "currency",
    )
    @classmethod
    def not_null(cls, v):
        """Required columns may be omitted but not cleared."""
        if v is None:
            raise ValueError("field cannot be null")
        return v

    @field_validator("ticker", "currency")
    @classmethod
    def uppercase(cls, v: str | None) -> str | None:
        return v.upper() if v else v


# ============================================================================
# Responses
# ============================================================================


class HoldingResponse(BaseModel):
    """A holding with values derived fresh on every read."""

    id: str
    name: str
    ticker: str | None
    asset_class: AssetClass
    type: InvestmentType
    shares: Decimal
    average_cost: Decimal = Field(..., description="Weighted average cost per share")
    current_price: Decimal
    purchase_date: date
    account_id: str
    currency: str
    notes: str | None
    dividend_yield: Decimal | None
    sector: str | None
    region: str | None
    created_at: datetime
    updated_at: datetime

    # Derived
    current_value: Decimal = Field(..., description="shares x current price")
    total_invested: Decimal = Field(..., description="shares x average cost")
    gain_loss: Decimal = Field(..., description="current value - total invested")
    return_percent: Decimal = Field(..., description="gain/loss as % of invested")


class HoldingListResponse(BaseModel):
    """Paginated holdings."""

    items: list[HoldingResponse] = Field(default_factory=list)
    total: int
    page: int
    limit: int
    pages: int


class HoldingDeletedResponse(BaseModel):
    """Result of a cascade delete."""

    id: str
    transactions_deleted: int
