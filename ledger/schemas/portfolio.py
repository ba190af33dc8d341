"""Pydantic schemas for per-holding returns and portfolio endpoints."""

from decimal import Decimal

from pydantic import BaseModel, Field

from ledger.models import AssetClass


class HoldingReturnsResponse(BaseModel):
    """Return breakdown for a single holding."""

    holding_id: str
    total_invested: Decimal = Field(..., description="shares x average cost")
    current_value: Decimal = Field(..., description="shares x current price")
    unrealized_gain_loss: Decimal
    unrealized_return_percent: Decimal
    realized_gain_loss: Decimal = Field(
        ..., description="Sell proceeds minus cost at today's average cost"
    )
    dividend_income: Decimal
    total_return: Decimal
    total_return_percent: Decimal


class PortfolioSummaryResponse(BaseModel):
    """Response schema for portfolio summary."""

    total_value: Decimal = Field(..., description="Market value of all holdings")
    total_invested: Decimal = Field(..., description="Cost basis of all holdings")
    total_gain_loss: Decimal
    total_return_percent: Decimal
    # No price history yet; always zero
    day_change: Decimal
    day_change_percent: Decimal
    thirty_day_return_percent: Decimal
    ytd_return_percent: Decimal
    number_of_holdings: int


class AssetAllocationResponse(BaseModel):
    """One allocation bucket."""

    asset_class: AssetClass
    percentage: Decimal
    amount: Decimal
    color: str = Field(..., description="Chart color for the bucket")


class AllocationResponse(BaseModel):
    allocations: list[AssetAllocationResponse] = Field(default_factory=list)


class PerformancePointResponse(BaseModel):
    date: str = Field(..., description="Month as YYYY-MM")
    value: Decimal


class PerformanceResponse(BaseModel):
    performance: list[PerformancePointResponse] = Field(default_factory=list)


class LedgerAuditResponse(BaseModel):
    """Cached holding aggregate compared with a replay of its ledger."""

    holding_id: str
    transaction_count: int
    opening_shares: Decimal
    opening_cost: Decimal
    cached_shares: Decimal
    cached_average_cost: Decimal
    replayed_shares: Decimal | None
    replayed_average_cost: Decimal | None
    in_sync: bool
    replay_error: str | None = None
