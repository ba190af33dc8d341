"""Portfolio API endpoints - requires authentication."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ledger import telemetry
from ledger.auth import get_current_user
from ledger.database import get_session
from ledger.exceptions import InvalidQuery
from ledger.models import User
from ledger.schemas.portfolio import (
    AllocationResponse,
    AssetAllocationResponse,
    PerformancePointResponse,
    PerformanceResponse,
    PortfolioSummaryResponse,
)
from ledger.services import portfolio as portfolio_service

router = APIRouter()

MONTH_REGEX = r"^\d{4}-(0[1-9]|1[0-2])$"


@router.get(
    "/portfolio/summary",
    response_model=PortfolioSummaryResponse,
    summary="Get portfolio summary",
)
async def get_portfolio_summary(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> PortfolioSummaryResponse:
    """Get totals across all your holdings.

    **What the numbers mean:**
    - **total_value**: What your holdings are worth right now
    - **total_invested**: What you paid for the shares you still hold
    - **total_gain_loss**: Profit or loss if you sold everything now
    - **day_change** and period returns: not tracked yet, always 0
    """
    summary = await portfolio_service.get_summary(session, user.id)

    telemetry.record_portfolio_value(
        user.id, float(summary.total_value), float(summary.total_gain_loss)
    )

    return PortfolioSummaryResponse(
        total_value=summary.total_value,
        total_invested=summary.total_invested,
        total_gain_loss=summary.total_gain_loss,
        total_return_percent=summary.total_return_percent,
        day_change=summary.day_change,
        day_change_percent=summary.day_change_percent,
        thirty_day_return_percent=summary.thirty_day_return_percent,
        ytd_return_percent=summary.ytd_return_percent,
        number_of_holdings=summary.number_of_holdings,
    )


@router.get(
    "/portfolio/allocation",
    response_model=AllocationResponse,
    summary="Get asset allocation",
)
async def get_portfolio_allocation(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> AllocationResponse:
    """Get portfolio value by asset class, largest first.

    Percentages always add up to exactly 100.
    """
    allocations = await portfolio_service.get_allocation(session, user.id)
    return AllocationResponse(
        allocations=[
            AssetAllocationResponse(
                asset_class=a.asset_class,
                percentage=a.percentage,
                amount=a.amount,
                color=a.color,
            )
            for a in allocations
        ]
    )


@router.get(
    "/portfolio/performance",
    response_model=PerformanceResponse,
    summary="Get monthly portfolio value",
)
async def get_portfolio_performance(
    from_month: str | None = Query(
        default=None, alias="from", pattern=MONTH_REGEX, description="First month (YYYY-MM)"
    ),
    to_month: str | None = Query(
        default=None, alias="to", pattern=MONTH_REGEX, description="Last month (YYYY-MM)"
    ),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> PerformanceResponse:
    """Get one value per month, defaulting to the last twelve months.

    Values use today's prices and share counts for every month; holdings
    count from their purchase date onward.
    """
    try:
        points = await portfolio_service.get_performance(
            session, user.id, from_month=from_month, to_month=to_month
        )
    except InvalidQuery as e:
        raise HTTPException(status_code=e.status_code, detail=e.reason)

    return PerformanceResponse(
        performance=[PerformancePointResponse(date=p.date, value=p.value) for p in points]
    )
