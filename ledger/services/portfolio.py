"""Portfolio service - cross-holding summary, allocation and performance."""

import calendar
import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from ledger.config import PERFORMANCE_WINDOW_MONTHS
from ledger.exceptions import InvalidQuery
from ledger.models import AssetClass, Holding
from ledger.money import HUNDRED, ZERO, percent_of, round2
from ledger.services import holdings as holdings_service

ASSET_CLASS_COLORS = {
    AssetClass.STOCKS: "#4CAF50",
    AssetClass.BONDS: "#2196F3",
    AssetClass.REAL_ESTATE: "#FFC107",
    AssetClass.CASH: "#9E9E9E",
    AssetClass.ALTERNATIVES: "#9C27B0",
    AssetClass.OTHER: "#607D8B",
}

MONTH_PATTERN = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


@dataclass
class PortfolioSummary:
    """Totals across all of a user's holdings."""

    total_value: Decimal
    total_invested: Decimal
    total_gain_loss: Decimal
    total_return_percent: Decimal
    number_of_holdings: int
    # Require price history; always zero for now
    day_change: Decimal = ZERO
    day_change_percent: Decimal = ZERO
    thirty_day_return_percent: Decimal = ZERO
    ytd_return_percent: Decimal = ZERO


@dataclass
class AssetAllocation:
    """Share of portfolio value held in one asset class."""

    asset_class: AssetClass
    percentage: Decimal
    amount: Decimal
    color: str


@dataclass
class PerformancePoint:
    """Portfolio value at one month."""

    date: str  # YYYY-MM
    value: Decimal


# ============================================================================
# Pure calculations
# ============================================================================


def summarize(holdings: list[Holding]) -> PortfolioSummary:
    total_value = sum((h.shares * h.current_price for h in holdings), ZERO)
    total_invested = sum((h.shares * h.average_cost for h in holdings), ZERO)
    total_gain_loss = total_value - total_invested

    return PortfolioSummary(
        total_value=round2(total_value),
        total_invested=round2(total_invested),
        total_gain_loss=round2(total_gain_loss),
        total_return_percent=percent_of(total_gain_loss, total_invested),
        number_of_holdings=len(holdings),
    )


def allocate(holdings: list[Holding]) -> list[AssetAllocation]:
    """Bucket market value by asset class, largest bucket first.

    Percentages are rounded to cents and then nudged so they sum to exactly
    100: any rounding residual is added to the largest bucket.
    """
    buckets: dict[AssetClass, Decimal] = {}
    total_value = ZERO
    for h in holdings:
        value = h.shares * h.current_price
        buckets[h.asset_class] = buckets.get(h.asset_class, ZERO) + value
        total_value += value

    allocations = [
        AssetAllocation(
            asset_class=asset_class,
            percentage=percent_of(amount, total_value),
            amount=round2(amount),
            color=ASSET_CLASS_COLORS.get(asset_class, ASSET_CLASS_COLORS[AssetClass.OTHER]),
        )
        for asset_class, amount in buckets.items()
    ]
    allocations.sort(key=lambda a: a.amount, reverse=True)

    if allocations:
        percentage_sum = sum((a.percentage for a in allocations), ZERO)
        if percentage_sum != HUNDRED and percentage_sum > 0:
            allocations[0].percentage += round2(HUNDRED - percentage_sum)

    return allocations


def parse_month(value: str) -> date:
    """Parse ``YYYY-MM`` into the first day of that month.

    Raises:
        InvalidQuery: If the value is not a valid month
    """
    match = MONTH_PATTERN.match(value)
    if not match:
        raise InvalidQuery(f"Invalid month: {value}")
    return date(int(match.group(1)), int(match.group(2)), 1)


def add_months(month: date, count: int) -> date:
    """Shift a first-of-month date by ``count`` months (may be negative)."""
    index = month.year * 12 + (month.month - 1) + count
    return date(index // 12, index % 12 + 1, 1)


def month_end(month: date) -> date:
    return month.replace(day=calendar.monthrange(month.year, month.month)[1])


def performance_series(
    holdings: list[Holding], start: date, end: date
) -> list[PerformancePoint]:
    """Monthly portfolio value from ``start`` to ``end`` inclusive.

    Each month counts the holdings purchased by its last day at today's
    share count and today's price; there is no price history to do better.
    """
    points = []
    cursor = start.replace(day=1)
    last = end.replace(day=1)
    while cursor <= last:
        cutoff = month_end(cursor)
        value = sum(
            (h.shares * h.current_price for h in holdings if h.purchase_date <= cutoff),
            ZERO,
        )
        points.append(PerformancePoint(date=cursor.strftime("%Y-%m"), value=round2(value)))
        cursor = add_months(cursor, 1)
    return points


# ============================================================================
# Service functions
# ============================================================================


async def get_summary(session: AsyncSession, user_id: str) -> PortfolioSummary:
    """Get portfolio totals for a user."""
    holdings = await holdings_service.list_all_holdings(session, user_id)
    return summarize(holdings)


async def get_allocation(session: AsyncSession, user_id: str) -> list[AssetAllocation]:
    """Get asset-class allocation for a user."""
    holdings = await holdings_service.list_all_holdings(session, user_id)
    return allocate(holdings)


async def get_performance(
    session: AsyncSession,
    user_id: str,
    from_month: str | None = None,
    to_month: str | None = None,
    today: date | None = None,
) -> list[PerformancePoint]:
    """Get the monthly value series for a user.

    Args:
        session: Database session
        user_id: User ID
        from_month: First month (YYYY-MM), default PERFORMANCE_WINDOW_MONTHS
            months before the current one
        to_month: Last month (YYYY-MM), default the current month
        today: Reference date (defaults to today)

    Returns:
        One point per month; empty if ``from_month`` is after ``to_month``

    Raises:
        InvalidQuery: If a month is malformed
    """
    current = (today or date.today()).replace(day=1)
    start = parse_month(from_month) if from_month else add_months(current, -PERFORMANCE_WINDOW_MONTHS)
    end = parse_month(to_month) if to_month else current

    holdings = await holdings_service.list_all_holdings(session, user_id)
    return performance_series(holdings, start, end)
