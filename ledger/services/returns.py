"""Returns service - unrealized, realized and dividend returns for a holding."""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from ledger.models import Holding, Transaction, TransactionType
from ledger.money import ZERO, percent_of, round2
from ledger.services import holdings, transactions


@dataclass
class HoldingReturns:
    """Return breakdown for one holding."""

    holding_id: str
    total_invested: Decimal
    current_value: Decimal
    unrealized_gain_loss: Decimal
    unrealized_return_percent: Decimal
    realized_gain_loss: Decimal
    dividend_income: Decimal
    total_return: Decimal
    total_return_percent: Decimal


def realized_gain_loss(sells: list[Transaction], average_cost: Decimal) -> Decimal:
    """Sum of sale proceeds minus cost, priced at ``average_cost``.

    Every historical sell is costed at today's average, not the average in
    effect when it happened. This is not lot accounting.
    """
    total = ZERO
    for tx in sells:
        total += tx.amount - (tx.shares or ZERO) * average_cost
    return total


def compute_returns(
    holding: Holding, sells: list[Transaction], dividend_income: Decimal
) -> HoldingReturns:
    """Combine a holding's cached aggregate with its sell and dividend history."""
    current_value = holding.shares * holding.current_price
    total_invested = holding.shares * holding.average_cost
    unrealized = current_value - total_invested
    realized = realized_gain_loss(sells, holding.average_cost)
    total_return = unrealized + realized + dividend_income

    return HoldingReturns(
        holding_id=holding.id,
        total_invested=round2(total_invested),
        current_value=round2(current_value),
        unrealized_gain_loss=round2(unrealized),
        unrealized_return_percent=percent_of(unrealized, total_invested),
        realized_gain_loss=round2(realized),
        dividend_income=round2(dividend_income),
        total_return=round2(total_return),
        total_return_percent=percent_of(total_return, total_invested),
    )


async def get_returns(
    session: AsyncSession, holding_id: str, user_id: str
) -> HoldingReturns:
    """Get the return breakdown for a holding.

    Args:
        session: Database session
        holding_id: Holding ID
        user_id: User ID

    Returns:
        Returns computed from the holding and its ledger

    Raises:
        HoldingNotFound: If the holding is absent or not owned by the user
    """
    holding = await holdings.require_holding(session, holding_id, user_id)

    sells = await transactions.list_by_type(
        session, holding.id, user_id, TransactionType.SELL
    )
    dividend_income = await transactions.sum_amount_by_type(
        session, holding.id, user_id, TransactionType.DIVIDEND
    )

    return compute_returns(holding, sells, dividend_income)
