"""Weighted-average cost basis engine.

Pure functions over a holding's ``(shares, average_cost)`` pair:

1. A buy blends its price into the average, weighted by share count
2. A sell removes shares and leaves the average of the rest unchanged
3. Dividends never touch shares or average cost
4. Reversing a buy backs its cost out of the *current* position, so when
   other activity happened after that buy the result only approximates
   the position before it
5. When a position is reversed down to zero shares its average resets to 0

Averages are rounded to cents after every step.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from ledger.exceptions import InsufficientShares
from ledger.models import TransactionType
from ledger.money import ZERO, round2


@dataclass(frozen=True)
class Position:
    """Shares held and their weighted average cost."""

    shares: Decimal
    average_cost: Decimal

    @classmethod
    def empty(cls) -> "Position":
        return cls(shares=ZERO, average_cost=round2(ZERO))


def apply_buy(position: Position, shares: Decimal, price: Decimal) -> Position:
    """Add ``shares`` bought at ``price`` to the position."""
    new_shares = position.shares + shares
    if new_shares > 0:
        total_cost = position.shares * position.average_cost + shares * price
        new_average = round2(total_cost / new_shares)
    else:
        new_average = round2(ZERO)
    return Position(shares=new_shares, average_cost=new_average)


def apply_sell(position: Position, shares: Decimal) -> Position:
    """Remove sold ``shares``; the average cost of the remainder is unchanged.

    Raises:
        InsufficientShares: If more shares are sold than are held
    """
    if shares > position.shares:
        raise InsufficientShares()
    return Position(shares=position.shares - shares, average_cost=position.average_cost)


def apply_dividend(position: Position) -> Position:
    return position


def reverse_buy(
    position: Position, shares: Decimal, price: Decimal | None
) -> Position:
    """Undo a buy of ``shares`` at ``price`` against the current position.

    A missing price falls back to the current average cost.
    """
    remaining = position.shares - shares
    if remaining > 0:
        removed_cost = shares * (price if price is not None else position.average_cost)
        total_cost = position.shares * position.average_cost
        # Clamp at zero
        new_average = max(round2(ZERO), round2((total_cost - removed_cost) / remaining))
    else:
        new_average = round2(ZERO)
    return Position(shares=max(ZERO, remaining), average_cost=new_average)


def reverse_sell(position: Position, shares: Decimal) -> Position:
    """Put sold ``shares`` back; the average cost is unchanged."""
    return Position(shares=position.shares + shares, average_cost=position.average_cost)


def reverse_dividend(position: Position) -> Position:
    return position


def apply(
    position: Position,
    tx_type: TransactionType,
    shares: Decimal | None = None,
    price: Decimal | None = None,
) -> Position:
    """Apply a ledger event of any type to the position."""
    if tx_type == TransactionType.BUY:
        return apply_buy(position, shares, price)
    if tx_type == TransactionType.SELL:
        return apply_sell(position, shares)
    return apply_dividend(position)


def reverse(
    position: Position,
    tx_type: TransactionType,
    shares: Decimal | None = None,
    price: Decimal | None = None,
) -> Position:
    """Undo a ledger event of any type.

    Buy and sell rows without shares leave the position untouched.
    """
    if tx_type == TransactionType.BUY and shares:
        return reverse_buy(position, shares, price)
    if tx_type == TransactionType.SELL and shares:
        return reverse_sell(position, shares)
    return reverse_dividend(position)


def replay(
    events: Iterable[tuple[TransactionType, Decimal | None, Decimal | None]],
    start: Position | None = None,
) -> Position:
    """Fold ``(type, shares, price)`` events, oldest first, onto ``start``.

    ``start`` defaults to an empty position.

    Raises:
        InsufficientShares: If the history sells shares it never bought
    """
    position = start if start is not None else Position.empty()
    for tx_type, shares, price in events:
        position = apply(position, tx_type, shares, price)
    return position
