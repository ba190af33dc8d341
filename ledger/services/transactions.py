"""Transaction ledger - storage for buy/sell/dividend rows.

This module only reads and writes ledger rows. Keeping the owning
holding's aggregate in step is the ledger coordinator's job.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ledger.models import Holding, Transaction, TransactionType
from ledger.money import round2


def add_transaction(
    session: AsyncSession,
    holding: Holding,
    tx_type: TransactionType,
    amount: Decimal,
    tx_date: date,
    shares: Decimal | None = None,
    price: Decimal | None = None,
    notes: str | None = None,
) -> Transaction:
    """Stage a new ledger row for a holding (caller commits).

    The row inherits the holding's owner.
    """
    tx = Transaction(
        holding_id=holding.id,
        user_id=holding.user_id,
        type=tx_type,
        shares=shares,
        price=price,
        amount=amount,
        date=tx_date,
        notes=notes,
    )
    session.add(tx)
    return tx


async def get_transaction(
    session: AsyncSession, tx_id: str, user_id: str
) -> Transaction | None:
    """Get a ledger row owned by a user.

    Args:
        session: Database session
        tx_id: Transaction ID
        user_id: User ID (for ownership verification)

    Returns:
        Transaction or None if not found or not owned by the user
    """
    result = await session.execute(
        select(Transaction).where(Transaction.id == tx_id, Transaction.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def list_transactions(
    session: AsyncSession, holding_id: str, user_id: str
) -> list[Transaction]:
    """Get a holding's ledger, newest economic date first."""
    result = await session.execute(
        select(Transaction)
        .where(Transaction.holding_id == holding_id, Transaction.user_id == user_id)
        .order_by(Transaction.date.desc(), Transaction.created_at.desc())
    )
    return list(result.scalars().all())


async def list_chronological(
    session: AsyncSession, holding_id: str, user_id: str
) -> list[Transaction]:
    """Get a holding's ledger, oldest first (replay order)."""
    result = await session.execute(
        select(Transaction)
        .where(Transaction.holding_id == holding_id, Transaction.user_id == user_id)
        .order_by(Transaction.date.asc(), Transaction.created_at.asc())
    )
    return list(result.scalars().all())


async def count_for_holding(session: AsyncSession, holding_id: str, user_id: str) -> int:
    return await session.scalar(
        select(func.count(Transaction.id)).where(
            Transaction.holding_id == holding_id, Transaction.user_id == user_id
        )
    )


async def list_by_type(
    session: AsyncSession, holding_id: str, user_id: str, tx_type: TransactionType
) -> list[Transaction]:
    result = await session.execute(
        select(Transaction).where(
            Transaction.holding_id == holding_id,
            Transaction.user_id == user_id,
            Transaction.type == tx_type,
        )
    )
    return list(result.scalars().all())


async def sum_amount_by_type(
    session: AsyncSession, holding_id: str, user_id: str, tx_type: TransactionType
) -> Decimal:
    """Total ``amount`` of a holding's rows of one type (0 if none)."""
    total = await session.scalar(
        select(func.sum(Transaction.amount)).where(
            Transaction.holding_id == holding_id,
            Transaction.user_id == user_id,
            Transaction.type == tx_type,
        )
    )
    return round2(Decimal(str(total)) if total is not None else Decimal("0"))


async def delete_transaction_row(session: AsyncSession, tx_id: str, user_id: str) -> int:
    """Delete one ledger row. Returns the number of rows removed."""
    result = await session.execute(
        delete(Transaction).where(Transaction.id == tx_id, Transaction.user_id == user_id)
    )
    return result.rowcount


async def delete_transactions_for_holding(
    session: AsyncSession, holding_id: str, user_id: str
) -> int:
    """Delete a holding's whole ledger. Returns the number of rows removed."""
    result = await session.execute(
        delete(Transaction).where(
            Transaction.holding_id == holding_id, Transaction.user_id == user_id
        )
    )
    return result.rowcount
