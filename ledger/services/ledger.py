"""Ledger coordinator - mutations that keep a holding in step with its ledger.

Each operation is a read-modify-write across the holding and its
transaction rows:

1. Recording a transaction appends a row and applies the cost-basis engine
   to the holding's cached ``(shares, average_cost)``
2. Deleting a transaction reverses its effect on the holding, then removes
   the row
3. Deleting a holding removes its whole ledger first

Every operation commits as a single database transaction, and the
holding's version counter turns a concurrent write to the same holding
into ConcurrentModification instead of a lost update.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ledger import telemetry
from ledger.exceptions import (
    DeleteFailed,
    InsufficientShares,
    InvalidTransaction,
    TransactionNotFound,
)
from ledger.models import Holding, Transaction, TransactionType
from ledger.money import ZERO, round2
from ledger.schemas.transaction import TransactionCreate
from ledger.services import cost_basis, holdings, transactions
from ledger.services.cost_basis import Position

logger = logging.getLogger(__name__)


def _position(holding: Holding) -> Position:
    return Position(shares=holding.shares, average_cost=holding.average_cost)


def _store_position(holding: Holding, position: Position) -> None:
    holding.shares = position.shares
    holding.average_cost = position.average_cost


async def record_transaction(
    session: AsyncSession, holding_id: str, user_id: str, data: TransactionCreate
) -> Transaction:
    """Record a buy, sell or dividend against a holding.

    Args:
        session: Database session
        holding_id: Holding the transaction belongs to
        user_id: Authenticated user
        data: Transaction data

    Returns:
        The created transaction

    Raises:
        HoldingNotFound: If the holding is absent or not owned by the user
        InvalidTransaction: If fields required by the type are missing
        InsufficientShares: If a sell exceeds the shares currently held
        ConcurrentModification: If the holding changed while recording
    """
    holding = await holdings.require_holding(session, holding_id, user_id)

    shares, price = data.shares, data.price
    if data.type == TransactionType.DIVIDEND:
        if data.amount is None:
            raise InvalidTransaction.missing(["amount"])
        amount = round2(data.amount)
        shares = price = None
    else:
        missing = [name for name, value in (("shares", shares), ("price", price)) if not value]
        if missing:
            raise InvalidTransaction.missing(missing)
        amount = round2(shares * price)
        if amount <= ZERO:
            raise InvalidTransaction("Transaction amount rounds to zero")

    # Sells are checked against the cached share count, not the ledger
    try:
        new_position = cost_basis.apply(_position(holding), data.type, shares, price)
    except InsufficientShares:
        logger.warning(
            "Sell rejected: insufficient shares",
            extra={
                "user_id": user_id,
                "holding_id": holding.id,
                "requested": str(shares),
                "held": str(holding.shares),
            },
        )
        telemetry.record_sell_rejected()
        raise

    async with holdings.holding_write(session):
        tx = transactions.add_transaction(
            session,
            holding,
            data.type,
            amount,
            data.date,
            shares=shares,
            price=price,
            notes=data.notes,
        )
        _store_position(holding, new_position)

    await session.refresh(tx)

    telemetry.record_transaction(data.type.value)
    logger.info(
        "Transaction recorded",
        extra={
            "user_id": user_id,
            "holding_id": holding.id,
            "transaction_id": tx.id,
            "type": data.type.value,
            "shares": str(new_position.shares),
            "average_cost": str(new_position.average_cost),
        },
    )
    return tx


async def delete_transaction(
    session: AsyncSession, holding_id: str, tx_id: str, user_id: str
) -> None:
    """Delete a transaction and reverse its effect on the holding.

    Args:
        session: Database session
        holding_id: Holding the transaction should belong to
        tx_id: Transaction to delete
        user_id: Authenticated user

    Raises:
        HoldingNotFound: If the holding is absent or not owned by the user
        TransactionNotFound: If the transaction is absent or belongs elsewhere
        DeleteFailed: If the row vanished before it could be deleted
        ConcurrentModification: If the holding changed while deleting
    """
    holding = await holdings.require_holding(session, holding_id, user_id)

    tx = await transactions.get_transaction(session, tx_id, user_id)
    if tx is None or tx.holding_id != holding.id:
        raise TransactionNotFound()

    tx_type = tx.type
    new_position = cost_basis.reverse(_position(holding), tx_type, tx.shares, tx.price)

    async with holdings.holding_write(session):
        _store_position(holding, new_position)
        deleted = await transactions.delete_transaction_row(session, tx_id, user_id)
        if deleted != 1:
            logger.error(
                "Transaction delete affected unexpected row count",
                extra={"transaction_id": tx_id, "rows": deleted},
            )
            raise DeleteFailed("Failed to delete investment transaction")

    telemetry.record_reversal(tx_type.value)
    logger.info(
        "Transaction reversed",
        extra={
            "user_id": user_id,
            "holding_id": holding_id,
            "transaction_id": tx_id,
            "type": tx_type.value,
            "shares": str(new_position.shares),
            "average_cost": str(new_position.average_cost),
        },
    )


async def delete_holding(session: AsyncSession, holding_id: str, user_id: str) -> int:
    """Delete a holding together with every transaction in its ledger.

    Returns:
        Number of transaction rows removed

    Raises:
        HoldingNotFound: If the holding is absent or not owned by the user
        DeleteFailed: If the holding row could not be deleted (nothing is
            committed in that case)
    """
    holding = await holdings.require_holding(session, holding_id, user_id)

    async with holdings.holding_write(session):
        removed = await transactions.delete_transactions_for_holding(
            session, holding.id, user_id
        )
        deleted = await holdings.delete_holding_row(session, holding.id, user_id)
        if deleted != 1:
            logger.error(
                "Holding delete affected unexpected row count",
                extra={"holding_id": holding_id, "rows": deleted},
            )
            raise DeleteFailed()

    telemetry.record_holding_deleted(removed)
    logger.info(
        "Holding deleted",
        extra={"user_id": user_id, "holding_id": holding_id, "transactions_deleted": removed},
    )
    return removed


async def list_holding_transactions(
    session: AsyncSession, holding_id: str, user_id: str
) -> list[Transaction]:
    """Get a holding's ledger, newest first.

    Raises:
        HoldingNotFound: If the holding is absent or not owned by the user
    """
    holding = await holdings.require_holding(session, holding_id, user_id)
    return await transactions.list_transactions(session, holding.id, user_id)
