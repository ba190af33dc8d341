"""Ledger audit - compare a holding's cached aggregate with its ledger.

The holding's ``shares``/``average_cost`` are maintained incrementally.
Replaying the ledger through the cost-basis engine, starting from the
opening position entered when the holding was created, re-derives them
from scratch. A difference means the two have drifted, either through a
direct field edit after ledger activity or a buy reversed after later
activity.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from ledger.exceptions import InsufficientShares
from ledger.services import cost_basis, holdings, transactions

logger = logging.getLogger(__name__)


@dataclass
class LedgerAudit:
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


async def audit_holding(
    session: AsyncSession, holding_id: str, user_id: str
) -> LedgerAudit:
    """Replay a holding's ledger and compare it with the cached aggregate.

    Raises:
        HoldingNotFound: If the holding is absent or not owned by the user
    """
    holding = await holdings.require_holding(session, holding_id, user_id)
    history = await transactions.list_chronological(session, holding.id, user_id)

    audit = LedgerAudit(
        holding_id=holding.id,
        transaction_count=len(history),
        opening_shares=holding.opening_shares,
        opening_cost=holding.opening_cost,
        cached_shares=holding.shares,
        cached_average_cost=holding.average_cost,
        replayed_shares=None,
        replayed_average_cost=None,
        in_sync=False,
    )

    opening = cost_basis.Position(
        shares=holding.opening_shares, average_cost=holding.opening_cost
    )
    try:
        replayed = cost_basis.replay(
            ((tx.type, tx.shares, tx.price) for tx in history), start=opening
        )
    except InsufficientShares:
        audit.replay_error = "Ledger sells more shares than the holding held"
        return audit

    audit.replayed_shares = replayed.shares
    audit.replayed_average_cost = replayed.average_cost
    audit.in_sync = (
        replayed.shares == holding.shares
        and replayed.average_cost == holding.average_cost
    )
    return audit


async def reconcile_holding(
    session: AsyncSession, holding_id: str, user_id: str
) -> LedgerAudit:
    """Overwrite a drifted holding aggregate with its replayed ledger values.

    The opening position is part of the replay, so it survives. Holdings
    whose ledger cannot be replayed are left untouched.

    Returns:
        The audit taken before any change
    """
    audit = await audit_holding(session, holding_id, user_id)
    if audit.in_sync or audit.replayed_shares is None:
        return audit

    holding = await holdings.require_holding(session, holding_id, user_id)
    async with holdings.holding_write(session):
        holding.shares = audit.replayed_shares
        holding.average_cost = audit.replayed_average_cost

    logger.warning(
        "Holding aggregate reconciled from ledger",
        extra={
            "holding_id": holding_id,
            "cached_shares": str(audit.cached_shares),
            "replayed_shares": str(audit.replayed_shares),
            "cached_average_cost": str(audit.cached_average_cost),
            "replayed_average_cost": str(audit.replayed_average_cost),
        },
    )
    return audit
