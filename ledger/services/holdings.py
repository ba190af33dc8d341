"""Holding service - persistence and valuation of investment positions."""

import logging
import math
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from ledger.config import DEFAULT_PAGE_SIZE
from ledger.exceptions import ConcurrentModification, HoldingNotFound, InvalidQuery
from ledger.models import AssetClass, Holding, InvestmentType
from ledger.money import percent_of, round2
from ledger.schemas.holding import HoldingCreate, HoldingUpdate
from ledger.services import transactions

logger = logging.getLogger(__name__)

# Columns a client may sort the holding list by
SORTABLE_FIELDS = {
    "name": Holding.name,
    "ticker": Holding.ticker,
    "asset_class": Holding.asset_class,
    "type": Holding.type,
    "shares": Holding.shares,
    "average_cost": Holding.average_cost,
    "current_price": Holding.current_price,
    "purchase_date": Holding.purchase_date,
    "created_at": Holding.created_at,
    "updated_at": Holding.updated_at,
}


@dataclass
class HoldingValuation:
    """Values derived from a holding's cached aggregate and current price."""

    current_value: Decimal
    total_invested: Decimal
    gain_loss: Decimal
    return_percent: Decimal


@dataclass
class HoldingQuery:
    """Filters, sorting and pagination for listing holdings."""

    asset_class: str | None = None  # comma-separated AssetClass values
    type: str | None = None  # comma-separated InvestmentType values
    account_id: str | None = None
    search: str | None = None
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    sort: str | None = None
    order: str = "desc"


@dataclass
class HoldingPage:
    """One page of holdings."""

    items: list[Holding] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    pages: int = 1


def value_holding(holding: Holding) -> HoldingValuation:
    """Compute market value and unrealized gain/loss for a holding."""
    current_value = holding.shares * holding.current_price
    total_invested = holding.shares * holding.average_cost
    gain_loss = current_value - total_invested
    return HoldingValuation(
        current_value=round2(current_value),
        total_invested=round2(total_invested),
        gain_loss=round2(gain_loss),
        return_percent=percent_of(gain_loss, total_invested),
    )


@asynccontextmanager
async def holding_write(session: AsyncSession):
    """Run a block of writes as one database transaction.

    Commits when the block finishes and rolls back if it raises. A lost
    optimistic lock on a holding (its ``version`` moved since it was read)
    is reported as ConcurrentModification.
    """
    try:
        yield
        await session.commit()
    except StaleDataError:
        await session.rollback()
        raise ConcurrentModification() from None
    except Exception:
        await session.rollback()
        raise


async def create_holding(
    session: AsyncSession, user_id: str, data: HoldingCreate
) -> Holding:
    """Create a new holding for a user.

    The purchase price becomes the initial weighted average cost. No
    ledger row is written for the opening position; it is kept in
    ``opening_shares``/``opening_cost`` so ledger replays can start from it.

    Args:
        session: Database session
        user_id: Owner of the holding
        data: Holding creation data

    Returns:
        The created holding
    """
    holding = Holding(
        user_id=user_id,
        name=data.name,
        ticker=data.ticker,
        asset_class=data.asset_class,
        type=data.type,
        shares=data.shares,
        average_cost=round2(data.purchase_price),
        opening_shares=data.shares,
        opening_cost=round2(data.purchase_price),
        current_price=data.current_price,
        purchase_date=data.purchase_date,
        account_id=data.account_id,
        currency=data.currency,
        notes=data.notes,
        dividend_yield=data.dividend_yield,
        sector=data.sector,
        region=data.region,
    )
    session.add(holding)
    await session.commit()
    await session.refresh(holding)

    logger.info(
        "Holding created",
        extra={"user_id": user_id, "holding_id": holding.id, "type": holding.type.value},
    )
    return holding


async def get_holding(
    session: AsyncSession, holding_id: str, user_id: str
) -> Holding | None:
    """Get a holding owned by a user.

    Args:
        session: Database session
        holding_id: Holding ID
        user_id: User ID (for ownership verification)

    Returns:
        Holding or None if not found or not owned by the user
    """
    result = await session.execute(
        select(Holding).where(Holding.id == holding_id, Holding.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def require_holding(
    session: AsyncSession, holding_id: str, user_id: str
) -> Holding:
    """Like get_holding, but raises HoldingNotFound instead of returning None."""
    holding = await get_holding(session, holding_id, user_id)
    if holding is None:
        raise HoldingNotFound()
    return holding


def _parse_enum_list(raw: str, enum_cls, label: str) -> list:
    values = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            values.append(enum_cls(part))
        except ValueError:
            raise InvalidQuery(f"Invalid {label}: {part}") from None
    return values


async def list_holdings(
    session: AsyncSession, user_id: str, query: HoldingQuery
) -> HoldingPage:
    """List a user's holdings with filtering, sorting and pagination.

    Args:
        session: Database session
        user_id: User ID
        query: Filters and paging options

    Returns:
        The requested page plus totals

    Raises:
        InvalidQuery: On unknown sort fields, orders or enum values
    """
    filters = [Holding.user_id == user_id]

    if query.asset_class:
        classes = _parse_enum_list(query.asset_class, AssetClass, "asset class")
        if classes:
            filters.append(Holding.asset_class.in_(classes))
    if query.type:
        types = _parse_enum_list(query.type, InvestmentType, "investment type")
        if types:
            filters.append(Holding.type.in_(types))
    if query.account_id:
        filters.append(Holding.account_id == query.account_id)
    if query.search:
        filters.append(
            or_(
                Holding.name.icontains(query.search, autoescape=True),
                Holding.ticker.icontains(query.search, autoescape=True),
            )
        )

    if query.order not in ("asc", "desc"):
        raise InvalidQuery(f"Invalid sort order: {query.order}")
    if query.sort:
        column = SORTABLE_FIELDS.get(query.sort)
        if column is None:
            raise InvalidQuery(f"Invalid sort field: {query.sort}")
        ordering = column.asc() if query.order == "asc" else column.desc()
    else:
        ordering = Holding.purchase_date.desc()

    total = await session.scalar(
        select(func.count()).select_from(Holding).where(*filters)
    )

    result = await session.execute(
        select(Holding)
        .where(*filters)
        .order_by(ordering, Holding.id)
        .offset((query.page - 1) * query.limit)
        .limit(query.limit)
    )

    return HoldingPage(
        items=list(result.scalars().all()),
        total=total,
        page=query.page,
        limit=query.limit,
        pages=max(1, math.ceil(total / query.limit)),
    )


async def list_all_holdings(session: AsyncSession, user_id: str) -> list[Holding]:
    """Get every holding a user owns."""
    result = await session.execute(
        select(Holding).where(Holding.user_id == user_id).order_by(Holding.purchase_date)
    )
    return list(result.scalars().all())


async def update_holding(
    session: AsyncSession, holding: Holding, data: HoldingUpdate
) -> Holding:
    """Patch the fields present in ``data``.

    ``purchase_price`` overwrites the weighted average cost. While the
    holding has no ledger rows, edits to ``shares`` or ``purchase_price``
    also move the opening position. Once it has rows, such edits diverge
    from the ledger and the audit reports them. An empty patch returns the
    holding untouched.

    Raises:
        ConcurrentModification: If the holding changed since it was read
    """
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        return holding

    if "purchase_price" in changes:
        changes["average_cost"] = round2(changes.pop("purchase_price"))

    if "shares" in changes or "average_cost" in changes:
        if not await transactions.count_for_holding(session, holding.id, holding.user_id):
            changes["opening_shares"] = changes.get("shares", holding.shares)
            changes["opening_cost"] = changes.get("average_cost", holding.average_cost)

    async with holding_write(session):
        for name, value in changes.items():
            setattr(holding, name, value)

    await session.refresh(holding)
    logger.info(
        "Holding updated",
        extra={"holding_id": holding.id, "fields": sorted(changes)},
    )
    return holding


async def delete_holding_row(session: AsyncSession, holding_id: str, user_id: str) -> int:
    """Delete the holding row itself. Returns the number of rows removed."""
    result = await session.execute(
        delete(Holding).where(Holding.id == holding_id, Holding.user_id == user_id)
    )
    return result.rowcount
