"""Holding and ledger endpoints - requires authentication."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ledger.auth import get_current_user
from ledger.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ledger.database import get_session
from ledger.exceptions import LedgerError
from ledger.models import Holding, User
from ledger.schemas.holding import (
    HoldingCreate,
    HoldingDeletedResponse,
    HoldingListResponse,
    HoldingResponse,
    HoldingUpdate,
)
from ledger.schemas.portfolio import HoldingReturnsResponse, LedgerAuditResponse
from ledger.schemas.transaction import (
    TransactionCreate,
    TransactionDeletedResponse,
    TransactionListResponse,
    TransactionResponse,
)
from ledger.services import audit as audit_service
from ledger.services import holdings as holdings_service
from ledger.services import ledger as ledger_service
from ledger.services import returns as returns_service

router = APIRouter()


def http_error(error: LedgerError) -> HTTPException:
    """Translate a domain error into its HTTP response."""
    return HTTPException(status_code=error.status_code, detail=error.reason)


def holding_response(holding: Holding) -> HoldingResponse:
    valuation = holdings_service.value_holding(holding)
    return HoldingResponse(
        id=holding.id,
        name=holding.name,
        ticker=holding.ticker,
        asset_class=holding.asset_class,
        type=holding.type,
        shares=holding.shares,
        average_cost=holding.average_cost,
        current_price=holding.current_price,
        purchase_date=holding.purchase_date,
        account_id=holding.account_id,
        currency=holding.currency,
        notes=holding.notes,
        dividend_yield=holding.dividend_yield,
        sector=holding.sector,
        region=holding.region,
        created_at=holding.created_at,
        updated_at=holding.updated_at,
        current_value=valuation.current_value,
        total_invested=valuation.total_invested,
        gain_loss=valuation.gain_loss,
        return_percent=valuation.return_percent,
    )


# ============================================================================
# Holding endpoints
# ============================================================================


@router.get(
    "",
    response_model=HoldingListResponse,
    summary="List my holdings",
)
async def list_holdings(
    asset_class: str | None = Query(
        default=None, description="Comma-separated asset classes"
    ),
    type_filter: str | None = Query(
        default=None, alias="type", description="Comma-separated investment types"
    ),
    account_id: str | None = Query(default=None, description="Filter by account"),
    search: str | None = Query(default=None, description="Match name or ticker"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    sort: str | None = Query(default=None, description="Field to sort by"),
    order: str = Query(default="desc", description="asc or desc"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> HoldingListResponse:
    """Get the authenticated user's holdings.

    Sorted by purchase date (newest first) unless **sort** is given.
    """
    query = holdings_service.HoldingQuery(
        asset_class=asset_class,
        type=type_filter,
        account_id=account_id,
        search=search,
        page=page,
        limit=limit,
        sort=sort,
        order=order,
    )
    try:
        result = await holdings_service.list_holdings(session, user.id, query)
    except LedgerError as e:
        raise http_error(e)

    return HoldingListResponse(
        items=[holding_response(h) for h in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
    )


@router.post(
    "",
    response_model=HoldingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a holding",
)
async def create_holding(
    data: HoldingCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> HoldingResponse:
    """Start tracking a new position.

    - **shares**: Shares currently held (may be 0 and built up with buys)
    - **purchase_price**: Becomes the weighted average cost
    - **current_price**: Latest market price used for valuations
    """
    holding = await holdings_service.create_holding(session, user.id, data)
    return holding_response(holding)


@router.get(
    "/{holding_id}",
    response_model=HoldingResponse,
    summary="Get a holding",
)
async def get_holding(
    holding_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> HoldingResponse:
    try:
        holding = await holdings_service.require_holding(session, holding_id, user.id)
    except LedgerError as e:
        raise http_error(e)
    return holding_response(holding)


@router.put(
    "/{holding_id}",
    response_model=HoldingResponse,
    summary="Update a holding",
)
async def update_holding(
    holding_id: str,
    data: HoldingUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> HoldingResponse:
    """Patch descriptive fields, refresh the price, or correct the position.

    Only fields present in the body are changed.
    """
    try:
        holding = await holdings_service.require_holding(session, holding_id, user.id)
        holding = await holdings_service.update_holding(session, holding, data)
    except LedgerError as e:
        raise http_error(e)
    return holding_response(holding)


@router.delete(
    "/{holding_id}",
    response_model=HoldingDeletedResponse,
    summary="Delete a holding",
)
async def delete_holding(
    holding_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> HoldingDeletedResponse:
    """Delete a holding and every transaction recorded against it."""
    try:
        removed = await ledger_service.delete_holding(session, holding_id, user.id)
    except LedgerError as e:
        raise http_error(e)
    return HoldingDeletedResponse(id=holding_id, transactions_deleted=removed)


# ============================================================================
# Ledger endpoints
# ============================================================================


@router.get(
    "/{holding_id}/transactions",
    response_model=TransactionListResponse,
    summary="List a holding's transactions",
)
async def list_transactions(
    holding_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> TransactionListResponse:
    """Get the ledger for a holding, newest first."""
    try:
        txs = await ledger_service.list_holding_transactions(session, holding_id, user.id)
    except LedgerError as e:
        raise http_error(e)
    return TransactionListResponse(
        items=[TransactionResponse.model_validate(tx) for tx in txs],
        total=len(txs),
    )


@router.post(
    "/{holding_id}/transactions",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a transaction",
)
async def record_transaction(
    holding_id: str,
    data: TransactionCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> TransactionResponse:
    """Record a buy, sell or dividend and update the holding.

    - **buy**: requires shares and price; blends price into average cost
    - **sell**: requires shares and price; cannot exceed shares held
    - **dividend**: requires amount; shares and price are ignored
    """
    try:
        tx = await ledger_service.record_transaction(session, holding_id, user.id, data)
    except LedgerError as e:
        raise http_error(e)
    return TransactionResponse.model_validate(tx)


@router.delete(
    "/{holding_id}/transactions/{tx_id}",
    response_model=TransactionDeletedResponse,
    summary="Delete a transaction",
)
async def delete_transaction(
    holding_id: str,
    tx_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> TransactionDeletedResponse:
    """Delete a transaction and reverse its effect on the holding."""
    try:
        await ledger_service.delete_transaction(session, holding_id, tx_id, user.id)
    except LedgerError as e:
        raise http_error(e)
    return TransactionDeletedResponse(id=tx_id)


# ============================================================================
# Analytics endpoints
# ============================================================================


@router.get(
    "/{holding_id}/returns",
    response_model=HoldingReturnsResponse,
    summary="Get a holding's returns",
)
async def get_returns(
    holding_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> HoldingReturnsResponse:
    """Break a holding's return down into unrealized, realized and dividends."""
    try:
        returns = await returns_service.get_returns(session, holding_id, user.id)
    except LedgerError as e:
        raise http_error(e)
    return HoldingReturnsResponse(
        holding_id=returns.holding_id,
        total_invested=returns.total_invested,
        current_value=returns.current_value,
        unrealized_gain_loss=returns.unrealized_gain_loss,
        unrealized_return_percent=returns.unrealized_return_percent,
        realized_gain_loss=returns.realized_gain_loss,
        dividend_income=returns.dividend_income,
        total_return=returns.total_return,
        total_return_percent=returns.total_return_percent,
    )


@router.get(
    "/{holding_id}/audit",
    response_model=LedgerAuditResponse,
    summary="Audit a holding against its ledger",
)
async def audit_holding(
    holding_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> LedgerAuditResponse:
    """Replay the ledger and report whether the cached shares and average
    cost still match it."""
    try:
        audit = await audit_service.audit_holding(session, holding_id, user.id)
    except LedgerError as e:
        raise http_error(e)
    return LedgerAuditResponse(
        holding_id=audit.holding_id,
        transaction_count=audit.transaction_count,
        opening_shares=audit.opening_shares,
        opening_cost=audit.opening_cost,
        cached_shares=audit.cached_shares,
        cached_average_cost=audit.cached_average_cost,
        replayed_shares=audit.replayed_shares,
        replayed_average_cost=audit.replayed_average_cost,
        in_sync=audit.in_sync,
        replay_error=audit.replay_error,
    )
