"""Tests for the ledger audit."""

from datetime import date
from decimal import Decimal

import pytest

from ledger.exceptions import HoldingNotFound
from ledger.models import TransactionType
from ledger.schemas.holding import HoldingUpdate
from ledger.schemas.transaction import TransactionCreate
from ledger.services import audit, holdings, ledger


async def record(session, holding_id, tx_type, shares=None, price=None, amount=None):
    return await ledger.record_transaction(
        session,
        holding_id,
        "alice",
        TransactionCreate(
            type=tx_type,
            date=date(2024, 2, 1),
            shares=shares,
            price=price,
            amount=amount,
        ),
    )


async def orphan_sell(session, holding):
    """Leave a ledger holding only a sell, by deleting the buy it consumed."""
    bought = await record(session, holding.id, TransactionType.BUY, Decimal("5"), Decimal("10"))
    await record(session, holding.id, TransactionType.SELL, Decimal("5"), Decimal("12"))
    await ledger.delete_transaction(session, holding.id, bought.id, "alice")


class TestAuditHolding:
    @pytest.mark.asyncio
    async def test_ledger_built_holding_in_sync(self, test_session, empty_holding):
        await record(test_session, empty_holding.id, TransactionType.BUY, Decimal("10"), Decimal("100"))
        await record(test_session, empty_holding.id, TransactionType.BUY, Decimal("10"), Decimal("120"))
        await record(test_session, empty_holding.id, TransactionType.SELL, Decimal("5"), Decimal("130"))
        await record(test_session, empty_holding.id, TransactionType.DIVIDEND, amount=Decimal("3"))

        result = await audit.audit_holding(test_session, empty_holding.id, "alice")

        assert result.transaction_count == 4
        assert result.replayed_shares == Decimal("15")
        assert result.replayed_average_cost == Decimal("110.00")
        assert result.in_sync is True
        assert result.replay_error is None

    @pytest.mark.asyncio
    async def test_opening_position_in_sync(self, test_session, user, make_holding):
        holding = await make_holding()

        result = await audit.audit_holding(test_session, holding.id, "alice")

        assert result.transaction_count == 0
        assert result.opening_shares == Decimal("10")
        assert result.opening_cost == Decimal("150.00")
        assert result.replayed_shares == Decimal("10")
        assert result.replayed_average_cost == Decimal("150.00")
        assert result.in_sync is True

    @pytest.mark.asyncio
    async def test_replay_starts_from_opening_position(self, test_session, user, make_holding):
        holding = await make_holding(shares="10", purchase_price="150")
        await record(test_session, holding.id, TransactionType.BUY, Decimal("10"), Decimal("170"))
        await record(test_session, holding.id, TransactionType.SELL, Decimal("15"), Decimal("180"))

        result = await audit.audit_holding(test_session, holding.id, "alice")

        assert result.replayed_shares == Decimal("5")
        assert result.replayed_average_cost == Decimal("160.00")
        assert result.in_sync is True

    @pytest.mark.asyncio
    async def test_edit_after_ledger_activity_drifts(self, test_session, user, make_holding):
        holding = await make_holding(shares="10", purchase_price="150")
        await record(test_session, holding.id, TransactionType.BUY, Decimal("10"), Decimal("170"))
        await holdings.update_holding(test_session, holding, HoldingUpdate(shares="25"))

        result = await audit.audit_holding(test_session, holding.id, "alice")

        assert result.opening_shares == Decimal("10")
        assert result.cached_shares == Decimal("25")
        assert result.replayed_shares == Decimal("20")
        assert result.in_sync is False

    @pytest.mark.asyncio
    async def test_edit_without_ledger_moves_opening(self, test_session, user, make_holding):
        holding = await make_holding(shares="10", purchase_price="150")
        await holdings.update_holding(
            test_session, holding, HoldingUpdate(shares="12", purchase_price="140")
        )

        result = await audit.audit_holding(test_session, holding.id, "alice")

        assert result.opening_shares == Decimal("12")
        assert result.opening_cost == Decimal("140.00")
        assert result.in_sync is True

    @pytest.mark.asyncio
    async def test_unreplayable_ledger(self, test_session, empty_holding):
        await orphan_sell(test_session, empty_holding)

        result = await audit.audit_holding(test_session, empty_holding.id, "alice")

        assert result.transaction_count == 1
        assert result.in_sync is False
        assert result.replayed_shares is None
        assert result.replay_error == "Ledger sells more shares than the holding held"

    @pytest.mark.asyncio
    async def test_not_owner(self, test_session, empty_holding, other_user):
        with pytest.raises(HoldingNotFound):
            await audit.audit_holding(test_session, empty_holding.id, "bob")


class TestReconcileHolding:
    @pytest.mark.asyncio
    async def test_opening_position_kept(self, test_session, user, make_holding):
        holding = await make_holding(shares="10", purchase_price="150")

        result = await audit.reconcile_holding(test_session, holding.id, "alice")

        assert result.in_sync is True
        assert holding.shares == Decimal("10")
        assert holding.average_cost == Decimal("150.00")
        assert holding.version == 1

    @pytest.mark.asyncio
    async def test_opening_position_plus_ledger_kept(self, test_session, user, make_holding):
        holding = await make_holding(shares="10", purchase_price="150")
        await record(test_session, holding.id, TransactionType.BUY, Decimal("10"), Decimal("170"))

        result = await audit.reconcile_holding(test_session, holding.id, "alice")

        assert result.in_sync is True
        assert holding.shares == Decimal("20")
        assert holding.average_cost == Decimal("160.00")

    @pytest.mark.asyncio
    async def test_rewrites_drifted_aggregate(self, test_session, user, make_holding):
        holding = await make_holding(shares="10", purchase_price="150")
        await record(test_session, holding.id, TransactionType.BUY, Decimal("10"), Decimal("170"))
        await holdings.update_holding(
            test_session, holding, HoldingUpdate(shares="25", purchase_price="99")
        )

        before = await audit.reconcile_holding(test_session, holding.id, "alice")

        assert before.in_sync is False
        assert holding.shares == Decimal("20")
        assert holding.average_cost == Decimal("160.00")
        after = await audit.audit_holding(test_session, holding.id, "alice")
        assert after.in_sync is True

    @pytest.mark.asyncio
    async def test_in_sync_holding_untouched(self, test_session, empty_holding):
        await record(test_session, empty_holding.id, TransactionType.BUY, Decimal("2"), Decimal("10"))

        result = await audit.reconcile_holding(test_session, empty_holding.id, "alice")

        assert result.in_sync is True
        assert empty_holding.version == 2

    @pytest.mark.asyncio
    async def test_unreplayable_ledger_untouched(self, test_session, empty_holding):
        await orphan_sell(test_session, empty_holding)
        version = empty_holding.version

        result = await audit.reconcile_holding(test_session, empty_holding.id, "alice")

        assert result.replay_error is not None
        assert empty_holding.shares == Decimal("0")
        assert empty_holding.version == version
