"""Tests for the portfolio service."""

from datetime import date
from decimal import Decimal

import pytest

from ledger.exceptions import InvalidQuery
from ledger.models import AssetClass, Holding
from ledger.services import portfolio


def holding(asset_class=AssetClass.STOCKS, shares="10", average="100", price="100",
            purchased=date(2024, 1, 15)) -> Holding:
    return Holding(
        asset_class=asset_class,
        shares=Decimal(shares),
        average_cost=Decimal(average),
        current_price=Decimal(price),
        purchase_date=purchased,
    )


class TestSummarize:
    def test_empty_portfolio(self):
        s = portfolio.summarize([])
        assert s.total_value == Decimal("0.00")
        assert s.total_invested == Decimal("0.00")
        assert s.total_return_percent == Decimal("0.00")
        assert s.number_of_holdings == 0

    def test_totals(self):
        s = portfolio.summarize([
            holding(shares="10", average="100", price="120"),
            holding(asset_class=AssetClass.BONDS, shares="5", average="200", price="190"),
        ])
        # value 1200 + 950, invested 1000 + 1000
        assert s.total_value == Decimal("2150.00")
        assert s.total_invested == Decimal("2000.00")
        assert s.total_gain_loss == Decimal("150.00")
        assert s.total_return_percent == Decimal("7.50")
        assert s.number_of_holdings == 2
        assert s.day_change == 0
        assert s.ytd_return_percent == 0


class TestAllocate:
    def test_empty(self):
        assert portfolio.allocate([]) == []

    def test_largest_bucket_first(self):
        allocations = portfolio.allocate([
            holding(AssetClass.BONDS, shares="1", price="250"),
            holding(AssetClass.STOCKS, shares="1", price="500"),
            holding(AssetClass.STOCKS, shares="1", price="250"),
        ])

        assert [a.asset_class for a in allocations] == [AssetClass.STOCKS, AssetClass.BONDS]
        assert allocations[0].amount == Decimal("750.00")
        assert allocations[0].percentage == Decimal("75.00")
        assert allocations[1].percentage == Decimal("25.00")
        assert allocations[0].color == "#4CAF50"
        assert allocations[1].color == "#2196F3"

    def test_percentages_sum_to_exactly_100(self):
        # Three equal buckets round to 33.33 each
        allocations = portfolio.allocate([
            holding(AssetClass.STOCKS, shares="1", price="100"),
            holding(AssetClass.BONDS, shares="1", price="100"),
            holding(AssetClass.CASH, shares="1", price="100"),
        ])

        assert sum(a.percentage for a in allocations) == Decimal("100.00")
        assert sorted(a.percentage for a in allocations) == [
            Decimal("33.33"), Decimal("33.33"), Decimal("33.34"),
        ]

    def test_zero_value_portfolio(self):
        allocations = portfolio.allocate([holding(shares="0")])
        assert len(allocations) == 1
        assert allocations[0].percentage == Decimal("0.00")
        assert allocations[0].amount == Decimal("0.00")


class TestMonths:
    def test_parse_month(self):
        assert portfolio.parse_month("2024-02") == date(2024, 2, 1)

    @pytest.mark.parametrize("value", ["2024-13", "2024-2", "24-02", "2024-02-01", ""])
    def test_parse_month_rejects(self, value):
        with pytest.raises(InvalidQuery):
            portfolio.parse_month(value)

    def test_add_months_across_years(self):
        assert portfolio.add_months(date(2024, 11, 1), 3) == date(2025, 2, 1)
        assert portfolio.add_months(date(2024, 1, 1), -12) == date(2023, 1, 1)

    def test_month_end(self):
        assert portfolio.month_end(date(2024, 2, 1)) == date(2024, 2, 29)


class TestPerformanceSeries:
    def test_holdings_counted_from_purchase_month(self):
        holdings = [
            holding(shares="10", price="10", purchased=date(2024, 1, 31)),
            holding(shares="1", price="50", purchased=date(2024, 3, 1)),
        ]

        points = portfolio.performance_series(holdings, date(2023, 12, 1), date(2024, 3, 1))

        assert [(p.date, p.value) for p in points] == [
            ("2023-12", Decimal("0.00")),
            ("2024-01", Decimal("100.00")),
            ("2024-02", Decimal("100.00")),
            ("2024-03", Decimal("150.00")),
        ]

    def test_inverted_range_is_empty(self):
        assert portfolio.performance_series([], date(2024, 5, 1), date(2024, 4, 1)) == []


class TestGetPerformance:
    @pytest.mark.asyncio
    async def test_default_window(self, test_session, user, make_holding):
        await make_holding(shares="2", current_price="50", purchase_date="2023-06-10")

        points = await portfolio.get_performance(
            test_session, "alice", today=date(2024, 3, 20)
        )

        assert len(points) == 13
        assert points[0].date == "2023-03"
        assert points[-1].date == "2024-03"
        assert points[0].value == Decimal("0.00")
        assert points[-1].value == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_explicit_range(self, test_session, user):
        points = await portfolio.get_performance(
            test_session, "alice", from_month="2024-01", to_month="2024-02"
        )
        assert [p.date for p in points] == ["2024-01", "2024-02"]

    @pytest.mark.asyncio
    async def test_from_after_to(self, test_session, user):
        points = await portfolio.get_performance(
            test_session, "alice", from_month="2024-06", to_month="2024-01"
        )
        assert points == []


class TestGetSummary:
    @pytest.mark.asyncio
    async def test_only_own_holdings(self, test_session, user, other_user, make_holding):
        await make_holding()
        await make_holding(user_id="bob", shares="1000")

        s = await portfolio.get_summary(test_session, "alice")

        assert s.number_of_holdings == 1
        assert s.total_value == Decimal("1700.00")
        assert s.total_invested == Decimal("1500.00")

    @pytest.mark.asyncio
    async def test_allocation_from_db(self, test_session, user, make_holding):
        await make_holding(asset_class="real_estate", type="reit")

        allocations = await portfolio.get_allocation(test_session, "alice")

        assert [a.asset_class for a in allocations] == [AssetClass.REAL_ESTATE]
        assert allocations[0].percentage == Decimal("100.00")
        assert allocations[0].color == "#FFC107"
