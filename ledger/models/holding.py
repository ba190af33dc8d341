"""
Holding model - one row per investment position.

``shares`` and ``average_cost`` are a cached aggregate of the holding's
transaction ledger, maintained incrementally by the ledger coordinator.
``version`` is an optimistic-lock counter: SQLAlchemy adds it to the WHERE
clause of every UPDATE, so two writers working from the same snapshot
cannot both succeed.
"""

import enum
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger.database import Base
from ledger.models.base import generate_id, utcnow


class AssetClass(enum.Enum):
    """Top-level bucket used for allocation reporting."""

    STOCKS = "stocks"
    BONDS = "bonds"
    CASH = "cash"
    ALTERNATIVES = "alternatives"
    REAL_ESTATE = "real_estate"
    OTHER = "other"


class InvestmentType(enum.Enum):
    """Instrument type of a holding."""

    INDIVIDUAL_STOCK = "individual_stock"
    ETF = "etf"
    MUTUAL_FUND = "mutual_fund"
    BOND = "bond"
    CRYPTO = "crypto"
    OPTIONS = "options"
    REIT = "reit"
    OTHER = "other"


class Holding(Base):
    """A tracked investment position owned by a user."""

    __tablename__ = "holdings"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_id)

    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)

    # Classification
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    ticker: Mapped[str | None] = mapped_column(String(20), nullable=True)
    asset_class: Mapped[AssetClass] = mapped_column(Enum(AssetClass), nullable=False)
    type: Mapped[InvestmentType] = mapped_column(Enum(InvestmentType), nullable=False)

    # Quantities - shares may be fractional (funds, crypto)
    shares: Mapped[Decimal] = mapped_column(
        Numeric(20, 8), nullable=False, default=Decimal("0")
    )
    # Weighted average purchase price of the shares currently held
    average_cost: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )
    # Position entered at creation without a ledger row; ledger replays start here
    opening_shares: Mapped[Decimal] = mapped_column(
        Numeric(20, 8), nullable=False, default=Decimal("0")
    )
    opening_cost: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )
    # Externally supplied market price
    current_price: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )

    # Date of first purchase (drives the performance series)
    purchase_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Reference into the external accounts subsystem
    account_id: Mapped[str] = mapped_column(String, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    dividend_yield: Mapped[Decimal | None] = mapped_column(Numeric(7, 4), nullable=True)
    sector: Mapped[str | None] = mapped_column(String(100), nullable=True)
    region: Mapped[str | None] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    user: Mapped["User"] = relationship(back_populates="holdings")
    transactions: Mapped[list["Transaction"]] = relationship(back_populates="holding")

    __mapper_args__ = {"version_id_col": version}

    # Database constraints
    __table_args__ = (
        CheckConstraint("shares >= 0", name="check_shares_non_negative"),
        CheckConstraint("average_cost >= 0", name="check_average_cost_non_negative"),
        CheckConstraint("current_price >= 0", name="check_current_price_non_negative"),
        CheckConstraint("opening_shares >= 0", name="check_opening_shares_non_negative"),
        CheckConstraint("opening_cost >= 0", name="check_opening_cost_non_negative"),
        Index("ix_holdings_user_asset_class", "user_id", "asset_class"),
        Index("ix_holdings_user_account", "user_id", "account_id"),
        Index("ix_holdings_user_type", "user_id", "type"),
        Index("ix_holdings_user_purchase_date", "user_id", "purchase_date"),
    )

    def __repr__(self) -> str:
        return (
            f"Holding(id={self.id!r}, name={self.name!r}, shares={self.shares}, "
            f"average_cost={self.average_cost})"
        )


# Import at end to avoid circular imports
from ledger.models.transaction import Transaction
from ledger.models.user import User
