"""
Transaction model - the per-holding investment ledger.

Rows are append-only: they are created and deleted, never updated.
``amount`` is ``shares * price`` for buys and sells and the cash received
for dividends, which carry no shares or price.
"""

import enum
import datetime as dt
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger.database import Base
from ledger.models.base import generate_id, utcnow


class TransactionType(enum.Enum):
    """Kind of ledger event."""

    BUY = "buy"
    SELL = "sell"
    DIVIDEND = "dividend"


class Transaction(Base):
    """A buy, sell or dividend recorded against a holding."""

    __tablename__ = "investment_transactions"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_id)

    holding_id: Mapped[str] = mapped_column(
        String, ForeignKey("holdings.id"), nullable=False
    )

    # Duplicated from the holding for owner-scoped queries
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)

    type: Mapped[TransactionType] = mapped_column(Enum(TransactionType), nullable=False)

    # NULL for dividends
    shares: Mapped[Decimal | None] = mapped_column(Numeric(20, 8), nullable=True)
    price: Mapped[Decimal | None] = mapped_column(Numeric(15, 2), nullable=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    # Economic date of the event (independent of created_at)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    holding: Mapped["Holding"] = relationship(back_populates="transactions")

    # Database constraints
    __table_args__ = (
        CheckConstraint("amount > 0", name="check_tx_amount_positive"),
        CheckConstraint(
            "(type = 'DIVIDEND' AND shares IS NULL AND price IS NULL) "
            "OR (type != 'DIVIDEND' AND shares IS NOT NULL AND price IS NOT NULL "
            "AND shares > 0 AND price > 0)",
            name="check_tx_fields_match_type",
        ),
        Index("ix_tx_holding_date", "holding_id", "date"),
        Index("ix_tx_user", "user_id"),
        Index("ix_tx_user_type", "user_id", "type"),
    )

    def __repr__(self) -> str:
        if self.type == TransactionType.DIVIDEND:
            return f"Transaction(id={self.id!r}, dividend {self.amount})"
        return (
            f"Transaction(id={self.id!r}, {self.type.value} {self.shares} "
            f"@ {self.price})"
        )


# Import at end to avoid circular imports
from ledger.models.holding import Holding
