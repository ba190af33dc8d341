"""
User model - the owner every holding and transaction is scoped to.

Identity and credentials are issued elsewhere; this table only maps a
hashed bearer key to a user id.
"""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger.database import Base
from ledger.models.base import utcnow


class User(Base):
    """An authenticated owner of investment holdings."""

    __tablename__ = "users"

    # Primary key: opaque user identifier
    id: Mapped[str] = mapped_column(String, primary_key=True)

    # SHA-256 hash of the bearer key
    api_key_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    holdings: Mapped[list["Holding"]] = relationship(back_populates="user")

    def __repr__(self) -> str:
        return f"User(id={self.id!r})"


# Import at end to avoid circular imports
from ledger.models.holding import Holding
