"""
Domain errors raised by the ledger services.

Each error carries a short, stable ``reason`` that is safe to return to
clients, and the HTTP status the routers translate it to.
"""

from fastapi import status


class LedgerError(Exception):
    """Base class for ledger failures."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    reason = "Ledger error"

    def __init__(self, reason: str | None = None):
        if reason is not None:
            self.reason = reason
        super().__init__(self.reason)


class HoldingNotFound(LedgerError):
    """Holding is absent or owned by someone else."""

    status_code = status.HTTP_404_NOT_FOUND
    reason = "Investment not found"


class TransactionNotFound(LedgerError):
    """Transaction is absent, unowned, or belongs to another holding."""

    status_code = status.HTTP_404_NOT_FOUND
    reason = "Investment transaction not found"


class InvalidTransaction(LedgerError, ValueError):
    """Required fields for the transaction type are missing."""

    status_code = status.HTTP_400_BAD_REQUEST
    reason = "Invalid transaction"

    @classmethod
    def missing(cls, fields: list[str]) -> "InvalidTransaction":
        return cls(f"Missing required fields: {', '.join(fields)}")


class InsufficientShares(LedgerError, ValueError):
    """Sell exceeds the shares currently held."""

    status_code = status.HTTP_400_BAD_REQUEST
    reason = "Insufficient shares to sell"


class InvalidQuery(LedgerError, ValueError):
    """Unsupported list/sort parameters."""

    status_code = status.HTTP_400_BAD_REQUEST
    reason = "Invalid query"


class ConcurrentModification(LedgerError):
    """The holding changed underneath this write (optimistic lock lost)."""

    status_code = status.HTTP_409_CONFLICT
    reason = "Investment was modified concurrently, retry"


class DeleteFailed(LedgerError):
    """A delete did not affect exactly one row."""

    reason = "Failed to delete investment"
