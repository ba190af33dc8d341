"""Pydantic schemas for request/response validation."""

from ledger.schemas.admin import UserCreate, UserListItem, UserResponse
from ledger.schemas.holding import (
    HoldingCreate,
    HoldingDeletedResponse,
    HoldingListResponse,
    HoldingResponse,
    HoldingUpdate,
)
from ledger.schemas.portfolio import (
    AllocationResponse,
    AssetAllocationResponse,
    HoldingReturnsResponse,
    LedgerAuditResponse,
    PerformancePointResponse,
    PerformanceResponse,
    PortfolioSummaryResponse,
)
from ledger.schemas.transaction import (
    TransactionCreate,
    TransactionDeletedResponse,
    TransactionListResponse,
    TransactionResponse,
)

__all__ = [
    # Admin schemas
    "UserCreate",
    "UserResponse",
    "UserListItem",
    # Holding schemas
    "HoldingCreate",
    "HoldingUpdate",
    "HoldingResponse",
    "HoldingListResponse",
    "HoldingDeletedResponse",
    # Transaction schemas
    "TransactionCreate",
    "TransactionResponse",
    "TransactionListResponse",
    "TransactionDeletedResponse",
    # Analytics schemas
    "HoldingReturnsResponse",
    "PortfolioSummaryResponse",
    "AssetAllocationResponse",
    "AllocationResponse",
    "PerformancePointResponse",
    "PerformanceResponse",
    "LedgerAuditResponse",
]
