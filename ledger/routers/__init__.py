"""API routers."""

from ledger.routers.admin import router as admin_router
from ledger.routers.investments import router as investments_router
from ledger.routers.portfolio import router as portfolio_router

__all__ = ["admin_router", "investments_router", "portfolio_router"]
