"""
SQLAlchemy models for the investment ledger.

This module exports all models and the Base class for easy imports:
    from ledger.models import Base, User, Holding, Transaction
"""

from ledger.database import Base
from ledger.models.user import User
from ledger.models.holding import AssetClass, Holding, InvestmentType
from ledger.models.transaction import Transaction, TransactionType

__all__ = [
    "Base",
    "User",
    "Holding",
    "AssetClass",
    "InvestmentType",
    "Transaction",
    "TransactionType",
]
