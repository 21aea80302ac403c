"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from aurora_bank.models.base import Base
from aurora_bank.models.enums import (
    EntryDirection,
    EntryStatus,
    TransferType,
    LoanType,
    EmploymentType,
    LoanStatus,
)
from aurora_bank.models.account import Account
from aurora_bank.models.ledger_entry import LedgerEntry
from aurora_bank.models.loan import Loan

__all__ = [
    "Base",
    "EntryDirection",
    "EntryStatus",
    "TransferType",
    "LoanType",
    "EmploymentType",
    "LoanStatus",
    "Account",
    "LedgerEntry",
    "Loan",
]
