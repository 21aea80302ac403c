"""Business logic services."""

from aurora_bank.services.transfer_engine import TransferEngine
from aurora_bank.services.query_service import QueryService
from aurora_bank.services.account_service import AccountService
from aurora_bank.services.loan_service import LoanService

__all__ = ["TransferEngine", "QueryService", "AccountService", "LoanService"]
