"""
Pydantic schemas for transfers and deposits.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from aurora_bank.models.base import MONEY_PRECISION
from aurora_bank.models.enums import TransferType
from aurora_bank.schemas.ledger import LedgerEntryResponse
from aurora_bank.stores.base import Counterparty


class CounterpartyIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    account_number: str = Field(min_length=4, max_length=34, pattern=r"^[A-Za-z0-9]+$")
    routing_code: str | None = Field(default=None, max_length=20)
    transfer_type: TransferType | None = None

    def to_counterparty(self) -> Counterparty:
        return Counterparty(
            name=self.name,
            account_number=self.account_number,
            routing_code=self.routing_code,
            transfer_type=self.transfer_type,
        )


class TransferRequest(BaseModel):
    account_id: int
    amount: Decimal = Field(gt=0, max_digits=MONEY_PRECISION, decimal_places=2)
    counterparty: CounterpartyIn | None = None
    description: str | None = Field(default=None, max_length=255)
    idempotency_key: str | None = Field(default=None, min_length=1, max_length=100)


class DepositRequest(BaseModel):
    account_id: int
    amount: Decimal = Field(gt=0, max_digits=MONEY_PRECISION, decimal_places=2)
    description: str | None = Field(default=None, max_length=255)
    idempotency_key: str | None = Field(default=None, min_length=1, max_length=100)


class MoneyMovementResponse(BaseModel):
    """Result of a transfer or deposit."""
    new_balance: Decimal
    ledger_entry: LedgerEntryResponse
