"""
Pydantic schemas for ledger history.

These define the API contract for what data goes out. They read
straight from the engine's PostedEntry records, which is why
from_attributes is enabled.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from aurora_bank.models.enums import EntryDirection, EntryStatus, TransferType
from aurora_bank.stores.base import LedgerFilter


class CounterpartyResponse(BaseModel):
    name: str | None
    account_number: str | None
    routing_code: str | None
    transfer_type: TransferType | None

    model_config = {"from_attributes": True}


class LedgerEntryResponse(BaseModel):
    """Single entry in API responses."""
    id: int
    account_id: int
    timestamp: datetime
    direction: EntryDirection
    amount: Decimal
    balance_after: Decimal
    status: EntryStatus
    description: str
    counterparty: CounterpartyResponse | None = None

    model_config = {"from_attributes": True}


class LedgerQuery(BaseModel):
    """Query-string filters for ledger history."""
    account_id: int
    date_from: date | None = None
    date_to: date | None = None
    direction: EntryDirection | None = None
    search: str | None = Field(default=None, max_length=100)
    limit: int = Field(default=100, ge=1, le=500)
    offset: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def dates_in_order(self):
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        return self

    def to_filter(self) -> LedgerFilter:
        return LedgerFilter(
            date_from=self.date_from,
            date_to=self.date_to,
            direction=self.direction,
            search=self.search or None,
            limit=self.limit,
            offset=self.offset,
        )
