"""
Storage interfaces for the transfer engine.

The engine never touches a database handle directly. It is given
an AccountStore and a LedgerStore at construction, so the same
engine runs against SQLAlchemy in production and against the
in-memory stores in tests.

Records crossing this boundary are frozen dataclasses: once a
PostedEntry is handed out, nothing can change it.
"""

from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Protocol

from aurora_bank.models.enums import EntryDirection, EntryStatus, TransferType


@dataclass(frozen=True)
class Counterparty:
    """Recipient of an external transfer."""
    name: str
    account_number: str
    routing_code: str | None = None
    transfer_type: TransferType | None = None


@dataclass(frozen=True)
class LedgerEntryDraft:
    """A ledger entry before the store has assigned id and timestamp."""
    account_id: int
    direction: EntryDirection
    amount: Decimal
    balance_after: Decimal
    description: str
    counterparty: Counterparty | None = None
    idempotency_key: str | None = None
    status: EntryStatus = EntryStatus.COMPLETED


@dataclass(frozen=True)
class PostedEntry:
    """A persisted, immutable ledger entry."""
    id: int
    account_id: int
    timestamp: datetime
    direction: EntryDirection
    amount: Decimal
    balance_after: Decimal
    status: EntryStatus
    description: str
    counterparty: Counterparty | None = None
    idempotency_key: str | None = None

    @property
    def signed_amount(self) -> Decimal:
        if self.direction == EntryDirection.DEBIT:
            return -self.amount
        return self.amount


@dataclass(frozen=True)
class LedgerFilter:
    """
    Stateless query parameters for ledger history.

    date_from and date_to are inclusive calendar days. search is a
    case-insensitive substring matched against the description and
    the counterparty's name and account number.
    """
    date_from: date | None = None
    date_to: date | None = None
    direction: EntryDirection | None = None
    search: str | None = None
    limit: int | None = None
    offset: int = 0


class BalanceLock:
    """
    Handle on one account's balance while its update lock is held.

    `balance` is the value read under the lock. commit() writes a
    new balance through the owning store. `atomic` tells the engine
    whether a failure later in the same lock scope will also undo
    the committed balance (true for a database transaction).
    """

    def __init__(
        self,
        account_id: int,
        balance: Decimal,
        writer: Callable[[Decimal], None],
        atomic: bool,
    ):
        self.account_id = account_id
        self.balance = balance
        self.atomic = atomic
        self.committed = False
        self._writer = writer

    def commit(self, new_balance: Decimal) -> None:
        if new_balance < 0:
            raise ValueError(
                f"Refusing to commit negative balance {new_balance} "
                f"for account {self.account_id}"
            )
        self._writer(new_balance)
        self.balance = new_balance
        self.committed = True

    def __repr__(self) -> str:
        return f"<BalanceLock account={self.account_id} balance={self.balance}>"


class AccountStore(Protocol):

    def acquire_for_update(
        self, account_id: int, timeout: float | None = None
    ) -> AbstractContextManager[BalanceLock]:
        """
        Exclusive read-modify-write scope over one account's balance.

        Raises AccountNotFound or LockTimeout before yielding.
        """
        ...

    def get_balance(self, account_id: int) -> Decimal:
        ...

    def exists(self, account_id: int) -> bool:
        ...


class LedgerStore(Protocol):

    def append(self, draft: LedgerEntryDraft) -> PostedEntry:
        """Persist a draft. Raises StorageError, never drops silently."""
        ...

    def query(
        self, account_id: int, filters: LedgerFilter | None = None
    ) -> list[PostedEntry]:
        """Matching entries, newest (highest id) first."""
        ...

    def find_by_idempotency_key(
        self, account_id: int, idempotency_key: str
    ) -> PostedEntry | None:
        ...
