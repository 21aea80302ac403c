"""
In-memory account and ledger stores.

Thread-safe stand-ins for the SQL stores. Each account gets its
own lock, so updates to different accounts run in parallel and
updates to the same account are serialized.

The two stores are independent: a committed balance stays
committed even if the ledger append that follows it fails.
That makes the engine's partial-failure path observable.
"""

import itertools
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Iterator

from aurora_bank.errors import AccountNotFound, LockTimeout, StorageError
from aurora_bank.stores.base import (
    BalanceLock,
    LedgerEntryDraft,
    LedgerFilter,
    PostedEntry,
)

logger = logging.getLogger(__name__)


class InMemoryAccountStore:

    def __init__(self, balances: dict[int, Decimal] | None = None):
        self._balances: dict[int, Decimal] = {}
        self._locks: dict[int, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        for account_id, balance in (balances or {}).items():
            self.add_account(account_id, balance)

    def add_account(self, account_id: int, balance: Decimal = Decimal("0")) -> None:
        balance = Decimal(balance)
        if balance < 0:
            raise ValueError("Opening balance cannot be negative")
        with self._registry_lock:
            if account_id in self._balances:
                raise ValueError(f"Account {account_id} already exists")
            self._balances[account_id] = balance
            self._locks[account_id] = threading.Lock()

    def exists(self, account_id: int) -> bool:
        return account_id in self._balances

    def get_balance(self, account_id: int) -> Decimal:
        try:
            return self._balances[account_id]
        except KeyError:
            raise AccountNotFound(account_id) from None

    @contextmanager
    def acquire_for_update(
        self, account_id: int, timeout: float | None = None
    ) -> Iterator[BalanceLock]:
        lock = self._locks.get(account_id)
        if lock is None:
            raise AccountNotFound(account_id)

        acquired = lock.acquire(timeout=-1 if timeout is None else timeout)
        if not acquired:
            raise LockTimeout(account_id, timeout)

        try:
            def write(new_balance: Decimal) -> None:
                self._balances[account_id] = new_balance

            yield BalanceLock(
                account_id=account_id,
                balance=self._balances[account_id],
                writer=write,
                atomic=False,
            )
        finally:
            lock.release()


class InMemoryLedgerStore:

    def __init__(self):
        self._entries: list[PostedEntry] = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def append(self, draft: LedgerEntryDraft) -> PostedEntry:
        if draft.amount <= 0:
            raise StorageError(f"Refusing entry with non-positive amount {draft.amount}")

        with self._lock:
            entry = PostedEntry(
                id=next(self._ids),
                account_id=draft.account_id,
                timestamp=datetime.utcnow(),
                direction=draft.direction,
                amount=draft.amount,
                balance_after=draft.balance_after,
                status=draft.status,
                description=draft.description,
                counterparty=draft.counterparty,
                idempotency_key=draft.idempotency_key,
            )
            self._entries.append(entry)
        logger.debug("Appended ledger entry %s", entry.id)
        return entry

    def find_by_idempotency_key(
        self, account_id: int, idempotency_key: str
    ) -> PostedEntry | None:
        with self._lock:
            for entry in self._entries:
                if (
                    entry.account_id == account_id
                    and entry.idempotency_key == idempotency_key
                ):
                    return entry
        return None

    def query(
        self, account_id: int, filters: LedgerFilter | None = None
    ) -> list[PostedEntry]:
        filters = filters or LedgerFilter()
        with self._lock:
            snapshot = list(self._entries)

        matches = [
            e for e in reversed(snapshot)
            if e.account_id == account_id and _matches(e, filters)
        ]
        end = None if filters.limit is None else filters.offset + filters.limit
        return matches[filters.offset:end]


def _matches(entry: PostedEntry, filters: LedgerFilter) -> bool:
    if filters.date_from and entry.timestamp < datetime.combine(filters.date_from, time.min):
        return False
    if filters.date_to and entry.timestamp >= datetime.combine(
        filters.date_to + timedelta(days=1), time.min
    ):
        return False
    if filters.direction and entry.direction != filters.direction:
        return False
    if filters.search:
        needle = filters.search.lower()
        haystack = [entry.description]
        if entry.counterparty:
            haystack += [entry.counterparty.name, entry.counterparty.account_number]
        if not any(needle in (field or "").lower() for field in haystack):
            return False
    return True
