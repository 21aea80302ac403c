"""Account and ledger storage backends."""

from aurora_bank.stores.base import (
    AccountStore,
    LedgerStore,
    BalanceLock,
    Counterparty,
    LedgerEntryDraft,
    LedgerFilter,
    PostedEntry,
)
from aurora_bank.stores.memory import InMemoryAccountStore, InMemoryLedgerStore
from aurora_bank.stores.sql import SqlAccountStore, SqlLedgerStore

__all__ = [
    "AccountStore",
    "LedgerStore",
    "BalanceLock",
    "Counterparty",
    "LedgerEntryDraft",
    "LedgerFilter",
    "PostedEntry",
    "InMemoryAccountStore",
    "InMemoryLedgerStore",
    "SqlAccountStore",
    "SqlLedgerStore",
]
