"""
Tests for the SQLAlchemy account and ledger stores.
"""

from datetime import date, datetime
from types import SimpleNamespace
from decimal import Decimal

import pytest

from aurora_bank.errors import AccountNotFound, StorageError
from aurora_bank.models.enums import EntryDirection, TransferType
from aurora_bank.models.ledger_entry import LedgerEntry
from aurora_bank.stores.base import Counterparty, LedgerEntryDraft, LedgerFilter
from aurora_bank.stores.sql import SqlAccountStore, SqlLedgerStore


def add_entry(db_session, account_id, created_at, direction=EntryDirection.CREDIT,
              amount="10", balance_after="10", description="Cash Deposit",
              counterparty_name=None, counterparty_account=None):
    row = LedgerEntry(
        account_id=account_id,
        direction=direction,
        amount=Decimal(amount),
        balance_after=Decimal(balance_after),
        description=description,
        counterparty_name=counterparty_name,
        counterparty_account=counterparty_account,
        created_at=created_at,
    )
    db_session.add(row)
    db_session.commit()
    return row.id


class TestSqlAccountStore:

    def test_balance_and_exists(self, db_session, open_account):
        account = open_account(balance="12.34")
        store = SqlAccountStore(db_session)

        assert store.exists(account.id)
        assert not store.exists(account.id + 1)
        assert store.get_balance(account.id) == Decimal("12.34")

    def test_unknown_account(self, db_session):
        store = SqlAccountStore(db_session)
        with pytest.raises(AccountNotFound):
            store.get_balance(404)
        with pytest.raises(AccountNotFound):
            with store.acquire_for_update(404):
                pass

    def test_scope_commits_on_exit(self, db_session, open_account):
        account = open_account(balance="100")
        store = SqlAccountStore(db_session)

        with store.acquire_for_update(account.id, timeout=1) as lock:
            assert lock.atomic is True
            assert lock.balance == Decimal("100")
            lock.commit(Decimal("60"))

        db_session.expire_all()
        assert store.get_balance(account.id) == Decimal("60")

    def test_scope_rolls_back_on_exception(self, db_session, open_account):
        account = open_account(balance="100")
        store = SqlAccountStore(db_session)

        with pytest.raises(RuntimeError):
            with store.acquire_for_update(account.id) as lock:
                lock.commit(Decimal("60"))
                raise RuntimeError("ledger went away")

        assert store.get_balance(account.id) == Decimal("100")


class RecordingMySqlSession:
    """Stands in for a Session bound to MySQL and records what it runs."""

    def __init__(self, account=None, wait_timeout=50):
        self.account = account
        self.wait_timeout = wait_timeout
        self.events = []

    def get_bind(self):
        return SimpleNamespace(dialect=SimpleNamespace(name="mysql"))

    def execute(self, statement):
        self.events.append(str(statement))
        return SimpleNamespace(
            scalar=lambda: self.wait_timeout,
            scalar_one_or_none=lambda: self.account,
        )

    def flush(self):
        pass

    def commit(self):
        self.events.append("COMMIT")

    def rollback(self):
        self.events.append("ROLLBACK")


class TestMySqlLockTimeout:

    restore = "SET SESSION innodb_lock_wait_timeout = 50"

    def test_timeout_set_then_restored_before_commit(self):
        session = RecordingMySqlSession(
            account=SimpleNamespace(id=1, balance=Decimal("10"))
        )
        store = SqlAccountStore(session)

        with store.acquire_for_update(1, timeout=2.4) as lock:
            lock.commit(Decimal("5"))

        assert "SET SESSION innodb_lock_wait_timeout = 2" in session.events
        assert session.events[-2:] == [self.restore, "COMMIT"]

    def test_restored_before_rollback_on_error(self):
        session = RecordingMySqlSession(
            account=SimpleNamespace(id=1, balance=Decimal("10"))
        )
        store = SqlAccountStore(session)

        with pytest.raises(RuntimeError):
            with store.acquire_for_update(1, timeout=3):
                raise RuntimeError("boom")

        assert session.events[-2:] == [self.restore, "ROLLBACK"]

    def test_restored_when_account_missing(self):
        session = RecordingMySqlSession(account=None)
        store = SqlAccountStore(session)

        with pytest.raises(AccountNotFound):
            with store.acquire_for_update(7, timeout=3):
                pass

        assert session.events[-2:] == [self.restore, "ROLLBACK"]

    def test_no_timeout_touches_nothing(self):
        session = RecordingMySqlSession(
            account=SimpleNamespace(id=1, balance=Decimal("10"))
        )
        store = SqlAccountStore(session)

        with store.acquire_for_update(1, timeout=None):
            pass

        assert not any("innodb_lock_wait_timeout" in e for e in session.events)


class TestSqlLedgerStore:

    def test_append_round_trips_counterparty(self, db_session, open_account):
        account = open_account()
        store = SqlLedgerStore(db_session)
        counterparty = Counterparty(
            name="Jane Roe",
            account_number="998877665544",
            routing_code="AURB0001234",
            transfer_type=TransferType.RTGS,
        )

        entry = store.append(LedgerEntryDraft(
            account_id=account.id,
            direction=EntryDirection.DEBIT,
            amount=Decimal("5"),
            balance_after=Decimal("0"),
            description="Transfer",
            counterparty=counterparty,
            idempotency_key="k1",
        ))
        db_session.commit()

        assert entry.id is not None
        assert entry.timestamp is not None
        assert store.query(account.id)[0].counterparty == counterparty
        assert store.find_by_idempotency_key(account.id, "k1").id == entry.id

    def test_duplicate_idempotency_key_is_storage_error(self, db_session, open_account):
        account = open_account()
        store = SqlLedgerStore(db_session)

        def make():
            return LedgerEntryDraft(
                account_id=account.id,
                direction=EntryDirection.CREDIT,
                amount=Decimal("1"),
                balance_after=Decimal("1"),
                description="Cash Deposit",
                idempotency_key="same",
            )

        store.append(make())
        with pytest.raises(StorageError):
            store.append(make())
        db_session.rollback()

    def test_query_orders_newest_first(self, db_session, open_account):
        account = open_account()
        first = add_entry(db_session, account.id, datetime(2025, 1, 5))
        second = add_entry(db_session, account.id, datetime(2025, 1, 6))

        ids = [e.id for e in SqlLedgerStore(db_session).query(account.id)]

        assert ids == [second, first]

    def test_date_to_is_inclusive(self, db_session, open_account):
        account = open_account()
        late = add_entry(db_session, account.id, datetime(2025, 3, 31, 23, 59))
        add_entry(db_session, account.id, datetime(2025, 4, 1, 0, 0))

        entries = SqlLedgerStore(db_session).query(
            account.id, LedgerFilter(date_from=date(2025, 3, 1), date_to=date(2025, 3, 31))
        )

        assert [e.id for e in entries] == [late]

    def test_search_is_case_insensitive(self, db_session, open_account):
        account = open_account()
        add_entry(db_session, account.id, datetime(2025, 1, 1))
        match = add_entry(
            db_session, account.id, datetime(2025, 1, 2),
            direction=EntryDirection.DEBIT, description="Online Transfer",
            counterparty_name="Jane Roe", counterparty_account="998877665544",
        )
        store = SqlLedgerStore(db_session)

        assert [e.id for e in store.query(account.id, LedgerFilter(search="jane"))] == [match]
        assert [e.id for e in store.query(account.id, LedgerFilter(search="7766"))] == [match]
        assert store.query(account.id, LedgerFilter(search="100%")) == []

    def test_direction_limit_offset(self, db_session, open_account):
        account = open_account()
        ids = [
            add_entry(db_session, account.id, datetime(2025, 2, day))
            for day in range(1, 6)
        ]
        add_entry(
            db_session, account.id, datetime(2025, 2, 6),
            direction=EntryDirection.DEBIT, balance_after="40",
        )
        store = SqlLedgerStore(db_session)

        page = store.query(
            account.id,
            LedgerFilter(direction=EntryDirection.CREDIT, limit=2, offset=1),
        )

        assert [e.id for e in page] == [ids[3], ids[2]]
