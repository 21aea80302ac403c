"""
SQLAlchemy-backed account and ledger stores.

Both stores share one Session. acquire_for_update() takes a row
lock with SELECT ... FOR UPDATE, and the balance update and the
ledger insert made inside its scope are committed in a single
database transaction. A failure anywhere in the scope rolls both
back, so the store is atomic and the engine never sees a
balance-changed-but-ledger-missing state.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Iterator

from sqlalchemy import func, or_, select, text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from aurora_bank.errors import AccountNotFound, LockTimeout, StorageError
from aurora_bank.models.account import Account
from aurora_bank.models.ledger_entry import LedgerEntry
from aurora_bank.stores.base import (
    BalanceLock,
    Counterparty,
    LedgerEntryDraft,
    LedgerFilter,
    PostedEntry,
)

logger = logging.getLogger(__name__)

# PostgreSQL lock_not_available, MySQL ER_LOCK_WAIT_TIMEOUT
_PG_LOCK_NOT_AVAILABLE = "55P03"
_MYSQL_LOCK_WAIT_TIMEOUT = 1205


def _is_lock_timeout(exc: OperationalError) -> bool:
    orig = exc.orig
    if getattr(orig, "pgcode", None) == _PG_LOCK_NOT_AVAILABLE:
        return True
    args = getattr(orig, "args", ())
    return bool(args) and args[0] == _MYSQL_LOCK_WAIT_TIMEOUT


class SqlAccountStore:

    def __init__(self, db: Session):
        self.db = db

    def exists(self, account_id: int) -> bool:
        return self.db.get(Account, account_id) is not None

    def get_balance(self, account_id: int) -> Decimal:
        balance = self.db.execute(
            select(Account.balance).where(Account.id == account_id)
        ).scalar_one_or_none()
        if balance is None:
            raise AccountNotFound(account_id)
        return balance

    def _set_lock_timeout(self, timeout: float | None) -> int | None:
        """
        Bound the row-lock wait for the current transaction.

        Returns the MySQL session value that was replaced, since a
        SESSION setting outlives the transaction and would follow the
        pooled connection into unrelated requests. PostgreSQL's
        SET LOCAL ends with the transaction, so there is nothing to
        restore and None is returned.
        """
        if timeout is None:
            return None
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            millis = max(int(timeout * 1000), 1)
            self.db.execute(text(f"SET LOCAL lock_timeout = {millis}"))
        elif dialect == "mysql":
            previous = self.db.execute(
                text("SELECT @@SESSION.innodb_lock_wait_timeout")
            ).scalar()
            # innodb only accepts whole seconds, minimum 1
            seconds = max(int(round(timeout)), 1)
            self.db.execute(text(f"SET SESSION innodb_lock_wait_timeout = {seconds}"))
            return previous
        return None

    def _restore_lock_timeout(self, previous: int | None) -> None:
        # Must run before commit/rollback hands the connection back to the pool
        if previous is None:
            return
        try:
            self.db.execute(
                text(f"SET SESSION innodb_lock_wait_timeout = {int(previous)}")
            )
        except SQLAlchemyError as e:
            logger.warning("Could not restore innodb_lock_wait_timeout: %s", e)

    @contextmanager
    def acquire_for_update(
        self, account_id: int, timeout: float | None = None
    ) -> Iterator[BalanceLock]:
        previous_timeout = None
        try:
            previous_timeout = self._set_lock_timeout(timeout)
            account = self.db.execute(
                select(Account)
                .where(Account.id == account_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
        except OperationalError as e:
            self._restore_lock_timeout(previous_timeout)
            self.db.rollback()
            if _is_lock_timeout(e):
                raise LockTimeout(account_id, timeout) from e
            raise StorageError(f"Could not lock account {account_id}: {e}") from e

        if account is None:
            self._restore_lock_timeout(previous_timeout)
            self.db.rollback()
            raise AccountNotFound(account_id)

        def write(new_balance: Decimal) -> None:
            account.balance = new_balance
            try:
                self.db.flush()
            except SQLAlchemyError as e:
                raise StorageError(
                    f"Could not update balance of account {account_id}: {e}"
                ) from e

        try:
            yield BalanceLock(
                account_id=account.id,
                balance=account.balance,
                writer=write,
                atomic=True,
            )
        except BaseException:
            self._restore_lock_timeout(previous_timeout)
            self.db.rollback()
            raise

        self._restore_lock_timeout(previous_timeout)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Commit failed for account %s: %s", account_id, e)
            raise StorageError(f"Could not commit update to account {account_id}") from e


class SqlLedgerStore:

    def __init__(self, db: Session):
        self.db = db

    def append(self, draft: LedgerEntryDraft) -> PostedEntry:
        counterparty = draft.counterparty
        row = LedgerEntry(
            account_id=draft.account_id,
            direction=draft.direction,
            amount=draft.amount,
            balance_after=draft.balance_after,
            status=draft.status,
            description=draft.description,
            counterparty_name=counterparty.name if counterparty else None,
            counterparty_account=counterparty.account_number if counterparty else None,
            counterparty_routing_code=counterparty.routing_code if counterparty else None,
            transfer_type=counterparty.transfer_type if counterparty else None,
            idempotency_key=draft.idempotency_key,
        )
        self.db.add(row)
        try:
            self.db.flush()
        except SQLAlchemyError as e:
            raise StorageError(f"Could not append ledger entry: {e}") from e
        return to_posted_entry(row)

    def find_by_idempotency_key(
        self, account_id: int, idempotency_key: str
    ) -> PostedEntry | None:
        row = self.db.execute(
            select(LedgerEntry).where(
                LedgerEntry.account_id == account_id,
                LedgerEntry.idempotency_key == idempotency_key,
            )
        ).scalar_one_or_none()
        return to_posted_entry(row) if row else None

    def query(
        self, account_id: int, filters: LedgerFilter | None = None
    ) -> list[PostedEntry]:
        filters = filters or LedgerFilter()
        stmt = select(LedgerEntry).where(LedgerEntry.account_id == account_id)

        if filters.date_from:
            stmt = stmt.where(
                LedgerEntry.created_at >= datetime.combine(filters.date_from, time.min)
            )
        if filters.date_to:
            stmt = stmt.where(
                LedgerEntry.created_at
                < datetime.combine(filters.date_to + timedelta(days=1), time.min)
            )
        if filters.direction:
            stmt = stmt.where(LedgerEntry.direction == filters.direction)
        if filters.search:
            needle = filters.search.lower()
            stmt = stmt.where(or_(
                func.lower(LedgerEntry.description).contains(needle, autoescape=True),
                func.lower(LedgerEntry.counterparty_name).contains(needle, autoescape=True),
                func.lower(LedgerEntry.counterparty_account).contains(needle, autoescape=True),
            ))

        stmt = stmt.order_by(LedgerEntry.id.desc()).offset(filters.offset)
        if filters.limit is not None:
            stmt = stmt.limit(filters.limit)

        rows = self.db.execute(stmt).scalars().all()
        return [to_posted_entry(row) for row in rows]


def to_posted_entry(row: LedgerEntry) -> PostedEntry:
    counterparty = None
    if row.counterparty_name or row.counterparty_account:
        counterparty = Counterparty(
            name=row.counterparty_name,
            account_number=row.counterparty_account,
            routing_code=row.counterparty_routing_code,
            transfer_type=row.transfer_type,
        )
    return PostedEntry(
        id=row.id,
        account_id=row.account_id,
        timestamp=row.created_at,
        direction=row.direction,
        amount=row.amount,
        balance_after=row.balance_after,
        status=row.status,
        description=row.description,
        counterparty=counterparty,
        idempotency_key=row.idempotency_key,
    )
