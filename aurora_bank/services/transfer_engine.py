"""
Transfer engine. Every movement of money goes through here.

A transfer or deposit is one atomic unit:

1. Validate the amount (before any lock is taken)
2. Lock the account for update
3. Check the balance (overdraft on transfers, ceiling on deposits)
4. Commit the new balance
5. Append the ledger entry
6. Release the lock

The lock is held from step 2 through step 5. Releasing it between
the balance check and the commit would let two concurrent
transfers both pass the check and overdraw the account.

If step 5 fails after step 4, an atomic store rolls both back and
the error reaches the caller. A non-atomic store cannot
undo the balance, so the engine logs the inconsistency for
reconciliation and raises LedgerWriteFailure.
"""

import logging
from decimal import Decimal, InvalidOperation

from aurora_bank.errors import (
    IdempotencyConflict,
    InsufficientFunds,
    InvalidAmount,
    LedgerWriteFailure,
)
from aurora_bank.models.base import MAX_MONEY
from aurora_bank.models.enums import EntryDirection, TransferType
from aurora_bank.stores.base import (
    AccountStore,
    Counterparty,
    LedgerEntryDraft,
    LedgerStore,
    PostedEntry,
)

logger = logging.getLogger(__name__)

# Per-transaction ceilings for each payment rail
TRANSFER_LIMITS: dict[TransferType, Decimal] = {
    TransferType.IMPS: Decimal("500000"),
    TransferType.NEFT: Decimal("5000000"),
    TransferType.RTGS: Decimal("20000000"),
}

DEFAULT_TRANSFER_DESCRIPTION = "Online Transfer"
DEFAULT_DEPOSIT_DESCRIPTION = "Cash Deposit"

# Two decimal places, matching the money columns
AMOUNT_EXPONENT = -2


def parse_amount(value) -> Decimal:
    """
    Coerce a caller-supplied amount to Decimal.

    Raises InvalidAmount for anything that is not a finite,
    positive number with at most two decimal places that fits
    in a money column.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidAmount(value, "amount must be numeric")
    try:
        # str() keeps floats like 0.1 from dragging in binary noise
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmount(value, "amount must be numeric") from None

    if not amount.is_finite():
        raise InvalidAmount(value, "amount must be finite")
    if amount <= 0:
        raise InvalidAmount(value, "amount must be positive")
    if amount.normalize().as_tuple().exponent < AMOUNT_EXPONENT:
        raise InvalidAmount(value, "amount can have at most 2 decimal places")
    if amount > MAX_MONEY:
        raise InvalidAmount(value, f"amount exceeds the maximum of {MAX_MONEY}")
    return amount


class TransferEngine:
    """
    Executes transfers and deposits against injected stores.

    lock_timeout bounds how long a call waits for another update
    on the same account to finish; None waits indefinitely.
    """

    def __init__(
        self,
        accounts: AccountStore,
        ledger: LedgerStore,
        lock_timeout: float | None = 5.0,
    ):
        self.accounts = accounts
        self.ledger = ledger
        self.lock_timeout = lock_timeout

    def transfer(
        self,
        account_id: int,
        amount,
        counterparty: Counterparty | None = None,
        description: str | None = None,
        idempotency_key: str | None = None,
    ) -> PostedEntry:
        """Debit an account in favour of an external counterparty."""
        amount = parse_amount(amount)

        if counterparty and counterparty.transfer_type:
            limit = TRANSFER_LIMITS[counterparty.transfer_type]
            if amount > limit:
                raise InvalidAmount(
                    amount,
                    f"exceeds the {counterparty.transfer_type.value} "
                    f"limit of {limit}",
                )

        if not description:
            if counterparty:
                description = (
                    f"Transfer to {counterparty.name} "
                    f"({counterparty.account_number})"
                )
            else:
                description = DEFAULT_TRANSFER_DESCRIPTION

        return self._post(
            operation="transfer",
            account_id=account_id,
            direction=EntryDirection.DEBIT,
            amount=amount,
            description=description,
            counterparty=counterparty,
            idempotency_key=idempotency_key,
        )

    def deposit(
        self,
        account_id: int,
        amount,
        description: str | None = None,
        idempotency_key: str | None = None,
    ) -> PostedEntry:
        """Credit an account. Deposits never have a counterparty."""
        amount = parse_amount(amount)
        return self._post(
            operation="deposit",
            account_id=account_id,
            direction=EntryDirection.CREDIT,
            amount=amount,
            description=description or DEFAULT_DEPOSIT_DESCRIPTION,
            counterparty=None,
            idempotency_key=idempotency_key,
        )

    def _post(
        self,
        operation: str,
        account_id: int,
        direction: EntryDirection,
        amount: Decimal,
        description: str,
        counterparty: Counterparty | None,
        idempotency_key: str | None,
    ) -> PostedEntry:
        with self.accounts.acquire_for_update(
            account_id, timeout=self.lock_timeout
        ) as lock:
            if idempotency_key:
                previous = self.ledger.find_by_idempotency_key(
                    account_id, idempotency_key
                )
                if previous is not None:
                    return self._replay(
                        previous, direction, amount, counterparty, idempotency_key
                    )

            if direction == EntryDirection.DEBIT:
                if lock.balance < amount:
                    logger.info(
                        "Rejected %s on account %s: balance %s < amount %s",
                        operation, account_id, lock.balance, amount,
                    )
                    raise InsufficientFunds(account_id, lock.balance, amount)
                new_balance = lock.balance - amount
            else:
                new_balance = lock.balance + amount
                if new_balance > MAX_MONEY:
                    raise InvalidAmount(
                        amount,
                        f"would take the balance past the maximum of {MAX_MONEY}",
                    )

            lock.commit(new_balance)

            draft = LedgerEntryDraft(
                account_id=account_id,
                direction=direction,
                amount=amount,
                balance_after=new_balance,
                description=description,
                counterparty=counterparty,
                idempotency_key=idempotency_key,
            )
            try:
                entry = self.ledger.append(draft)
            except Exception as e:
                # Anything raised after the commit, not only StorageError
                if lock.atomic:
                    logger.error(
                        "Ledger append failed for %s on account %s, "
                        "rolling back: %s",
                        operation, account_id, e,
                    )
                    raise
                logger.critical(
                    "RECONCILIATION REQUIRED: %s of %s on account %s committed "
                    "balance %s but the ledger entry was not written: %s",
                    operation, amount, account_id, new_balance, e,
                )
                raise LedgerWriteFailure(
                    operation, account_id, amount, new_balance
                ) from e

        logger.info(
            "%s of %s on account %s posted as entry %s (balance %s)",
            operation.capitalize(), amount, account_id, entry.id, entry.balance_after,
        )
        return entry

    def _replay(
        self,
        previous: PostedEntry,
        direction: EntryDirection,
        amount: Decimal,
        counterparty: Counterparty | None,
        idempotency_key: str,
    ) -> PostedEntry:
        same_operation = (
            previous.direction == direction
            and previous.amount == amount
            and previous.counterparty == counterparty
        )
        if not same_operation:
            raise IdempotencyConflict(previous.account_id, idempotency_key)

        logger.info(
            "Replaying entry %s for idempotency key %r on account %s",
            previous.id, idempotency_key, previous.account_id,
        )
        return previous
