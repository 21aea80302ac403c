"""
Transfer and deposit API endpoints.

The endpoints are thin: they build a TransferEngine over the
request's database session and translate its result. Commit and
rollback happen inside the engine's lock scope, and errors are
rendered by the BankingError handler registered in main.py.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from aurora_bank.config import get_settings
from aurora_bank.models.base import get_db
from aurora_bank.schemas.ledger import LedgerEntryResponse
from aurora_bank.schemas.transaction import (
    DepositRequest,
    MoneyMovementResponse,
    TransferRequest,
)
from aurora_bank.services.transfer_engine import TransferEngine
from aurora_bank.stores.base import PostedEntry
from aurora_bank.stores.sql import SqlAccountStore, SqlLedgerStore

router = APIRouter(prefix="/transactions", tags=["Transactions"])


def get_transfer_engine(db: Session = Depends(get_db)) -> TransferEngine:
    """Build an engine whose stores share the request's session."""
    return TransferEngine(
        accounts=SqlAccountStore(db),
        ledger=SqlLedgerStore(db),
        lock_timeout=get_settings().LOCK_TIMEOUT_SECONDS,
    )


def _movement_response(entry: PostedEntry) -> MoneyMovementResponse:
    return MoneyMovementResponse(
        new_balance=entry.balance_after,
        ledger_entry=LedgerEntryResponse.model_validate(entry),
    )


@router.post("/transfer", response_model=MoneyMovementResponse, status_code=201)
def transfer(
    request: TransferRequest,
    engine: TransferEngine = Depends(get_transfer_engine),
):
    """
    Send money from an account to an external counterparty.

    Fails with InsufficientFunds (409) without touching the
    balance or the ledger when the account cannot cover it.
    """
    entry = engine.transfer(
        account_id=request.account_id,
        amount=request.amount,
        counterparty=(
            request.counterparty.to_counterparty() if request.counterparty else None
        ),
        description=request.description,
        idempotency_key=request.idempotency_key,
    )
    return _movement_response(entry)


@router.post("/deposit", response_model=MoneyMovementResponse, status_code=201)
def deposit(
    request: DepositRequest,
    engine: TransferEngine = Depends(get_transfer_engine),
):
    """Add funds to an account."""
    entry = engine.deposit(
        account_id=request.account_id,
        amount=request.amount,
        description=request.description,
        idempotency_key=request.idempotency_key,
    )
    return _movement_response(entry)
