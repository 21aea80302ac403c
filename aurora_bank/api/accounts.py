"""
Account and login API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from aurora_bank.models.base import get_db
from aurora_bank.services.account_service import AccountService
from aurora_bank.schemas.account import (
    AccountOpen,
    AccountResponse,
    AccountBalanceResponse,
    LoginRequest,
    LoginResponse,
)

router = APIRouter(tags=["Accounts"])


# --- Auth Endpoints ---

@router.post("/auth/login", response_model=LoginResponse)
def login(
    request: LoginRequest,
    db: Session = Depends(get_db),
):
    """Check credentials and return the account profile."""
    service = AccountService(db)
    account = service.authenticate(request.email, request.password)
    return LoginResponse(account=AccountResponse.model_validate(account))


# --- Account Endpoints ---

@router.post("/accounts", response_model=AccountResponse, status_code=201)
def open_account(
    request: AccountOpen,
    db: Session = Depends(get_db),
):
    """Open a new account."""
    service = AccountService(db)
    try:
        account = service.open_account(request)
        db.commit()
        return account
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/accounts/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    db: Session = Depends(get_db),
):
    """Get account details."""
    service = AccountService(db)
    return service.get_account(account_id)


@router.get("/accounts/{account_id}/balance", response_model=AccountBalanceResponse)
def get_account_balance(
    account_id: int,
    db: Session = Depends(get_db),
):
    """Current balance, as last committed by the transfer engine."""
    service = AccountService(db)
    account = service.get_account(account_id)
    return AccountBalanceResponse(
        account_id=account.id,
        account_number=account.account_number,
        balance=account.balance,
    )
