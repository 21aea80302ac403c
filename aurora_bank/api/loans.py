"""
Loan application and EMI quote endpoints.
"""

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from aurora_bank.errors import BankingError
from aurora_bank.models.base import get_db
from aurora_bank.schemas.loan import (
    LoanApplicationRequest,
    LoanQuoteQuery,
    LoanQuoteResponse,
    LoanResponse,
)
from aurora_bank.services.loan_service import (
    DEFAULT_ANNUAL_RATES,
    LoanService,
    quote_emi,
)

router = APIRouter(prefix="/loans", tags=["Loans"])


@router.post("/apply", response_model=LoanResponse, status_code=201)
def apply_for_loan(
    request: LoanApplicationRequest,
    db: Session = Depends(get_db),
):
    """Submit a loan application. It starts in PENDING_REVIEW."""
    service = LoanService(db)
    try:
        loan = service.apply(request)
        db.commit()
        return loan
    except BankingError:
        db.rollback()
        raise


@router.get("/account/{account_id}", response_model=list[LoanResponse])
def list_loans(
    account_id: int,
    db: Session = Depends(get_db),
):
    """All loan applications for an account, newest first."""
    service = LoanService(db)
    return service.list_for_account(account_id)


@router.get("/emi-quote", response_model=LoanQuoteResponse)
def emi_quote(query: Annotated[LoanQuoteQuery, Query()]):
    """
    Monthly instalment, total payment and total interest for a loan.

    Nothing is stored. Without annual_rate the loan type's indicative
    rate is used.
    """
    rate = query.annual_rate
    if rate is None:
        rate = DEFAULT_ANNUAL_RATES[query.loan_type]
    quote = quote_emi(query.amount, rate, query.tenure)
    return LoanQuoteResponse(loan_type=query.loan_type, **asdict(quote))
