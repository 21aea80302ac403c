"""
Loan service: records loan applications for review and quotes
monthly instalments.

Applying for a loan never touches balances or the ledger.
"""

import logging
import secrets
import string
import time
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from aurora_bank.errors import AccountNotFound, InvalidAmount
from aurora_bank.models.account import Account
from aurora_bank.models.enums import LoanStatus, LoanType
from aurora_bank.models.loan import Loan
from aurora_bank.schemas.loan import LoanApplicationRequest

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_uppercase


def _to_base36(value: int) -> str:
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits)) or "0"


def generate_reference_id() -> str:
    """Reference like LN-M1ABCDEF-X7Q2: base36 millisecond time plus noise."""
    stamp = _to_base36(int(time.time() * 1000))
    noise = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"LN-{stamp}-{noise}"


# Indicative annual rates (percent) used when a quote names no rate
DEFAULT_ANNUAL_RATES: dict[LoanType, Decimal] = {
    LoanType.HOME: Decimal("8.5"),
    LoanType.CAR: Decimal("9.5"),
    LoanType.PERSONAL: Decimal("11"),
    LoanType.EDUCATION: Decimal("7.5"),
    LoanType.BUSINESS: Decimal("10"),
}

CENT = Decimal("0.01")


@dataclass(frozen=True)
class LoanQuote:
    principal: Decimal
    annual_rate: Decimal
    tenure: int
    emi: Decimal
    total_payment: Decimal
    total_interest: Decimal


def quote_emi(principal: Decimal, annual_rate: Decimal, tenure: int) -> LoanQuote:
    """
    Equated monthly instalment for a reducing-balance loan.

        emi = P * r * (1 + r)^n / ((1 + r)^n - 1)

    with r the monthly rate (annual_rate / 12 / 100) and n the tenure
    in months. A zero rate spreads the principal evenly. The EMI is
    rounded to the cent; totals are derived from the rounded EMI.
    """
    if principal <= 0:
        raise InvalidAmount(principal, "principal must be positive")
    if tenure <= 0:
        raise ValueError("tenure must be at least one month")
    if annual_rate < 0:
        raise ValueError("annual_rate cannot be negative")

    monthly_rate = annual_rate / 12 / 100
    if monthly_rate == 0:
        emi = principal / tenure
    else:
        growth = (1 + monthly_rate) ** tenure
        emi = principal * monthly_rate * growth / (growth - 1)
    emi = emi.quantize(CENT, rounding=ROUND_HALF_UP)

    total_payment = emi * tenure
    return LoanQuote(
        principal=principal,
        annual_rate=annual_rate,
        tenure=tenure,
        emi=emi,
        total_payment=total_payment,
        total_interest=total_payment - principal,
    )


class LoanService:

    def __init__(self, db: Session):
        self.db = db

    def apply(self, request: LoanApplicationRequest) -> Loan:
        """
        Submit a loan application in PENDING_REVIEW status.

        The caller controls the commit.
        """
        if self.db.get(Account, request.account_id) is None:
            raise AccountNotFound(request.account_id)

        reference_id = generate_reference_id()
        while self.db.execute(
            select(Loan.id).where(Loan.reference_id == reference_id)
        ).scalar_one_or_none() is not None:
            reference_id = generate_reference_id()

        loan = Loan(
            account_id=request.account_id,
            loan_type=request.loan_type,
            amount=request.amount,
            tenure=request.tenure,
            purpose=request.purpose,
            monthly_income=request.monthly_income,
            employment_type=request.employment_type,
            status=LoanStatus.PENDING_REVIEW,
            reference_id=reference_id,
        )
        self.db.add(loan)
        self.db.flush()
        logger.info(
            "Loan application %s submitted for account %s",
            loan.reference_id, loan.account_id,
        )
        return loan

    def list_for_account(self, account_id: int) -> list[Loan]:
        """All applications for an account, newest first."""
        if self.db.get(Account, account_id) is None:
            raise AccountNotFound(account_id)

        loans = self.db.execute(
            select(Loan)
            .where(Loan.account_id == account_id)
            .order_by(Loan.application_date.desc(), Loan.id.desc())
        ).scalars().all()
        return list(loans)
