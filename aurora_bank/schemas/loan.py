"""
Pydantic schemas for loan applications.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from aurora_bank.models.base import MONEY_PRECISION
from aurora_bank.models.enums import EmploymentType, LoanStatus, LoanType


class LoanApplicationRequest(BaseModel):
    account_id: int
    loan_type: LoanType
    amount: Decimal = Field(gt=0, max_digits=MONEY_PRECISION, decimal_places=2)
    tenure: int = Field(gt=0, le=360, description="Repayment term in months")
    purpose: str | None = Field(default=None, max_length=255)
    monthly_income: Decimal = Field(gt=0, max_digits=MONEY_PRECISION, decimal_places=2)
    employment_type: EmploymentType


class LoanResponse(BaseModel):
    id: int
    account_id: int
    loan_type: LoanType
    amount: Decimal
    tenure: int
    purpose: str | None
    monthly_income: Decimal
    employment_type: EmploymentType
    status: LoanStatus
    reference_id: str
    application_date: datetime

    model_config = {"from_attributes": True}


class LoanQuoteQuery(BaseModel):
    """Query-string inputs for an EMI quote."""
    loan_type: LoanType
    amount: Decimal = Field(gt=0, max_digits=MONEY_PRECISION, decimal_places=2)
    tenure: int = Field(gt=0, le=360, description="Repayment term in months")
    annual_rate: Decimal | None = Field(
        default=None,
        ge=0,
        le=50,
        decimal_places=2,
        description="Percent per year; defaults to the loan type's rate",
    )


class LoanQuoteResponse(BaseModel):
    loan_type: LoanType
    principal: Decimal
    annual_rate: Decimal
    tenure: int
    emi: Decimal
    total_payment: Decimal
    total_interest: Decimal
