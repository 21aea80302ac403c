"""
Loan application model.

Applications are recorded for review only. Nothing here moves
money; approval and disbursement happen outside this system.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, DateTime, Numeric, Integer, ForeignKey, Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from aurora_bank.models.base import Base, MONEY_PRECISION, MONEY_SCALE
from aurora_bank.models.enums import EmploymentType, LoanStatus, LoanType


class Loan(Base):
    __tablename__ = "loans"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    loan_type: Mapped[LoanType] = mapped_column(
        SAEnum(
            LoanType,
            name="loan_type_enum",
            create_constraint=True,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(MONEY_PRECISION, MONEY_SCALE), nullable=False
    )
    tenure: Mapped[int] = mapped_column(Integer, nullable=False)
    purpose: Mapped[str | None] = mapped_column(String(255))
    monthly_income: Mapped[Decimal] = mapped_column(
        Numeric(MONEY_PRECISION, MONEY_SCALE), nullable=False
    )
    employment_type: Mapped[EmploymentType] = mapped_column(
        SAEnum(
            EmploymentType,
            name="employment_type_enum",
            create_constraint=True,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    status: Mapped[LoanStatus] = mapped_column(
        SAEnum(LoanStatus, name="loan_status_enum", create_constraint=True),
        nullable=False,
        default=LoanStatus.PENDING_REVIEW,
    )
    reference_id: Mapped[str] = mapped_column(
        String(32), unique=True, nullable=False
    )
    application_date: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    account: Mapped["Account"] = relationship(back_populates="loans")

    def __repr__(self) -> str:
        return f"<Loan {self.reference_id} {self.loan_type.value} ({self.status.value})>"
