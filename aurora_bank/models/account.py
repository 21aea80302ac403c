"""
Account model.

An account is both the login identity and the holder of a
balance. The balance is stored on the row and is only ever
changed by the transfer engine while it holds the row lock;
every change is mirrored by exactly one ledger entry.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, DateTime, Numeric, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from aurora_bank.models.base import Base, MONEY_PRECISION, MONEY_SCALE


class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_accounts_balance_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(100), nullable=False)
    account_number: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True
    )
    balance: Mapped[Decimal] = mapped_column(
        Numeric(MONEY_PRECISION, MONEY_SCALE), nullable=False, default=Decimal("0.00")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    # Relationships
    entries: Mapped[list["LedgerEntry"]] = relationship(
        back_populates="account", order_by="LedgerEntry.id"
    )
    loans: Mapped[list["Loan"]] = relationship(back_populates="account")

    def __repr__(self) -> str:
        return f"<Account {self.account_number} balance={self.balance}>"
