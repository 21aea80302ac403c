"""
Ledger entry model.

Each entry records one balance-affecting event on one account.
Entries are immutable: once appended, they are never modified
or deleted. Replaying an account's entries in id order from its
opening balance reproduces every balance_after exactly.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, DateTime, Numeric, ForeignKey,
    Enum as SAEnum, UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from aurora_bank.models.base import Base, MONEY_PRECISION, MONEY_SCALE
from aurora_bank.models.enums import EntryDirection, EntryStatus, TransferType


class LedgerEntry(Base):
    __tablename__ = "ledger_entries"
    __table_args__ = (
        UniqueConstraint(
            "account_id", "idempotency_key",
            name="uq_ledger_entries_account_idempotency_key",
        ),
        CheckConstraint("amount > 0", name="ck_ledger_entries_amount_positive"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    direction: Mapped[EntryDirection] = mapped_column(
        SAEnum(EntryDirection, name="entry_direction_enum", create_constraint=True),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(MONEY_PRECISION, MONEY_SCALE), nullable=False
    )
    balance_after: Mapped[Decimal] = mapped_column(
        Numeric(MONEY_PRECISION, MONEY_SCALE), nullable=False
    )
    status: Mapped[EntryStatus] = mapped_column(
        SAEnum(EntryStatus, name="entry_status_enum", create_constraint=True),
        nullable=False,
        default=EntryStatus.COMPLETED,
    )
    description: Mapped[str] = mapped_column(String(255), nullable=False)

    # Counterparty details, external transfers only
    counterparty_name: Mapped[str | None] = mapped_column(String(100))
    counterparty_account: Mapped[str | None] = mapped_column(String(34))
    counterparty_routing_code: Mapped[str | None] = mapped_column(String(20))
    transfer_type: Mapped[TransferType | None] = mapped_column(
        SAEnum(TransferType, name="transfer_type_enum", create_constraint=True)
    )

    idempotency_key: Mapped[str | None] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, index=True
    )

    account: Mapped["Account"] = relationship(back_populates="entries")

    def __repr__(self) -> str:
        return (
            f"<LedgerEntry {self.id} {self.direction.value} "
            f"{self.amount} -> {self.balance_after}>"
        )
