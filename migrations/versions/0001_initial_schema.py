"""initial schema: accounts, ledger entries, loans

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


entry_direction = sa.Enum("CREDIT", "DEBIT", name="entry_direction_enum", create_constraint=True)
entry_status = sa.Enum("COMPLETED", "FAILED", name="entry_status_enum", create_constraint=True)
transfer_type = sa.Enum("IMPS", "NEFT", "RTGS", name="transfer_type_enum", create_constraint=True)
loan_type = sa.Enum(
    "home", "car", "personal", "education", "business",
    name="loan_type_enum", create_constraint=True,
)
employment_type = sa.Enum(
    "salaried", "self-employed", "business", "professional",
    name="employment_type_enum", create_constraint=True,
)
loan_status = sa.Enum(
    "PENDING_REVIEW", "APPROVED", "REJECTED",
    name="loan_status_enum", create_constraint=True,
)


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=100), nullable=False),
        sa.Column("account_number", sa.String(length=20), nullable=False),
        sa.Column("balance", sa.Numeric(19, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.CheckConstraint("balance >= 0", name="ck_accounts_balance_non_negative"),
    )
    op.create_index("ix_accounts_account_number", "accounts", ["account_number"], unique=True)

    op.create_table(
        "ledger_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("direction", entry_direction, nullable=False),
        sa.Column("amount", sa.Numeric(19, 2), nullable=False),
        sa.Column("balance_after", sa.Numeric(19, 2), nullable=False),
        sa.Column("status", entry_status, nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("counterparty_name", sa.String(length=100), nullable=True),
        sa.Column("counterparty_account", sa.String(length=34), nullable=True),
        sa.Column("counterparty_routing_code", sa.String(length=20), nullable=True),
        sa.Column("transfer_type", transfer_type, nullable=True),
        sa.Column("idempotency_key", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "account_id", "idempotency_key",
            name="uq_ledger_entries_account_idempotency_key",
        ),
        sa.CheckConstraint("amount > 0", name="ck_ledger_entries_amount_positive"),
    )
    op.create_index("ix_ledger_entries_account_id", "ledger_entries", ["account_id"])
    op.create_index("ix_ledger_entries_created_at", "ledger_entries", ["created_at"])

    op.create_table(
        "loans",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("loan_type", loan_type, nullable=False),
        sa.Column("amount", sa.Numeric(19, 2), nullable=False),
        sa.Column("tenure", sa.Integer(), nullable=False),
        sa.Column("purpose", sa.String(length=255), nullable=True),
        sa.Column("monthly_income", sa.Numeric(19, 2), nullable=False),
        sa.Column("employment_type", employment_type, nullable=False),
        sa.Column("status", loan_status, nullable=False),
        sa.Column("reference_id", sa.String(length=32), nullable=False),
        sa.Column("application_date", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("reference_id"),
    )
    op.create_index("ix_loans_account_id", "loans", ["account_id"])


def downgrade() -> None:
    op.drop_index("ix_loans_account_id", table_name="loans")
    op.drop_table("loans")
    op.drop_index("ix_ledger_entries_created_at", table_name="ledger_entries")
    op.drop_index("ix_ledger_entries_account_id", table_name="ledger_entries")
    op.drop_table("ledger_entries")
    op.drop_index("ix_accounts_account_number", table_name="accounts")
    op.drop_table("accounts")

    bind = op.get_bind()
    for enum in (
        loan_status, employment_type, loan_type,
        transfer_type, entry_status, entry_direction,
    ):
        enum.drop(bind, checkfirst=True)
