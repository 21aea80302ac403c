"""
Query service: read-only views over the ledger.

History, statements, summary totals and monthly trends are all
computed from the same filtered ledger scan, so the aggregates
always agree with the entries a client would see in the history
list.
"""

import calendar
import csv
import io
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal

from aurora_bank.errors import AccountNotFound
from aurora_bank.models.enums import EntryDirection
from aurora_bank.stores.base import AccountStore, LedgerFilter, LedgerStore, PostedEntry

ZERO = Decimal("0")

STATEMENT_COLUMNS = [
    "Date",
    "Entry ID",
    "Description",
    "Type",
    "Amount",
    "Balance After",
    "Status",
    "Counterparty",
]


@dataclass(frozen=True)
class AnalyticsSummary:
    account_id: int
    total_credit: Decimal
    total_debit: Decimal
    net_flow: Decimal
    entry_count: int


@dataclass(frozen=True)
class MonthlyTrend:
    year_month: str
    label: str
    credit: Decimal
    debit: Decimal


class QueryService:

    def __init__(self, accounts: AccountStore, ledger: LedgerStore):
        self.accounts = accounts
        self.ledger = ledger

    def _require_account(self, account_id: int) -> None:
        if not self.accounts.exists(account_id):
            raise AccountNotFound(account_id)

    def history(
        self, account_id: int, filters: LedgerFilter | None = None
    ) -> list[PostedEntry]:
        """Matching entries for an account, most recent first."""
        self._require_account(account_id)
        return self.ledger.query(account_id, filters or LedgerFilter())

    def _scan(self, account_id: int, filters: LedgerFilter | None) -> list[PostedEntry]:
        # Aggregates ignore pagination; they cover every matching entry
        filters = filters or LedgerFilter()
        unpaged = LedgerFilter(
            date_from=filters.date_from,
            date_to=filters.date_to,
            direction=filters.direction,
            search=filters.search,
        )
        return self.history(account_id, unpaged)

    def statement_csv(
        self, account_id: int, filters: LedgerFilter | None = None
    ) -> str:
        """
        Every matching entry as a CSV statement, most recent first.

        Pagination is ignored. Debits carry a leading minus sign in
        the Amount column so a spreadsheet sum gives the net flow.
        """
        entries = self._scan(account_id, filters)

        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(STATEMENT_COLUMNS)
        for entry in entries:
            signed = -entry.amount if entry.direction == EntryDirection.DEBIT else entry.amount
            counterparty = ""
            if entry.counterparty:
                counterparty = (
                    f"{entry.counterparty.name} ({entry.counterparty.account_number})"
                )
            writer.writerow([
                entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                entry.id,
                entry.description,
                entry.direction.value,
                f"{signed:.2f}",
                f"{entry.balance_after:.2f}",
                entry.status.value,
                counterparty,
            ])
        return buffer.getvalue()

    def summary(
        self, account_id: int, filters: LedgerFilter | None = None
    ) -> AnalyticsSummary:
        """Total credit, total debit and net flow over matching entries."""
        entries = self._scan(account_id, filters)
        total_credit = sum(
            (e.amount for e in entries if e.direction == EntryDirection.CREDIT), ZERO
        )
        total_debit = sum(
            (e.amount for e in entries if e.direction == EntryDirection.DEBIT), ZERO
        )
        return AnalyticsSummary(
            account_id=account_id,
            total_credit=total_credit,
            total_debit=total_debit,
            net_flow=total_credit - total_debit,
            entry_count=len(entries),
        )

    def monthly_trends(
        self, account_id: int, filters: LedgerFilter | None = None
    ) -> list[MonthlyTrend]:
        """
        Credit and debit totals per calendar month, oldest first.

        Labels are short month plus two-digit year, e.g. "Jan 25".
        Months without entries are omitted.
        """
        entries = sorted(self._scan(account_id, filters), key=lambda e: e.timestamp)

        totals: OrderedDict[tuple[int, int], dict[EntryDirection, Decimal]] = OrderedDict()
        for entry in entries:
            key = (entry.timestamp.year, entry.timestamp.month)
            bucket = totals.setdefault(
                key, {EntryDirection.CREDIT: ZERO, EntryDirection.DEBIT: ZERO}
            )
            bucket[entry.direction] += entry.amount

        return [
            MonthlyTrend(
                year_month=f"{year:04d}-{month:02d}",
                label=f"{calendar.month_abbr[month]} {year % 100:02d}",
                credit=bucket[EntryDirection.CREDIT],
                debit=bucket[EntryDirection.DEBIT],
            )
            for (year, month), bucket in totals.items()
        ]
