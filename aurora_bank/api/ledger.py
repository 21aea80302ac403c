"""
Ledger history and statement download endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from aurora_bank.models.base import get_db
from aurora_bank.schemas.ledger import LedgerEntryResponse, LedgerQuery
from aurora_bank.services.query_service import QueryService
from aurora_bank.stores.sql import SqlAccountStore, SqlLedgerStore

router = APIRouter(tags=["Ledger"])

STATEMENT_FILENAME = "transaction_statement.csv"


def get_query_service(db: Session = Depends(get_db)) -> QueryService:
    return QueryService(SqlAccountStore(db), SqlLedgerStore(db))


@router.get("/ledger", response_model=list[LedgerEntryResponse])
def get_ledger(
    query: Annotated[LedgerQuery, Query()],
    service: QueryService = Depends(get_query_service),
):
    """
    Ledger entries for an account, most recent first.

    Filters: inclusive date range, direction (CREDIT/DEBIT) and a
    free-text search over description and counterparty.
    """
    entries = service.history(query.account_id, query.to_filter())
    return [LedgerEntryResponse.model_validate(e) for e in entries]


@router.get("/ledger/statement.csv", response_class=Response)
def download_statement(
    query: Annotated[LedgerQuery, Query()],
    service: QueryService = Depends(get_query_service),
):
    """
    Download matching entries as a CSV statement.

    Takes the same filters as /ledger; limit and offset are ignored.
    """
    content = service.statement_csv(query.account_id, query.to_filter())
    return Response(
        content=content,
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{STATEMENT_FILENAME}"'
        },
    )
