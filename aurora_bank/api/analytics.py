"""
Analytics API endpoints.
"""

from fastapi import APIRouter, Depends

from aurora_bank.api.ledger import get_query_service
from aurora_bank.schemas.analytics import (
    AnalyticsSummaryResponse,
    MonthlyTrendResponse,
)
from aurora_bank.services.query_service import QueryService

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/summary/{account_id}", response_model=AnalyticsSummaryResponse)
def get_summary(
    account_id: int,
    service: QueryService = Depends(get_query_service),
):
    """Total credit, total debit and net flow for an account."""
    return service.summary(account_id)


@router.get(
    "/monthly-trends/{account_id}",
    response_model=list[MonthlyTrendResponse],
)
def get_monthly_trends(
    account_id: int,
    service: QueryService = Depends(get_query_service),
):
    """Credit and debit totals per month, oldest first."""
    return service.monthly_trends(account_id)
