"""
Pydantic schemas for analytics responses.
"""

from decimal import Decimal

from pydantic import BaseModel


class AnalyticsSummaryResponse(BaseModel):
    account_id: int
    total_credit: Decimal
    total_debit: Decimal
    net_flow: Decimal
    entry_count: int

    model_config = {"from_attributes": True}


class MonthlyTrendResponse(BaseModel):
    year_month: str
    label: str
    credit: Decimal
    debit: Decimal

    model_config = {"from_attributes": True}
