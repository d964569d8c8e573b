# backend/barbershop/routes/v1/finance.py
"""
Finance routes - API v1

Endpoints:
    GET /summary - Monthly revenue and commission ledger
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import get_finance_service
from ...core.exceptions import DomainException
from ...schemas.finance import MonthlySummaryResponse
from ...services.finance_service import FinanceService
from .common import handle_domain_exception, run_in_backend

logger = logging.getLogger(__name__)

router = APIRouter(tags=["finance-v1"])


@router.get("/summary", response_model=MonthlySummaryResponse)
async def get_monthly_summary(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    branch_id: Optional[str] = Query(None),
    finance: FinanceService = Depends(get_finance_service),
) -> MonthlySummaryResponse:
    try:
        summary = await run_in_backend(finance.monthly_summary, year, month, branch_id=branch_id)
    except DomainException as e:
        handle_domain_exception(e)
    return MonthlySummaryResponse.model_validate(summary.to_dict())
