import logging
from datetime import datetime
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError

from app.core.deps import get_finance_analyzer
from app.core.security import get_current_user_id
from app.db.store import ExpenseStoreError
from app.models.analytics import AnalyticsQuery
from app.utils.aggregation import month_range
from app.utils.analyzer import FinanceAnalyzer

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def get_analytics(
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None, description="1-based calendar month"),
    user_id: str = Depends(get_current_user_id),
    analyzer: FinanceAnalyzer = Depends(get_finance_analyzer),
) -> Dict:
    """
    Spending aggregates for one calendar month (defaults to the current month),
    including active subscriptions that have not been recorded yet this month.
    """
    now = datetime.utcnow()
    try:
        query = AnalyticsQuery(
            year=year if year is not None else now.year,
            month=month if month is not None else now.month,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False),
        )

    try:
        aggregate = await analyzer.period_analytics(user_id, month_range(query.year, query.month))
    except ExpenseStoreError as e:
        logger.error(f"Analytics aborted for user {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Expense store unavailable")
    except Exception as e:
        logger.error(f"Unexpected error computing analytics: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Server Error")

    return {"success": True, "data": aggregate.to_dict()}
