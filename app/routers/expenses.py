import logging
from datetime import datetime
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.deps import get_finance_analyzer
from app.core.security import get_current_user_id
from app.db.store import ExpenseStoreError
from app.utils.analyzer import FinanceAnalyzer

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/recurring")
async def list_recurring_expenses(
    user_id: str = Depends(get_current_user_id),
    analyzer: FinanceAnalyzer = Depends(get_finance_analyzer),
) -> Dict:
    """
    One entry per subscription (latest charge wins), monthly/yearly totals of
    the active ones, and what is due in the coming week.
    """
    try:
        overview = await analyzer.subscription_overview(user_id, datetime.utcnow().date())
    except ExpenseStoreError as e:
        logger.error(f"Recurring overview aborted for user {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Expense store unavailable")

    return {"success": True, "data": overview.model_dump(mode="json", by_alias=True)}
