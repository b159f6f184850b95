from functools import lru_cache

from fastapi import Depends

from app.core.config import settings
from app.db.store import ExpenseStore, InMemoryExpenseStore
from app.utils.analyzer import FinanceAnalyzer


@lru_cache
def get_expense_store() -> ExpenseStore:
    if settings.STORE_BACKEND == "memory":
        return InMemoryExpenseStore.from_json(settings.MEMORY_STORE_PATH)

    from app.db.dynamo import DynamoExpenseStore

    return DynamoExpenseStore()


def get_finance_analyzer(store: ExpenseStore = Depends(get_expense_store)) -> FinanceAnalyzer:
    return FinanceAnalyzer(
        store,
        upcoming_days=settings.UPCOMING_WINDOW_DAYS,
        merchant_limit=settings.TOP_MERCHANTS_LIMIT,
    )
