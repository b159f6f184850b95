from __future__ import annotations

import asyncio
import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from app.db.store import ExpenseStore
from app.models.analytics import SubscriptionOverview, SubscriptionPublic
from app.utils.aggregation import DateRange, PeriodAggregate, aggregate_period, previous_month
from app.utils.merger import merge_projected, recorded_keys
from app.utils.recurrence import UPCOMING_WINDOW_DAYS, next_occurrence, upcoming_within
from app.utils.subscriptions import (
    KeyFunc,
    Subscription,
    active_subscriptions,
    build_subscriptions,
    canonical_key,
    is_active,
)

logger = logging.getLogger(__name__)


class AggregationError(Exception):
    """Raised when a computed aggregate breaks its sum invariants."""


class FinanceAnalyzer:
    """
    Request-scoped analytics over one user's expenses.

    Each call reads a fresh snapshot from the expense store; nothing is cached
    between calls, so the analyzer can be shared across requests.
    """

    def __init__(
        self,
        store: ExpenseStore,
        key_fn: KeyFunc = canonical_key,
        upcoming_days: int = UPCOMING_WINDOW_DAYS,
        merchant_limit: int = 3,
    ) -> None:
        self._store = store
        self._key_fn = key_fn
        self._upcoming_days = upcoming_days
        self._merchant_limit = merchant_limit

    async def period_analytics(self, user_id: str, period: DateRange) -> PeriodAggregate:
        """Actual aggregates for ``period`` with unrecorded active subscriptions projected in."""
        comparison = previous_month(period)
        logger.info(f"Aggregating {period.start.date()}..{period.end.date()} for user {user_id}")

        # Both reads run concurrently; either failing aborts the whole request.
        # Cancelling drops the results, but a read already in its thread finishes.
        snapshot, recurring = await asyncio.gather(
            asyncio.to_thread(self._store.query_by_range, user_id, comparison.start, period.end),
            asyncio.to_thread(self._store.query_all_recurring, user_id),
        )
        logger.info(f"Loaded {len(snapshot)} expenses and {len(recurring)} recurring records for user {user_id}")

        actual = aggregate_period(snapshot, period, self._merchant_limit)
        subscriptions = active_subscriptions(build_subscriptions(recurring, self._key_fn))
        merged = merge_projected(actual, subscriptions, recorded_keys(snapshot, period, self._key_fn), period)

        if not merged.is_consistent():
            raise AggregationError(f"Inconsistent aggregate for user {user_id}: total={merged.total}")
        return merged

    async def subscription_overview(self, user_id: str, today: Optional[date] = None) -> SubscriptionOverview:
        today = today or date.today()
        recurring = await asyncio.to_thread(self._store.query_all_recurring, user_id)
        subscriptions = build_subscriptions(recurring, self._key_fn)
        active = active_subscriptions(subscriptions)
        logger.info(f"Resolved {len(subscriptions)} subscriptions ({len(active)} active) for user {user_id}")

        monthly_total = sum((sub.amount for sub in active), Decimal("0"))
        upcoming = upcoming_within(active, today, self._upcoming_days)

        return SubscriptionOverview(
            monthly_total=float(monthly_total),
            yearly_total=float(monthly_total * 12),
            active_count=len(active),
            subscriptions=[
                _to_public(sub, next_occurrence(sub.anchor_date, today) if is_active(sub) else None)
                for sub in sorted(subscriptions, key=lambda sub: sub.key)
            ],
            upcoming_this_week=[_to_public(sub, next_date) for sub, next_date in upcoming],
        )


def _to_public(sub: Subscription, next_date: Optional[date]) -> SubscriptionPublic:
    txn = sub.transaction
    return SubscriptionPublic(
        id=txn.id,
        key=sub.key,
        merchant=txn.merchant,
        description=txn.description,
        amount=float(sub.amount),
        category=sub.category.value,
        date=txn.date,
        is_recurring=txn.is_recurring,
        subscription_status=sub.status.value if sub.status else None,
        next_payment_date=next_date,
    )
