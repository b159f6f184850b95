"""
Injection of projected subscription charges into actual aggregates.

Every step builds a new PeriodAggregate; the input aggregate is never
modified.
"""
from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from functools import reduce
from typing import FrozenSet, Iterable, Tuple

from app.models.expense import Transaction
from app.utils.aggregation import (
    CategoryTotal,
    DailyTotal,
    DateRange,
    PeriodAggregate,
    sort_categories,
    sort_days,
)
from app.utils.recurrence import anchor_day_of_month, next_occurrence
from app.utils.subscriptions import KeyFunc, Subscription, canonical_key, is_active


def recorded_keys(
    transactions: Iterable[Transaction],
    period: DateRange,
    key_fn: KeyFunc = canonical_key,
) -> FrozenSet[str]:
    """Keys of recurring expenses already recorded inside ``period``."""
    return frozenset(
        key_fn(txn) for txn in transactions if txn.is_recurring and txn.date in period
    )


def _add_category(rows: Tuple[CategoryTotal, ...], name: str, amount: Decimal) -> Tuple[CategoryTotal, ...]:
    if any(row.name == name for row in rows):
        return tuple(
            CategoryTotal(row.name, row.value + amount) if row.name == name else row for row in rows
        )
    return rows + (CategoryTotal(name, amount),)


def _add_day(rows: Tuple[DailyTotal, ...], day: int, amount: Decimal) -> Tuple[DailyTotal, ...]:
    if any(row.day == day for row in rows):
        return tuple(DailyTotal(row.day, row.amount + amount) if row.day == day else row for row in rows)
    return rows + (DailyTotal(day, amount),)


def inject(aggregate: PeriodAggregate, subscription: Subscription) -> PeriodAggregate:
    """Add one projected charge to total, its category and its billing day."""
    # Keyed by the original billing day, which may not exist in the target month
    return replace(
        aggregate,
        total=aggregate.total + subscription.amount,
        by_category=_add_category(aggregate.by_category, subscription.category.value, subscription.amount),
        daily_trend=_add_day(aggregate.daily_trend, anchor_day_of_month(subscription), subscription.amount),
    )


def recurs_within(subscription: Subscription, period: DateRange) -> bool:
    """Some monthly occurrence of the subscription falls inside ``period``."""
    return next_occurrence(subscription.anchor_date, period.start.date()) <= period.end.date()


def merge_projected(
    aggregate: PeriodAggregate,
    subscriptions: Iterable[Subscription],
    already_recorded: FrozenSet[str],
    period: DateRange,
) -> PeriodAggregate:
    # Subscriptions first seen after the period never reach back into it
    pending = [
        sub
        for sub in subscriptions
        if is_active(sub) and sub.key not in already_recorded and recurs_within(sub, period)
    ]
    merged = reduce(inject, pending, aggregate)
    return replace(
        merged,
        by_category=sort_categories(merged.by_category),
        daily_trend=sort_days(merged.daily_trend),
    )
