from __future__ import annotations

import calendar
from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Tuple

from app.models.expense import Transaction

SUM_EPSILON = Decimal("0.01")
UNKNOWN_MERCHANT = "Unknown"


@dataclass(frozen=True)
class DateRange:
    """Closed [start, end] range of expense timestamps."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"range start {self.start} is after end {self.end}")

    def __contains__(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


def month_range(year: int, month: int) -> DateRange:
    if not 1 <= month <= 12:
        raise ValueError(f"month must be 1-12, got {month}")
    last_day = calendar.monthrange(year, month)[1]
    return DateRange(
        start=datetime(year, month, 1),
        end=datetime.combine(date(year, month, last_day), time.max),
    )


def previous_month(period: DateRange) -> DateRange:
    """The calendar month before the one ``period`` starts in."""
    year, month = period.start.year, period.start.month - 1
    if month == 0:
        year, month = year - 1, 12
    return month_range(year, month)


@dataclass(frozen=True)
class CategoryTotal:
    name: str
    value: Decimal


@dataclass(frozen=True)
class DailyTotal:
    day: int
    amount: Decimal


@dataclass(frozen=True)
class MerchantTotal:
    merchant: str
    amount: Decimal
    count: int


@dataclass(frozen=True)
class PeriodAggregate:
    """Summary views over one period, plus the previous month for comparison."""

    total: Decimal = Decimal("0")
    by_category: Tuple[CategoryTotal, ...] = ()
    daily_trend: Tuple[DailyTotal, ...] = ()
    top_merchants: Tuple[MerchantTotal, ...] = ()
    last_period_total: Decimal = Decimal("0")
    last_period_count: int = 0
    last_period_by_category: Tuple[CategoryTotal, ...] = ()

    def is_consistent(self, epsilon: Decimal = SUM_EPSILON) -> bool:
        """Category and daily sums both agree with the total."""
        category_sum = sum((row.value for row in self.by_category), Decimal("0"))
        daily_sum = sum((row.amount for row in self.daily_trend), Decimal("0"))
        return abs(category_sum - self.total) <= epsilon and abs(daily_sum - self.total) <= epsilon

    def to_dict(self) -> Dict[str, Any]:
        """The field-exact response shape, with amounts as floats."""
        return {
            "total": float(self.total),
            "lastMonthTotal": float(self.last_period_total),
            "lastMonthCount": self.last_period_count,
            "byCategory": [{"name": row.name, "value": float(row.value)} for row in self.by_category],
            "lastMonthByCategory": [
                {"name": row.name, "value": float(row.value)} for row in self.last_period_by_category
            ],
            "dailyTrend": [{"day": row.day, "amount": float(row.amount)} for row in self.daily_trend],
            "topMerchants": [
                {"merchant": row.merchant, "amount": float(row.amount), "count": row.count}
                for row in self.top_merchants
            ],
        }


def total_spend(transactions: Iterable[Transaction]) -> Decimal:
    return sum((txn.amount for txn in transactions), Decimal("0"))


def sort_categories(rows: Iterable[CategoryTotal]) -> Tuple[CategoryTotal, ...]:
    return tuple(sorted(rows, key=lambda row: (-row.value, row.name)))


def sort_days(rows: Iterable[DailyTotal]) -> Tuple[DailyTotal, ...]:
    return tuple(sorted(rows, key=lambda row: row.day))


def category_totals(transactions: Iterable[Transaction]) -> Tuple[CategoryTotal, ...]:
    totals: Dict[str, Decimal] = defaultdict(Decimal)
    for txn in transactions:
        totals[txn.category.value] += txn.amount
    return sort_categories(CategoryTotal(name, value) for name, value in totals.items())


def daily_trend(transactions: Iterable[Transaction]) -> Tuple[DailyTotal, ...]:
    totals: Dict[int, Decimal] = defaultdict(Decimal)
    for txn in transactions:
        totals[txn.date.day] += txn.amount
    return sort_days(DailyTotal(day, amount) for day, amount in totals.items())


def top_merchants(transactions: Iterable[Transaction], limit: int = 3) -> Tuple[MerchantTotal, ...]:
    # dicts keep first-seen order, and sorted() is stable, so ties stay in grouping order
    totals: Dict[str, Decimal] = {}
    counts: Counter = Counter()
    for txn in transactions:
        merchant = txn.merchant or UNKNOWN_MERCHANT
        totals[merchant] = totals.get(merchant, Decimal("0")) + txn.amount
        counts[merchant] += 1
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return tuple(MerchantTotal(name, amount, counts[name]) for name, amount in ranked[:limit])


def aggregate_period(
    transactions: Iterable[Transaction],
    period: DateRange,
    merchant_limit: int = 3,
) -> PeriodAggregate:
    """
    Actual (recorded) aggregates for ``period`` and the month before it.

    ``transactions`` may be any superset of the two periods; records outside
    them are ignored.
    """
    snapshot = list(transactions)
    current: List[Transaction] = [txn for txn in snapshot if txn.date in period]
    comparison = previous_month(period)
    previous: List[Transaction] = [txn for txn in snapshot if txn.date in comparison]

    return PeriodAggregate(
        total=total_spend(current),
        by_category=category_totals(current),
        daily_trend=daily_trend(current),
        top_merchants=top_merchants(current, merchant_limit),
        last_period_total=total_spend(previous),
        last_period_count=len(previous),
        last_period_by_category=category_totals(previous),
    )
