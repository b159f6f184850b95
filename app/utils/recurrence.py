"""Monthly recurrence projection for subscriptions."""
from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, List, Tuple

from dateutil.relativedelta import relativedelta

from app.utils.subscriptions import Subscription, is_active

UPCOMING_WINDOW_DAYS = 7


def next_occurrence(anchor: date, reference: date) -> date:
    """
    Smallest ``anchor + k months`` (k >= 0) that is on or after ``reference``.

    Every candidate is offset from the anchor itself rather than from the
    previous candidate, so month-end anchors clamp to the last day of shorter
    months without drifting: Jan 31 -> Feb 29 -> Mar 31.
    """
    if anchor >= reference:
        return anchor

    months = (reference.year - anchor.year) * 12 + (reference.month - anchor.month)
    # The month arithmetic can land one short when reference's day is past anchor's
    candidate = anchor + relativedelta(months=months)
    while candidate < reference:
        months += 1
        candidate = anchor + relativedelta(months=months)
    return candidate


def anchor_day_of_month(subscription: Subscription) -> int:
    return subscription.anchor_date.day


def upcoming_within(
    subscriptions: Iterable[Subscription],
    reference: date,
    days: int = UPCOMING_WINDOW_DAYS,
) -> List[Tuple[Subscription, date]]:
    """Active subscriptions due in [reference, reference + days], soonest first."""
    window_end = reference + timedelta(days=days)
    due = []
    for sub in subscriptions:
        if not is_active(sub):
            continue
        next_date = next_occurrence(sub.anchor_date, reference)
        if reference <= next_date <= window_end:
            due.append((sub, next_date))
    due.sort(key=lambda pair: (pair[1], pair[0].key))
    return due
