"""
Subscription identity and activation.

A subscription is not stored anywhere: it is inferred on every request from
the user's recurring-flagged expenses. Expenses whose canonical keys match
are the same subscription, and the most recent one speaks for it.

Known limitation: two different merchants whose names normalise to the same
string are merged into one subscription.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from app.models.expense import Category, SubscriptionStatus, Transaction

KeyFunc = Callable[[Transaction], str]


def canonical_key(txn: Transaction) -> str:
    """Lowercased, trimmed merchant, or description when merchant is absent."""
    return txn.label.strip().lower()


@dataclass(frozen=True)
class Subscription:
    key: str
    transaction: Transaction
    status: Optional[SubscriptionStatus]
    amount: Decimal
    category: Category
    anchor_date: date

    @classmethod
    def from_transaction(cls, key: str, txn: Transaction) -> "Subscription":
        return cls(
            key=key,
            transaction=txn,
            status=txn.subscription_status,
            amount=txn.amount,
            category=txn.category,
            anchor_date=txn.date.date(),
        )


def resolve_subscriptions(
    transactions: Iterable[Transaction],
    key_fn: KeyFunc = canonical_key,
) -> Dict[str, Transaction]:
    """Map each canonical key to its most recent recurring transaction."""
    latest_first = sorted(
        (txn for txn in transactions if txn.is_recurring),
        key=lambda txn: (txn.date, txn.id),
        reverse=True,
    )
    resolved: Dict[str, Transaction] = {}
    for txn in latest_first:
        key = key_fn(txn)
        if key not in resolved:
            resolved[key] = txn
    return resolved


def build_subscriptions(
    transactions: Iterable[Transaction],
    key_fn: KeyFunc = canonical_key,
) -> List[Subscription]:
    return [
        Subscription.from_transaction(key, txn)
        for key, txn in resolve_subscriptions(transactions, key_fn).items()
    ]


def is_active(subscription: Subscription) -> bool:
    # Unset status counts as active
    return subscription.status != SubscriptionStatus.INACTIVE


def active_subscriptions(subscriptions: Iterable[Subscription]) -> List[Subscription]:
    return [sub for sub in subscriptions if is_active(sub)]
