from datetime import date
from decimal import Decimal

from app.models.expense import Category, SubscriptionStatus
from app.utils.subscriptions import (
    active_subscriptions,
    build_subscriptions,
    canonical_key,
    is_active,
    resolve_subscriptions,
)


def test_empty_history_resolves_to_nothing():
    assert resolve_subscriptions([]) == {}
    assert build_subscriptions([]) == []


def test_merchant_variants_collapse_to_one_subscription(make_txn):
    history = [
        make_txn(15.99, "2024-01-03T09:00:00", merchant="Netflix", recurring=True),
        make_txn(15.99, "2024-02-03T09:00:00", merchant=" netflix ", recurring=True),
    ]
    resolved = resolve_subscriptions(history)
    assert list(resolved) == ["netflix"]


def test_most_recent_charge_represents_the_subscription(make_txn):
    older = make_txn(10, "2024-01-10T08:00:00", merchant="Spotify", recurring=True)
    newer = make_txn(12, "2024-03-10T08:00:00", merchant="SPOTIFY", recurring=True, category="Entertainment")
    middle = make_txn(11, "2024-02-10T08:00:00", merchant="spotify", recurring=True)

    [sub] = build_subscriptions([older, newer, middle])
    assert sub.transaction is newer
    assert sub.amount == Decimal("12")
    assert sub.category is Category.ENTERTAINMENT
    assert sub.anchor_date == date(2024, 3, 10)


def test_same_timestamp_is_broken_by_id(make_txn):
    a = make_txn(5, "2024-01-01T00:00:00", merchant="Cloud", recurring=True, txn_id="a")
    b = make_txn(6, "2024-01-01T00:00:00", merchant="cloud", recurring=True, txn_id="b")
    assert resolve_subscriptions([a, b])["cloud"] is b
    assert resolve_subscriptions([b, a])["cloud"] is b


def test_key_falls_back_to_description(make_txn):
    txn = make_txn(30, "2024-01-05T00:00:00", merchant=None, description="  Gym Membership ", recurring=True)
    assert canonical_key(txn) == "gym membership"
    assert list(resolve_subscriptions([txn])) == ["gym membership"]


def test_non_recurring_records_are_ignored(make_txn):
    txn = make_txn(30, "2024-01-05T00:00:00", merchant="Gym", recurring=False)
    assert resolve_subscriptions([txn]) == {}


def test_key_function_is_pluggable(make_txn):
    history = [
        make_txn(9, "2024-01-01T00:00:00", merchant="Disney+", recurring=True),
        make_txn(9, "2024-02-01T00:00:00", merchant="Disney Plus", recurring=True),
    ]

    def alnum_key(txn):
        return "".join(ch for ch in canonical_key(txn) if ch.isalnum()).replace("plus", "")

    assert len(resolve_subscriptions(history)) == 2
    assert list(resolve_subscriptions(history, key_fn=alnum_key)) == ["disney"]


def test_only_inactive_status_deactivates(make_txn):
    subs = build_subscriptions(
        [
            make_txn(10, "2024-01-01T00:00:00", merchant="A", recurring=True, status="active"),
            make_txn(10, "2024-01-01T00:00:00", merchant="B", recurring=True, status=None),
            make_txn(10, "2024-01-01T00:00:00", merchant="C", recurring=True, status="inactive"),
        ]
    )
    by_key = {sub.key: sub for sub in subs}
    assert is_active(by_key["a"])
    assert is_active(by_key["b"])
    assert not is_active(by_key["c"])
    assert by_key["c"].status is SubscriptionStatus.INACTIVE
    assert sorted(sub.key for sub in active_subscriptions(subs)) == ["a", "b"]


def test_latest_status_wins_for_reactivation(make_txn):
    history = [
        make_txn(10, "2024-01-01T00:00:00", merchant="Gym", recurring=True, status="inactive"),
        make_txn(10, "2024-04-01T00:00:00", merchant="Gym", recurring=True, status="active"),
    ]
    [sub] = build_subscriptions(history)
    assert is_active(sub)
