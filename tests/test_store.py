import json
from datetime import datetime
from decimal import Decimal

import pytest

from app.core.config import settings
from app.core.deps import get_expense_store
from app.db.store import ExpenseStoreError, InMemoryExpenseStore

ROWS = [
    {
        "id": "e-1",
        "userId": "user-1",
        "amount": 20,
        "category": "food",
        "date": "2024-01-05T10:00:00",
        "merchant": "Cafe",
    },
    {
        "id": "e-2",
        "userId": "user-1",
        "amount": "30.00",
        "category": "Health",
        "date": "2023-12-05T07:00:00",
        "merchant": "Gym",
        "isRecurring": True,
        "subscriptionStatus": "active",
    },
    {
        "id": "e-3",
        "userId": "user-2",
        "amount": 5,
        "date": "2024-01-06T00:00:00",
        "description": "Parking",
    },
]


@pytest.fixture
def expenses_file(tmp_path):
    path = tmp_path / "expenses.json"
    path.write_text(json.dumps(ROWS))
    return path


@pytest.fixture
def fresh_store_cache():
    get_expense_store.cache_clear()
    yield
    get_expense_store.cache_clear()


def test_from_json_serves_both_reads(expenses_file):
    store = InMemoryExpenseStore.from_json(expenses_file)

    january = store.query_by_range("user-1", datetime(2024, 1, 1), datetime(2024, 1, 31, 23, 59, 59))
    recurring = store.query_all_recurring("user-1")

    assert [txn.id for txn in january] == ["e-1"]
    assert january[0].amount == Decimal("20")
    assert [txn.merchant for txn in recurring] == ["Gym"]
    assert recurring[0].amount == Decimal("30.00")


def test_from_json_without_file_is_empty(tmp_path):
    assert InMemoryExpenseStore.from_json(None).query_all_recurring("user-1") == []
    missing = InMemoryExpenseStore.from_json(tmp_path / "nope.json")
    assert missing.query_by_range("user-1", datetime(2000, 1, 1), datetime(2100, 1, 1)) == []


def test_from_json_rejects_bad_records(tmp_path):
    path = tmp_path / "expenses.json"
    path.write_text(json.dumps([{"id": "e-1", "userId": "user-1", "amount": -4, "date": "2024-01-05T10:00:00"}]))

    with pytest.raises(ExpenseStoreError):
        InMemoryExpenseStore.from_json(path)


def test_memory_backend_loads_configured_file(monkeypatch, expenses_file, fresh_store_cache):
    monkeypatch.setattr(settings, "STORE_BACKEND", "memory")
    monkeypatch.setattr(settings, "MEMORY_STORE_PATH", str(expenses_file))

    store = get_expense_store()

    assert isinstance(store, InMemoryExpenseStore)
    assert [txn.id for txn in store.query_all_recurring("user-1")] == ["e-2"]
    assert get_expense_store() is store
