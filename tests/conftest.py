from datetime import datetime
from decimal import Decimal
from itertools import count

import pytest

from app.models.expense import Transaction

_ids = count(1)


@pytest.fixture
def make_txn():
    """Factory for Transaction records with sensible defaults."""

    def _make(
        amount,
        when,
        category="Food",
        merchant=None,
        description="expense",
        recurring=False,
        status=None,
        user_id="user-1",
        txn_id=None,
    ):
        if isinstance(when, str):
            when = datetime.fromisoformat(when)
        return Transaction(
            id=txn_id or f"txn-{next(_ids):04d}",
            user_id=user_id,
            amount=Decimal(str(amount)),
            category=category,
            date=when,
            merchant=merchant,
            description=description,
            is_recurring=recurring,
            subscription_status=status,
        )

    return _make
