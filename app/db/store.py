"""
Expense store interface.

Persistence of raw expense records lives outside the analytics engine; the
engine only needs the two reads below. The DynamoDB table is the deployed
backend, the in-memory store backs tests and local runs.
"""
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Union

from pydantic import ValidationError

from app.models.expense import Transaction

logger = logging.getLogger(__name__)


class ExpenseStoreError(Exception):
    """Raised when the expense store cannot serve a read."""


class ExpenseStore(ABC):
    @abstractmethod
    def query_by_range(self, user_id: str, start: datetime, end: datetime) -> List[Transaction]:
        """All of a user's transactions dated within [start, end]."""

    @abstractmethod
    def query_all_recurring(self, user_id: str) -> List[Transaction]:
        """A user's full recurring history, any date."""


class InMemoryExpenseStore(ExpenseStore):
    def __init__(self, transactions: Iterable[Transaction] = ()) -> None:
        self._transactions = list(transactions)

    @classmethod
    def from_json(cls, path: Optional[Union[str, Path]]) -> "InMemoryExpenseStore":
        """
        Load a store from a JSON array of expense records.

        Records use the same field names as the API (``userId``, ``isRecurring``,
        ...). An unset or missing file gives an empty store.
        """
        if not path:
            return cls()

        expenses_file = Path(path)
        if not expenses_file.exists():
            logger.warning(f"Expense file {expenses_file} not found, starting with an empty store")
            return cls()

        with expenses_file.open() as fp:
            rows = json.load(fp)

        try:
            transactions = [Transaction.model_validate(row) for row in rows]
        except ValidationError as exc:
            raise ExpenseStoreError(f"Invalid expense record in {expenses_file}: {exc}") from exc

        logger.info(f"Loaded {len(transactions)} expenses from {expenses_file}")
        return cls(transactions)

    def query_by_range(self, user_id: str, start: datetime, end: datetime) -> List[Transaction]:
        return [
            txn for txn in self._transactions
            if txn.user_id == user_id and start <= txn.date <= end
        ]

    def query_all_recurring(self, user_id: str) -> List[Transaction]:
        return [txn for txn in self._transactions if txn.user_id == user_id and txn.is_recurring]
