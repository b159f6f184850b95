import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError
from pydantic import ValidationError

from app.core.config import settings
from app.db.store import ExpenseStore, ExpenseStoreError
from app.models.expense import Transaction

logger = logging.getLogger(__name__)


class DynamoExpenseStore(ExpenseStore):
    """
    Expense reads against the DynamoDB expenses table.

    Table layout: hash key ``user_id``, range key ``expense_id``. Range reads go
    through a GSI on (``user_id``, ``date``) where ``date`` is an ISO-8601
    string, so lexical ``between`` is chronological. You must create this GSI
    manually.
    """

    def __init__(self, table=None, date_index: Optional[str] = None) -> None:
        if table is None:
            dynamodb = boto3.resource("dynamodb", region_name=settings.DYNAMO_REGION)
            table = dynamodb.Table(settings.DYNAMO_EXPENSES_TABLE)
        self._table = table
        self._date_index = date_index or settings.DYNAMO_DATE_INDEX

    def query_by_range(self, user_id: str, start: datetime, end: datetime) -> List[Transaction]:
        items = self._query_all(
            "query_by_range",
            IndexName=self._date_index,
            KeyConditionExpression=Key("user_id").eq(user_id)
            & Key("date").between(start.isoformat(), end.isoformat()),
        )
        return [_to_transaction(item) for item in items]

    def query_all_recurring(self, user_id: str) -> List[Transaction]:
        items = self._query_all(
            "query_all_recurring",
            KeyConditionExpression=Key("user_id").eq(user_id),
            FilterExpression=Attr("is_recurring").eq(True),
        )
        return [_to_transaction(item) for item in items]

    def _query_all(self, operation: str, **kwargs) -> List[Dict[str, Any]]:
        """Run a query and follow LastEvaluatedKey until the result is complete."""
        items: List[Dict[str, Any]] = []
        try:
            while True:
                response = self._table.query(**kwargs)
                items.extend(response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    return items
                kwargs["ExclusiveStartKey"] = last_key
        except ClientError as e:
            message = e.response.get("Error", {}).get("Message", str(e))
            logger.error(f"{operation} failed: {message}")
            raise ExpenseStoreError(f"{operation} failed: {message}") from e


def _to_transaction(item: Dict[str, Any]) -> Transaction:
    try:
        return Transaction(
            id=item["expense_id"],
            user_id=item["user_id"],
            amount=_to_decimal(item.get("amount", 0)),
            category=item.get("category"),
            date=item["date"],
            merchant=item.get("merchant"),
            description=item.get("description"),
            is_recurring=bool(item.get("is_recurring", False)),
            subscription_status=item.get("subscription_status"),
        )
    except (KeyError, ValidationError) as e:
        logger.error(f"Malformed expense item {item.get('expense_id')!r}: {str(e)}")
        raise ExpenseStoreError(f"Malformed expense item {item.get('expense_id')!r}") from e


def _to_decimal(value: Any) -> Decimal:
    # boto3 hands numbers back as Decimal already; floats only appear in stubs
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))
