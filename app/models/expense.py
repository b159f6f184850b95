from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class Category(str, Enum):
    FOOD = "Food"
    TRANSPORT = "Transport"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    HOUSING = "Housing"
    UTILITIES = "Utilities"
    HEALTH = "Health"
    EDUCATION = "Education"
    PERSONAL = "Personal"
    OTHER = "Other"

    @classmethod
    def resolve(cls, value: Any) -> "Category":
        """Map a raw category value onto the closed set, falling back to Other."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if member.value.lower() == wanted:
                    return member
        return cls.OTHER


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Transaction(BaseModel):
    """A recorded expense as read from the expense store. Immutable."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    user_id: str
    amount: Decimal = Field(ge=0)
    category: Category = Category.OTHER
    date: datetime
    merchant: Optional[str] = None
    description: Optional[str] = None
    is_recurring: bool = False
    subscription_status: Optional[SubscriptionStatus] = None

    @field_validator("category", mode="before")
    @classmethod
    def resolve_category(cls, value: Any) -> Category:
        return Category.resolve(value)

    @field_validator("subscription_status", mode="before")
    @classmethod
    def blank_status_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("date")
    @classmethod
    def naive_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    @model_validator(mode="after")
    def require_label(self) -> "Transaction":
        if not (self.merchant or "").strip() and not (self.description or "").strip():
            raise ValueError("description is required when merchant is absent")
        return self

    @property
    def label(self) -> str:
        """Merchant when present, otherwise the description."""
        return self.merchant if (self.merchant or "").strip() else (self.description or "")
