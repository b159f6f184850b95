import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AnalyticsQuery(BaseModel):
    """Calendar month requested by the caller (month is 1-based)."""

    year: int = Field(ge=1970, le=9999)
    month: int = Field(ge=1, le=12)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SubscriptionPublic(_CamelModel):
    id: str
    key: str
    merchant: Optional[str] = None
    description: Optional[str] = None
    amount: float
    category: str
    date: dt.datetime
    is_recurring: bool = True
    subscription_status: Optional[str] = None
    next_payment_date: Optional[dt.date] = None


class SubscriptionOverview(_CamelModel):
    monthly_total: float
    yearly_total: float
    active_count: int
    subscriptions: List[SubscriptionPublic]
    upcoming_this_week: List[SubscriptionPublic]
