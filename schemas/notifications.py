from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from services.records import SubscriptionKeys


class VapidKeyOut(BaseModel):
    public_key: str


class SubscribeIn(BaseModel):
    endpoint: str = Field(min_length=8, max_length=4096)
    keys: SubscriptionKeys
    habit_id: Optional[str] = None


class SubscribeOut(BaseModel):
    status: str
    subscription_id: str
    created: bool


class UnsubscribeIn(BaseModel):
    endpoint: str = Field(min_length=8, max_length=4096)


class DispatchOut(BaseModel):
    habit_id: str
    sent: int
    pruned: int
    failed: int


class ReminderRunOut(BaseModel):
    ran_at: datetime
    due: int
    sent: int
    pruned: int
    failed: int
    habits: List[DispatchOut] = Field(default_factory=list)


class SubscriptionOut(BaseModel):
    id: str
    endpoint: str
    habit_id: Optional[str] = None
    created_at: Optional[datetime] = None


class SubscriptionsOut(BaseModel):
    items: List[SubscriptionOut] = Field(default_factory=list)
