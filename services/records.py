from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from models.enums import HabitCategory, HabitFrequency


class UserRecord(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    password_hash: str
    created_at: Optional[datetime] = None


class HabitRecord(BaseModel):
    id: str
    owner_id: str
    name: str
    description: Optional[str] = None
    category: HabitCategory
    frequency: HabitFrequency
    times_per_day: Optional[int] = None
    times_per_week: Optional[int] = None
    times_per_month: Optional[int] = None
    reminder_time: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CompletionRecord(BaseModel):
    id: str
    habit_id: str
    day: date
    duration: Optional[int] = None
    notes: Optional[str] = None
    completed_at: Optional[datetime] = None


class SkipRecord(BaseModel):
    id: str
    habit_id: str
    day: date
    reason: Optional[str] = None
    skipped_at: Optional[datetime] = None


class SubscriptionKeys(BaseModel):
    p256dh: str = Field(min_length=1)
    auth: str = Field(min_length=1)


class SubscriptionRecord(BaseModel):
    id: str
    owner_id: str
    habit_id: Optional[str] = None
    endpoint: str
    keys: SubscriptionKeys
    created_at: Optional[datetime] = None
