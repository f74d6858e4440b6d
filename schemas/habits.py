from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from models.enums import HabitCategory, HabitFrequency
from utils.dates import HHMM_RE

HHMM_PATTERN = HHMM_RE.pattern


class HabitIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    category: HabitCategory
    frequency: HabitFrequency
    times_per_day: Optional[int] = Field(default=None, ge=1, le=24)
    times_per_week: Optional[int] = Field(default=None, ge=1, le=7)
    times_per_month: Optional[int] = Field(default=None, ge=1, le=31)
    reminder_time: Optional[str] = Field(default=None, pattern=HHMM_PATTERN)


class HabitUpdateIn(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    category: Optional[HabitCategory] = None
    frequency: Optional[HabitFrequency] = None
    times_per_day: Optional[int] = Field(default=None, ge=1, le=24)
    times_per_week: Optional[int] = Field(default=None, ge=1, le=7)
    times_per_month: Optional[int] = Field(default=None, ge=1, le=31)
    reminder_time: Optional[str] = Field(default=None, pattern=HHMM_PATTERN)


class HabitOut(BaseModel):
    id: str
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


class HabitsOut(BaseModel):
    items: List[HabitOut] = Field(default_factory=list)


class DeleteOut(BaseModel):
    status: str


CLEARABLE_FIELDS = {"description", "times_per_day", "times_per_week", "times_per_month", "reminder_time"}


def habit_changes(payload: HabitUpdateIn) -> dict:
    """Fields present in the body; explicit nulls only clear optional fields."""
    return {
        k: v
        for k, v in payload.model_dump(exclude_unset=True).items()
        if v is not None or k in CLEARABLE_FIELDS
    }
