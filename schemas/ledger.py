from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field


class CompletionIn(BaseModel):
    date: dt.date
    duration: Optional[int] = Field(default=None, ge=1, le=1440)
    notes: Optional[str] = Field(default=None, max_length=500)


class CompletionOut(BaseModel):
    id: str
    habit_id: str
    date: dt.date
    duration: Optional[int] = None
    notes: Optional[str] = None
    completed_at: Optional[dt.datetime] = None


class CompletionsOut(BaseModel):
    items: List[CompletionOut] = Field(default_factory=list)


class SkipIn(BaseModel):
    date: dt.date
    reason: Optional[str] = Field(default=None, max_length=500)


class SkipOut(BaseModel):
    id: str
    habit_id: str
    date: dt.date
    reason: Optional[str] = None
    skipped_at: Optional[dt.datetime] = None


class SkipsOut(BaseModel):
    items: List[SkipOut] = Field(default_factory=list)
