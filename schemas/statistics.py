from __future__ import annotations

from pydantic import BaseModel


class HabitStatisticsOut(BaseModel):
    habit_id: str
    total_completions: int
    total_skips: int
    total_time: int
    completion_rate: float
    current_streak: int
    longest_streak: int


class UserStatisticsOut(BaseModel):
    total_habits: int
    total_completions: int
    total_skips: int
    total_time: int
    average_completion_rate: float
