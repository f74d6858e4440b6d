"""Streak and completion-rate calculations over a habit's ledger.

Everything here is pure: callers load the ledger, pass it in together with a
reference ``today`` and get plain values back.
"""
from __future__ import annotations

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional, Sequence, Set

from pydantic import BaseModel, Field

from services.records import CompletionRecord, SkipRecord
from utils.dates import as_day


class HabitStatistics(BaseModel):
    total_completions: int = 0
    total_skips: int = 0
    total_time: int = 0
    completion_rate: float = 0.0
    current_streak: int = 0
    longest_streak: int = 0


class UserStatistics(BaseModel):
    total_habits: int = 0
    total_completions: int = 0
    total_skips: int = 0
    total_time: int = 0
    average_completion_rate: float = 0.0


class HabitLedger(BaseModel):
    completions: List[CompletionRecord] = Field(default_factory=list)
    skips: List[SkipRecord] = Field(default_factory=list)


def round2(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def day_set(values: Iterable) -> Set[date]:
    return {as_day(v) for v in values}


def raw_rate(completions: int, skips: int) -> Optional[float]:
    attempts = completions + skips
    if attempts <= 0:
        return None
    return completions / attempts * 100


def completion_rate(completions: int, skips: int) -> float:
    """Share of completions among recorded attempts, in percent, 0 with no attempts."""
    rate = raw_rate(completions, skips)
    return round2(rate) if rate is not None else 0.0


def current_streak(completion_days: Iterable, skip_days: Iterable, today) -> int:
    """Count consecutive completed days walking backward from ``today``.

    A skip or a day without any record ends the walk, so a habit that has
    not been completed yet today reports 0.
    """
    done = day_set(completion_days)
    if not done:
        return 0
    skipped = day_set(skip_days)

    streak = 0
    cursor = as_day(today)
    while True:
        if cursor in skipped:
            break
        if cursor not in done:
            break
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def longest_streak(completion_days: Iterable) -> int:
    """Longest run of calendar-consecutive completion days in the whole history."""
    ordered = sorted(day_set(completion_days))
    if not ordered:
        return 0

    longest = 1
    run = 1
    for prev, cur in zip(ordered, ordered[1:]):
        if (cur - prev).days == 1:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
    return longest


def compute_habit_statistics(
    completions: Sequence[CompletionRecord],
    skips: Sequence[SkipRecord],
    today,
) -> HabitStatistics:
    completion_days = [c.day for c in completions]
    skip_days = [s.day for s in skips]

    return HabitStatistics(
        total_completions=len(completions),
        total_skips=len(skips),
        total_time=sum((c.duration or 0) for c in completions),
        completion_rate=completion_rate(len(completions), len(skips)),
        current_streak=current_streak(completion_days, skip_days, today),
        longest_streak=longest_streak(completion_days),
    )


def compute_user_statistics(ledgers: Sequence[HabitLedger]) -> UserStatistics:
    """Sum totals across habits and average the per-habit completion rates.

    Habits without a single completion or skip stay out of the average.
    """
    stats = UserStatistics(total_habits=len(ledgers))
    rates: List[float] = []

    for ledger in ledgers:
        n_done = len(ledger.completions)
        n_skipped = len(ledger.skips)
        stats.total_completions += n_done
        stats.total_skips += n_skipped
        stats.total_time += sum((c.duration or 0) for c in ledger.completions)

        rate = raw_rate(n_done, n_skipped)
        if rate is not None:
            rates.append(rate)

    if rates:
        stats.average_completion_rate = round2(sum(rates) / len(rates))
    return stats
