from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends

from api.auth.config import get_current_user, require_auth
from api.deps import get_stores, get_today
from schemas.statistics import HabitStatisticsOut, UserStatisticsOut
from services.analytics import HabitLedger, compute_habit_statistics, compute_user_statistics
from stores import Stores

router = APIRouter(tags=["statistics"])


@router.get("/habits/{habit_id}/statistics", response_model=HabitStatisticsOut)
async def habit_statistics(
    habit_id: str,
    current_user=Depends(get_current_user),
    stores: Stores = Depends(get_stores),
    today: date = Depends(get_today),
):
    require_auth(current_user)
    habit = await stores.habits.get(current_user.id, habit_id)
    completions = await stores.ledger.get_completions(habit.id)
    skips = await stores.ledger.get_skips(habit.id)

    stats = compute_habit_statistics(completions, skips, today)
    return HabitStatisticsOut(habit_id=habit.id, **stats.model_dump())


@router.get("/statistics", response_model=UserStatisticsOut)
async def user_statistics(current_user=Depends(get_current_user), stores: Stores = Depends(get_stores)):
    require_auth(current_user)

    ledgers = []
    for habit in await stores.habits.list_for_owner(current_user.id):
        ledgers.append(
            HabitLedger(
                completions=await stores.ledger.get_completions(habit.id),
                skips=await stores.ledger.get_skips(habit.id),
            )
        )

    return UserStatisticsOut(**compute_user_statistics(ledgers).model_dump())
