from __future__ import annotations

from fastapi import APIRouter, Depends

from api.auth.config import get_current_user, require_auth
from api.deps import get_stores
from schemas.habits import DeleteOut, HabitIn, HabitOut, HabitsOut, HabitUpdateIn, habit_changes
from services.records import HabitRecord
from stores import Stores

router = APIRouter(prefix="/habits", tags=["habits"])


def to_habit_out(h: HabitRecord) -> HabitOut:
    return HabitOut(
        id=h.id,
        name=h.name,
        description=h.description,
        category=h.category,
        frequency=h.frequency,
        times_per_day=h.times_per_day,
        times_per_week=h.times_per_week,
        times_per_month=h.times_per_month,
        reminder_time=h.reminder_time,
        created_at=h.created_at,
        updated_at=h.updated_at,
    )


@router.get("", response_model=HabitsOut)
async def list_habits(current_user=Depends(get_current_user), stores: Stores = Depends(get_stores)):
    require_auth(current_user)
    items = await stores.habits.list_for_owner(current_user.id)
    return HabitsOut(items=[to_habit_out(h) for h in items])


@router.post("", response_model=HabitOut, status_code=201)
async def create_habit(payload: HabitIn, current_user=Depends(get_current_user), stores: Stores = Depends(get_stores)):
    require_auth(current_user)
    habit = await stores.habits.create(current_user.id, payload.model_dump())
    return to_habit_out(habit)


@router.get("/{habit_id}", response_model=HabitOut)
async def get_habit(habit_id: str, current_user=Depends(get_current_user), stores: Stores = Depends(get_stores)):
    require_auth(current_user)
    return to_habit_out(await stores.habits.get(current_user.id, habit_id))


@router.put("/{habit_id}", response_model=HabitOut)
async def update_habit(
    habit_id: str,
    payload: HabitUpdateIn,
    current_user=Depends(get_current_user),
    stores: Stores = Depends(get_stores),
):
    require_auth(current_user)
    habit = await stores.habits.update(current_user.id, habit_id, habit_changes(payload))
    return to_habit_out(habit)


@router.delete("/{habit_id}", response_model=DeleteOut)
async def delete_habit(habit_id: str, current_user=Depends(get_current_user), stores: Stores = Depends(get_stores)):
    require_auth(current_user)
    await stores.habits.delete(current_user.id, habit_id)
    return DeleteOut(status="ok")
