from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from api.auth.config import get_current_user, require_auth
from api.deps import get_stores
from schemas.ledger import SkipIn, SkipOut, SkipsOut
from services.errors import NotFound
from services.records import SkipRecord
from stores import Stores

router = APIRouter(prefix="/habits", tags=["skips"])


def to_skip_out(s: SkipRecord) -> SkipOut:
    return SkipOut(id=s.id, habit_id=s.habit_id, date=s.day, reason=s.reason, skipped_at=s.skipped_at)


@router.post("/{habit_id}/skips", response_model=SkipOut, status_code=201)
async def create_skip(
    habit_id: str,
    payload: SkipIn,
    current_user=Depends(get_current_user),
    stores: Stores = Depends(get_stores),
):
    require_auth(current_user)
    habit = await stores.habits.get(current_user.id, habit_id)
    return to_skip_out(await stores.ledger.create_skip(habit.id, payload.date, payload.reason))


@router.get("/{habit_id}/skips", response_model=SkipsOut)
async def list_skips(
    habit_id: str,
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    current_user=Depends(get_current_user),
    stores: Stores = Depends(get_stores),
):
    require_auth(current_user)
    habit = await stores.habits.get(current_user.id, habit_id)
    items = await stores.ledger.get_skips(habit.id, start_date, end_date)
    return SkipsOut(items=[to_skip_out(s) for s in items])


@router.delete("/skips/{skip_id}", status_code=204)
async def delete_skip(
    skip_id: str,
    current_user=Depends(get_current_user),
    stores: Stores = Depends(get_stores),
):
    require_auth(current_user)
    record = await stores.ledger.get_skip(skip_id)
    if not record:
        raise NotFound("Skip not found")
    await stores.habits.get(current_user.id, record.habit_id)
    await stores.ledger.delete_skip(skip_id)
    return Response(status_code=204)
