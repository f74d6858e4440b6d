from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from api.auth.config import get_current_user, require_auth
from api.deps import get_stores
from schemas.ledger import CompletionIn, CompletionOut, CompletionsOut
from services.errors import NotFound
from services.records import CompletionRecord
from stores import Stores

router = APIRouter(prefix="/habits", tags=["completions"])


def to_completion_out(c: CompletionRecord) -> CompletionOut:
    return CompletionOut(
        id=c.id,
        habit_id=c.habit_id,
        date=c.day,
        duration=c.duration,
        notes=c.notes,
        completed_at=c.completed_at,
    )


@router.post("/{habit_id}/completions", response_model=CompletionOut, status_code=201)
async def create_completion(
    habit_id: str,
    payload: CompletionIn,
    current_user=Depends(get_current_user),
    stores: Stores = Depends(get_stores),
):
    require_auth(current_user)
    habit = await stores.habits.get(current_user.id, habit_id)
    record = await stores.ledger.create_completion(habit.id, payload.date, payload.duration, payload.notes)
    return to_completion_out(record)


@router.get("/{habit_id}/completions", response_model=CompletionsOut)
async def list_completions(
    habit_id: str,
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    current_user=Depends(get_current_user),
    stores: Stores = Depends(get_stores),
):
    require_auth(current_user)
    habit = await stores.habits.get(current_user.id, habit_id)
    items = await stores.ledger.get_completions(habit.id, start_date, end_date)
    return CompletionsOut(items=[to_completion_out(c) for c in items])


@router.delete("/completions/{completion_id}", status_code=204)
async def delete_completion(
    completion_id: str,
    current_user=Depends(get_current_user),
    stores: Stores = Depends(get_stores),
):
    require_auth(current_user)
    record = await stores.ledger.get_completion(completion_id)
    if not record:
        raise NotFound("Completion not found")
    await stores.habits.get(current_user.id, record.habit_id)
    await stores.ledger.delete_completion(completion_id)
    return Response(status_code=204)
