from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Response

from api.auth.config import get_current_user, require_auth
from api.deps import get_clock, get_dispatcher, get_settings, get_stores
from config import Settings
from schemas.notifications import (
    DispatchOut,
    ReminderRunOut,
    SubscribeIn,
    SubscribeOut,
    SubscriptionOut,
    SubscriptionsOut,
    UnsubscribeIn,
    VapidKeyOut,
)
from services.dispatcher import ReminderDispatcher
from stores import Stores

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/vapid-key", response_model=VapidKeyOut)
async def vapid_key(current_user=Depends(get_current_user), settings: Settings = Depends(get_settings)):
    require_auth(current_user)
    if not settings.vapid_public_key:
        raise HTTPException(status_code=500, detail="VAPID public key not configured")
    return VapidKeyOut(public_key=settings.vapid_public_key)


@router.get("/subscriptions", response_model=SubscriptionsOut)
async def list_subscriptions(current_user=Depends(get_current_user), stores: Stores = Depends(get_stores)):
    require_auth(current_user)
    items = await stores.subscriptions.list_for_owner(current_user.id)
    return SubscriptionsOut(
        items=[
            SubscriptionOut(id=s.id, endpoint=s.endpoint, habit_id=s.habit_id, created_at=s.created_at)
            for s in items
        ]
    )


@router.post("/subscribe", response_model=SubscribeOut)
async def subscribe(
    payload: SubscribeIn,
    response: Response,
    current_user=Depends(get_current_user),
    stores: Stores = Depends(get_stores),
):
    require_auth(current_user)

    habit_id = payload.habit_id or None
    if habit_id:
        habit_id = (await stores.habits.get(current_user.id, habit_id)).id

    sub, created = await stores.subscriptions.subscribe(
        current_user.id, payload.endpoint.strip(), payload.keys, habit_id
    )
    response.status_code = 201 if created else 200
    return SubscribeOut(status="ok", subscription_id=sub.id, created=created)


@router.post("/unsubscribe", status_code=204)
async def unsubscribe(
    payload: UnsubscribeIn,
    current_user=Depends(get_current_user),
    stores: Stores = Depends(get_stores),
):
    require_auth(current_user)
    await stores.subscriptions.unsubscribe(current_user.id, payload.endpoint.strip())
    return Response(status_code=204)


@router.post("/reminders/run", response_model=ReminderRunOut)
async def run_reminders(
    x_internal_token: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
    dispatcher: ReminderDispatcher = Depends(get_dispatcher),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    secret = settings.push_internal_token
    if secret and (x_internal_token or "").strip() != secret:
        raise HTTPException(status_code=403, detail="Forbidden")

    tick = await dispatcher.run_tick(clock())
    return ReminderRunOut(
        ran_at=tick.ran_at,
        due=tick.due,
        sent=tick.sent,
        pruned=tick.pruned,
        failed=tick.failed,
        habits=[DispatchOut(**r.model_dump()) for r in tick.habits],
    )
