from __future__ import annotations

from motor.motor_asyncio import AsyncIOMotorDatabase
from beanie import init_beanie
from .db import create_client, get_database
from .users import User
from .habits import Habit, LedgerEntry
from .notifications import NotificationSubscription

ALL_MODELS = [
    User,
    Habit,
    LedgerEntry,
    NotificationSubscription,
]


async def init_models(db: AsyncIOMotorDatabase) -> None:
    await init_beanie(database=db, document_models=ALL_MODELS)
