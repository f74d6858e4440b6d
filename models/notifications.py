from __future__ import annotations

from typing import Dict, Optional

from beanie.odm.fields import PydanticObjectId
from pydantic import Field
from pymongo import IndexModel, ASCENDING

from .base import BaseDoc


class NotificationSubscription(BaseDoc):
    user_id: PydanticObjectId
    habit_id: Optional[PydanticObjectId] = None
    endpoint: str = Field(min_length=8, max_length=4096)
    keys: Dict[str, str] = Field(default_factory=dict)

    class Settings:
        name = "notification_subscriptions"
        indexes = [
            IndexModel([("endpoint", ASCENDING)], unique=True),
            IndexModel([("user_id", ASCENDING)]),
            IndexModel([("habit_id", ASCENDING)]),
        ]
