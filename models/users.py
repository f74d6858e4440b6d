from __future__ import annotations

from typing import Optional

from pydantic import Field
from pymongo import IndexModel, ASCENDING

from .base import BaseDoc


class User(BaseDoc):
    email: str = Field(min_length=3, max_length=320)
    password_hash: str
    name: Optional[str] = Field(default=None, max_length=100)

    class Settings:
        name = "users"
        indexes = [
            IndexModel([("email", ASCENDING)], unique=True),
        ]
