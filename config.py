from __future__ import annotations

import os
from typing import List, Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name, default) or default).strip()


def _env_bool(name: str, default: bool) -> bool:
    raw = _env(name, "1" if default else "0").lower()
    return raw in ("1", "true", "yes", "on")


class Settings(BaseModel):
    mongo_uri: str = "mongodb://127.0.0.1:27017"
    db_name: str = "habit_tracker"
    storage_backend: str = "mongo"

    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_access_minutes: int = Field(default=60 * 24 * 7, ge=1)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    push_mode: str = "stub"
    vapid_public_key: str = ""
    vapid_private_key: str = ""
    vapid_subject: str = ""
    push_timeout_seconds: float = Field(default=10.0, gt=0)
    push_internal_token: str = ""

    rate_limit_enabled: bool = True

    reminders_enabled: bool = True
    app_timezone: str = ""
    log_level: str = "INFO"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    def tzinfo(self) -> Optional[ZoneInfo]:
        if not self.app_timezone:
            return None
        return ZoneInfo(self.app_timezone)


def load_settings() -> Settings:
    origins = [o.strip() for o in _env("CORS_ORIGINS", "*").split(",") if o.strip()]
    return Settings(
        mongo_uri=_env("MONGO_URI", "mongodb://127.0.0.1:27017"),
        db_name=_env("DB_NAME", "habit_tracker"),
        storage_backend=_env("STORAGE_BACKEND", "mongo").lower(),
        jwt_secret=_env("JWT_SECRET"),
        jwt_algorithm=_env("JWT_ALGORITHM", "HS256"),
        jwt_access_minutes=int(_env("JWT_ACCESS_MINUTES", str(60 * 24 * 7))),
        bcrypt_rounds=int(_env("BCRYPT_ROUNDS", "12")),
        push_mode=_env("PUSH_MODE", "stub").lower(),
        vapid_public_key=_env("VAPID_PUBLIC_KEY"),
        vapid_private_key=_env("VAPID_PRIVATE_KEY"),
        vapid_subject=_env("VAPID_SUBJECT"),
        push_timeout_seconds=float(_env("PUSH_TIMEOUT_SECONDS", "10")),
        push_internal_token=_env("PUSH_INTERNAL_TOKEN"),
        rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", True),
        reminders_enabled=_env_bool("REMINDERS_ENABLED", True),
        app_timezone=_env("APP_TIMEZONE"),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
        cors_origins=origins or ["*"],
    )
