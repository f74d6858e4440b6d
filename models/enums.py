from __future__ import annotations
from enum import Enum


class HabitCategory(str, Enum):
    MORNING = "MORNING"
    EVENING = "EVENING"
    OTHER = "OTHER"


class HabitFrequency(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"


class LedgerKind(str, Enum):
    completion = "completion"
    skip = "skip"


class StorageBackend(str, Enum):
    mongo = "mongo"
    memory = "memory"


class PushMode(str, Enum):
    stub = "stub"
    webpush = "webpush"
