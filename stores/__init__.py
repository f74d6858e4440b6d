from __future__ import annotations

from dataclasses import dataclass

from models.enums import StorageBackend
from .base import HabitStore, LedgerStore, SubscriptionRegistry, UserStore


@dataclass
class Stores:
    users: UserStore
    habits: HabitStore
    ledger: LedgerStore
    subscriptions: SubscriptionRegistry


def memory_stores() -> Stores:
    from .memory import (
        MemoryHabitStore,
        MemoryLedgerStore,
        MemoryState,
        MemorySubscriptionRegistry,
        MemoryUserStore,
    )

    state = MemoryState()
    return Stores(
        users=MemoryUserStore(state),
        habits=MemoryHabitStore(state),
        ledger=MemoryLedgerStore(state),
        subscriptions=MemorySubscriptionRegistry(state),
    )


def mongo_stores() -> Stores:
    from .mongo import MongoHabitStore, MongoLedgerStore, MongoSubscriptionRegistry, MongoUserStore

    return Stores(
        users=MongoUserStore(),
        habits=MongoHabitStore(),
        ledger=MongoLedgerStore(),
        subscriptions=MongoSubscriptionRegistry(),
    )


def build_stores(backend: str) -> Stores:
    if backend == StorageBackend.memory.value:
        return memory_stores()
    if backend == StorageBackend.mongo.value:
        return mongo_stores()
    raise ValueError(f"Unknown storage backend: {backend}")
