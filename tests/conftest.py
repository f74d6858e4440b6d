import os

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("REMINDERS_ENABLED", "0")
os.environ.setdefault("PUSH_MODE", "stub")

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from config import Settings
from models.enums import HabitCategory, HabitFrequency
from services.dispatcher import ReminderDispatcher
from services.matcher import ReminderMatcher
from services.notifier import NotifyResult
from stores import memory_stores

NOW = datetime(2024, 3, 15, 7, 0)


class FakeNotifier:
    """Records every send; per-endpoint results default to OK."""

    def __init__(self, results=None):
        self.results = dict(results or {})
        self.calls = []

    async def send(self, endpoint, keys, payload):
        self.calls.append((endpoint, keys, payload))
        result = self.results.get(endpoint, NotifyResult.ok())
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def stores():
    return memory_stores()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def dispatcher(stores, notifier):
    matcher = ReminderMatcher(stores.habits, stores.ledger)
    return ReminderDispatcher(matcher, stores.subscriptions, notifier)


@pytest.fixture
def settings():
    return Settings(
        storage_backend="memory",
        jwt_secret="test-secret",
        bcrypt_rounds=4,
        reminders_enabled=False,
        vapid_public_key="test-public-key",
        push_internal_token="internal",
    )


@pytest.fixture
def client(settings, stores, notifier):
    from api.auth.config import limiter
    from main import create_app

    limiter.reset()
    app = create_app(settings=settings, stores=stores, notifier=notifier, clock=lambda: NOW)
    with TestClient(app) as c:
        yield c


def habit_data(**overrides):
    data = {
        "name": "Read",
        "category": HabitCategory.MORNING,
        "frequency": HabitFrequency.DAILY,
        "reminder_time": "07:00",
    }
    data.update(overrides)
    return data


def register(client, email="ann@example.com", password="password123"):
    resp = client.post("/api/v1/auth/register", json={"email": email, "password": password})
    assert resp.status_code == 201, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}
