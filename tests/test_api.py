from services.notifier import NotifyResult
from tests.conftest import register

HABIT = {"name": "Read", "category": "MORNING", "frequency": "DAILY", "reminder_time": "07:00"}
KEYS = {"p256dh": "p256", "auth": "secret"}


def create_habit(client, headers, **overrides):
    resp = client.post("/api/v1/habits", json={**HABIT, **overrides}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_healthcheck(client):
    resp = client.get("/healthcheck")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "reminders": False}


def test_register_login_and_me(client):
    register(client, email="Ann@Example.com")

    resp = client.post("/api/v1/auth/login", json={"email": "ann@example.com", "password": "password123"})
    assert resp.status_code == 200
    headers = {"Authorization": f"Bearer {resp.json()['access_token']}"}

    me = client.get("/api/v1/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["email"] == "ann@example.com"


def test_register_duplicate_email(client):
    register(client)

    resp = client.post("/api/v1/auth/register", json={"email": "ann@example.com", "password": "password123"})

    assert resp.status_code == 409


def test_login_wrong_password(client):
    register(client)

    resp = client.post("/api/v1/auth/login", json={"email": "ann@example.com", "password": "nope-nope"})

    assert resp.status_code == 401


def test_token_endpoint_accepts_form(client):
    register(client)

    resp = client.post("/api/v1/auth/token", data={"username": "ann@example.com", "password": "password123"})

    assert resp.status_code == 200
    assert resp.json()["token_type"] == "bearer"


def test_requires_token(client):
    assert client.get("/api/v1/habits").status_code == 401
    assert client.get("/api/v1/habits", headers={"Authorization": "Bearer junk"}).status_code == 401


def test_habit_crud(client):
    headers = register(client)
    habit = create_habit(client, headers)

    listed = client.get("/api/v1/habits", headers=headers).json()["items"]
    assert [h["id"] for h in listed] == [habit["id"]]

    resp = client.put(
        f"/api/v1/habits/{habit['id']}",
        json={"name": "Read more", "reminder_time": None},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["name"] == "Read more"
    assert resp.json()["reminder_time"] is None
    assert resp.json()["category"] == "MORNING"

    assert client.delete(f"/api/v1/habits/{habit['id']}", headers=headers).status_code == 200
    assert client.get(f"/api/v1/habits/{habit['id']}", headers=headers).status_code == 404


def test_habit_validation(client):
    headers = register(client)

    bad_time = client.post("/api/v1/habits", json={**HABIT, "reminder_time": "25:00"}, headers=headers)
    bad_category = client.post("/api/v1/habits", json={**HABIT, "category": "NIGHT"}, headers=headers)

    assert bad_time.status_code == 422
    assert bad_category.status_code == 422


def test_habits_are_private(client):
    ann = register(client)
    bob = register(client, email="bob@example.com")
    habit = create_habit(client, ann)

    assert client.get(f"/api/v1/habits/{habit['id']}", headers=bob).status_code == 404
    assert client.get("/api/v1/habits", headers=bob).json()["items"] == []


def test_completion_then_duplicate_then_skip(client):
    headers = register(client)
    habit = create_habit(client, headers)
    url = f"/api/v1/habits/{habit['id']}"

    first = client.post(f"{url}/completions", json={"date": "2024-03-15", "duration": 20}, headers=headers)
    again = client.post(f"{url}/completions", json={"date": "2024-03-15"}, headers=headers)
    skip = client.post(f"{url}/skips", json={"date": "2024-03-15", "reason": "tired"}, headers=headers)

    assert first.status_code == 201
    assert first.json()["date"] == "2024-03-15"
    assert again.status_code == 409
    assert skip.status_code == 409
    items = client.get(f"{url}/completions", headers=headers).json()["items"]
    assert len(items) == 1


def test_list_completions_by_range(client):
    headers = register(client)
    habit = create_habit(client, headers)
    url = f"/api/v1/habits/{habit['id']}/completions"
    for day in ("2024-03-01", "2024-03-05", "2024-03-10"):
        client.post(url, json={"date": day}, headers=headers)

    resp = client.get(url, params={"start_date": "2024-03-02", "end_date": "2024-03-10"}, headers=headers)

    assert [c["date"] for c in resp.json()["items"]] == ["2024-03-10", "2024-03-05"]


def test_delete_completion_and_skip(client):
    headers = register(client)
    habit = create_habit(client, headers)
    url = f"/api/v1/habits/{habit['id']}"
    completion = client.post(f"{url}/completions", json={"date": "2024-03-15"}, headers=headers).json()
    skip = client.post(f"{url}/skips", json={"date": "2024-03-14"}, headers=headers).json()

    assert client.delete(f"/api/v1/habits/completions/{completion['id']}", headers=headers).status_code == 204
    assert client.delete(f"/api/v1/habits/skips/{skip['id']}", headers=headers).status_code == 204
    assert client.delete(f"/api/v1/habits/skips/{skip['id']}", headers=headers).status_code == 404


def test_cannot_delete_someone_elses_completion(client):
    ann = register(client)
    bob = register(client, email="bob@example.com")
    habit = create_habit(client, ann)
    completion = client.post(
        f"/api/v1/habits/{habit['id']}/completions", json={"date": "2024-03-15"}, headers=ann
    ).json()

    resp = client.delete(f"/api/v1/habits/completions/{completion['id']}", headers=bob)

    assert resp.status_code == 404


def test_habit_statistics(client):
    headers = register(client)
    habit = create_habit(client, headers)
    url = f"/api/v1/habits/{habit['id']}"
    client.post(f"{url}/completions", json={"date": "2024-03-15", "duration": 30}, headers=headers)
    client.post(f"{url}/completions", json={"date": "2024-03-14", "duration": 10}, headers=headers)
    client.post(f"{url}/skips", json={"date": "2024-03-13"}, headers=headers)
    client.post(f"{url}/completions", json={"date": "2024-03-12"}, headers=headers)

    stats = client.get(f"{url}/statistics", headers=headers).json()

    assert stats == {
        "habit_id": habit["id"],
        "current_streak": 2,
        "longest_streak": 2,
        "completion_rate": 75.0,
        "total_completions": 3,
        "total_skips": 1,
        "total_time": 40,
    }


def test_user_statistics(client):
    headers = register(client)
    read = create_habit(client, headers)
    run = create_habit(client, headers, name="Run")
    create_habit(client, headers, name="Stretch")
    client.post(f"/api/v1/habits/{read['id']}/completions", json={"date": "2024-03-15"}, headers=headers)
    client.post(f"/api/v1/habits/{run['id']}/skips", json={"date": "2024-03-15"}, headers=headers)

    stats = client.get("/api/v1/statistics", headers=headers).json()

    assert stats["total_habits"] == 3
    assert stats["total_completions"] == 1
    assert stats["total_skips"] == 1
    assert stats["average_completion_rate"] == 50.0


def test_vapid_key(client):
    headers = register(client)

    resp = client.get("/api/v1/notifications/vapid-key", headers=headers)

    assert resp.json() == {"public_key": "test-public-key"}


def test_subscribe_and_resubscribe(client):
    headers = register(client)
    habit = create_habit(client, headers)
    body = {"endpoint": "https://push.example/1", "keys": KEYS, "habit_id": habit["id"]}

    first = client.post("/api/v1/notifications/subscribe", json=body, headers=headers)
    second = client.post("/api/v1/notifications/subscribe", json=body, headers=headers)

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["subscription_id"] == first.json()["subscription_id"]


def test_subscribe_rejects_foreign_endpoint_and_habit(client):
    ann = register(client)
    bob = register(client, email="bob@example.com")
    habit = create_habit(client, ann)
    body = {"endpoint": "https://push.example/1", "keys": KEYS}
    client.post("/api/v1/notifications/subscribe", json=body, headers=ann)

    taken = client.post("/api/v1/notifications/subscribe", json=body, headers=bob)
    foreign_habit = client.post(
        "/api/v1/notifications/subscribe",
        json={"endpoint": "https://push.example/2", "keys": KEYS, "habit_id": habit["id"]},
        headers=bob,
    )

    assert taken.status_code == 409
    assert foreign_habit.status_code == 404


def test_unsubscribe(client):
    ann = register(client)
    bob = register(client, email="bob@example.com")
    body = {"endpoint": "https://push.example/1", "keys": KEYS}
    client.post("/api/v1/notifications/subscribe", json=body, headers=ann)

    forbidden = client.post("/api/v1/notifications/unsubscribe", json={"endpoint": body["endpoint"]}, headers=bob)
    ok = client.post("/api/v1/notifications/unsubscribe", json={"endpoint": body["endpoint"]}, headers=ann)
    missing = client.post("/api/v1/notifications/unsubscribe", json={"endpoint": body["endpoint"]}, headers=ann)

    assert forbidden.status_code == 403
    assert ok.status_code == 204
    assert missing.status_code == 204


def test_run_reminders_requires_internal_token(client):
    assert client.post("/api/v1/notifications/reminders/run").status_code == 403
    resp = client.post("/api/v1/notifications/reminders/run", headers={"X-Internal-Token": "wrong"})
    assert resp.status_code == 403


def test_run_reminders(client, notifier):
    headers = register(client)
    read = create_habit(client, headers)
    done = create_habit(client, headers, name="Run")
    client.post(f"/api/v1/habits/{done['id']}/completions", json={"date": "2024-03-15"}, headers=headers)
    client.post(
        "/api/v1/notifications/subscribe",
        json={"endpoint": "https://push.example/read", "keys": KEYS, "habit_id": read["id"]},
        headers=headers,
    )
    client.post(
        "/api/v1/notifications/subscribe",
        json={"endpoint": "https://push.example/gone", "keys": KEYS},
        headers=headers,
    )
    notifier.results["https://push.example/gone"] = NotifyResult.expired()

    resp = client.post("/api/v1/notifications/reminders/run", headers={"X-Internal-Token": "internal"})

    body = resp.json()
    assert resp.status_code == 200
    assert body["due"] == 1
    assert body["sent"] == 1
    assert body["pruned"] == 1
    assert notifier.calls[0][2]["habitId"] == read["id"]


def test_list_own_subscriptions(client):
    ann = register(client)
    bob = register(client, email="bob@example.com")
    habit = create_habit(client, ann)
    client.post(
        "/api/v1/notifications/subscribe",
        json={"endpoint": "https://push.example/ann", "keys": KEYS, "habit_id": habit["id"]},
        headers=ann,
    )
    client.post("/api/v1/notifications/subscribe", json={"endpoint": "https://push.example/bob", "keys": KEYS}, headers=bob)

    items = client.get("/api/v1/notifications/subscriptions", headers=ann).json()["items"]

    assert [(s["endpoint"], s["habit_id"]) for s in items] == [("https://push.example/ann", habit["id"])]
    assert "keys" not in items[0]


def test_login_attempts_are_rate_limited(client):
    register(client)
    bad = {"email": "ann@example.com", "password": "wrong-password"}

    statuses = [client.post("/api/v1/auth/login", json=bad).status_code for _ in range(6)]

    assert statuses == [401] * 5 + [429]
    resp = client.post("/api/v1/auth/login", json={"email": "ann@example.com", "password": "password123"})
    assert resp.status_code == 429
    assert resp.json()["detail"] == "Too many authentication attempts, please try again later."


def test_rate_limit_can_be_disabled(settings, stores, notifier):
    from fastapi.testclient import TestClient

    from main import create_app

    app = create_app(settings=settings.model_copy(update={"rate_limit_enabled": False}), stores=stores, notifier=notifier)
    with TestClient(app) as c:
        statuses = [
            c.post("/api/v1/auth/login", json={"email": "nobody@example.com", "password": "x"}).status_code
            for _ in range(7)
        ]

    assert statuses == [401] * 7
