"""Tests for push delivery and the notification inbox."""

import httpx
import pytest

from services.notification_service import NotificationService, base_push_token

TOKEN = "ExponentPushToken[abc123]"


@pytest.mark.parametrize("token,expected", [
    (TOKEN, TOKEN),
    (f"{TOKEN}_device2", TOKEN),
    ("not-a-token", None),
    (None, None),
])
def test_base_push_token(token, expected):
    assert base_push_token(token) == expected


@pytest.mark.asyncio
async def test_send_push_posts_to_expo(database, monkeypatch):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"data": {"status": "ok", "id": "ticket-1"}})

    transport = httpx.MockTransport(handler)
    original = httpx.AsyncClient

    class MockedClient(original):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, transport=transport, **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", MockedClient)
    result = await NotificationService(database, push_url="https://push.test/send").send_push(
        f"{TOKEN}_phone", "Hi", "There"
    )

    assert result == {"success": True, "ticketId": "ticket-1"}
    assert requests[0].url == "https://push.test/send"


@pytest.mark.asyncio
async def test_invalid_token_is_not_sent(database):
    result = await NotificationService(database).send_push("garbage", "Hi", "There")
    assert result["success"] is False


@pytest.mark.asyncio
async def test_notify_records_history_even_without_token(database, notifier, store):
    store.seed("users/u1", {"firstName": "Ann"})

    result = await notifier.invitation_accepted("u1", "c1", "Coach Carter")

    assert result["success"] is False
    assert notifier.pushes == []
    history = list(store.list("users/u1/userNotifications").values())
    assert history[0]["title"] == "🎉 Request Accepted!"
    assert history[0]["isRead"] is False
    assert history[0]["data"]["coachId"] == "c1"


@pytest.mark.asyncio
async def test_notify_pushes_to_stored_token(notifier, store):
    store.seed("nutritionists/c1", {"expoPushToken": TOKEN})

    result = await notifier.invitation_received("c1", "u1", "Ann Lee")

    assert result["success"] is True
    assert notifier.pushes[0]["title"] == "🔔 New Client Request"
    assert notifier.pushes[0]["data"]["type"] == "invitation_received"


@pytest.mark.asyncio
async def test_broadcast_motivation(notifier, store):
    store.seed("users/u1", {"expoPushToken": TOKEN})
    store.seed("users/u2", {"expoPushToken": None})
    store.seed("users/u3", {"firstName": "NoToken"})

    sent = await notifier.broadcast_motivation(limit=10, delay_seconds=0)

    assert sent == 1
    assert len(store.list("users/u1/userNotifications")) == 1
    assert store.list("users/u3/userNotifications") == {}


def test_inbox_flow(client, make_user, notifier, store):
    headers = make_user("u1")
    ids = []
    for title in ("one", "two", "three"):
        store.seed(f"users/u1/userNotifications/n-{title}", {
            "title": title, "body": "", "type": "test", "isRead": False, "isVisible": True,
            "createdAt": store.clock(),
        })
        ids.append(f"n-{title}")

    listing = client.get("/api/notifications/", headers=headers).json()
    assert [n["title"] for n in listing["notifications"]] == ["three", "two", "one"]
    assert listing["unreadCount"] == 3

    client.put(f"/api/notifications/mark-read/{ids[0]}", headers=headers)
    assert client.get("/api/notifications/unread-count", headers=headers).json() == {"unreadCount": 2}

    client.delete(f"/api/notifications/{ids[1]}", headers=headers)
    listing = client.get("/api/notifications/", headers=headers).json()
    assert [n["title"] for n in listing["notifications"]] == ["three", "one"]
    assert listing["unreadCount"] == 1

    response = client.patch("/api/notifications/mark-all-read", headers=headers)
    assert response.json()["updated"] == 2
    assert client.get("/api/notifications/unread-count", headers=headers).json() == {"unreadCount": 0}


def test_missing_notification(client, make_user):
    headers = make_user("u1")
    assert client.put("/api/notifications/mark-read/nope", headers=headers).status_code == 404


def test_push_token_is_stored_for_coach(client, make_coach, store):
    headers = make_coach("c1")

    response = client.post("/api/notifications/push-token", json={"token": TOKEN}, headers=headers)
    bad = client.post("/api/notifications/push-token", json={"token": "nope"}, headers=headers)

    assert response.status_code == 200
    assert store.get("nutritionists/c1")["expoPushToken"] == TOKEN
    assert bad.status_code == 400
