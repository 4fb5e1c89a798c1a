import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

# Add root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from api.dependencies import get_database, get_email_service, get_notification_service  # noqa: E402
from api.main import app  # noqa: E402
from services.notification_service import NotificationService  # noqa: E402
from tests.fake_firestore import FakeDatabase  # noqa: E402


class RecordingNotifier(NotificationService):
    """Writes history like the real service but records pushes instead of sending them."""

    def __init__(self, database):
        super().__init__(database, push_url="http://push.invalid")
        self.pushes: List[Dict[str, Any]] = []

    async def send_push(self, push_token, title, body, data=None):
        self.pushes.append({"token": push_token, "title": title, "body": body, "data": data or {}})
        return {"success": True, "ticketId": f"ticket-{len(self.pushes)}"}


class RecordingEmailService:
    def __init__(self):
        self.sent: List[Dict[str, Any]] = []

    async def _record(self, kind: str, to: str, **extra) -> Dict[str, Any]:
        self.sent.append({"kind": kind, "to": to, **extra})
        return {"success": True, "messageId": f"msg-{len(self.sent)}"}

    async def send_coach_approval(self, coach_email, coach_name):
        return await self._record("approval", coach_email, name=coach_name)

    async def send_coach_rejection(self, coach_email, coach_name, reason=None):
        return await self._record("rejection", coach_email, name=coach_name, reason=reason)

    async def send_coach_pending(self, coach_email, coach_name):
        return await self._record("pending", coach_email, name=coach_name)


@pytest.fixture
def database():
    return FakeDatabase()


@pytest.fixture
def store(database):
    return database.client


@pytest.fixture
def fake_auth(database):
    return database.auth


@pytest.fixture
def notifier(database):
    return RecordingNotifier(database)


@pytest.fixture
def email_service():
    return RecordingEmailService()


@pytest.fixture
def client(database, notifier, email_service):
    app.dependency_overrides[get_database] = lambda: database
    app.dependency_overrides[get_notification_service] = lambda: notifier
    app.dependency_overrides[get_email_service] = lambda: email_service
    # No context manager: the lifespan would try to reach Firebase
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(store, fake_auth):
    """Create an Auth user plus a ``users`` document; returns auth headers."""

    def _make(uid: str, **fields):
        fake_auth.add_user(uid, fields.get("email", f"{uid}@example.com"))
        store.seed(f"users/{uid}", {
            "uid": uid,
            "email": f"{uid}@example.com",
            "userType": "Personal",
            "firstName": uid.capitalize(),
            "lastName": "Tester",
            **fields,
        })
        return {"Authorization": f"Bearer token-{uid}"}

    return _make


@pytest.fixture
def make_coach(store, fake_auth):
    def _make(uid: str, **fields):
        fake_auth.add_user(uid, fields.get("email", f"{uid}@example.com"))
        store.seed(f"nutritionists/{uid}", {
            "uid": uid,
            "email": f"{uid}@example.com",
            "userType": "Professional",
            "firstName": uid.capitalize(),
            "lastName": "Coach",
            "specialization": "Sports nutrition",
            "isVerified": True,
            "clientIds": [],
            "averageRating": 0,
            "ratingCount": 0,
            **fields,
        })
        return {"Authorization": f"Bearer token-{uid}"}

    return _make


@pytest.fixture
def make_admin(store, fake_auth):
    def _make(uid: str = "admin1"):
        fake_auth.add_user(uid, f"{uid}@example.com", claims={"admin": True})
        store.seed(f"admin/{uid}", {"uid": uid, "email": f"{uid}@example.com", "userType": "Admin", "isAdmin": True})
        return {"Authorization": f"Bearer token-{uid}"}

    return _make
