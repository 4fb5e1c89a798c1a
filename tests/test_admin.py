"""Tests for admin moderation."""

import asyncio

import pytest

from services import admin_service as admin_module
from services.admin_service import AdminService


@pytest.fixture
def admin_headers(make_admin):
    return make_admin()


@pytest.fixture
def pending_coach(make_coach, store):
    make_coach("c1", isVerified=False, email="coach@example.com")
    store.documents["nutritionists/c1/clientNotes/u1"] = {"notes": "x"}
    return "c1"


def test_admin_routes_require_admin_claim(client, make_user):
    headers = make_user("u1")
    response = client.get("/admin/dashboard-summary", headers=headers)
    assert response.status_code == 403


def test_dashboard_summary(client, admin_headers, make_user, make_coach, store):
    make_user("u1")
    make_user("u2")
    make_coach("c1")
    make_coach("c2", isVerified=False, createdAt=store.clock())
    store.seed("aggregates/globalCounts", {"totalPlansCreated": 4})

    summary = client.get("/admin/dashboard-summary", headers=admin_headers).json()

    assert summary["totalSubscribers"] == 2
    assert summary["totalCoaches"] == 1
    assert summary["pendingCoaches"] == 1
    assert summary["plansCreated"] == 4
    assert summary["mealsToday"] == 0
    assert summary["recentActivity"][0]["id"] == "c2"


def test_pending_coaches_exclude_rejected(client, admin_headers, make_coach, store):
    make_coach("old", isVerified=False, createdAt=store.clock())
    make_coach("new", isVerified=False, createdAt=store.clock())
    make_coach("gone", isVerified=False, verificationStatus="rejected")
    make_coach("ok")

    coaches = client.get("/admin/pending-coaches", headers=admin_headers).json()

    assert [c["id"] for c in coaches] == ["new", "old"]


def test_verify_coach_sends_approval(client, admin_headers, pending_coach, store, fake_auth, email_service):
    response = client.patch(f"/admin/verify-coach/{pending_coach}", json={"verify": True}, headers=admin_headers)

    assert response.json() == {"message": "Coach verified successfully."}
    coach = store.get("nutritionists/c1")
    assert coach["isVerified"] is True
    assert coach["verifiedBy"] == "admin1"
    assert fake_auth.users["c1"].custom_claims["verifiedCoach"] is True
    assert email_service.sent == [{"kind": "approval", "to": "coach@example.com", "name": "C1 Coach"}]

    client.patch(f"/admin/verify-coach/{pending_coach}", json={"verify": False}, headers=admin_headers)
    coach = store.get("nutritionists/c1")
    assert coach["isVerified"] is False
    assert "verifiedBy" not in coach
    assert len(email_service.sent) == 1


def test_verify_unknown_coach(client, admin_headers):
    response = client.patch("/admin/verify-coach/ghost", json={"verify": True}, headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_reject_coach_purges_account(database, store, fake_auth, email_service, pending_coach):
    database.bucket.names.update({"coach_certificates/c1/cert.pdf", "coach_profile_images/c2/me.png"})
    service = AdminService(database, email_service)

    result = await service.reject_coach("admin1", pending_coach, "Missing certificate")

    assert result == {"emailSent": True}
    assert email_service.sent[0]["kind"] == "rejection"
    assert email_service.sent[0]["reason"] == "Missing certificate"

    await asyncio.gather(*list(admin_module._background_tasks))

    assert store.get("nutritionists/c1") is None
    assert store.get("nutritionists/c1/clientNotes/u1") is None
    assert "c1" not in fake_auth.users
    assert database.bucket.names == {"coach_profile_images/c2/me.png"}


@pytest.mark.asyncio
async def test_pending_deletions_are_retried(database, store, email_service, make_coach):
    make_coach("c1", pendingDeletion=True, verificationStatus="rejected")
    make_coach("c2")

    purged = await AdminService(database, email_service).purge_pending_deletions()

    assert purged == 1
    assert store.get("nutritionists/c1") is None
    assert store.get("nutritionists/c2") is not None


@pytest.mark.asyncio
async def test_purge_is_idempotent(database, email_service):
    service = AdminService(database, email_service)
    assert await service.purge_rejected_coach("nobody") is True


@pytest.mark.asyncio
async def test_deleting_coach_detaches_clients(database, store, email_service, make_user, make_coach):
    make_coach("c1", clientIds=["u1"])
    make_user("u1", activeCoachId="c1")

    await AdminService(database, email_service).purge_rejected_coach("c1")

    assert "activeCoachId" not in store.get("users/u1")


def test_list_and_get_users(client, admin_headers, make_user, make_coach):
    make_user("u1", onboardingComplete=True)
    make_coach("c1")

    users = {u["id"]: u for u in client.get("/admin/users", headers=admin_headers).json()}

    assert users["u1"]["userType"] == "Personal"
    assert users["u1"]["onboardingComplete"] is True
    assert users["c1"]["isVerified"] is True
    assert users["admin1"]["isAdmin"] is True

    assert client.get("/admin/users/c1", headers=admin_headers).json()["userType"] == "Professional"
    assert client.get("/admin/users/ghost", headers=admin_headers).status_code == 404


def test_update_user_keeps_to_editable_fields(client, admin_headers, make_user, store):
    make_user("u1")

    response = client.patch(
        "/admin/users/u1", json={"updates": {"goal": "Gaining Weight", "activeCoachId": "c9"}}, headers=admin_headers
    )

    assert response.status_code == 200
    user = store.get("users/u1")
    assert user["goal"] == "Gaining Weight"
    assert "activeCoachId" not in user
    assert user["lastUpdatedBy"] == "admin1"

    rejected = client.patch("/admin/users/u1", json={"updates": {"isAdmin": True}}, headers=admin_headers)
    assert rejected.status_code == 400


def test_toggle_status(client, admin_headers, make_user, store, fake_auth):
    make_user("u1")

    response = client.patch("/admin/users/u1/toggle-status", json={"disabled": True}, headers=admin_headers)

    assert response.json() == {"message": "User account disabled successfully."}
    assert fake_auth.users["u1"].disabled is True
    assert store.get("users/u1")["authDisabled"] is True


def test_delete_user(client, admin_headers, make_user, store, fake_auth):
    make_user("u1")
    store.seed("users/u1/dailyConsumption/2024-05-01", {"totals": {}})

    assert client.delete("/admin/users/admin1", headers=admin_headers).status_code == 403

    response = client.delete("/admin/users/u1", headers=admin_headers)

    assert response.status_code == 200
    assert store.get("users/u1") is None
    assert store.get("users/u1/dailyConsumption/2024-05-01") is None
    assert "u1" not in fake_auth.users


def test_feedback_triage(client, admin_headers, store):
    store.seed("Feedbacks/f1", {"message": "Love it", "status": "New", "createdAt": store.clock()})
    store.seed("Feedbacks/f2", {"message": "Bug", "status": "Read", "createdAt": store.clock()})

    everything = client.get("/admin/feedbacks", headers=admin_headers).json()
    assert [f["id"] for f in everything] == ["f2", "f1"]
    assert everything[0]["senderEmail"] == "anonymous"

    new = client.get("/admin/feedbacks?status=New", headers=admin_headers).json()
    assert [f["id"] for f in new] == ["f1"]

    assert client.get("/admin/feedbacks?status=Spam", headers=admin_headers).status_code == 400

    response = client.patch("/admin/feedbacks/f1/status", json={"status": "Archived"}, headers=admin_headers)
    assert response.json() == {"message": "Feedback status updated to Archived."}
    assert store.get("Feedbacks/f1")["lastUpdatedBy"] == "admin1"

    assert client.patch("/admin/feedbacks/f1/status", json={"status": "Done"}, headers=admin_headers).status_code == 400
    assert client.patch("/admin/feedbacks/f9/status", json={"status": "Read"}, headers=admin_headers).status_code == 404

    client.delete("/admin/feedbacks/f2", headers=admin_headers)
    assert store.get("Feedbacks/f2") is None


def test_get_nutritionist(client, admin_headers, make_coach):
    make_coach("c1")
    body = client.get("/admin/nutritionists/c1", headers=admin_headers).json()
    assert body["id"] == "c1"
    assert body["specialization"] == "Sports nutrition"
