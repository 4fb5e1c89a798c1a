"""Tests for the coaching request lifecycle."""

import pytest


@pytest.fixture
def pair(make_user, make_coach):
    """A user ``u1`` and a verified coach ``c1``."""
    return make_user("u1"), make_coach("c1")


def send_request(client, headers, coach_id="c1"):
    return client.post("/coaching/request", json={"nutritionistId": coach_id}, headers=headers)


def accept(client, coach_headers, request_id, user_id="u1"):
    return client.post(
        "/coaching/coach/requests/accept",
        json={"requestId": request_id, "userId": user_id},
        headers=coach_headers,
    )


def select(client, headers, request_id, coach_id="c1"):
    return client.post(
        "/coaching/select",
        json={"requestId": request_id, "nutritionistId": coach_id},
        headers=headers,
    )


def activate(client, user_headers, coach_headers, coach_id="c1", user_id="u1"):
    request_id = send_request(client, user_headers, coach_id).json()["requestId"]
    assert accept(client, coach_headers, request_id, user_id).status_code == 200
    assert select(client, user_headers, request_id, coach_id).status_code == 200
    return request_id


def test_request_creates_pending_document(client, pair, store, notifier):
    user_headers, _ = pair

    response = send_request(client, user_headers)

    assert response.status_code == 201
    request_id = response.json()["requestId"]
    request = store.get(f"users/u1/coachRequests/{request_id}")
    assert request["status"] == "pending"
    assert request["nutritionistId"] == "c1"

    history = store.list("nutritionists/c1/coachNotifications")
    assert [n["type"] for n in history.values()] == ["invitation_received"]
    assert "U1 Tester wants you" in next(iter(history.values()))["body"]


def test_duplicate_request_conflicts(client, pair):
    user_headers, _ = pair
    send_request(client, user_headers)

    response = send_request(client, user_headers)

    assert response.status_code == 409
    assert "pending" in response.json()["error"]


def test_request_to_unknown_coach(client, make_user):
    headers = make_user("u1")
    assert send_request(client, headers, "ghost").status_code == 404


def test_request_status(client, pair):
    user_headers, _ = pair
    assert client.get("/coaching/request-status/c1", headers=user_headers).json() == {"status": "none"}

    send_request(client, user_headers)

    assert client.get("/coaching/request-status/c1", headers=user_headers).json() == {"status": "pending"}


def test_coach_sees_pending_request(client, pair):
    user_headers, coach_headers = pair
    request_id = send_request(client, user_headers).json()["requestId"]

    response = client.get("/coaching/coach/requests", headers=coach_headers)

    assert response.status_code == 200
    requests = response.json()
    assert len(requests) == 1
    assert requests[0]["requestId"] == request_id
    assert requests[0]["userId"] == "u1"
    assert requests[0]["userDetails"]["firstName"] == "U1"


def test_accept_only_once(client, pair, store):
    user_headers, coach_headers = pair
    request_id = send_request(client, user_headers).json()["requestId"]

    assert accept(client, coach_headers, request_id).status_code == 200
    assert store.get(f"users/u1/coachRequests/{request_id}")["status"] == "accepted"
    assert accept(client, coach_headers, request_id).status_code == 409

    history = store.list("users/u1/userNotifications")
    assert [n["title"] for n in history.values()] == ["🎉 Request Accepted!"]


def test_other_coach_cannot_answer(client, pair, make_coach):
    user_headers, _ = pair
    other = make_coach("c2")
    request_id = send_request(client, user_headers).json()["requestId"]

    assert accept(client, other, request_id).status_code == 403


def test_decline(client, pair, store):
    user_headers, coach_headers = pair
    request_id = send_request(client, user_headers).json()["requestId"]

    response = client.post(
        "/coaching/coach/requests/decline",
        json={"requestId": request_id, "userId": "u1"},
        headers=coach_headers,
    )

    assert response.status_code == 200
    assert store.get(f"users/u1/coachRequests/{request_id}")["status"] == "declined"
    # A declined request no longer blocks a new one
    assert send_request(client, user_headers).status_code == 201


def test_select_requires_accepted_request(client, pair):
    user_headers, _ = pair
    request_id = send_request(client, user_headers).json()["requestId"]

    assert select(client, user_headers, request_id).status_code == 409


def test_select_activates_relationship(client, pair, store, make_coach):
    user_headers, coach_headers = pair
    make_coach("c2")

    request_id = activate(client, user_headers, coach_headers)

    assert store.get("users/u1")["activeCoachId"] == "c1"
    assert store.get("nutritionists/c1")["clientIds"] == ["u1"]
    assert store.get(f"users/u1/coachRequests/{request_id}")["status"] == "selected"

    status = client.get("/coaching/status", headers=user_headers).json()
    assert status["activeCoachId"] == "c1"
    assert status["activeCoachDetails"]["lastName"] == "Coach"

    assert send_request(client, user_headers, "c2").status_code == 409

    clients = client.get("/coaching/coach/clients", headers=coach_headers).json()
    assert [c["id"] for c in clients] == ["u1"]


def test_select_second_coach_conflicts(client, pair, store, make_coach):
    user_headers, coach_headers = pair
    second_headers = make_coach("c2")
    first_id = send_request(client, user_headers).json()["requestId"]
    second_id = send_request(client, user_headers, "c2").json()["requestId"]
    assert accept(client, coach_headers, first_id).status_code == 200
    assert accept(client, second_headers, second_id).status_code == 200

    assert select(client, user_headers, first_id).status_code == 200
    response = select(client, user_headers, second_id, "c2")

    assert response.status_code == 409
    assert store.get("users/u1")["activeCoachId"] == "c1"
    assert store.get("nutritionists/c2")["clientIds"] == []
    requests = store.list("users/u1/coachRequests")
    assert [r["status"] for r in requests.values()].count("selected") == 1
    assert requests[second_id]["status"] == "accepted"


def test_deleting_coach_closes_requests(client, pair, store, make_user):
    user_headers, coach_headers = pair
    other_headers = make_user("u2")
    active_id = activate(client, user_headers, coach_headers)
    pending_id = send_request(client, other_headers).json()["requestId"]

    assert client.delete("/expert/c1", headers=coach_headers).status_code == 200

    assert "activeCoachId" not in store.get("users/u1")
    assert store.get(f"users/u1/coachRequests/{active_id}")["status"] == "ended_by_coach"
    assert store.get(f"users/u2/coachRequests/{pending_id}")["status"] == "declined"

    status = client.get("/coaching/status", headers=user_headers).json()
    assert status["activeCoachId"] is None


def test_status_lists_pending_and_accepted(client, pair, make_coach):
    user_headers, coach_headers = pair
    make_coach("c2")
    request_id = send_request(client, user_headers).json()["requestId"]
    send_request(client, user_headers, "c2")
    accept(client, coach_headers, request_id)

    status = client.get("/coaching/status", headers=user_headers).json()

    assert status["activeCoachId"] is None
    assert [r["nutritionistId"] for r in status["acceptedRequests"]] == ["c1"]
    assert [r["nutritionistId"] for r in status["pendingRequests"]] == ["c2"]
    assert status["pendingRequests"][0]["details"]["id"] == "c2"


def test_rating_and_rerating(client, pair, store):
    user_headers, coach_headers = pair
    activate(client, user_headers, coach_headers)

    first = client.post("/coaching/rate", json={"nutritionistId": "c1", "rating": 4}, headers=user_headers)
    assert first.status_code == 200
    assert first.json()["averageRating"] == 4
    assert first.json()["ratingCount"] == 1

    second = client.post("/coaching/rate", json={"nutritionistId": "c1", "rating": 2}, headers=user_headers)
    assert second.json()["averageRating"] == 2
    assert second.json()["ratingCount"] == 1

    assert store.get("nutritionists/c1/ratings/u1")["rating"] == 2
    # The active relationship survives the rating
    assert store.get("users/u1")["activeCoachId"] == "c1"


def test_average_over_several_users(client, pair, make_user, store):
    user_headers, coach_headers = pair
    other = make_user("u2")
    client.post("/coaching/rate", json={"nutritionistId": "c1", "rating": 5}, headers=user_headers)

    response = client.post("/coaching/rate", json={"nutritionistId": "c1", "rating": 4}, headers=other)

    assert response.json() == {"message": "Rating submitted successfully.", "averageRating": 4.5, "ratingCount": 2}


@pytest.mark.parametrize("rating", [0, 6, 3.5, "4", True, None])
def test_invalid_rating(client, pair, rating):
    user_headers, _ = pair
    response = client.post("/coaching/rate", json={"nutritionistId": "c1", "rating": rating}, headers=user_headers)
    assert response.status_code == 400


def test_end_relationship(client, pair, store):
    user_headers, coach_headers = pair
    request_id = activate(client, user_headers, coach_headers)

    response = client.post("/coaching/end-relationship", headers=user_headers)

    assert response.json() == {"message": "Coaching relationship ended."}
    assert "activeCoachId" not in store.get("users/u1")
    assert store.get("nutritionists/c1")["clientIds"] == []
    assert store.get(f"users/u1/coachRequests/{request_id}")["status"] == "ended_by_user"

    again = client.post("/coaching/end-relationship", headers=user_headers)
    assert again.json() == {"message": "No active coach relationship to end."}

    # The same coach can be requested again
    assert send_request(client, user_headers).status_code == 201


def test_coach_ends_relationship(client, pair, store, make_coach):
    user_headers, coach_headers = pair
    stranger = make_coach("c2")
    request_id = activate(client, user_headers, coach_headers)

    forbidden = client.post("/coaching/coach/end-relationship", json={"clientId": "u1"}, headers=stranger)
    assert forbidden.status_code == 403

    response = client.post("/coaching/coach/end-relationship", json={"clientId": "u1"}, headers=coach_headers)

    assert response.status_code == 200
    assert store.get(f"users/u1/coachRequests/{request_id}")["status"] == "ended_by_coach"
    assert store.get("nutritionists/c1")["clientIds"] == []


def test_block_active_coach(client, pair, store):
    user_headers, coach_headers = pair
    request_id = activate(client, user_headers, coach_headers)

    response = client.post("/coaching/block", json={"nutritionistId": "c1"}, headers=user_headers)

    assert response.json()["relationshipEnded"] is True
    assert "activeCoachId" not in store.get("users/u1")
    assert store.get(f"users/u1/coachRequests/{request_id}")["status"] == "blocked_by_user"
    assert store.get("users/u1/blockedCoaches/c1") is not None

    client.post("/coaching/unblock", json={"nutritionistId": "c1"}, headers=user_headers)
    assert store.get("users/u1/blockedCoaches/c1") is None


def test_block_other_coach_keeps_relationship(client, pair, make_coach, store):
    user_headers, coach_headers = pair
    make_coach("c2")
    activate(client, user_headers, coach_headers)

    response = client.post("/coaching/block", json={"nutritionistId": "c2"}, headers=user_headers)

    assert response.json()["relationshipEnded"] is False
    assert store.get("users/u1")["activeCoachId"] == "c1"


def test_client_notes_and_details(client, pair):
    user_headers, coach_headers = pair

    assert client.get("/coaching/coach/client/u1/details", headers=coach_headers).status_code == 403

    activate(client, user_headers, coach_headers)
    saved = client.post("/coaching/coach/client/u1/notes", json={"notes": "Prefers rice"}, headers=coach_headers)
    notes = client.get("/coaching/coach/client/u1/notes", headers=coach_headers).json()
    details = client.get("/coaching/coach/client/u1/details", headers=coach_headers).json()

    assert saved.status_code == 200
    assert notes["notes"] == "Prefers rice"
    assert details["id"] == "u1"


def test_coach_dashboard_summary(client, pair, make_user, store):
    user_headers, coach_headers = pair
    other = make_user("u2")
    activate(client, user_headers, coach_headers)
    send_request(client, other)
    store.seed("chats/c1_u1", {"participants": ["c1", "u1"], "coachUnreadCount": 2, "lastMessage": "hi"})

    summary = client.get("/coaching/coach/dashboard-summary", headers=coach_headers).json()

    assert summary["activeClientCount"] == 1
    assert summary["invitationRequestCount"] == 1
    assert summary["newestInvitation"]["userId"] == "u2"
    assert summary["messagesNeedingReplyCount"] == 2
    assert summary["oldestUnrepliedChat"]["id"] == "c1_u1"
