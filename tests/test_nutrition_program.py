"""Tests for coach-authored weekly nutrition programs."""

import pytest


@pytest.fixture
def coached(make_user, make_coach):
    """User ``u1`` whose active coach is ``c1``."""
    coach_headers = make_coach("c1", clientIds=["u1"])
    user_headers = make_user("u1", activeCoachId="c1")
    return user_headers, coach_headers


def monday_payload(**overrides):
    body = {
        "generalNotes": "Drink before meals",
        "waterIntake": 3,
        "sleepRecommendation": "8 hours",
        "selectedDay": "Monday",
        "weeklyPlan": {
            "Monday": {
                "dailyWorkout": "30 min run",
                "meals": {
                    "Breakfast": {"food": "Oats", "quantity": 80, "unit": "g"},
                    "Dinner": {"food": "Salmon", "timing": "19:00"},
                },
            },
        },
    }
    body.update(overrides)
    return body


def test_coach_saves_day_and_client_reads_it(client, coached, store):
    user_headers, coach_headers = coached

    response = client.post("/nutrition-programs/u1", json=monday_payload(), headers=coach_headers)

    assert response.status_code == 200
    assert response.json()["message"] == "Plan updated for Monday."
    general = store.get("users/u1/nutritional_program/activePlan")
    assert general["waterIntake"] == "3"
    assert general["coachLastUpdatedBy"] == "c1"
    monday = store.get("users/u1/nutritional_program/Monday")
    assert monday["meals"]["Breakfast"] == {
        "food": "Oats", "quantity": "80", "unit": "g", "prepNotes": "", "timing": "", "alternatives": "",
    }
    assert monday["meals"]["Lunch"]["food"] == ""

    view = client.get("/nutrition-programs/u1/day/Monday", headers=user_headers).json()["planView"]
    assert view["dayName"] == "Monday"
    assert view["dayData"]["dailyWorkout"] == "30 min run"
    assert view["dayData"]["completed"] is False
    assert view["sleepRecommendation"] == "8 hours"


def test_summary_lists_defined_days_in_week_order(client, coached):
    user_headers, coach_headers = coached
    for day in ("Friday", "Monday"):
        payload = monday_payload(selectedDay=day, weeklyPlan={day: {"dailyWorkout": "Rest"}})
        assert client.post("/nutrition-programs/u1", json=payload, headers=coach_headers).status_code == 200

    summary = client.get("/nutrition-programs/u1/summary", headers=user_headers).json()["summary"]

    assert summary["definedDays"] == ["Monday", "Friday"]
    assert summary["lastUpdatedBy"] == "c1"


def test_full_program_has_defaults_for_missing_days(client, coached):
    _, coach_headers = coached

    plan = client.get("/nutrition-programs/u1", headers=coach_headers).json()["plan"]

    assert list(plan["weeklyPlan"]) == [
        "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
    ]
    assert plan["waterIntake"] == "2.5"
    assert plan["sleepRecommendation"] == "7-9 hours"
    assert set(plan["weeklyPlan"]["Sunday"]["meals"]) == {"Breakfast", "Lunch", "Dinner", "Snack"}


def test_only_active_coach_can_save(client, coached, make_coach, store):
    other_headers = make_coach("c2")
    user_headers, _ = coached

    assert client.post("/nutrition-programs/u1", json=monday_payload(), headers=other_headers).status_code == 403
    assert client.post("/nutrition-programs/u1", json=monday_payload(), headers=user_headers).status_code == 403
    assert client.get("/nutrition-programs/u1/summary", headers=other_headers).status_code == 403
    assert store.get("users/u1/nutritional_program/Monday") is None


@pytest.mark.parametrize("overrides", [
    {"selectedDay": "Funday"},
    {"weeklyPlan": {}},
    {"weeklyPlan": {"Monday": "eat well"}},
])
def test_invalid_day_payload(client, coached, overrides):
    _, coach_headers = coached
    response = client.post("/nutrition-programs/u1", json=monday_payload(**overrides), headers=coach_headers)
    assert response.status_code == 400


def test_client_marks_day_completed(client, coached, store):
    user_headers, coach_headers = coached
    client.post("/nutrition-programs/u1", json=monday_payload(), headers=coach_headers)

    response = client.patch(
        "/nutrition-programs/u1/completion",
        json={"day": "Monday", "completed": True},
        headers=user_headers,
    )

    assert response.status_code == 200
    monday = store.get("users/u1/nutritional_program/Monday")
    assert monday["completed"] is True
    assert "clientLastUpdatedAt" in monday

    # A later coach edit keeps the client's progress
    client.post("/nutrition-programs/u1", json=monday_payload(), headers=coach_headers)
    assert store.get("users/u1/nutritional_program/Monday")["completed"] is True


def test_completion_rules(client, coached):
    user_headers, coach_headers = coached

    missing = client.patch(
        "/nutrition-programs/u1/completion", json={"day": "Tuesday", "completed": True}, headers=user_headers
    )
    not_client = client.patch(
        "/nutrition-programs/u1/completion", json={"day": "Tuesday", "completed": True}, headers=coach_headers
    )
    not_bool = client.patch(
        "/nutrition-programs/u1/completion", json={"day": "Tuesday", "completed": "yes"}, headers=user_headers
    )

    assert missing.status_code == 404
    assert not_client.status_code == 403
    assert not_bool.status_code == 400
