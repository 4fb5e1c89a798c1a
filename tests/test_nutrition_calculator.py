"""Tests for the nutrition plan calculator."""

import pytest

from services.nutrition_service import MIN_DAILY_CALORIES, calculate_nutrition_plan


def profile(**overrides):
    base = {
        "weight": 80,
        "height": 180,
        "age": 30,
        "gender": "Male",
        "activityLevel": "Lightly Active 🚶",
        "goal": "Maintaining Weight",
    }
    base.update(overrides)
    return base


def test_male_maintenance_plan():
    plan = calculate_nutrition_plan(profile())

    # BMR 1780 * 1.375 = 2447.5
    assert plan["calories"] == 2448
    assert plan["protein"] == 128
    assert plan["fat"] == 82
    assert plan["carbs"] == 300
    assert plan["fiber"] == {"min": 30, "max": 38, "recommended": 32}


def test_calories_never_drop_below_floor():
    plan = calculate_nutrition_plan(profile(
        weight=45, height=150, age=60, gender="Female",
        activityLevel="Mostly Sitting 🪑", goal="Losing Weight",
    ))

    assert plan["calories"] == MIN_DAILY_CALORIES
    assert plan["protein"] == 72
    assert plan["fat"] == 40
    assert plan["carbs"] == 138
    assert plan["fiber"] == {"min": 21, "max": 25, "recommended": 22}


def test_gaining_weight_uses_higher_protein_factor():
    plan = calculate_nutrition_plan(profile(goal="Gaining Weight"))
    assert plan["protein"] == 144


def test_unknown_activity_level_defaults_to_lightly_active():
    assert calculate_nutrition_plan(profile(activityLevel="Couch Expert")) == calculate_nutrition_plan(profile())


@pytest.mark.parametrize("field,value", [
    ("weight", None),
    ("weight", 0),
    ("height", -170),
    ("age", "30"),
    ("gender", ""),
    ("goal", None),
])
def test_incomplete_profile_returns_none(field, value):
    assert calculate_nutrition_plan(profile(**{field: value})) is None


@pytest.mark.parametrize("weight,height,age,gender,activity,goal", [
    (50, 155, 25, "Female", "Mostly Sitting 🪑", "Losing Weight"),
    (120, 195, 45, "Male", "Highly Active 💪", "Gaining Weight"),
    (70, 170, 70, "Other", "Active Lifestyle 🚴", "Maintaining Weight"),
])
def test_macros_follow_fixed_ratios(weight, height, age, gender, activity, goal):
    plan = calculate_nutrition_plan(profile(
        weight=weight, height=height, age=age, gender=gender, activityLevel=activity, goal=goal,
    ))

    assert plan["calories"] >= MIN_DAILY_CALORIES
    assert abs(plan["fat"] - plan["calories"] * 0.3 / 9) <= 1
    expected_carbs = (plan["calories"] - plan["protein"] * 4 - plan["calories"] * 0.3) / 4
    assert abs(plan["carbs"] - expected_carbs) <= 1
