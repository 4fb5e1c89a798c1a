"""A new user from registration to a first logged day."""


def test_new_user_journey(client, store):
    uid = client.post("/auth/register", json={
        "email": "sam@example.com", "password": "secret123", "userType": "Personal",
        "firstName": "Sam", "lastName": "Rivera",
    }).json()["uid"]
    headers = {"Authorization": f"Bearer token-{uid}"}

    login = client.post("/auth/login", headers=headers).json()
    assert login["profile"]["onboardingComplete"] is False

    client.patch("/user/goal", json={"goal": "Losing Weight"}, headers=headers)
    client.patch("/user/activity-level", json={"activityLevel": "Active Lifestyle 🚴"}, headers=headers)
    client.patch("/user/profile-details", json={"gender": "Male", "age": 40, "height": 175, "weight": 90}, headers=headers)
    client.patch(f"/user/{uid}/complete-onboarding", headers=headers)

    plan = client.post(f"/nutritionPlan/{uid}", headers=headers).json()["nutritionPlan"]
    # (900 + 1093.75 - 200 + 5) * 1.725 - 500
    assert plan["calories"] == 2603
    assert plan["protein"] == 144

    for day in ("2024-06-01", "2024-06-02"):
        client.post("/logMeal/log-meal", json={
            "uid": uid, "mealType": "lunch", "date": day, "title": "Chicken bowl",
            "calories": 650, "protein": 45, "carbs": 70, "fat": 18, "fiber": 9,
        }, headers=headers)
        streak = client.post("/logMeal/update-streak", json={"uid": uid, "dateOfMealLog": day}, headers=headers).json()

    assert streak["currentStreak"] == 2

    daily = client.get(f"/logMeal/daily-data/{uid}/2024-06-02", headers=headers).json()
    assert daily["nutritionPlan"]["calories"] == 2603
    assert daily["consumedTotals"]["calories"] == 650
    assert daily["streak"] == 2
    assert daily["lastStreakDayLogged"] == "2024-06-02"

    assert client.post("/auth/login", headers=headers).json()["profile"]["onboardingComplete"] is True
