"""Tests for registration and login."""


def register(client, **overrides):
    body = {"email": "new@example.com", "password": "secret123", "userType": "Personal", "firstName": " Ann "}
    body.update(overrides)
    return client.post("/auth/register", json=body)


def test_register_personal_account(client, store, fake_auth):
    response = register(client)

    assert response.status_code == 201
    body = response.json()
    assert body["userType"] == "Personal"
    assert body["message"] == "Personal registered successfully!"
    profile = store.get(f"users/{body['uid']}")
    assert profile["firstName"] == "Ann"
    assert profile["onboardingComplete"] is False
    assert fake_auth.users[body["uid"]].email == "new@example.com"


def test_register_professional_is_unverified(client, store):
    uid = register(client, userType="Professional").json()["uid"]

    coach = store.get(f"nutritionists/{uid}")
    assert coach["isVerified"] is False
    assert coach["clientIds"] == []


def test_register_admin_sets_claim(client, fake_auth):
    uid = register(client, userType="Admin").json()["uid"]
    assert fake_auth.users[uid].custom_claims == {"admin": True}


def test_register_rejects_duplicates_and_weak_passwords(client):
    register(client)

    assert register(client).status_code == 409
    assert register(client, email="other@example.com", password="123").status_code == 400
    assert register(client, userType="Robot").status_code == 400


def test_login_resolves_profile(client, make_user):
    headers = make_user("u1", onboardingComplete=True, activeCoachId="c1")

    response = client.post("/auth/login", headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["userType"] == "Personal"
    assert body["profile"]["activeCoachId"] == "c1"
    assert body["profile"]["onboardingComplete"] is True
    assert body["profile"]["admin"] is False


def test_login_of_unverified_coach(client, make_coach):
    headers = make_coach("c1", isVerified=False)

    response = client.post("/auth/login", headers=headers)

    assert response.status_code == 403
    assert response.json()["code"] == "ACCOUNT_PENDING_VERIFICATION"


def test_login_of_admin(client, make_admin):
    body = client.post("/auth/login", headers=make_admin()).json()
    assert body["userType"] == "Admin"
    assert body["profile"]["admin"] is True


def test_login_without_profile(client, fake_auth):
    fake_auth.add_user("ghost", "ghost@example.com")
    response = client.post("/auth/login", headers={"Authorization": "Bearer token-ghost"})
    assert response.status_code == 404


def test_missing_or_bad_token(client):
    assert client.post("/auth/login").status_code == 401
    assert client.post("/auth/login", headers={"Authorization": "Token abc"}).status_code == 401
    response = client.post("/auth/login", headers={"Authorization": "Bearer forged"})
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized: Invalid or expired token."}


def test_social_auth_creates_then_logs_in(client, fake_auth, store):
    fake_auth.add_user("g1", "g1@example.com", claims={"picture": "https://img/g1.png"})
    headers = {"Authorization": "Bearer token-g1"}

    first = client.post("/auth/socialAuth", json={"firstName": "Gina"}, headers=headers)
    second = client.post("/auth/socialAuth", json={}, headers=headers)

    assert first.status_code == 201
    assert first.json()["isNewUser"] is True
    assert second.status_code == 200
    assert second.json()["isNewUser"] is False
    user = store.get("users/g1")
    assert user["firstName"] == "Gina"
    assert user["profileImageUrl"] == "https://img/g1.png"


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"
