from fitcoach.models import User


def test_health(client):
    assert client.get("/api/health").get_json() == {"status": "OK"}


def test_register_and_login(client):
    payload = {
        "email": "new.trainer@example.com",
        "password": "Password123",
        "first_name": "Nina",
        "last_name": "Costa",
        "role": "trainer",
    }
    response = client.post("/api/auth/register", json=payload)

    assert response.status_code == 201
    body = response.get_json()
    assert body["user"]["profile"]["max_athletes"] == 10
    assert body["access_token"]

    duplicate = client.post("/api/auth/register", json=payload)
    assert duplicate.status_code == 409
    assert duplicate.get_json()["error"] == "DUPLICATE_EMAIL"

    login = client.post("/api/auth/login", json={"email": "NEW.trainer@example.com", "password": "Password123"})
    assert login.status_code == 200
    token = login.get_json()["access_token"]

    profile = client.get("/api/users/profile", headers={"Authorization": f"Bearer {token}"})
    assert profile.get_json()["user"]["email"] == "new.trainer@example.com"


def test_register_validation_errors(client, db):
    response = client.post("/api/auth/register", json={"email": "not-an-email", "role": "admin"})

    assert response.status_code == 400
    body = response.get_json()
    assert body["success"] is False
    assert body["error"] == "VALIDATION_ERROR"
    assert {"email", "password", "first_name", "last_name", "role"} <= set(body["errors"])
    assert db.query(User).count() == 0


def test_bad_login_is_401(client, athlete):
    response = client.post("/api/auth/login", json={"email": athlete.email, "password": "wrong-password"})

    assert response.status_code == 401
    assert response.get_json()["msg"] == "Invalid email or password"


def test_missing_token_is_401(client):
    response = client.get("/api/notifications")

    assert response.status_code == 401
    assert response.get_json()["error"] == "UNAUTHORIZED"


def test_wrong_role_is_403(client, athlete, auth_headers):
    response = client.post("/api/workouts/templates", json={}, headers=auth_headers(athlete))

    assert response.status_code == 403
    assert response.get_json()["error"] == "FORBIDDEN"


def test_capacity_conflict_over_http(client, db, trainer, make_user, auth_headers):
    trainer.trainer_profile.max_athletes = 1
    db.commit()
    first, second = make_user("athlete"), make_user("athlete")
    headers = auth_headers(trainer)

    ok = client.post(f"/api/trainers/athletes/{first.athlete_profile.id}", headers=headers)
    full = client.post(f"/api/trainers/athletes/{second.athlete_profile.id}", headers=headers)

    assert ok.status_code == 201
    assert full.status_code == 409
    assert full.get_json()["error"] == "CAPACITY_EXCEEDED"


def test_unknown_resource_is_404(client, athlete, auth_headers):
    response = client.post("/api/workouts/assigned/999/complete", json={}, headers=auth_headers(athlete))
    assert response.status_code == 404


def test_notifications_flow(client, db, athlete, auth_headers):
    from fitcoach.services import notifications

    notifications.create_notification(db, athlete.id, "Hi", "Welcome", "system")
    headers = auth_headers(athlete)

    listing = client.get("/api/notifications?unread_only=true", headers=headers).get_json()
    assert listing["unread_count"] == 1

    first = client.put("/api/notifications/read-all", headers=headers).get_json()
    second = client.put("/api/notifications/read-all", headers=headers).get_json()
    assert (first["updated"], second["updated"]) == (1, 0)


def test_subscription_plans_are_public(client):
    response = client.get("/api/subscriptions/plans?user_type=trainer")
    assert [p["id"] for p in response.get_json()["plans"]] == ["trainer_basic", "trainer_pro", "trainer_enterprise"]


def test_food_image_upload(client, athlete, auth_headers):
    import io

    response = client.post(
        "/api/nutrition/analyze-image",
        data={"image": (io.BytesIO(b"plate bytes"), "plate.jpg")},
        headers=auth_headers(athlete),
        content_type="multipart/form-data",
    )

    assert response.status_code == 200
    assert response.get_json()["analysis"]["food_name"]
