from storefront.models.database import AccessToken


def login(client, email="jane@example.com", password="password123"):
    return client.post("/api/login", json={"email": email, "password": password})


def test_login_with_valid_credentials(client, customer):
    response = login(client)

    assert response.status_code == 200
    body = response.get_json()
    assert body["message"] == "Login successful"
    assert body["token"]
    assert body["user"] == {"id": customer.id, "name": "Jane Doe", "email": "jane@example.com"}
    assert AccessToken.query.filter_by(user_id=customer.id).count() == 1


def test_login_with_wrong_password(client, customer):
    response = login(client, password="wrongpassword")

    assert response.status_code == 401
    body = response.get_json()
    assert body["message"] == "The provided credentials are incorrect."
    assert "email" in body["errors"]


def test_login_with_unknown_email(client, customer):
    response = login(client, email="nobody@example.com")
    assert response.status_code == 401


def test_login_validation(client):
    response = client.post("/api/login", json={"email": "jane@example.com"})
    assert response.status_code == 422
    assert "password" in response.get_json()["errors"]

    response = client.post("/api/login", json={"email": "invalid-email", "password": "password123"})
    assert response.status_code == 422
    assert "email" in response.get_json()["errors"]


def test_sixth_failed_attempt_is_throttled(client, customer, clock):
    for _ in range(5):
        assert login(client, password="wrongpassword").status_code == 401

    response = login(client, password="wrongpassword")
    assert response.status_code == 429
    body = response.get_json()
    assert body["retry_after"] > 0
    assert body["retry_after"] <= 60
    assert response.headers["Retry-After"] == str(body["retry_after"])

    # Correct credentials are refused while throttled
    assert login(client).status_code == 429


def test_login_succeeds_once_window_clears(client, customer, clock):
    for _ in range(5):
        login(client, password="wrongpassword")
    assert login(client).status_code == 429

    clock.advance(61)

    assert login(client).status_code == 200


def test_successful_login_resets_failures(client, customer, clock):
    for _ in range(4):
        login(client, password="wrongpassword")
    assert login(client).status_code == 200

    for _ in range(4):
        assert login(client, password="wrongpassword").status_code == 401
    assert login(client, password="wrongpassword").status_code == 401
    assert login(client, password="wrongpassword").status_code == 429


def test_throttle_is_per_email(client, customer, clock):
    for _ in range(5):
        login(client, password="wrongpassword")

    response = login(client, email="someone-else@example.com", password="whatever1")
    assert response.status_code == 401


def test_logout_revokes_token(client, customer):
    token = login(client).get_json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    assert client.get("/api/me", headers=headers).status_code == 200

    response = client.post("/api/logout", headers=headers)
    assert response.status_code == 200
    assert response.get_json()["message"] == "Logout successful"
    assert AccessToken.query.filter_by(user_id=customer.id).count() == 0

    assert client.get("/api/me", headers=headers).status_code == 401


def test_logout_requires_token(client):
    assert client.post("/api/logout").status_code == 401


def test_garbage_token_is_rejected(client):
    response = client.get("/api/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.get_json()["message"] == "Invalid or expired token"


def test_expired_token_is_rejected(app, client, customer):
    app.config["TOKEN_EXPIRY_MINUTES"] = -1
    token = login(client).get_json()["token"]

    response = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_login_prunes_expired_tokens(app, client, customer):
    expiry = app.config["TOKEN_EXPIRY_MINUTES"]
    app.config["TOKEN_EXPIRY_MINUTES"] = -1
    login(client)
    login(client)
    assert AccessToken.query.filter_by(user_id=customer.id).count() == 1

    app.config["TOKEN_EXPIRY_MINUTES"] = expiry
    token = login(client).get_json()["token"]

    assert AccessToken.query.filter_by(user_id=customer.id).count() == 1
    response = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200


def test_me_returns_current_user(client, customer, customer_headers):
    response = client.get("/api/me", headers=customer_headers)

    assert response.status_code == 200
    assert response.get_json()["user"] == {
        "id": customer.id,
        "name": "Jane Doe",
        "email": "jane@example.com",
        "role": "user",
    }


def test_register_creates_customer_account(client):
    response = client.post("/api/register", json={
        "name": "New Person",
        "email": "new@example.com",
        "password": "supersecret",
    })

    assert response.status_code == 201
    assert login(client, email="new@example.com", password="supersecret").status_code == 200


def test_register_rejects_duplicate_email(client, customer):
    response = client.post("/api/register", json={
        "name": "Jane Again",
        "email": "jane@example.com",
        "password": "supersecret",
    })
    assert response.status_code == 422
