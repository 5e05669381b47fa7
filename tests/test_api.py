"""API endpoint tests."""

from src.config import get_settings

settings = get_settings()
SESSION = settings.session_cookie_name
REMEMBER = settings.remember_cookie_name

ANN = {
    "name": "Ann",
    "email": "Ann@Example.com",
    "password": "secret1",
    "password_confirmation": "secret1",
}


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_forms_are_public(client):
    """Test form descriptions are served without signing in."""
    register_form = client.get("/api/v1/auth/register")
    assert register_form.status_code == 200
    password_field = next(f for f in register_form.json()["fields"] if f["name"] == "password")
    assert password_field["min_length"] == 6
    assert password_field["max_length"] == 40

    login_form = client.get("/api/v1/auth/login")
    assert login_form.status_code == 200
    assert [f["name"] for f in login_form.json()["fields"]] == ["email", "password", "remember"]


def test_register_user(client):
    """Test user registration signs the new user in."""
    response = client.post("/api/v1/auth/register", json=ANN)
    assert response.status_code == 201
    data = response.json()
    assert data["user"]["email"] == "ann@example.com"
    assert data["user"]["name"] == "Ann"
    assert "password_hash" not in data["user"]
    assert "password_salt" not in data["user"]
    assert SESSION in client.cookies

    me = client.get("/api/v1/auth/me")
    assert me.status_code == 200
    assert me.json()["id"] == data["user"]["id"]


def test_register_duplicate_email(client):
    """Test registration with duplicate email fails as a field error."""
    assert client.post("/api/v1/auth/register", json=ANN).status_code == 201

    response = client.post(
        "/api/v1/auth/register", json={**ANN, "name": "Other Ann", "email": "ann@example.com"}
    )
    assert response.status_code == 422
    assert response.json()["errors"] == {"email": ["has already been taken"]}


def test_register_validation_errors(client):
    """Test field-level messages come back for a bad form."""
    response = client.post(
        "/api/v1/auth/register",
        json={"name": "", "email": "bad", "password": "abc", "password_confirmation": "xyz"},
    )
    assert response.status_code == 422
    errors = response.json()["errors"]
    assert set(errors) == {"name", "email", "password", "password_confirmation"}
    assert SESSION not in client.cookies


def test_login(client):
    """Test user login."""
    client.post("/api/v1/auth/register", json=ANN)
    client.cookies.clear()

    response = client.post(
        "/api/v1/auth/login", json={"email": "ann@example.com", "password": "secret1"}
    )
    assert response.status_code == 200
    assert response.json()["user"]["name"] == "Ann"
    assert response.json()["remembered"] is False
    assert SESSION in client.cookies
    assert REMEMBER not in client.cookies


def test_login_failures_look_the_same(client):
    """Test wrong password and unknown email give the same response."""
    client.post("/api/v1/auth/register", json=ANN)
    client.cookies.clear()

    wrong_password = client.post(
        "/api/v1/auth/login", json={"email": "ann@example.com", "password": "wrong"}
    )
    unknown_email = client.post(
        "/api/v1/auth/login", json={"email": "unknown@example.com", "password": "anything"}
    )
    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
    assert wrong_password.json()["detail"] == "Invalid email/password combination"


def test_remember_me_survives_session_loss(client):
    """Test a client holding only the remember cookie is signed back in."""
    client.post("/api/v1/auth/register", json=ANN)
    client.cookies.clear()
    client.post(
        "/api/v1/auth/login",
        json={"email": "ann@example.com", "password": "secret1", "remember": True},
    )
    remember_token = client.cookies.get(REMEMBER)
    assert remember_token

    # Browser restart: session cookie gone, remember cookie kept
    client.cookies.clear()
    client.cookies.set(REMEMBER, remember_token)

    response = client.get("/api/v1/auth/me")
    assert response.status_code == 200
    assert response.json()["email"] == "ann@example.com"
    assert SESSION in client.cookies


def test_logout_revokes_remember_token(client):
    """Test the remember cookie stops working after logout."""
    client.post("/api/v1/auth/register", json=ANN)
    client.cookies.clear()
    client.post(
        "/api/v1/auth/login",
        json={"email": "ann@example.com", "password": "secret1", "remember": True},
    )
    remember_token = client.cookies.get(REMEMBER)

    response = client.post("/api/v1/auth/logout")
    assert response.status_code == 200
    assert SESSION not in client.cookies
    assert REMEMBER not in client.cookies
    assert client.get("/api/v1/auth/me").status_code == 401

    # Replaying the old cookie is refused
    client.cookies.set(REMEMBER, remember_token)
    assert client.get("/api/v1/auth/me").status_code == 401


def test_protected_routes_require_session(client):
    """Test default-deny on protected routes."""
    assert client.get("/api/v1/auth/me").status_code == 401
    assert client.post("/api/v1/auth/logout").status_code == 401
    assert client.delete("/api/v1/auth/account").status_code == 401


def test_browsers_are_redirected_to_login(client):
    """Test HTML clients get sent to the login form instead of a 401."""
    response = client.get(
        "/api/v1/auth/me", headers={"accept": "text/html"}, follow_redirects=False
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/api/v1/auth/login"


def test_forged_session_cookie_is_ignored(client):
    """Test a session cookie that fails signature checks is treated as anonymous."""
    client.cookies.set(SESSION, "not.a.jwt")
    assert client.get("/api/v1/auth/me").status_code == 401


def test_change_password(signed_in_client):
    """Test password change keeps this client signed in with the new password."""
    client = signed_in_client
    response = client.post(
        "/api/v1/auth/password",
        json={
            "current_password": "testpass123",
            "password": "newpass456",
            "password_confirmation": "newpass456",
        },
    )
    assert response.status_code == 200
    assert client.get("/api/v1/auth/me").status_code == 200

    client.cookies.clear()
    old = client.post(
        "/api/v1/auth/login", json={"email": "test@example.com", "password": "testpass123"}
    )
    assert old.status_code == 401
    new = client.post(
        "/api/v1/auth/login", json={"email": "test@example.com", "password": "newpass456"}
    )
    assert new.status_code == 200


def test_change_password_wrong_current(signed_in_client):
    """Test password change rejects a wrong current password."""
    response = signed_in_client.post(
        "/api/v1/auth/password",
        json={
            "current_password": "nope",
            "password": "newpass456",
            "password_confirmation": "newpass456",
        },
    )
    assert response.status_code == 422
    assert response.json()["errors"] == {"current_password": ["is incorrect"]}


def test_delete_account(signed_in_client):
    """Test account deletion signs out and frees the email."""
    client = signed_in_client
    response = client.delete("/api/v1/auth/account")
    assert response.status_code == 204
    assert client.get("/api/v1/auth/me").status_code == 401

    again = client.post(
        "/api/v1/auth/register",
        json={
            "name": "Test User",
            "email": "test@example.com",
            "password": "testpass123",
            "password_confirmation": "testpass123",
        },
    )
    assert again.status_code == 201


def test_login_throttled(client):
    """Test repeated failures lock the login for a while."""
    client.post("/api/v1/auth/register", json=ANN)
    client.cookies.clear()

    for _ in range(settings.login_max_attempts):
        response = client.post(
            "/api/v1/auth/login", json={"email": "ann@example.com", "password": "wrong"}
        )
        assert response.status_code == 401

    locked = client.post(
        "/api/v1/auth/login", json={"email": "ann@example.com", "password": "secret1"}
    )
    assert locked.status_code == 429
    assert int(locked.headers["retry-after"]) > 0


def test_logout_invalidates_replayed_session_cookie(client):
    """Test a session cookie captured before logout no longer authenticates."""
    client.post("/api/v1/auth/register", json=ANN)
    session_cookie = client.cookies.get(SESSION)
    assert client.get("/api/v1/auth/me").status_code == 200

    assert client.post("/api/v1/auth/logout").status_code == 200

    client.cookies.set(SESSION, session_cookie)
    assert client.get("/api/v1/auth/me").status_code == 401


def test_login_without_remember_drops_previous_users_remember_cookie(client):
    """Test a second user signing in on a shared browser does not inherit the first."""
    client.post("/api/v1/auth/register", json=ANN)
    client.post("/api/v1/auth/register", json={**ANN, "name": "Bob", "email": "bob@example.com"})
    client.cookies.clear()
    client.post(
        "/api/v1/auth/login",
        json={"email": "ann@example.com", "password": "secret1", "remember": True},
    )
    ann_remember = client.cookies.get(REMEMBER)
    assert ann_remember

    response = client.post(
        "/api/v1/auth/login", json={"email": "bob@example.com", "password": "secret1"}
    )
    assert response.status_code == 200
    assert REMEMBER not in client.cookies

    # Session cookie lost: nothing may fall back to Ann
    client.cookies.clear()
    assert client.get("/api/v1/auth/me").status_code == 401
    client.cookies.set(REMEMBER, ann_remember)
    assert client.get("/api/v1/auth/me").status_code == 401


def test_register_drops_previous_remember_cookie(client):
    """Test registering on a browser that remembered someone else starts clean."""
    client.post("/api/v1/auth/register", json=ANN)
    client.cookies.clear()
    client.post(
        "/api/v1/auth/login",
        json={"email": "ann@example.com", "password": "secret1", "remember": True},
    )

    response = client.post(
        "/api/v1/auth/register", json={**ANN, "name": "Bob", "email": "bob@example.com"}
    )
    assert response.status_code == 201
    assert REMEMBER not in client.cookies
    assert client.get("/api/v1/auth/me").json()["email"] == "bob@example.com"


def test_change_password_clears_remember_cookie(client):
    """Test the revoked remember cookie is removed from the client after a password change."""
    client.post("/api/v1/auth/register", json=ANN)
    client.cookies.clear()
    client.post(
        "/api/v1/auth/login",
        json={"email": "ann@example.com", "password": "secret1", "remember": True},
    )
    assert REMEMBER in client.cookies

    response = client.post(
        "/api/v1/auth/password",
        json={
            "current_password": "secret1",
            "password": "newpass456",
            "password_confirmation": "newpass456",
        },
    )
    assert response.status_code == 200
    assert REMEMBER not in client.cookies
    assert client.get("/api/v1/auth/me").status_code == 200


def test_overlong_fields_get_field_level_errors(client):
    """Test overlong input is reported in the errors map like any other field error."""
    response = client.post("/api/v1/auth/register", json={**ANN, "name": "x" * 300})
    assert response.status_code == 422
    assert response.json()["detail"] == "Validation failed"
    assert response.json()["errors"]["name"] == ["is too long (maximum is 50 characters)"]


def test_overlong_new_password_gets_field_level_error(signed_in_client):
    """Test an overlong new password comes back as a password field error."""
    response = signed_in_client.post(
        "/api/v1/auth/password",
        json={
            "current_password": "testpass123",
            "password": "p" * 300,
            "password_confirmation": "p" * 300,
        },
    )
    assert response.status_code == 422
    assert set(response.json()["errors"]) == {"password"}


def test_validation_error_shape_is_documented(client):
    """Test the 422 body used by the form endpoints is published in the schema."""
    schema = client.get("/openapi.json").json()
    register = schema["paths"]["/api/v1/auth/register"]["post"]["responses"]["422"]
    assert register["content"]["application/json"]["schema"]["$ref"].endswith(
        "/ValidationErrorResponse"
    )
