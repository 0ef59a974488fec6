from conftest import OPERATOR_TOKEN


def test_login_requires_operator_token(make_client) -> None:
    client = make_client(login=False)

    missing = client.post("/api/login", json={"email": "someone@example.com"})
    wrong = client.post(
        "/api/login",
        json={"email": "someone@example.com"},
        headers={"Authorization": "Bearer not-the-token"},
    )

    assert missing.status_code == 401
    assert wrong.status_code == 401


def test_login_opens_session_and_returns_user(client) -> None:
    response = client.get("/api/auth/user")

    assert response.status_code == 200
    assert response.json()["email"] == "admin@example.com"
    assert response.json()["id"] == client.user["id"]


def test_login_twice_reuses_user(make_client) -> None:
    first = make_client("repeat@example.com")
    second = make_client("repeat@example.com")

    assert first.user["id"] == second.user["id"]


def test_logout_closes_session(client) -> None:
    response = client.post("/api/logout")

    assert response.status_code == 204
    assert client.get("/api/auth/user").status_code == 401


def test_dashboard_routes_require_session(make_client) -> None:
    anonymous = make_client(login=False)

    for path in ("/api/logs", "/api/settings", "/api/download-requests", "/api/stats/users"):
        assert anonymous.get(path).status_code == 401, path


def test_operator_token_is_not_a_session(make_client) -> None:
    anonymous = make_client(login=False)

    response = anonymous.get("/api/auth/user", headers={"Authorization": f"Bearer {OPERATOR_TOKEN}"})

    assert response.status_code == 401


def test_login_writes_audit_log(client) -> None:
    logs = client.get("/api/logs").json()

    assert any(entry["message"] == "User logged in" for entry in logs)
