# tests/test_auth.py

"""
Tests for authentication endpoints.
"""

from fastapi.testclient import TestClient


def test_login_success(client: TestClient, make_user):
    """Test successful login."""
    principal, _, _ = make_user("emp@example.com", roles=["employee"])

    response = client.post(
        "/auth/login",
        json={"email": "Emp@Example.com", "password": "password123"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["access_token"] == f"token-{principal.id}"
    assert data["token_type"] == "bearer"
    assert data["expires_in"] == 3600


def test_login_invalid_credentials(client: TestClient, make_user):
    """Test login with invalid credentials."""
    make_user("emp@example.com")

    response = client.post(
        "/auth/login",
        json={"email": "emp@example.com", "password": "wrongpassword"}
    )

    assert response.status_code == 401
    assert "Invalid email or password" in response.json()["detail"]


def test_me_with_roles(client: TestClient, make_user, auth_header):
    principal, profile, token = make_user("hr@example.com", roles=["employee", "hr_manager"])

    response = client.get("/auth/me", headers=auth_header(token))

    assert response.status_code == 200
    data = response.json()
    assert data["principal_id"] == principal.id
    assert data["provisioned"] is True
    assert data["profile"]["id"] == profile["id"]
    assert data["highest_role"] == "hr_manager"
    assert sorted(r["role_name"] for r in data["roles"]) == ["employee", "hr_manager"]
    assert all(r["organization_name"] == "org1" for r in data["roles"])


def test_me_unprovisioned_is_not_an_error(client: TestClient, fake, auth_header):
    principal = fake.add_principal("new@example.com", token="token-new")

    response = client.get("/auth/me", headers=auth_header("token-new"))

    assert response.status_code == 200
    data = response.json()
    assert data["principal_id"] == principal.id
    assert data["provisioned"] is False
    assert data["profile"] is None
    assert data["roles"] == []
    assert data["highest_role"] is None


def test_me_requires_token(client: TestClient):
    response = client.get("/auth/me")

    assert response.status_code == 401
    detail = response.json()["detail"]
    assert detail["status"] == "forbidden"
    assert detail["message"] == "Invalid or expired authentication token"


def test_me_rejects_invalid_token(client: TestClient, auth_header):
    response = client.get("/auth/me", headers=auth_header("not-a-token"))
    assert response.status_code == 401


def test_logout_revokes_token(client: TestClient, make_user, auth_header):
    _, _, token = make_user("emp@example.com", roles=["employee"])

    response = client.post("/auth/logout", headers=auth_header(token))
    assert response.status_code == 200
    assert response.json() == {"success": True}

    assert client.get("/auth/me", headers=auth_header(token)).status_code == 401


def test_logout_survives_supabase_failure(client: TestClient, fake, make_user, auth_header):
    _, _, token = make_user("emp@example.com")
    fake.fail_auth("sign_out")

    response = client.post("/auth/logout", headers=auth_header(token))

    assert response.status_code == 200


def test_claim_pending_profile(client: TestClient, fake, auth_header):
    pending = fake.seed("app_users", {
        "user_id": None,
        "email": "late@example.com",
        "organization_id": "org-1",
        "is_active": True,
    })
    fake.seed("user_roles", {"user_id": pending["id"], "role_id": "role-agent", "organization_id": "org-1"})
    principal = fake.add_principal("late@example.com", token="token-late")

    response = client.post("/auth/claim-profile", headers=auth_header("token-late"))

    assert response.status_code == 200
    data = response.json()
    assert data["provisioned"] is True
    assert data["profile"]["id"] == pending["id"]
    assert data["profile"]["user_id"] == principal.id
    assert data["highest_role"] == "agent"


def test_claim_without_pending_profile(client: TestClient, fake, auth_header):
    fake.add_principal("nobody@example.com", token="token-nobody")

    response = client.post("/auth/claim-profile", headers=auth_header("token-nobody"))

    assert response.status_code == 404
    assert response.json()["detail"] == "No pending profile found for this email"


def test_claim_when_already_provisioned_returns_me(client: TestClient, make_user, auth_header):
    _, profile, token = make_user("emp@example.com", roles=["employee"])

    response = client.post("/auth/claim-profile", headers=auth_header(token))

    assert response.status_code == 200
    assert response.json()["profile"]["id"] == profile["id"]
