# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.
"""

import os

# Must be set before core.config is imported anywhere
os.environ.setdefault("ENV", "test")

import pytest
from fastapi.testclient import TestClient
from typing import Generator

from fake_supabase import FakeSupabase
from main import create_app
from dependencies.auth import get_db, get_auth_client
from models.enums import RoleName


ORG_ID = "org-1"
OTHER_ORG_ID = "org-2"


@pytest.fixture
def fake() -> FakeSupabase:
    """Supabase stand-in with role + organization reference data."""
    db = FakeSupabase()
    db.seed("organizations", {"id": ORG_ID, "name": "org1"}, {"id": OTHER_ORG_ID, "name": "org2"})
    for role in RoleName:
        if role is not RoleName.unknown:
            db.seed("roles", {"id": f"role-{role.value}", "name": role.value, "description": None, "is_system": True})
    return db


@pytest.fixture
def make_user(fake):
    """
    Create principal + profile + role rows.
    Returns (principal, profile_row, token).
    """
    def _make(email, roles=(), organization_id=ORG_ID, global_roles=(), is_active=True):
        token = f"token-{email}"
        principal = fake.add_principal(email, password="password123", token=token)
        profile = fake.seed("app_users", {
            "user_id": principal.id,
            "email": email,
            "full_name": email.split("@")[0],
            "phone": None,
            "organization_id": organization_id,
            "is_active": is_active,
        })
        for role in roles:
            fake.seed("user_roles", {
                "user_id": profile["id"],
                "role_id": f"role-{role}",
                "organization_id": organization_id,
            })
        for role in global_roles:
            fake.seed("user_roles", {
                "user_id": profile["id"],
                "role_id": f"role-{role}",
                "organization_id": None,
            })
        return principal, profile, token

    return _make


@pytest.fixture
def auth_header():
    def _header(token):
        return {"Authorization": f"Bearer {token}"}
    return _header


@pytest.fixture(scope="function")
def app(fake):
    """Create a test FastAPI application wired to the fake Supabase client."""
    application = create_app()
    application.dependency_overrides[get_db] = lambda: fake
    application.dependency_overrides[get_auth_client] = lambda: fake
    yield application
    application.dependency_overrides = {}


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client
