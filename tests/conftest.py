"""Shared fixtures and environment setup for Watered tests."""

import os

# Set environment variables BEFORE any app imports
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ.setdefault("GOOGLE_CLIENT_ID", "")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "")
os.environ.setdefault("REDIRECT_URL", "http://testserver/auth/callback")
os.environ.setdefault("ALLOWED_EMAILS", "user@example.com,demo@example.com")
os.environ.setdefault("ADMIN_EMAILS", "admin@example.com")
os.environ.setdefault("DATABASE_URL", "")

from contextlib import asynccontextmanager

import pytest
from fastapi.testclient import TestClient

from app.auth import AuthService, get_auth_service
from app.oauth_client import OAuthClient
from app.services.admin_service import AdminService, get_admin_service
from app.services.plant_service import PlantService, get_plant_service
from app.storage import MemoryStorage

SEED_ALLOWED = ["user@example.com", "demo@example.com"]
SEED_ADMINS = ["admin@example.com"]


@pytest.fixture
def storage():
    """Fresh in-memory storage."""
    return MemoryStorage()


@pytest.fixture
def plant_service(storage):
    return PlantService(storage)


@pytest.fixture
def admin_service(storage, plant_service):
    return AdminService(
        storage=storage,
        plant_service=plant_service,
        seed_allowed_emails=SEED_ALLOWED,
        seed_admin_emails=SEED_ADMINS,
    )


@pytest.fixture
def oauth_client():
    return OAuthClient(
        client_id="test-client-id",
        client_secret="test-client-secret",
        redirect_url="http://testserver/auth/callback",
    )


@pytest.fixture
def demo_mode():
    """Whether the auth service under test runs in demo mode."""
    return True


@pytest.fixture
def auth_service(storage, admin_service, oauth_client, demo_mode):
    return AuthService(
        storage=storage,
        admin_service=admin_service,
        oauth_client=oauth_client,
        demo_mode=demo_mode,
        static_allowed_emails=SEED_ALLOWED + SEED_ADMINS,
        static_admin_emails=SEED_ADMINS,
    )


@pytest.fixture
def client(plant_service, admin_service, auth_service):
    """TestClient wired to fresh services, with the startup lifespan replaced."""
    import app.main as main_module

    @asynccontextmanager
    async def _test_lifespan(app):
        yield

    original_lifespan = main_module.app.router.lifespan_context
    main_module.app.router.lifespan_context = _test_lifespan
    main_module.app.dependency_overrides[get_plant_service] = lambda: plant_service
    main_module.app.dependency_overrides[get_admin_service] = lambda: admin_service
    main_module.app.dependency_overrides[get_auth_service] = lambda: auth_service

    with TestClient(main_module.app) as tc:
        yield tc

    main_module.app.dependency_overrides.clear()
    main_module.app.router.lifespan_context = original_lifespan


def login(tc: TestClient, email: str, name: str = "Tester") -> None:
    """Log a test client in through the demo login."""
    resp = tc.get(
        "/auth/demo-login",
        params={"email": email, "name": name},
        follow_redirects=False,
    )
    assert resp.status_code == 303, resp.text


@pytest.fixture
def user_client(client):
    """TestClient logged in as a regular allowed user."""
    login(client, "user@example.com", "User")
    return client


@pytest.fixture
def admin_client(client):
    """TestClient logged in as an admin."""
    login(client, "admin@example.com", "Admin")
    return client
