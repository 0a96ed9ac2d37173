"""Tests for app/auth.py and app/oauth_client.py."""

import time
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from app.auth import OAUTH_STATE_TTL_SECONDS, AuthService
from app.domain import User
from app.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DemoLoginUnavailableError,
    StorageError,
    ValidationError,
)
from app.oauth_client import ProviderIdentity


def _identity(email="user@example.com", name="User") -> ProviderIdentity:
    return ProviderIdentity(id="123", email=email, verified_email=True, name=name, picture="http://pic")


def _response(status_code: int, payload: dict) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


class TestStateToken:
    """Tests for CSRF state handling."""

    def test_tokens_are_random(self, auth_service):
        first = auth_service.generate_state_token()
        second = auth_service.generate_state_token()
        assert first != second
        assert len(first) >= 40

    def test_start_login_stores_state_in_url(self, auth_service):
        session = {}
        url = auth_service.start_login(session)
        query = parse_qs(urlparse(url).query)
        assert query["state"] == [session["oauth_state"]]

    def test_matching_state_accepted_once(self, auth_service):
        session = {}
        auth_service.start_login(session)
        state = session["oauth_state"]

        auth_service.verify_state(session, state)

        with pytest.raises(AuthenticationError):
            auth_service.verify_state(session, state)

    def test_mismatch_rejected_and_consumed(self, auth_service):
        session = {}
        auth_service.start_login(session)
        with pytest.raises(AuthenticationError, match="Invalid state"):
            auth_service.verify_state(session, "forged")
        assert "oauth_state" not in session

    def test_missing_state_rejected(self, auth_service):
        with pytest.raises(AuthenticationError):
            auth_service.verify_state({}, None)

    def test_expired_state_rejected(self, auth_service):
        session = {}
        auth_service.start_login(session)
        session["oauth_state_issued_at"] = int(time.time()) - OAUTH_STATE_TTL_SECONDS - 1
        with pytest.raises(AuthenticationError, match="expired"):
            auth_service.verify_state(session, session["oauth_state"])


class TestAllowlist:
    """Tests for is_user_allowed / is_user_admin."""

    def test_seeded_users_allowed(self, auth_service):
        assert auth_service.is_user_allowed("user@example.com") is True
        assert auth_service.is_user_allowed("ADMIN@example.com ") is True
        assert auth_service.is_user_allowed("stranger@example.com") is False

    def test_admin_check(self, auth_service):
        assert auth_service.is_user_admin("admin@example.com") is True
        assert auth_service.is_user_admin("user@example.com") is False

    def test_dynamic_additions_allowed(self, auth_service, admin_service):
        admin_service.add_user("new@example.com")
        assert auth_service.is_user_allowed("new@example.com") is True

    def test_dynamic_removal_wins_over_static_seed(self, auth_service, admin_service):
        admin_service.remove_user("user@example.com")
        assert auth_service.is_user_allowed("user@example.com") is False

    def test_storage_failure_falls_back_to_static(self, auth_service, admin_service, caplog):
        admin_service.get_config = MagicMock(side_effect=StorageError("db down"))
        assert auth_service.is_user_allowed("user@example.com") is True
        assert auth_service.is_user_allowed("stranger@example.com") is False
        assert auth_service.is_user_admin("admin@example.com") is True
        assert "static allowlist" in caplog.text


class TestSessions:
    """Tests for create_session / current_user / clear_session."""

    def test_create_session(self, auth_service, storage):
        session = {}
        user = auth_service.create_session(session, _identity())

        assert user.email == "user@example.com"
        assert user.is_admin is False
        assert session["authenticated"] is True
        assert session["user_email"] == "user@example.com"
        assert session["login_time"] > 0
        assert storage.get_user("user@example.com").name == "User"

    def test_admin_flag(self, auth_service):
        session = {}
        user = auth_service.create_session(session, _identity("admin@example.com", "Admin"))
        assert user.is_admin is True
        assert auth_service.current_user(session).is_admin is True

    def test_upsert_preserves_joined_at(self, auth_service, storage):
        joined = datetime(2025, 1, 1, tzinfo=timezone.utc)
        storage.save_user(User(email="user@example.com", name="Old", joined_at=joined))

        auth_service.create_session({}, _identity(name="New"))

        stored = storage.get_user("user@example.com")
        assert stored.name == "New"
        assert stored.joined_at == joined

    def test_user_store_failure_does_not_fail_login(self, auth_service, storage):
        storage.save_user = MagicMock(side_effect=StorageError("db down"))
        session = {}
        auth_service.create_session(session, _identity())
        assert session["authenticated"] is True

    def test_current_user_none_when_anonymous(self, auth_service):
        assert auth_service.current_user({}) is None

    def test_clear_session(self, auth_service):
        session = {}
        auth_service.create_session(session, _identity())
        auth_service.clear_session(session)
        assert auth_service.current_user(session) is None


class TestDemoSession:
    """Tests for the demo login path."""

    def test_demo_login(self, auth_service):
        session = {}
        user = auth_service.create_demo_session(session, "demo@example.com", "Demo")
        assert user.email == "demo@example.com"
        assert user.name == "Demo"
        assert session["user_id"] == "demo-demo@example.com"

    def test_demo_name_defaults_to_local_part(self, auth_service):
        user = auth_service.create_demo_session({}, "demo@example.com")
        assert user.name == "demo"

    def test_not_allowed(self, auth_service):
        with pytest.raises(AuthorizationError):
            auth_service.create_demo_session({}, "stranger@example.com", "X")

    def test_empty_email(self, auth_service):
        with pytest.raises(ValidationError):
            auth_service.create_demo_session({}, "", "X")

    @pytest.mark.parametrize("demo_mode", [False])
    def test_unavailable_with_real_credentials(self, auth_service):
        with pytest.raises(DemoLoginUnavailableError):
            auth_service.create_demo_session({}, "demo@example.com", "Demo")


class TestOAuthClient:
    """Tests for OAuthClient."""

    def test_authorization_url(self, oauth_client):
        url = oauth_client.authorization_url("state-123")
        parsed = urlparse(url)
        query = parse_qs(parsed.query)

        assert parsed.netloc == "accounts.google.com"
        assert query["client_id"] == ["test-client-id"]
        assert query["redirect_uri"] == ["http://testserver/auth/callback"]
        assert query["response_type"] == ["code"]
        assert query["state"] == ["state-123"]
        assert query["access_type"] == ["offline"]
        assert "https://www.googleapis.com/auth/userinfo.email" in query["scope"][0].split(" ")

    @pytest.mark.asyncio
    async def test_exchange_success(self, oauth_client):
        token = _response(200, {"access_token": "tok"})
        userinfo = _response(200, {
            "id": "42", "email": "User@Example.com", "verified_email": True,
            "name": "User", "picture": "http://pic",
        })

        with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock, return_value=token), \
                patch.object(httpx.AsyncClient, "get", new_callable=AsyncMock, return_value=userinfo) as mock_get:
            identity = await oauth_client.exchange_code("code-1")

        assert identity.email == "user@example.com"
        assert identity.id == "42"
        assert identity.picture == "http://pic"
        assert mock_get.call_args.kwargs["headers"]["Authorization"] == "Bearer tok"

    @pytest.mark.asyncio
    async def test_token_rejected(self, oauth_client):
        with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock,
                          return_value=_response(400, {"error": "invalid_grant"})):
            with pytest.raises(AuthenticationError, match="exchange"):
                await oauth_client.exchange_code("bad")

    @pytest.mark.asyncio
    async def test_missing_access_token(self, oauth_client):
        with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock,
                          return_value=_response(200, {})):
            with pytest.raises(AuthenticationError, match="no access token"):
                await oauth_client.exchange_code("code")

    @pytest.mark.asyncio
    async def test_userinfo_failure(self, oauth_client):
        with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock,
                          return_value=_response(200, {"access_token": "tok"})), \
                patch.object(httpx.AsyncClient, "get", new_callable=AsyncMock,
                             return_value=_response(401, {})):
            with pytest.raises(AuthenticationError, match="user info"):
                await oauth_client.exchange_code("code")

    @pytest.mark.asyncio
    async def test_unverified_email(self, oauth_client):
        with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock,
                          return_value=_response(200, {"access_token": "tok"})), \
                patch.object(httpx.AsyncClient, "get", new_callable=AsyncMock,
                             return_value=_response(200, {"email": "a@example.com", "verified_email": False})):
            with pytest.raises(AuthenticationError, match="not verified"):
                await oauth_client.exchange_code("code")

    @pytest.mark.asyncio
    async def test_network_error(self, oauth_client):
        with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock,
                          side_effect=httpx.ConnectError("refused")):
            with pytest.raises(AuthenticationError, match="reach"):
                await oauth_client.exchange_code("code")

    @pytest.mark.asyncio
    async def test_timeout(self, oauth_client):
        with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock,
                          side_effect=httpx.ReadTimeout("slow")):
            with pytest.raises(AuthenticationError, match="timeout"):
                await oauth_client.exchange_code("code")

    @pytest.mark.asyncio
    async def test_handle_callback_delegates(self, auth_service):
        auth_service.oauth_client = MagicMock()
        auth_service.oauth_client.exchange_code = AsyncMock(return_value=_identity())
        identity = await auth_service.handle_callback("code")
        assert identity.email == "user@example.com"


def test_auth_service_type(auth_service):
    assert isinstance(auth_service, AuthService)
