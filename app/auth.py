"""Session authentication, allowlist checks and FastAPI auth dependencies."""

import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Any, List, MutableMapping, Optional

from fastapi import Depends, HTTPException, Request

from app.domain import User
from app.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DemoLoginUnavailableError,
    StorageError,
    ValidationError,
)
from app.oauth_client import OAuthClient, ProviderIdentity
from app.services.admin_service import AdminService, normalize_email
from app.storage import Storage

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "watered-session"
OAUTH_STATE_TTL_SECONDS = 600

Session = MutableMapping[str, Any]


@dataclass
class SessionUser:
    """The identity carried by an authenticated session."""
    email: str
    name: str
    is_admin: bool
    picture: str = ""
    login_time: int = 0


class AuthService:
    """Wraps the OAuth2 exchange and the signed-cookie session contents."""

    def __init__(
        self,
        storage: Storage,
        admin_service: AdminService,
        oauth_client: OAuthClient,
        demo_mode: bool,
        static_allowed_emails: List[str],
        static_admin_emails: List[str],
    ):
        """
        Initialize the auth service.

        Args:
            storage: Storage backend for user records
            admin_service: Source of the stored allowlist
            oauth_client: Provider client for the authorization code flow
            demo_mode: Whether the demo login path is enabled; fixed for the
                lifetime of the service
            static_allowed_emails: Allowlist used when storage is unreadable
            static_admin_emails: Admin list used when storage is unreadable
        """
        self.storage = storage
        self.admin_service = admin_service
        self.oauth_client = oauth_client
        self.demo_mode = demo_mode
        self.static_allowed_emails = {normalize_email(e) for e in static_allowed_emails}
        self.static_admin_emails = {normalize_email(e) for e in static_admin_emails}

    @staticmethod
    def generate_state_token() -> str:
        """Create a random single-use token for OAuth2 CSRF protection."""
        return secrets.token_urlsafe(32)

    def login_url(self, state: str) -> str:
        return self.oauth_client.authorization_url(state)

    def start_login(self, session: Session) -> str:
        """Store a fresh state token in the session and return the provider URL."""
        state = self.generate_state_token()
        session["oauth_state"] = state
        session["oauth_state_issued_at"] = int(time.time())
        return self.login_url(state)

    def verify_state(self, session: Session, state: Optional[str]) -> None:
        """
        Check the callback state against the session; the token is consumed.

        Raises:
            AuthenticationError: On missing, mismatched or expired state
        """
        expected = session.pop("oauth_state", None)
        issued_at = session.pop("oauth_state_issued_at", 0)

        if not expected or not state or not secrets.compare_digest(str(expected), state):
            raise AuthenticationError("Invalid state parameter")
        if time.time() - issued_at > OAUTH_STATE_TTL_SECONDS:
            raise AuthenticationError("State parameter expired")

    async def handle_callback(self, code: str) -> ProviderIdentity:
        """Exchange an authorization code for the provider identity."""
        return await self.oauth_client.exchange_code(code)

    def is_user_allowed(self, email: str) -> bool:
        email = normalize_email(email)
        try:
            admin_config = self.admin_service.get_config()
        except StorageError as e:
            logger.warning(f"Failed to get admin config, using static allowlist: {e}")
            return email in self.static_allowed_emails
        return email in admin_config.allowed_emails

    def is_user_admin(self, email: str) -> bool:
        email = normalize_email(email)
        try:
            admin_config = self.admin_service.get_config()
        except StorageError as e:
            logger.warning(f"Failed to get admin config, using static admin list: {e}")
            return email in self.static_admin_emails
        return email in admin_config.admin_emails

    def create_session(self, session: Session, identity: ProviderIdentity) -> SessionUser:
        """Populate the session for an allowed identity and upsert the user record."""
        is_admin = self.is_user_admin(identity.email)
        user = SessionUser(
            email=identity.email,
            name=identity.name,
            is_admin=is_admin,
            picture=identity.picture,
            login_time=int(time.time()),
        )

        session.clear()
        session["user_id"] = identity.id
        session["user_email"] = user.email
        session["user_name"] = user.name
        session["user_picture"] = user.picture
        session["is_admin"] = user.is_admin
        session["authenticated"] = True
        session["login_time"] = user.login_time

        self._upsert_user(identity, is_admin)
        return user

    def current_user(self, session: Session) -> Optional[SessionUser]:
        if not session.get("authenticated"):
            return None
        email = session.get("user_email")
        if not email:
            return None
        return SessionUser(
            email=email,
            name=session.get("user_name", ""),
            is_admin=bool(session.get("is_admin", False)),
            picture=session.get("user_picture", ""),
            login_time=session.get("login_time", 0),
        )

    @staticmethod
    def clear_session(session: Session) -> None:
        session.clear()

    def create_demo_session(self, session: Session, email: str, name: Optional[str] = None) -> SessionUser:
        """
        Log in without the provider; only available in demo mode.

        Raises:
            DemoLoginUnavailableError: Real provider credentials are configured
            ValidationError: Email missing
            AuthorizationError: Email not in the allowlist
        """
        if not self.demo_mode:
            raise DemoLoginUnavailableError("Demo login is not available")

        email = normalize_email(email)
        if not email:
            raise ValidationError("Email is required")
        if not self.is_user_allowed(email):
            raise AuthorizationError("User not in allowlist")

        name = (name or "").strip() or email.split("@")[0]
        identity = ProviderIdentity(
            id=f"demo-{email}",
            email=email,
            verified_email=True,
            name=name,
            picture=f"https://via.placeholder.com/150?text={name[0]}",
        )
        return self.create_session(session, identity)

    def _upsert_user(self, identity: ProviderIdentity, is_admin: bool) -> None:
        try:
            existing = self.storage.get_user(identity.email)
            user = User(
                email=identity.email,
                name=identity.name,
                picture=identity.picture,
                is_admin=is_admin,
            )
            if existing is not None:
                user.joined_at = existing.joined_at
            self.storage.save_user(user)
        except StorageError as e:
            logger.warning(f"Failed to store user {identity.email}: {e}")


# Global singleton
_auth_service: Optional[AuthService] = None
_auth_service_lock = threading.Lock()


def get_auth_service() -> AuthService:
    """Get the global AuthService instance; demo mode is resolved here, once."""
    global _auth_service
    if _auth_service is None:
        with _auth_service_lock:
            if _auth_service is None:
                from app.config import config, DEMO_CLIENT_ID
                from app.services.admin_service import get_admin_service
                from app.storage import get_storage

                demo_mode = config.is_demo_mode()
                _auth_service = AuthService(
                    storage=get_storage(),
                    admin_service=get_admin_service(),
                    oauth_client=OAuthClient(
                        client_id=DEMO_CLIENT_ID if demo_mode else config.GOOGLE_CLIENT_ID,
                        client_secret=config.GOOGLE_CLIENT_SECRET,
                        redirect_url=config.REDIRECT_URL,
                    ),
                    demo_mode=demo_mode,
                    static_allowed_emails=config.get_allowed_emails(),
                    static_admin_emails=config.get_admin_emails(),
                )
    return _auth_service


def reset_auth_service() -> None:
    """Reset the auth service singleton (for testing)."""
    global _auth_service
    with _auth_service_lock:
        _auth_service = None


def get_current_user(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> Optional[SessionUser]:
    """FastAPI dependency returning the session user, if any."""
    return auth_service.current_user(request.session)


def require_user(user: Optional[SessionUser] = Depends(get_current_user)) -> SessionUser:
    """
    FastAPI dependency for API routes that need a logged-in user.

    Raises:
        HTTPException: 401 if the session is not authenticated
    """
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={
                "error_code": "unauthorized",
                "error_message": "Authentication required"
            }
        )
    return user


def require_admin(user: Optional[SessionUser] = Depends(get_current_user)) -> SessionUser:
    """
    FastAPI dependency for admin-only routes; never redirects.

    Raises:
        HTTPException: 403 unless the session belongs to an admin
    """
    if user is None or not user.is_admin:
        raise HTTPException(
            status_code=403,
            detail={
                "error_code": "forbidden",
                "error_message": "Admin access required"
            }
        )
    return user


def login_required(user: Optional[SessionUser] = Depends(get_current_user)) -> SessionUser:
    """
    FastAPI dependency for pages: unauthenticated requests go to the login page.

    Raises:
        HTTPException: 303 redirect to /login
    """
    if user is None:
        raise HTTPException(status_code=303, headers={"Location": "/login"})
    return user
