"""Authentication routes: OAuth2 login flow, logout, status and demo login."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse

from app.auth import AuthService, SessionUser, get_auth_service, get_current_user
from app.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DemoLoginUnavailableError,
    StorageError,
    ValidationError,
)
from app.models import AuthStatusResponse, DemoLoginRequest, DemoLoginResponse, UserInfo

logger = logging.getLogger(__name__)

router = APIRouter()


def _user_info(user: SessionUser) -> UserInfo:
    return UserInfo(email=user.email, name=user.name, is_admin=user.is_admin)


@router.get("/login")
async def login(request: Request, auth_service: AuthService = Depends(get_auth_service)):
    """Redirect to the OAuth2 provider with a fresh state token."""
    url = auth_service.start_login(request.session)
    return RedirectResponse(url, status_code=307)


@router.get("/callback")
async def callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Handle the provider callback: check state, exchange the code, start a session."""
    # Consumes the state token whatever the outcome
    try:
        auth_service.verify_state(request.session, state)
    except AuthenticationError as e:
        logger.warning(f"OAuth state check failed: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    if error:
        logger.warning(f"OAuth provider returned error: {error}")
        raise HTTPException(status_code=400, detail=f"Authorization failed: {error}")

    if not code:
        raise HTTPException(status_code=400, detail="Authorization code not found")

    try:
        identity = await auth_service.handle_callback(code)
    except AuthenticationError as e:
        logger.error(f"OAuth callback failed: {e}")
        raise HTTPException(status_code=500, detail="Authentication failed")

    if not auth_service.is_user_allowed(identity.email):
        logger.warning(f"User {identity.email} not in allowlist")
        raise HTTPException(status_code=403, detail="Access denied: User not authorized")

    try:
        auth_service.create_session(request.session, identity)
    except StorageError as e:
        logger.error(f"Failed to create session: {e}")
        raise HTTPException(status_code=500, detail="Failed to create session")

    logger.info(f"User {identity.name} ({identity.email}) logged in successfully")
    return RedirectResponse("/", status_code=303)


@router.post("/logout")
async def logout(
    request: Request,
    user: Optional[SessionUser] = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Clear the session and go back to the login page."""
    auth_service.clear_session(request.session)
    if user is not None:
        logger.info(f"User {user.email} logged out")
    return RedirectResponse("/login", status_code=303)


@router.get("/status", response_model=AuthStatusResponse, response_model_exclude_none=True)
async def auth_status(user: Optional[SessionUser] = Depends(get_current_user)):
    """Get the current authentication status."""
    if user is None:
        return AuthStatusResponse(authenticated=False)
    return AuthStatusResponse(authenticated=True, user=_user_info(user))


def _demo_login(request: Request, auth_service: AuthService, email: str, name: Optional[str]) -> SessionUser:
    try:
        user = auth_service.create_demo_session(request.session, email, name)
    except DemoLoginUnavailableError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AuthorizationError as e:
        logger.warning(f"Demo login rejected for {email}: {e}")
        raise HTTPException(status_code=403, detail="Access denied: User not authorized")

    logger.info(f"Demo user {user.name} ({user.email}) logged in")
    return user


@router.get("/demo-login")
async def demo_login_get(
    request: Request,
    email: str = "",
    name: Optional[str] = None,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Demo login from a query string; redirects home."""
    _demo_login(request, auth_service, email, name)
    return RedirectResponse("/", status_code=303)


@router.post("/demo-login", response_model=DemoLoginResponse)
async def demo_login_post(
    body: DemoLoginRequest,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Demo login from a JSON body."""
    user = _demo_login(request, auth_service, body.email, body.name)
    return DemoLoginResponse(success=True, user=_user_info(user))
