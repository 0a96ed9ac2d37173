"""Client for the Google OAuth2 authorization code flow."""

import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx

from app.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

DEFAULT_SCOPES = [
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
]


@dataclass
class ProviderIdentity:
    """Verified identity returned by the provider."""
    id: str
    email: str
    verified_email: bool
    name: str
    picture: str = ""


class OAuthClient:
    """Builds the authorization URL and exchanges codes for identities."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_url: str,
        scopes: Optional[List[str]] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_url = redirect_url
        self.scopes = scopes or list(DEFAULT_SCOPES)
        self.timeout = 10.0  # 10 second timeout for provider calls

    def authorization_url(self, state: str) -> str:
        """Build the provider authorization URL carrying the CSRF state."""
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_url,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "state": state,
            "access_type": "offline",
        }
        return str(httpx.URL(GOOGLE_AUTH_URL, params=params))

    async def exchange_code(self, code: str) -> ProviderIdentity:
        """
        Exchange an authorization code for the user's verified identity.

        Args:
            code: Authorization code from the provider callback

        Returns:
            ProviderIdentity for the signed-in user

        Raises:
            AuthenticationError: If the token exchange or identity fetch fails
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                token_response = await client.post(
                    GOOGLE_TOKEN_URL,
                    data={
                        "code": code,
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "redirect_uri": self.redirect_url,
                        "grant_type": "authorization_code",
                    },
                )
                if token_response.status_code != 200:
                    logger.warning(f"Token exchange rejected: status {token_response.status_code}")
                    raise AuthenticationError(
                        f"failed to exchange code for token: status {token_response.status_code}"
                    )

                access_token = token_response.json().get("access_token")
                if not access_token:
                    raise AuthenticationError("failed to exchange code for token: no access token")

                userinfo_response = await client.get(
                    GOOGLE_USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                if userinfo_response.status_code != 200:
                    logger.warning(f"User info request rejected: status {userinfo_response.status_code}")
                    raise AuthenticationError(
                        f"failed to get user info: status {userinfo_response.status_code}"
                    )

                data = userinfo_response.json()

        except httpx.TimeoutException as e:
            logger.error("OAuth provider request timed out")
            raise AuthenticationError("OAuth provider timeout") from e

        except httpx.RequestError as e:
            logger.error(f"Failed to reach OAuth provider: {e}")
            raise AuthenticationError(f"failed to reach OAuth provider: {e}") from e

        except ValueError as e:
            logger.error(f"OAuth provider returned invalid JSON: {e}")
            raise AuthenticationError("failed to decode provider response") from e

        email = (data.get("email") or "").strip().lower()
        if not email:
            raise AuthenticationError("provider returned no email")
        if not data.get("verified_email", False):
            raise AuthenticationError(f"email {email} is not verified")

        return ProviderIdentity(
            id=str(data.get("id", "")),
            email=email,
            verified_email=True,
            name=data.get("name") or email,
            picture=data.get("picture") or "",
        )
