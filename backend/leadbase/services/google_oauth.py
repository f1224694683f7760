"""Google OAuth 2.0 authorization-code transport.

Only the HTTP exchange with Google lives here; what to do with the
resulting identity is decided by `SessionManager.resolve_or_create_user`.
"""

from dataclasses import dataclass
from urllib.parse import urlencode

import httpx
from config.config import settings
from core.logging import logger

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"


class GoogleOAuthError(Exception):
    """The code exchange or profile lookup failed."""


@dataclass
class GoogleProfile:
    provider_id: str
    email: str
    name: str | None


class GoogleOAuthClient:
    def __init__(
        self,
        client_id: str | None,
        client_secret: str | None,
        redirect_uri: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.transport = transport

    @classmethod
    def from_settings(cls) -> "GoogleOAuthClient":
        return cls(
            client_id=settings.GOOGLE_CLIENT_ID,
            client_secret=settings.GOOGLE_CLIENT_SECRET,
            redirect_uri=settings.GOOGLE_REDIRECT_URL,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def authorization_url(self, state: str) -> str:
        query = urlencode(
            {
                "client_id": self.client_id,
                "redirect_uri": self.redirect_uri,
                "response_type": "code",
                "scope": "openid email profile",
                "state": state,
                "prompt": "select_account",
            }
        )
        return f"{AUTHORIZE_URL}?{query}"

    async def fetch_profile(self, code: str) -> GoogleProfile:
        """Exchange an authorization `code` and return the user's profile.

        Raises:
            GoogleOAuthError: On transport errors, error responses or a
                profile without a verified email.
        """
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=10) as client:
                token_res = await client.post(
                    TOKEN_URL,
                    data={
                        "code": code,
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "redirect_uri": self.redirect_uri,
                        "grant_type": "authorization_code",
                    },
                )
                token_data = token_res.json()
                if token_res.is_error or "access_token" not in token_data:
                    raise GoogleOAuthError(
                        token_data.get("error_description", "Token exchange failed")
                    )

                userinfo_res = await client.get(
                    USERINFO_URL,
                    headers={"Authorization": f"Bearer {token_data['access_token']}"},
                )
                userinfo_res.raise_for_status()
                userinfo = userinfo_res.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Google OAuth request failed: {}", exc)
            raise GoogleOAuthError(str(exc)) from exc

        email = (userinfo.get("email") or "").lower()
        subject = userinfo.get("sub")
        if not email or not subject:
            raise GoogleOAuthError("Google profile is missing email or subject")
        if userinfo.get("email_verified") is False:
            raise GoogleOAuthError("Google email address is not verified")

        return GoogleProfile(provider_id=str(subject), email=email, name=userinfo.get("name"))
