"""Google sign-in routes.

The callback resolves (or creates/links) the local user for the Google
identity, issues a token pair like a password login and redirects back to
the web client with the access token; the refresh token goes into the
usual HttpOnly cookie.
"""

import secrets

from api.cookies import set_refresh_cookie
from api.dependencies import GoogleClient, Sessions
from config.config import settings
from core.auth_helper import get_client_ip, get_device_info
from core.logging import logger
from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse
from services.google_oauth import GoogleOAuthError

router = APIRouter(prefix="/api/auth", tags=["google"])

STATE_COOKIE = "oauthState"


def failure_redirect() -> RedirectResponse:
    return RedirectResponse(
        url=f"{settings.FRONTEND_URL}/login?error=authentication_failed",
        status_code=302,
    )


@router.get("/google")
async def google_login(google: GoogleClient):
    """Redirect the browser to Google's consent screen."""
    if not google.enabled:
        logger.warning("Google login requested but OAuth is not configured")
        return failure_redirect()

    state = secrets.token_urlsafe(16)
    resp = RedirectResponse(url=google.authorization_url(state), status_code=302)
    resp.set_cookie(
        key=STATE_COOKIE,
        value=state,
        httponly=True,
        secure=settings.refresh_cookie_secure,
        samesite="lax",
        max_age=10 * 60,
        path=settings.COOKIE_PATH,
    )
    return resp


@router.get("/google/callback")
async def google_callback(
    request: Request,
    google: GoogleClient,
    sessions: Sessions,
    code: str | None = None,
    state: str | None = None,
):
    """Finish the Google authorization-code flow."""
    expected_state = request.cookies.get(STATE_COOKIE)
    if not code or not state or not expected_state or not secrets.compare_digest(
        state, expected_state
    ):
        logger.warning("Google callback rejected: missing code or state mismatch")
        return failure_redirect()

    try:
        profile = await google.fetch_profile(code)
    except GoogleOAuthError as exc:
        logger.warning("Google callback failed: {}", exc)
        return failure_redirect()

    user = await sessions.resolve_or_create_user(
        profile.provider_id, profile.email, profile.name
    )
    tokens = await sessions.issue_tokens(
        user.id,
        user.email,
        device_info=get_device_info(request),
        ip_address=get_client_ip(request),
    )
    logger.info("User id={} logged in with Google", user.id)

    resp = RedirectResponse(
        url=f"{settings.FRONTEND_URL}/auth/callback?token={tokens.access_token}",
        status_code=302,
    )
    set_refresh_cookie(resp, tokens)
    resp.delete_cookie(STATE_COOKIE, path=settings.COOKIE_PATH)
    return resp
