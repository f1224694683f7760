"""Authentication routes with refresh token rotation.

Exposes endpoints for account creation and verification, issuing and
rotating access/refresh tokens and revoking refresh tokens per-session or
for all user sessions.

Endpoints:
    - POST   /api/auth/signup: Create a password account
    - POST   /api/auth/login: Login (access token in body, refresh cookie)
    - POST   /api/auth/refresh: Rotate the refresh cookie for a new pair
    - POST   /api/auth/logout: Revoke the refresh cookie's token
    - POST   /api/auth/logout-all: Revoke all user's refresh tokens
    - GET    /api/auth/verify-email: Confirm an email address
    - POST   /api/auth/request-password-reset: Mail a reset link
    - POST   /api/auth/reset-password: Set a new password
    - GET    /api/auth/profile: Current user
    - DELETE /api/auth/delete-account: Delete the current user
    - GET    /api/auth/sessions: Active refresh token sessions
"""

from api.cookies import REFRESH_COOKIE, clear_refresh_cookie, set_refresh_cookie
from api.dependencies import Accounts, Sessions
from core.auth_helper import CurrentClaims, get_client_ip, get_device_info
from core.errors import AppError, ErrorKind
from core.logging import logger
from fastapi import APIRouter, BackgroundTasks, Query, Request, status
from fastapi.responses import JSONResponse
from schemas.auth import (
    ApiResponse,
    EmailRequest,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
    dump_session,
    dump_user,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def envelope(message: str | None = None, data: dict | None = None, status_code: int = 200):
    body = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return JSONResponse(status_code=status_code, content=body)


@router.post("/signup", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def signup(body: SignupRequest, accounts: Accounts, background_tasks: BackgroundTasks):
    """Create a password account and mail its verification link.

    If the email belongs to an account created through Google without a
    password, the password is attached to that account instead.

    Raises:
        AppError: UserAlreadyExists (409).
    """
    user, verification_token = await accounts.signup(body.email, body.password, body.name)

    if verification_token:
        background_tasks.add_task(accounts.send_verification, user.email, verification_token)
        message = "User created successfully. Please verify your email."
    else:
        message = "Account synced successfully. You can now login with password."

    return envelope(message, {"user": dump_user(user)}, status.HTTP_201_CREATED)


@router.post("/login", response_model=ApiResponse)
async def login(request: Request, body: LoginRequest, sessions: Sessions):
    """Authenticate user and issue access + refresh tokens.

    Returns:
        JSONResponse: Access token and user in the body, refresh token set
            as an HttpOnly cookie.

    Raises:
        AppError: InvalidCredentials (401).
    """
    result = await sessions.login(
        body.email,
        body.password,
        device_info=get_device_info(request),
        ip_address=get_client_ip(request),
    )
    resp = envelope(
        "Login successful",
        {"accessToken": result.tokens.access_token, "user": dump_user(result.user)},
    )
    set_refresh_cookie(resp, result.tokens)
    return resp


@router.post("/refresh", response_model=ApiResponse)
async def refresh(request: Request, sessions: Sessions):
    """Exchange the refresh cookie for a new access token.

    The presented refresh token is consumed and a new one is set as cookie.

    Raises:
        AppError: RefreshInvalid or RefreshExpired (401).
    """
    refresh_token = request.cookies.get(REFRESH_COOKIE)
    if not refresh_token:
        raise AppError(ErrorKind.REFRESH_INVALID, "Refresh token not provided")

    tokens = await sessions.rotate_refresh(
        refresh_token,
        device_info=get_device_info(request),
        ip_address=get_client_ip(request),
    )
    resp = envelope("Token refreshed successfully", {"accessToken": tokens.access_token})
    set_refresh_cookie(resp, tokens)
    return resp


@router.post("/logout", response_model=ApiResponse)
async def logout(request: Request, sessions: Sessions):
    """Revoke the refresh cookie's token (if any) and clear the cookie.

    Always succeeds, also for unknown or already revoked tokens.
    """
    refresh_token = request.cookies.get(REFRESH_COOKIE)
    if refresh_token:
        await sessions.logout(refresh_token)

    resp = envelope("Logout successful")
    clear_refresh_cookie(resp)
    return resp


@router.post("/logout-all", response_model=ApiResponse)
async def logout_all(claims: CurrentClaims, sessions: Sessions):
    """Revoke all refresh tokens for the current user (logout everywhere)."""
    count = await sessions.logout_all(claims.user_id)
    logger.info("User id={} logged out of {} sessions", claims.user_id, count)

    resp = envelope("Logged out from all devices successfully")
    clear_refresh_cookie(resp)
    return resp


@router.get("/verify-email", response_model=ApiResponse)
async def verify_email(accounts: Accounts, token: str = Query(min_length=1)):
    """Confirm the email address owning the verification `token`.

    Raises:
        AppError: InvalidOrExpiredVerificationToken (400).
    """
    user = await accounts.verify_email(token)
    return envelope("Email verified successfully", {"user": dump_user(user)})


@router.post("/request-password-reset", response_model=ApiResponse)
async def request_password_reset(
    body: EmailRequest, accounts: Accounts, background_tasks: BackgroundTasks
):
    """Mail a password reset link.

    The response is identical whether or not the account exists.
    """
    background_tasks.add_task(accounts.request_password_reset, body.email)
    return envelope("If the email exists, a reset link has been sent")


@router.post("/reset-password", response_model=ApiResponse)
async def reset_password(body: ResetPasswordRequest, accounts: Accounts):
    """Set a new password and revoke every session of the user.

    Raises:
        AppError: InvalidOrExpiredResetToken (400).
    """
    await accounts.reset_password(body.token, body.password)
    return envelope("Password reset successful")


@router.get("/profile", response_model=ApiResponse)
async def profile(claims: CurrentClaims, accounts: Accounts):
    """Return the current authenticated user's record.

    Raises:
        AppError: UserNotFound (404) if the account was deleted.
    """
    user = await accounts.get_profile(claims.user_id)
    return envelope(data={"user": dump_user(user)})


@router.delete("/delete-account", response_model=ApiResponse)
async def delete_account(claims: CurrentClaims, accounts: Accounts):
    """Revoke all sessions of the current user and delete the account."""
    await accounts.delete_account(claims.user_id)

    resp = envelope("Account deleted successfully")
    clear_refresh_cookie(resp)
    return resp


@router.get("/sessions", response_model=ApiResponse)
async def active_sessions(claims: CurrentClaims, sessions: Sessions):
    """Return active (non-revoked, unexpired) refresh token sessions."""
    rows = await sessions.ledger.list_active(claims.user_id)
    return envelope(data={"sessions": [dump_session(row) for row in rows]})
