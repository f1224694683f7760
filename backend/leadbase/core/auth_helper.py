"""Password hashing, request authentication and client metadata helpers.

REQUEST GATE:

1. The client sends ``Authorization: Bearer <access token>``.
2. No bearer token: 401 ``AccessTokenRequired``.
3. The token is verified with the access secret (no DB lookup):
   * expired: 401 ``AccessTokenExpired``, the client should call /refresh
   * anything else wrong: 403 ``InvalidAccessToken``, the client must log in
4. On success the decoded claims are stored on ``request.state.claims`` and
   returned to the route.
"""

from typing import Annotated

from core.errors import AppError, ErrorKind
from core.logging import logger
from core.tokens import TokenClaims, TokenExpired, TokenInvalid
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pwdlib import PasswordHash

password_hash = PasswordHash.recommended()

bearer_scheme = HTTPBearer(auto_error=False)

# NOTE: Verified against when the account does not exist so a missing user
# costs the same as a wrong password.
DUMMY_PASSWORD_HASH = password_hash.hash("leadbase-dummy-password")


def verify_password(plain_password, hashed_password):
    """Verify a plain password against a stored hash.

    Args:
        plain_password: The clear-text password provided by the user.
        hashed_password: The stored password hash to verify against.

    Returns:
        bool: True if the password matches, False otherwise.
    """
    return password_hash.verify(plain_password, hashed_password)


def get_password_hash(password):
    """Hash a plain password using the recommended algorithm.

    Args:
        password: Plain-text password to hash.

    Returns:
        str: The resulting password hash.
    """
    return password_hash.hash(password)


def get_current_claims(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> TokenClaims:
    """Authenticate the request from its bearer access token.

    Returns:
        TokenClaims: The verified identity claims.

    Raises:
        AppError: AccessTokenRequired, AccessTokenExpired or
            InvalidAccessToken.
    """
    if credentials is None or not credentials.credentials:
        raise AppError(ErrorKind.ACCESS_TOKEN_REQUIRED)

    codec = request.app.state.token_codec
    try:
        claims = codec.verify(credentials.credentials, "access")
    except TokenExpired:
        raise AppError(ErrorKind.ACCESS_TOKEN_EXPIRED)
    except TokenInvalid as exc:
        logger.warning("Rejected access token on {}: {}", request.url.path, exc)
        raise AppError(ErrorKind.INVALID_ACCESS_TOKEN)

    request.state.claims = claims
    return claims


CurrentClaims = Annotated[TokenClaims, Depends(get_current_claims)]


def get_device_info(request: Request) -> str:
    """Extract device information (user-agent) from a request.

    Args:
        request: FastAPI request object.

    Returns:
        str: Truncated user-agent string (max 255 characters).
    """

    user_agent = request.headers.get("user-agent", "Unknown")
    return user_agent[:255]


def get_client_ip(request: Request) -> str:
    """Determine the client's IP address from the request.

    Prefers the `X-Forwarded-For` header when present (typical when
    the app is behind a proxy/load-balancer), otherwise falls back to the
    direct client address exposed by the ASGI server.

    Args:
        request: FastAPI request object.

    Returns:
        str: Client IP address or "Unknown" if it cannot be determined.
    """

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()[:64]
    return request.client.host if request.client else "Unknown"
