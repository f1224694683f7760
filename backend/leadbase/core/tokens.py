"""Signing and verification of access and refresh tokens.

Both token classes are HS256 JWTs carrying ``sub`` (user id), ``email``,
``token_type`` and a random ``jti``. Each class has its own secret, so a
leaked access-token secret cannot mint refresh tokens and vice versa.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Literal

import jwt
from config.config import settings
from pydantic import BaseModel

TokenKind = Literal["access", "refresh"]


class TokenError(Exception):
    """Base class for token verification failures."""


class TokenExpired(TokenError):
    """The token's `exp` claim is in the past."""


class TokenInvalid(TokenError):
    """Bad signature, wrong token class or malformed structure."""


class TokenClaims(BaseModel):
    """Identity claims decoded from a verified token."""

    user_id: int
    email: str
    token_type: TokenKind
    jti: str
    issued_at: datetime
    expires_at: datetime


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str
    refresh_expires_at: datetime


class TokenCodec:
    """Stateless issuer/verifier for both token classes.

    Args:
        access_secret: Secret used to sign access tokens.
        refresh_secret: Secret used to sign refresh tokens.
        algorithm: JWT algorithm (HMAC family).
        access_ttl: Access token lifetime.
        refresh_ttl: Refresh token lifetime.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=30),
    ):
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self._secrets = {"access": access_secret, "refresh": refresh_secret}

    @classmethod
    def from_settings(cls) -> "TokenCodec":
        return cls(
            access_secret=settings.JWT_ACCESS_SECRET,
            refresh_secret=settings.JWT_REFRESH_SECRET,
            algorithm=settings.ALGORITHM,
            access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )

    def _issue(
        self, kind: TokenKind, user_id: int, email: str, now: datetime | None
    ) -> tuple[str, datetime]:
        issued_at = now or datetime.now(timezone.utc)
        ttl = self.access_ttl if kind == "access" else self.refresh_ttl
        expires_at = issued_at + ttl
        payload = {
            "sub": str(user_id),
            "email": email,
            "token_type": kind,
            "jti": secrets.token_urlsafe(16),
            "iat": issued_at,
            "exp": expires_at,
        }
        token = jwt.encode(payload, self._secrets[kind], algorithm=self.algorithm)
        return token, expires_at

    def issue_access_token(
        self, user_id: int, email: str, now: datetime | None = None
    ) -> str:
        """Sign a short-lived access token for `user_id`."""
        token, _ = self._issue("access", user_id, email, now)
        return token

    def issue_refresh_token(
        self, user_id: int, email: str, now: datetime | None = None
    ) -> tuple[str, datetime]:
        """Sign a refresh token.

        Returns:
            tuple[str, datetime]: The encoded token and its expiry, which the
                ledger records alongside it.
        """
        return self._issue("refresh", user_id, email, now)

    def verify(self, token: str, kind: TokenKind) -> TokenClaims:
        """Verify `token` as a token of class `kind` and return its claims.

        Raises:
            TokenExpired: If the token is past its expiry.
            TokenInvalid: For any other signature or format failure.
        """
        try:
            payload = jwt.decode(
                token,
                self._secrets[kind],
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp", "iat", "jti"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpired("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise TokenInvalid(f"Invalid token: {exc}") from exc

        if payload.get("token_type") != kind:
            raise TokenInvalid("Invalid token type")

        try:
            return TokenClaims(
                user_id=int(payload["sub"]),
                email=payload["email"],
                token_type=payload["token_type"],
                jti=payload["jti"],
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (KeyError, ValueError, TypeError) as exc:
            raise TokenInvalid(f"Malformed token payload: {exc}") from exc
