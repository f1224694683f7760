"""Session lifecycle: login, federated login, refresh rotation and logout.

REFRESH TOKEN STATES (per token string, as seen by the ledger):

    Live ──consume──> Revoked   (terminal)
      └──time───────> Expired   (terminal)

Only a Live token can be redeemed. Rotation consumes the presented token
with an atomic compare-and-set before minting the replacement, so a token is
redeemable at most once; a replay after the legitimate client rotated finds
the row already revoked and is rejected.

Reuse detection only rejects the replayed token itself. Tokens descended
from it through earlier rotations stay valid.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from core.auth_helper import DUMMY_PASSWORD_HASH, verify_password
from core.errors import AppError, ErrorKind
from core.logging import logger
from core.tokens import TokenCodec, TokenError, TokenPair
from models.auth import User
from services.credential_store import CredentialStore, normalize_email
from services.token_ledger import TokenLedger, as_utc


@dataclass
class LoginResult:
    user: User
    tokens: TokenPair


class SessionManager:
    """Orchestrates token issuance and revocation.

    Args:
        credentials: User record store.
        ledger: Refresh token ledger.
        codec: Token signer/verifier.
    """

    def __init__(
        self, credentials: CredentialStore, ledger: TokenLedger, codec: TokenCodec
    ):
        self.credentials = credentials
        self.ledger = ledger
        self.codec = codec

    async def authenticate(self, email: str, password: str) -> User:
        """Return the user owning `email` if `password` matches.

        Raises:
            AppError: InvalidCredentials for an unknown email, an OAuth-only
                account or a wrong password, with the same message for all.
        """
        user = await self.credentials.find_by_email(email)
        if user is None or not user.password_hash:
            # NOTE: Hash anyway so unknown accounts are not distinguishable by timing.
            verify_password(password, DUMMY_PASSWORD_HASH)
            logger.info("Login rejected: no password account for email")
            raise AppError(ErrorKind.INVALID_CREDENTIALS)
        if not verify_password(password, user.password_hash):
            logger.warning("Login rejected: invalid password user_id={}", user.id)
            raise AppError(ErrorKind.INVALID_CREDENTIALS)
        return user

    async def issue_tokens(
        self,
        user_id: int,
        email: str,
        device_info: str | None = None,
        ip_address: str | None = None,
    ) -> TokenPair:
        """Mint an access/refresh pair and record the refresh token."""
        access_token = self.codec.issue_access_token(user_id, email)
        refresh_token, expires_at = self.codec.issue_refresh_token(user_id, email)
        await self.ledger.record(
            refresh_token,
            user_id,
            expires_at,
            device_info=device_info,
            ip_address=ip_address,
        )
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            refresh_expires_at=expires_at,
        )

    async def login(
        self,
        email: str,
        password: str,
        device_info: str | None = None,
        ip_address: str | None = None,
    ) -> LoginResult:
        user = await self.authenticate(email, password)
        tokens = await self.issue_tokens(
            user.id, user.email, device_info=device_info, ip_address=ip_address
        )
        logger.info("User id={} logged in", user.id)
        return LoginResult(user=user, tokens=tokens)

    async def resolve_or_create_user(
        self, provider_id: str, email: str, display_name: str | None = None
    ) -> User:
        """Find or create the local user for a federated identity.

        Lookup order: by provider id (already linked), then by email (link the
        provider id and mark verified, trusting the provider's verification),
        else create a verified user without a password.
        """
        user = await self.credentials.find_by_provider_id(provider_id)
        if user is not None:
            return user

        user = await self.credentials.find_by_email(email)
        if user is not None:
            logger.info("Linking federated identity to existing user id={}", user.id)
            return await self.credentials.update(
                user.id, provider_id=provider_id, is_verified=True
            )

        return await self.credentials.create(
            normalize_email(email),
            provider_id=provider_id,
            name=display_name,
            is_verified=True,
        )

    async def rotate_refresh(
        self,
        presented_token: str,
        device_info: str | None = None,
        ip_address: str | None = None,
    ) -> TokenPair:
        """Redeem a refresh token for a fresh pair.

        Raises:
            AppError: RefreshInvalid if the signature is bad, the token is
                unknown, already revoked or lost a concurrent redemption;
                RefreshExpired if the ledger row is past its expiry.
        """
        try:
            claims = self.codec.verify(presented_token, "refresh")
        except TokenError as exc:
            logger.info("Refresh rejected by codec: {}", exc)
            raise AppError(ErrorKind.REFRESH_INVALID)

        record = await self.ledger.lookup(presented_token)
        if record is None or record.revoked:
            logger.warning(
                "Refresh token reuse or unknown token for user_id={}", claims.user_id
            )
            raise AppError(ErrorKind.REFRESH_INVALID)

        if as_utc(record.expires_at) < datetime.now(timezone.utc):
            await self.ledger.revoke(presented_token)
            raise AppError(ErrorKind.REFRESH_EXPIRED)

        if not await self.ledger.consume(presented_token):
            logger.warning(
                "Refresh token lost a concurrent rotation for user_id={}",
                claims.user_id,
            )
            raise AppError(ErrorKind.REFRESH_INVALID)

        tokens = await self.issue_tokens(
            claims.user_id,
            claims.email,
            device_info=device_info,
            ip_address=ip_address,
        )
        logger.info("Rotated refresh token for user_id={}", claims.user_id)
        return tokens

    async def logout(self, refresh_token: str) -> None:
        """Revoke a single refresh token; never fails for unknown tokens."""
        await self.ledger.revoke(refresh_token)

    async def logout_all(self, user_id: int) -> int:
        return await self.ledger.revoke_all(user_id)
