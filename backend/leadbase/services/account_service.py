"""Account lifecycle around the session core: signup, email verification,
password reset, profile lookup and deletion.

Every credential change (password reset, deletion) revokes all refresh
tokens of the user so sessions established before the change die with it.
"""

import secrets
from datetime import datetime, timedelta, timezone

from config.config import settings
from core.auth_helper import get_password_hash
from core.errors import AppError, ErrorKind
from core.logging import logger
from models.auth import User
from services.credential_store import CredentialStore
from services.mail_service import MailService
from services.session_manager import SessionManager


def new_one_time_token() -> str:
    return secrets.token_hex(32)


class AccountService:
    """Account operations that are not part of token issuance itself.

    Args:
        credentials: User record store.
        sessions: Session manager, used to revoke sessions.
        mailer: Mail sender for verification/reset links.
        reset_ttl: Lifetime of password reset tokens.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        sessions: SessionManager,
        mailer: MailService,
        reset_ttl: timedelta = timedelta(minutes=60),
    ):
        self.credentials = credentials
        self.sessions = sessions
        self.mailer = mailer
        self.reset_ttl = reset_ttl

    @classmethod
    def from_settings(
        cls, credentials: CredentialStore, sessions: SessionManager, mailer: MailService
    ) -> "AccountService":
        return cls(
            credentials,
            sessions,
            mailer,
            reset_ttl=timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES),
        )

    async def signup(
        self, email: str, password: str, name: str | None = None
    ) -> tuple[User, str | None]:
        """Create a password account.

        An existing OAuth-only account with the same email gets the password
        attached instead (it stays verified).

        Returns:
            tuple[User, str | None]: The user and, for a new unverified
                account, the verification token to mail.

        Raises:
            AppError: UserAlreadyExists if the email already has a password
                account.
        """
        existing = await self.credentials.find_by_email(email)
        if existing is not None:
            if existing.provider_id and not existing.password_hash:
                user = await self.credentials.update(
                    existing.id,
                    password_hash=get_password_hash(password),
                    name=name or existing.name,
                )
                logger.info("Attached password to federated user id={}", user.id)
                return user, None
            raise AppError(ErrorKind.USER_ALREADY_EXISTS)

        verification_token = new_one_time_token()
        user = await self.credentials.create(
            email,
            password_hash=get_password_hash(password),
            name=name,
            is_verified=False,
            verification_token=verification_token,
        )
        return user, verification_token

    async def send_verification(self, email: str, token: str) -> bool:
        return await self.mailer.send(email, "verification", token)

    async def verify_email(self, token: str) -> User:
        user = await self.credentials.find_by_verification_token(token)
        if user is None:
            raise AppError(ErrorKind.INVALID_VERIFICATION_TOKEN)
        user = await self.credentials.update(
            user.id, is_verified=True, verification_token=None
        )
        logger.info("Verified email for user id={}", user.id)
        return user

    async def request_password_reset(self, email: str) -> None:
        """Mail a reset link if the account exists.

        Unknown emails and delivery failures return silently so the response
        does not reveal whether an account exists.
        """
        user = await self.credentials.find_by_email(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return

        reset_token = new_one_time_token()
        await self.credentials.update(
            user.id,
            reset_token=reset_token,
            reset_token_expiry=datetime.now(timezone.utc) + self.reset_ttl,
        )
        await self.mailer.send(user.email, "password_reset", reset_token)

    async def reset_password(self, token: str, password: str) -> User:
        user = await self.credentials.find_by_reset_token(token)
        if user is None:
            raise AppError(ErrorKind.INVALID_RESET_TOKEN)

        user = await self.credentials.update(
            user.id,
            password_hash=get_password_hash(password),
            reset_token=None,
            reset_token_expiry=None,
        )
        await self.sessions.logout_all(user.id)
        logger.info("Password reset for user id={}", user.id)
        return user

    async def get_profile(self, user_id: int) -> User:
        user = await self.credentials.find_by_id(user_id)
        if user is None:
            raise AppError(ErrorKind.USER_NOT_FOUND)
        return user

    async def delete_account(self, user_id: int) -> None:
        user = await self.get_profile(user_id)
        await self.sessions.logout_all(user.id)
        await self.credentials.delete(user.id)
