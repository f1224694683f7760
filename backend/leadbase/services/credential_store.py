"""Persistent store of user identity and credential records."""

from datetime import datetime, timezone

from core.logging import logger
from models.auth import User
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


def normalize_email(email: str) -> str:
    return email.strip().lower()


class CredentialStore:
    """CRUD access to `User` rows through an injected session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _find_one(self, *criteria) -> User | None:
        async with self.session_factory() as db:
            result = await db.execute(select(User).filter(*criteria))
            return result.scalars().first()

    async def find_by_email(self, email: str) -> User | None:
        return await self._find_one(User.email == normalize_email(email))

    async def find_by_id(self, user_id: int) -> User | None:
        return await self._find_one(User.id == user_id)

    async def find_by_provider_id(self, provider_id: str) -> User | None:
        return await self._find_one(User.provider_id == provider_id)

    async def find_by_verification_token(self, token: str) -> User | None:
        return await self._find_one(User.verification_token == token)

    async def find_by_reset_token(
        self, token: str, now: datetime | None = None
    ) -> User | None:
        """Return the user holding an unexpired reset `token`, if any."""
        now = now or datetime.now(timezone.utc)
        return await self._find_one(
            User.reset_token == token, User.reset_token_expiry > now
        )

    async def create(self, email: str, **fields) -> User:
        """Insert a new user.

        Args:
            email: Login email; stored lower-cased.
            **fields: Other `User` column values.

        Returns:
            User: The persisted user.
        """
        async with self.session_factory() as db:
            user = User(email=normalize_email(email), **fields)
            db.add(user)
            await db.commit()
            await db.refresh(user)
        logger.info("Created user id={}", user.id)
        return user

    async def update(self, user_id: int, **fields) -> User | None:
        """Set `fields` on the user `user_id` and return the updated row."""
        async with self.session_factory() as db:
            user = await db.get(User, user_id)
            if user is None:
                return None
            for key, value in fields.items():
                setattr(user, key, value)
            await db.commit()
            await db.refresh(user)
        logger.debug("Updated user id={} fields={}", user_id, sorted(fields))
        return user

    async def delete(self, user_id: int) -> bool:
        async with self.session_factory() as db:
            result = await db.execute(delete(User).where(User.id == user_id))
            await db.commit()
        if result.rowcount:
            logger.info("Deleted user id={}", user_id)
        return result.rowcount == 1
