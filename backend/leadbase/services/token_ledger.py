"""Durable ledger of issued refresh tokens.

A signature cannot be invalidated before it expires, so every refresh token
is recorded here and a token is only redeemable while its row is live (not
revoked, not expired).
"""

from datetime import datetime, timezone

from core.logging import logger
from models.auth import RefreshToken
from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


def as_utc(value: datetime) -> datetime:
    """Return `value` as an aware UTC datetime (SQLite drops tzinfo)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TokenLedger:
    """Refresh token records stored through an injected session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def record(
        self,
        token: str,
        user_id: int,
        expires_at: datetime,
        device_info: str | None = None,
        ip_address: str | None = None,
    ) -> RefreshToken:
        """Insert a new live row for `token`."""
        async with self.session_factory() as db:
            row = RefreshToken(
                token=token,
                user_id=user_id,
                expires_at=expires_at,
                device_info=device_info,
                ip_address=ip_address,
            )
            db.add(row)
            await db.commit()
        logger.debug("Recorded refresh token id={} for user_id={}", row.id, user_id)
        return row

    async def lookup(self, token: str) -> RefreshToken | None:
        async with self.session_factory() as db:
            result = await db.execute(
                select(RefreshToken).filter(RefreshToken.token == token)
            )
            return result.scalars().first()

    async def consume(self, token: str) -> bool:
        """Atomically flip `revoked` from false to true.

        Returns:
            bool: True only for the single caller that performed the flip.
        """
        async with self.session_factory() as db:
            result = await db.execute(
                update(RefreshToken)
                .where(
                    RefreshToken.token == token,
                    RefreshToken.revoked == False,  # noqa: E712
                )
                .values(revoked=True)
            )
            await db.commit()
        return result.rowcount == 1

    async def revoke(self, token: str) -> None:
        """Mark `token` revoked. Unknown or already revoked tokens are a no-op."""
        if await self.consume(token):
            logger.info("Revoked refresh token")

    async def revoke_all(self, user_id: int) -> int:
        """Revoke every live refresh token of `user_id`.

        Returns:
            int: Number of rows that were revoked.
        """
        async with self.session_factory() as db:
            result = await db.execute(
                update(RefreshToken)
                .where(
                    RefreshToken.user_id == user_id,
                    RefreshToken.revoked == False,  # noqa: E712
                )
                .values(revoked=True)
            )
            await db.commit()
        logger.info(
            "Revoked all refresh tokens for user_id={} (count={})",
            user_id,
            result.rowcount,
        )
        return result.rowcount

    async def sweep(self, now: datetime | None = None) -> int:
        """Delete rows that are expired or revoked.

        Returns:
            int: Number of deleted rows.
        """
        now = now or datetime.now(timezone.utc)
        async with self.session_factory() as db:
            result = await db.execute(
                delete(RefreshToken).where(
                    or_(
                        RefreshToken.expires_at < now,
                        RefreshToken.revoked == True,  # noqa: E712
                    )
                )
            )
            await db.commit()
        logger.info("Swept {} stale refresh tokens", result.rowcount)
        return result.rowcount

    async def list_active(
        self, user_id: int, now: datetime | None = None
    ) -> list[RefreshToken]:
        """Return the live rows of `user_id`, newest first."""
        now = now or datetime.now(timezone.utc)
        async with self.session_factory() as db:
            result = await db.execute(
                select(RefreshToken)
                .filter(
                    RefreshToken.user_id == user_id,
                    RefreshToken.revoked == False,  # noqa: E712
                    RefreshToken.expires_at > now,
                )
                .order_by(RefreshToken.created_at.desc(), RefreshToken.id.desc())
            )
            return list(result.scalars().all())
