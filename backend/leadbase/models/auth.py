"""Authentication models: users and the refresh token ledger.

`User` holds identity and credential state; `RefreshToken` records every
issued refresh token so it can be revoked before its natural expiry.
"""

from db.session import Base
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.sql import func


class User(Base):
    """Database model representing an application user.

    Attributes:
        id: Primary key.
        email: Unique, lower-cased login email.
        password_hash: Password hash; NULL for OAuth-only accounts.
        provider_id: Subject of the federated identity (Google), if linked.
        name: Display name.
        is_verified: Whether the email address has been confirmed.
        verification_token: Pending email verification token.
        reset_token: Pending password reset token.
        reset_token_expiry: Expiry of `reset_token`.
        created_at: Account creation timestamp.
        updated_at: Last modification timestamp.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=True)
    provider_id = Column(String(255), nullable=True, unique=True, index=True)
    name = Column(String(255), nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    verification_token = Column(String(128), nullable=True, unique=True, index=True)
    reset_token = Column(String(128), nullable=True, unique=True, index=True)
    reset_token_expiry = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class RefreshToken(Base):
    """One issued refresh token and its revocation state.

    Attributes:
        id: Primary key.
        token: The signed refresh token string.
        user_id: Foreign key to `users.id`.
        expires_at: Expiration timestamp.
        created_at: Record creation timestamp.
        revoked: Set once the token is consumed or revoked; never reset.
        device_info: Optional device description (browser/OS).
        ip_address: Optional originating IP address.
    """

    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(1024), unique=True, nullable=False, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    revoked = Column(Boolean, default=False, nullable=False)

    # NOTE: Device/session tracking, only used for the session listing
    device_info = Column(String(255), nullable=True)
    ip_address = Column(String(64), nullable=True)
