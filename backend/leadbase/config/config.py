"""Application settings loaded from environment for the leadbase backend.

This module defines the :class:`Settings` model (based on Pydantic's
``BaseSettings``) and instantiates ``settings`` which is imported across
the application to access configuration values.

Notable fields include the database connection URL, the two JWT signing
secrets (one per token class), cookie flags for the refresh token and the
Google OAuth / mail API credentials.
"""

from pathlib import Path

from pydantic_settings import BaseSettings

BACKEND_DIR = Path(__file__).resolve().parent.parent.parent
ENV_FILE = BACKEND_DIR / ".env"


class Settings(BaseSettings):
    """Environment-backed application settings.

    Attributes:
        APP_ENV: Deployment environment (development, production, test).
        DATABASE_URL_ASYNC: Async database URL for SQLAlchemy.
        DB_ECHO: Echo SQL statements to the log.

        JWT_ACCESS_SECRET: Signing secret for access tokens.
        JWT_REFRESH_SECRET: Signing secret for refresh tokens.
        ALGORITHM: JWT signing algorithm.
        ACCESS_TOKEN_EXPIRE_MINUTES: Access token lifetime in minutes.
        REFRESH_TOKEN_EXPIRE_DAYS: Refresh token lifetime in days.
        RESET_TOKEN_EXPIRE_MINUTES: Password reset token lifetime in minutes.
        TOKEN_SWEEP_INTERVAL_HOURS: Interval of the refresh token cleanup.

        COOKIE_SECURE: Force the Secure flag on the refresh cookie. When unset
            the flag follows APP_ENV (on in production).
        COOKIE_PATH: Path scope of the refresh cookie.
        FRONTEND_URL: Origin of the web client (CORS + OAuth redirects).

        GOOGLE_CLIENT_ID: OAuth client id; Google login is disabled if empty.
        GOOGLE_CLIENT_SECRET: OAuth client secret.
        GOOGLE_REDIRECT_URL: Callback URL registered with Google.

        MAIL_API_URL: Resend-compatible HTTP endpoint for outgoing mail.
        MAIL_API_KEY: API key for the mail endpoint; mails are only logged
            when empty.
        MAIL_FROM: Sender address.
    """

    APP_ENV: str = "development"

    DATABASE_URL_ASYNC: str
    DB_ECHO: bool = False

    JWT_ACCESS_SECRET: str
    JWT_REFRESH_SECRET: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    RESET_TOKEN_EXPIRE_MINUTES: int = 60
    TOKEN_SWEEP_INTERVAL_HOURS: int = 24

    COOKIE_SECURE: bool | None = None
    COOKIE_PATH: str = "/api/auth"
    FRONTEND_URL: str = "http://localhost:5173"

    GOOGLE_CLIENT_ID: str | None = None
    GOOGLE_CLIENT_SECRET: str | None = None
    GOOGLE_REDIRECT_URL: str = "http://localhost:4000/api/auth/google/callback"

    MAIL_API_URL: str = "https://api.resend.com/emails"
    MAIL_API_KEY: str | None = None
    MAIL_FROM: str = "noreply@leadbase.local"

    class Config:
        env_file = str(ENV_FILE)
        env_file_encoding = "utf-8"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.lower() in ("dev", "development")

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() in ("prod", "production")

    @property
    def refresh_cookie_secure(self) -> bool:
        if self.COOKIE_SECURE is not None:
            return self.COOKIE_SECURE
        return self.is_production


settings = Settings()
