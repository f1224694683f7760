"""FastAPI application entrypoint for the leadbase backend.

Sets up the application, middleware, error handlers and routes and provides
a lifespan context manager that initializes the database, wires the auth
services onto ``app.state`` and runs the refresh token sweeper.
"""

import asyncio
from contextlib import asynccontextmanager

import uvicorn
from api.routes.auth import router as auth_router
from api.routes.google import router as google_router
from config.config import settings
from core.errors import register_error_handlers
from core.logging import logger
from core.tokens import TokenCodec
from db.session import AsyncSessionLocal, engine, initialize_database
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from services.account_service import AccountService
from services.credential_store import CredentialStore
from services.google_oauth import GoogleOAuthClient
from services.mail_service import MailService
from services.session_manager import SessionManager
from services.token_ledger import TokenLedger
from services.token_sweeper import start_token_sweeper, stop_token_sweeper


def build_services(app: FastAPI, session_factory=AsyncSessionLocal) -> None:
    """Construct the auth services around `session_factory` and attach them
    to ``app.state``."""
    codec = TokenCodec.from_settings()
    credentials = CredentialStore(session_factory)
    ledger = TokenLedger(session_factory)
    session_manager = SessionManager(credentials, ledger, codec)

    app.state.token_codec = codec
    app.state.token_ledger = ledger
    app.state.session_manager = session_manager
    app.state.account_service = AccountService.from_settings(
        credentials, session_manager, MailService.from_settings()
    )
    app.state.google_client = GoogleOAuthClient.from_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context to run startup and shutdown routines.

    On startup this will attempt to create the metadata tables, retrying a
    few times if the DB isn't ready yet, then start the token sweeper.

    Yields:
        None: Control is returned to FastAPI while the app is running.
    """

    logger.info("Starting up")

    max_retries = 5
    for attempt in range(max_retries):
        try:
            await initialize_database()
            break
        except Exception as e:
            # NOTE: transient DB connectivity issues are retried to improve
            # startup robustness when services come up concurrently.
            if attempt < max_retries - 1:
                logger.warning(
                    "Database connection attempt {} failed: {}. Retrying..",
                    attempt + 1,
                    e,
                )
                await asyncio.sleep(2)
            else:
                logger.exception(
                    "Failed to create database tables after {} attempts", max_retries
                )
                raise

    build_services(app)
    sweeper = start_token_sweeper(
        app.state.token_ledger, settings.TOKEN_SWEEP_INTERVAL_HOURS * 60 * 60
    )

    yield

    logger.info("Shutting down")
    await stop_token_sweeper(sweeper)
    await engine.dispose()


app = FastAPI(title="leadbase", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)


@app.get("/health")
async def health():
    """Return a simple health check response."""

    return {"success": True, "message": "Server is running"}


app.include_router(auth_router)
app.include_router(google_router)


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=4000, reload=settings.is_development)
