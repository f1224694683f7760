"""FastAPI dependencies exposing the services built in the app lifespan."""

from typing import Annotated

from fastapi import Depends, Request
from services.account_service import AccountService
from services.google_oauth import GoogleOAuthClient
from services.session_manager import SessionManager


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def get_account_service(request: Request) -> AccountService:
    return request.app.state.account_service


def get_google_client(request: Request) -> GoogleOAuthClient:
    return request.app.state.google_client


Sessions = Annotated[SessionManager, Depends(get_session_manager)]
Accounts = Annotated[AccountService, Depends(get_account_service)]
GoogleClient = Annotated[GoogleOAuthClient, Depends(get_google_client)]
