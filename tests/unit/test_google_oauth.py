"""Tests for the Google authorization-code client."""

import asyncio
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from services.google_oauth import TOKEN_URL, USERINFO_URL, GoogleOAuthClient, GoogleOAuthError

REDIRECT = "http://testserver/api/auth/google/callback"


def google_handler(userinfo=None, token_status=200):
    """Build a MockTransport handler faking Google's token and userinfo endpoints."""
    userinfo = userinfo or {
        "sub": "google-sub-1",
        "email": "Grace@Example.com",
        "email_verified": True,
        "name": "Grace",
    }

    def handler(request):
        if str(request.url) == TOKEN_URL:
            if token_status != 200:
                return httpx.Response(token_status, json={"error": "invalid_grant", "error_description": "Bad code"})
            return httpx.Response(200, json={"access_token": "google-access", "token_type": "Bearer"})
        if str(request.url) == USERINFO_URL:
            assert request.headers["Authorization"] == "Bearer google-access"
            return httpx.Response(200, json=userinfo)
        return httpx.Response(404)

    return handler


def _client(handler):
    return GoogleOAuthClient("client-id", "client-secret", REDIRECT, transport=httpx.MockTransport(handler))


def test_enabled_requires_id_and_secret():
    assert _client(google_handler()).enabled is True
    assert GoogleOAuthClient(None, None, REDIRECT).enabled is False


def test_authorization_url_carries_state():
    url = urlparse(_client(google_handler()).authorization_url("state-123"))
    query = parse_qs(url.query)

    assert url.netloc == "accounts.google.com"
    assert query["state"] == ["state-123"]
    assert query["client_id"] == ["client-id"]
    assert query["redirect_uri"] == [REDIRECT]
    assert query["response_type"] == ["code"]


def test_fetch_profile():
    profile = asyncio.run(_client(google_handler()).fetch_profile("code-1"))

    assert profile.provider_id == "google-sub-1"
    assert profile.email == "grace@example.com"
    assert profile.name == "Grace"


def test_fetch_profile_bad_code():
    with pytest.raises(GoogleOAuthError):
        asyncio.run(_client(google_handler(token_status=400)).fetch_profile("bad"))


def test_fetch_profile_unverified_email():
    handler = google_handler({"sub": "google-sub-1", "email": "x@example.com", "email_verified": False})

    with pytest.raises(GoogleOAuthError):
        asyncio.run(_client(handler).fetch_profile("code-1"))


def test_fetch_profile_missing_email():
    with pytest.raises(GoogleOAuthError):
        asyncio.run(_client(google_handler({"sub": "google-sub-1"})).fetch_profile("code-1"))
