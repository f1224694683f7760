"""Tests for resolving local users from Google identities."""

import asyncio

from core.auth_helper import get_password_hash


def test_creates_verified_user_without_password(session_manager, credentials):
    user = asyncio.run(session_manager.resolve_or_create_user("google-sub-1", "New@Example.com", "New User"))

    assert user.email == "new@example.com"
    assert user.provider_id == "google-sub-1"
    assert user.password_hash is None
    assert user.is_verified is True
    assert user.name == "New User"


def test_returns_already_linked_user(session_manager):
    first = asyncio.run(session_manager.resolve_or_create_user("google-sub-1", "new@example.com"))

    again = asyncio.run(session_manager.resolve_or_create_user("google-sub-1", "new@example.com"))

    assert again.id == first.id


def test_links_existing_password_account(session_manager, credentials):
    existing = asyncio.run(
        credentials.create(
            "carol@example.com",
            password_hash=get_password_hash("Secret123!"),
            is_verified=False,
        )
    )

    linked = asyncio.run(session_manager.resolve_or_create_user("google-sub-2", "carol@example.com", "Carol"))

    assert linked.id == existing.id
    assert linked.provider_id == "google-sub-2"
    assert linked.is_verified is True
    # The password keeps working after linking.
    result = asyncio.run(session_manager.login("carol@example.com", "Secret123!"))
    assert result.user.id == existing.id


def test_federated_user_can_get_tokens(session_manager, codec):
    user = asyncio.run(session_manager.resolve_or_create_user("google-sub-3", "dave@example.com"))

    tokens = asyncio.run(session_manager.issue_tokens(user.id, user.email))

    assert codec.verify(tokens.access_token, "access").user_id == user.id
    rotated = asyncio.run(session_manager.rotate_refresh(tokens.refresh_token))
    assert rotated.refresh_token != tokens.refresh_token
