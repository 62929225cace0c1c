from __future__ import annotations

from datetime import timedelta

import pytest

from metaverse_accounts.domain.errors import AccountExistsError
from metaverse_accounts.domain.token import utcnow
from metaverse_accounts.registry import AccountRegistry
from metaverse_accounts.security.passwords import BcryptPasswordHasher


@pytest.fixture()
def hasher() -> BcryptPasswordHasher:
    return BcryptPasswordHasher(rounds=4)


def test_usernames_are_case_insensitive_by_default(hasher):
    registry = AccountRegistry(hasher, token_ttl_seconds=60)
    account = registry.create_account("Alice", "secret")

    assert registry.find_by_username("alice") is account
    assert registry.find_by_username("ALICE") is account
    assert account.username == "Alice"
    with pytest.raises(AccountExistsError):
        registry.create_account("alice", "other")
    assert len(registry) == 1


def test_case_sensitive_registry_keeps_usernames_apart(hasher):
    registry = AccountRegistry(hasher, token_ttl_seconds=60, case_sensitive_usernames=True)
    upper = registry.create_account("Alice", "secret")
    lower = registry.create_account("alice", "secret")

    assert upper is not lower
    assert registry.find_by_username("Alice") is upper
    assert registry.find_by_username("ALICE") is None


def test_lookups_return_none_for_missing_values(hasher):
    registry = AccountRegistry(hasher, token_ttl_seconds=60)
    assert registry.find_by_username("nobody") is None
    assert registry.find_by_username("") is None
    assert registry.find_by_token(None) is None
    assert registry.find_by_token("nothing") is None


def test_verify_password_never_exposes_secret(hasher):
    registry = AccountRegistry(hasher, token_ttl_seconds=60)
    account = registry.create_account("alice", "correct horse")

    assert registry.verify_password(account, "correct horse")
    assert not registry.verify_password(account, "wrong")
    assert not registry.verify_password(account, "")
    assert "correct horse" not in account.password_hash
    assert account.password_hash not in repr(account)


def test_find_by_token_ignores_expired_tokens(hasher):
    registry = AccountRegistry(hasher, token_ttl_seconds=60)
    account = registry.create_account("alice", "secret")
    token = account.issue_access_token("owner")
    assert registry.find_by_token(token.access_token) is account

    token.expires_at = utcnow() - timedelta(seconds=1)

    assert registry.find_by_token(token.access_token) is None
    assert account.refresh_access_token(token.refresh_token) is None


def test_refresh_token_is_not_an_access_token(hasher):
    registry = AccountRegistry(hasher, token_ttl_seconds=60)
    account = registry.create_account("alice", "secret")
    token = account.issue_access_token("owner")

    assert registry.find_by_token(token.refresh_token) is None
    assert account.refresh_access_token(token.access_token) is None


def test_tokens_may_only_be_extended(hasher):
    registry = AccountRegistry(hasher, token_ttl_seconds=60)
    account = registry.create_account("alice", "secret")
    token = account.issue_access_token("owner")
    later = token.expires_at + timedelta(days=1)

    assert account.extend_token(token.access_token, later) is token
    assert token.expires_at == later
    with pytest.raises(ValueError):
        token.extend(token.created_at)
    assert account.extend_token("missing", later) is None


def test_accounts_support_multiple_sessions(hasher):
    registry = AccountRegistry(hasher, token_ttl_seconds=60)
    account = registry.create_account("alice", "secret")
    first = account.issue_access_token("owner", "10.0.0.1;alice")
    second = account.issue_access_token("domain", "10.0.0.2;alice")

    assert registry.find_by_token(first.access_token) is account
    assert registry.find_by_token(second.access_token) is account
    assert {token.scope for token in account.live_tokens()} == {"owner", "domain"}


def test_token_index_only_holds_outstanding_tokens(hasher):
    registry = AccountRegistry(hasher, token_ttl_seconds=60)
    account = registry.create_account("alice", "secret")
    token = account.issue_access_token("owner")

    for _ in range(1000):
        token = account.refresh_access_token(token.refresh_token)

    assert len(account.live_tokens()) == 1
    assert len(registry.token_index) == 1
    assert registry.token_index.refresh_count == 1

    token.expires_at = utcnow() - timedelta(seconds=1)
    assert registry.find_by_token(token.access_token) is None
    assert len(registry.token_index) == 0
    assert registry.token_index.refresh_count == 0


def test_find_by_token_is_keyed_by_access_value(hasher):
    registry = AccountRegistry(hasher, token_ttl_seconds=60)
    alice = registry.create_account("alice", "secret")
    bob = registry.create_account("bob", "secret")
    alice_token = alice.issue_access_token("owner")
    bob_token = bob.issue_access_token("owner")

    assert registry.token_index.owner_of(alice_token.access_token) is alice
    assert registry.token_index.owner_of(bob_token.access_token) is bob
    assert registry.token_index.owner_of(alice_token.refresh_token) is None
    assert registry.find_by_token(bob_token.access_token) is bob

    refreshed = bob.refresh_access_token(bob_token.refresh_token)
    assert registry.token_index.owner_of(bob_token.access_token) is None
    assert registry.find_by_token(refreshed.access_token) is bob


def test_absolute_expiration_applies_at_issuance(hasher):
    registry = AccountRegistry(hasher, token_ttl_seconds=60)
    account = registry.create_account("alice", "secret")
    expires_at = utcnow() + timedelta(days=3650)

    token = account.issue_access_token("domain", expires_at=expires_at)

    assert token.expires_at == expires_at
    assert account.find_live_token(token.access_token).expires_at == expires_at
