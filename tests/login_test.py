"""Test complete logins against the mock LDAP server."""

from __future__ import annotations

import bonsai
import pytest

from ldaplogin.config import Config
from ldaplogin.factory import Factory
from ldaplogin.models.auth import AuthenticationOutcome
from ldaplogin.models.enums import AuthenticationFailure

from .support.config import configure
from .support.ldap import MockLDAP, patch_ldap
from .support.users import RecordingUserStore

USERS_FILTER = "(memberOf=cn=users,ou=groups,dc=example,dc=com)"
ADMINS_FILTER = "(memberOf=cn=admins,ou=groups,dc=example,dc=com)"
ALICE_DN = "uid=alice,ou=people,dc=example,dc=com"
BOB_DN = "uid=bob,ou=people,dc=example,dc=com"


def add_users(mock_ldap: MockLDAP) -> None:
    mock_ldap.add_filter(USERS_FILTER)
    mock_ldap.add_filter(ADMINS_FILTER)
    mock_ldap.add_user(
        ALICE_DN,
        {"uid": ["alice"], "mail": ["alice@example.com"], "cn": ["Alice"]},
        "alice-password",
        filters=[USERS_FILTER, ADMINS_FILTER],
    )
    mock_ldap.add_user(
        BOB_DN,
        {"uid": ["bob"], "mail": ["bob@example.com"]},
        "bob-password",
        filters=[USERS_FILTER],
    )
    mock_ldap.add_user(
        "uid=mallory,ou=people,dc=example,dc=com",
        {"uid": ["mallory"]},
        "mallory-password",
    )


def assert_all_closed(mock_ldap: MockLDAP) -> None:
    assert mock_ldap.connections
    for connection in mock_ldap.connections:
        assert connection.close_count == 1


@pytest.mark.asyncio
async def test_login(config: Config, mock_ldap: MockLDAP) -> None:
    add_users(mock_ldap)
    user_store = RecordingUserStore()
    factory = Factory(config, user_store)
    provider = factory.create_provider()

    assert await provider.authenticate("alice@example.com", "alice-password")
    assert [c.bind_dn for c in mock_ldap.connections] == [
        "cn=ldaplogin,ou=services,dc=example,dc=com",
        ALICE_DN,
    ]
    assert mock_ldap.searches == [
        (
            "cn=ldaplogin,ou=services,dc=example,dc=com",
            "ou=people,dc=example,dc=com",
            bonsai.LDAPSearchScope.SUB,
            USERS_FILTER,
        ),
        (ALICE_DN, ALICE_DN, bonsai.LDAPSearchScope.BASE, ADMINS_FILTER),
    ]
    assert_all_closed(mock_ldap)
    alice = await user_store.get_user_by_name("alice")
    assert alice.policy.is_administrator
    assert alice.policy.authentication_provider_id == "LDAPProvider"

    service = factory.create_authentication_service()
    outcome = await service.authenticate("bob", "bob-password")
    assert outcome == AuthenticationOutcome.success("bob")
    bob = await user_store.get_user_by_name("bob")
    assert not bob.policy.is_administrator
    assert_all_closed(mock_ldap)


@pytest.mark.asyncio
async def test_login_failures(config: Config, mock_ldap: MockLDAP) -> None:
    add_users(mock_ldap)
    user_store = RecordingUserStore()
    service = Factory(config, user_store).create_authentication_service()

    # Not a member of the group in the search filter.
    outcome = await service.authenticate("mallory", "mallory-password")
    assert outcome.failure == AuthenticationFailure.user_not_found

    wrong = await service.authenticate("bob", "wrong-password")
    assert wrong.failure == AuthenticationFailure.invalid_credentials

    mock_ldap.broken_dns.add(BOB_DN)
    broken = await service.authenticate("bob", "bob-password")
    assert broken == wrong

    mock_ldap.failing_filters.add(USERS_FILTER)
    outcome = await service.authenticate("bob", "bob-password")
    assert outcome.failure == AuthenticationFailure.no_users_found
    assert user_store.calls == []
    assert_all_closed(mock_ldap)

    mock_ldap.connect_error = bonsai.ConnectionError("Connection refused")
    searches = len(mock_ldap.searches)
    outcome = await service.authenticate("bob", "bob-password")
    assert outcome.failure == AuthenticationFailure.connect_failure
    assert len(mock_ldap.searches) == searches


@pytest.mark.asyncio
async def test_skip_verify() -> None:
    config = configure("ldaps")
    for mock_ldap in patch_ldap(config.ldap.timeout):
        mock_ldap.add_service_account(
            "cn=ldaplogin,ou=services,dc=example,dc=com", "service-password"
        )
        add_users(mock_ldap)
        service = Factory(
            config, RecordingUserStore()
        ).create_authentication_service()

        outcome = await service.authenticate("bob", "bob-password")
        assert outcome.succeeded
        assert len(mock_ldap.clients) == 2
        for client in mock_ldap.clients:
            assert client.url == "ldaps://ldap.example.com:636"
            assert client.cert_policies == ["never", "demand"]
        assert mock_ldap.connect_policies == ["never", "never"]

        outcome = await service.authenticate("bob", "wrong-password")
        assert outcome.failure == AuthenticationFailure.invalid_credentials
        assert all(
            c.cert_policies == ["never", "demand"] for c in mock_ldap.clients
        )
        assert_all_closed(mock_ldap)
