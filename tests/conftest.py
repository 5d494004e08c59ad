"""Test fixtures."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog

from ldaplogin.config import Config
from ldaplogin.constants import LOGGER_NAME
from ldaplogin.factory import Factory

from .support.config import configure
from .support.directory import FakeDirectory
from .support.ldap import MockLDAP, patch_ldap
from .support.users import RecordingUserStore

_SETTINGS_ENV = (
    "LDAPLOGIN_CONFIG_PATH",
    "LDAPLOGIN_LDAP_BIND_PASSWORD",
    "LDAPLOGIN_LOG_LEVEL",
    "LDAPLOGIN_LOG_PROFILE",
    "LDAPLOGIN_PASSWORD",
)
"""Environment variables that would override test configuration."""


@pytest.fixture(autouse=True)
def environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear environment variables that could change the configuration."""
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config() -> Config:
    """Return the default test configuration."""
    return configure("base")


@pytest.fixture
def user_store() -> RecordingUserStore:
    """Return an empty user store that records calls."""
    return RecordingUserStore()


@pytest.fixture
def directory() -> FakeDirectory:
    """Return an in-memory directory that accepts the service account."""
    directory = FakeDirectory()
    directory.passwords["cn=ldaplogin,ou=services,dc=example,dc=com"] = (
        "service-password"
    )
    return directory


@pytest.fixture
def factory(
    config: Config, user_store: RecordingUserStore, directory: FakeDirectory
) -> Factory:
    """Return a component factory using the in-memory directory."""
    logger = structlog.get_logger(LOGGER_NAME)
    return Factory(config, user_store, logger, directory=directory)


@pytest.fixture
def mock_ldap() -> Iterator[MockLDAP]:
    """Replace bonsai with a mock LDAP server.

    The mock accepts binds as the service account from the default test
    configuration.
    """
    for mock in patch_ldap():
        mock.add_service_account(
            "cn=ldaplogin,ou=services,dc=example,dc=com", "service-password"
        )
        yield mock
