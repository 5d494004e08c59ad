"""Enums used in ldaplogin models.

Notes
-----
These are kept in a separate module because both the exceptions and the
models refer to them, and the models import the exceptions.
"""

from __future__ import annotations

from enum import Enum

__all__ = [
    "AuthenticationFailure",
    "AuthenticationState",
    "SearchScope",
]


class AuthenticationFailure(Enum):
    """Reason why an authentication attempt failed."""

    connect_failure = "connect_failure"
    """Could not connect or bind to the server as the service account."""

    no_users_found = "no_users_found"
    """The user search did not return a usable result set."""

    user_not_found = "user_not_found"
    """No entry returned by the user search matched the username."""

    invalid_credentials = "invalid_credentials"
    """The bind as the matched user failed for any reason.

    This deliberately does not distinguish between an incorrect password, a
    locked account, and a network error during the bind.
    """

    automatic_provisioning_disabled = "automatic_provisioning_disabled"
    """The credentials were valid but no local user exists to log in as."""

    unsupported_operation = "unsupported_operation"
    """The requested operation is not supported for directory users."""


class AuthenticationState(Enum):
    """State of the authentication state machine.

    The states are visited in declaration order, except that
    ``provision_check`` is skipped for users that already exist locally.
    ``failed`` may follow any state other than ``done``.
    """

    service_bind = "service_bind"
    search_user = "search_user"
    user_resolved = "user_resolved"
    credential_bind = "credential_bind"
    authorized = "authorized"
    provision_check = "provision_check"
    done = "done"
    failed = "failed"

    @property
    def is_terminal(self) -> bool:
        """Whether the state ends the authentication attempt."""
        return self in (AuthenticationState.done, AuthenticationState.failed)


class SearchScope(Enum):
    """Scope of an LDAP search."""

    base = "base"
    """Only the entry named by the base DN."""

    subtree = "subtree"
    """The entry named by the base DN and all of its descendants."""
