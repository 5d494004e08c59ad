"""Exceptions for ldaplogin."""

from __future__ import annotations

from typing import ClassVar

from .models.enums import AuthenticationFailure

__all__ = [
    "AuthenticationError",
    "AutomaticProvisioningDisabledError",
    "ConnectFailureError",
    "InvalidCredentialsError",
    "LDAPBindError",
    "LDAPConnectError",
    "LDAPError",
    "LDAPSearchError",
    "NoUsersFoundError",
    "UnsupportedOperationError",
    "UserNotFoundError",
    "UserNotFoundInStoreError",
    "UserStoreError",
]


class AuthenticationError(Exception):
    """An authentication attempt failed.

    Each subclass corresponds to one `AuthenticationFailure` reason and
    carries a fixed message that is safe to show to the user. The message
    never includes credentials or details about the directory server.
    Details are only logged.
    """

    reason: ClassVar[AuthenticationFailure]
    """The failure reason corresponding to this exception."""

    message: ClassVar[str] = "Authentication failed"
    """The message to show to the user."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)

    @classmethod
    def for_reason(
        cls, reason: AuthenticationFailure
    ) -> type[AuthenticationError]:
        """Return the exception class for a failure reason.

        Parameters
        ----------
        reason
            The failure reason.

        Returns
        -------
        type
            The subclass of `AuthenticationError` for that reason.

        Raises
        ------
        KeyError
            Raised if no exception class corresponds to that reason.
        """
        for subclass in cls.__subclasses__():
            if subclass.reason == reason:
                return subclass
        raise KeyError(f"Unknown failure reason {reason.value}")


class ConnectFailureError(AuthenticationError):
    """Could not connect or bind to the LDAP server as the service account."""

    reason = AuthenticationFailure.connect_failure
    message = "Failed to connect or bind to the LDAP server"


class NoUsersFoundError(AuthenticationError):
    """The LDAP user search returned no usable result."""

    reason = AuthenticationFailure.no_users_found
    message = "No users found in LDAP query"


class UserNotFoundError(AuthenticationError):
    """No LDAP entry matched the provided username."""

    reason = AuthenticationFailure.user_not_found
    message = "Found no LDAP users matching provided username"


class InvalidCredentialsError(AuthenticationError):
    """Binding as the user failed."""

    reason = AuthenticationFailure.invalid_credentials
    message = "Error completing LDAP login. Invalid username or password."


class AutomaticProvisioningDisabledError(AuthenticationError):
    """The user is valid but has no local account and none may be created."""

    reason = AuthenticationFailure.automatic_provisioning_disabled
    message = (
        "Automatic user creation is disabled and there is no local user for"
        " this LDAP account"
    )


class UnsupportedOperationError(AuthenticationError):
    """The operation is not supported for users authenticated by LDAP."""

    reason = AuthenticationFailure.unsupported_operation
    message = "Operation not supported for LDAP users"


class LDAPError(Exception):
    """An LDAP operation failed.

    These exceptions are raised by the LDAP storage layer and are converted
    to an `AuthenticationError` before they reach the caller.

    Parameters
    ----------
    message
        Summary of the error.
    dn
        DN being bound as or searched, if any.
    """

    def __init__(self, message: str, dn: str | None = None) -> None:
        super().__init__(message)
        self.dn = dn


class LDAPConnectError(LDAPError):
    """Could not open a connection to the LDAP server."""


class LDAPBindError(LDAPError):
    """The LDAP server rejected the bind credentials."""


class LDAPSearchError(LDAPError):
    """An LDAP search failed."""


class UserStoreError(Exception):
    """An error occurred in the host application's user store."""


class UserNotFoundInStoreError(UserStoreError):
    """The requested user does not exist in the user store."""
