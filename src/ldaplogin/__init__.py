"""Authenticate logins against LDAP and provision local users."""

from .config import Config, LDAPConfig
from .exceptions import (
    AuthenticationError,
    AutomaticProvisioningDisabledError,
    ConnectFailureError,
    InvalidCredentialsError,
    NoUsersFoundError,
    UnsupportedOperationError,
    UserNotFoundError,
    UserNotFoundInStoreError,
    UserStoreError,
)
from .factory import Factory
from .models.auth import AuthenticationOutcome
from .models.enums import AuthenticationFailure
from .models.user import LocalUser, UserPolicy
from .providers.ldap import LDAPProvider
from .storage.users import UserStore

__all__ = [
    "AuthenticationError",
    "AuthenticationFailure",
    "AuthenticationOutcome",
    "AutomaticProvisioningDisabledError",
    "Config",
    "ConnectFailureError",
    "Factory",
    "InvalidCredentialsError",
    "LDAPConfig",
    "LDAPProvider",
    "LocalUser",
    "NoUsersFoundError",
    "UnsupportedOperationError",
    "UserNotFoundError",
    "UserNotFoundInStoreError",
    "UserPolicy",
    "UserStore",
    "UserStoreError",
]
