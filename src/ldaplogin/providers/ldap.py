"""LDAP authentication provider."""

from __future__ import annotations

from typing import override

from structlog.stdlib import BoundLogger

from ..constants import PROVIDER_NAME
from ..exceptions import UnsupportedOperationError
from ..models.user import LocalUser
from ..services.authentication import AuthenticationService
from .base import Provider

__all__ = ["LDAPProvider"]


class LDAPProvider(Provider):
    """Authenticate users with LDAP.

    Passwords of LDAP users are owned by the LDAP server, so they cannot be
    changed here and no password hash is stored locally.

    Parameters
    ----------
    authentication_service
        Service that performs the LDAP authentication.
    logger
        Logger to use.
    """

    def __init__(
        self,
        authentication_service: AuthenticationService,
        logger: BoundLogger,
    ) -> None:
        self._authentication = authentication_service
        self._logger = logger

    @property
    @override
    def name(self) -> str:
        return PROVIDER_NAME

    @override
    async def authenticate(self, username: str, password: str) -> str:
        outcome = await self._authentication.authenticate(username, password)
        return outcome.raise_for_failure()

    @override
    def has_password(self, user: LocalUser) -> bool:
        return True

    @override
    def get_password_hash(self, user: LocalUser) -> str:
        return ""

    @override
    def get_easy_password_hash(self, user: LocalUser) -> str:
        return ""

    @override
    async def change_password(self, user: LocalUser, password: str) -> None:
        self._logger.warning(
            "Refusing to change LDAP password", user=user.username
        )
        msg = "Changing LDAP passwords is not supported"
        raise UnsupportedOperationError(msg)

    @override
    def change_easy_password(
        self, user: LocalUser, password: str, password_hash: str
    ) -> None:
        self._logger.warning(
            "Refusing to change easy password", user=user.username
        )
        msg = "Easy passwords for LDAP users are not supported"
        raise UnsupportedOperationError(msg)
