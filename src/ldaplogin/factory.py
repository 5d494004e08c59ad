"""Create ldaplogin components."""

from __future__ import annotations

import structlog
from structlog.stdlib import BoundLogger

from .config import Config
from .constants import LOGGER_NAME
from .providers.ldap import LDAPProvider
from .services.authentication import AuthenticationService
from .services.authorization import AdminClassifier
from .storage.ldap import DirectoryClient, LDAPStorage
from .storage.users import UserStore

__all__ = ["Factory"]


class Factory:
    """Build ldaplogin components.

    Nothing built by the factory holds state across authentication attempts
    apart from the configuration, so components may be created once and
    shared or created per login.

    Parameters
    ----------
    config
        ldaplogin configuration.
    user_store
        Store of local users provided by the host application.
    logger
        Logger to use for errors. Defaults to the ldaplogin logger.
    directory
        Directory client to use instead of connecting to the configured LDAP
        server. Used by the test suite.
    """

    def __init__(
        self,
        config: Config,
        user_store: UserStore,
        logger: BoundLogger | None = None,
        *,
        directory: DirectoryClient | None = None,
    ) -> None:
        self._config = config
        self._user_store = user_store
        self._logger = logger or structlog.get_logger(LOGGER_NAME)
        self._directory = directory

    def create_admin_classifier(self) -> AdminClassifier:
        """Create the classifier for administrators.

        Returns
        -------
        AdminClassifier
            Newly-created classifier.
        """
        return AdminClassifier(
            self._config.ldap.admin_filter,
            self._config.ldap.search_attributes,
            self._logger,
        )

    def create_authentication_service(self) -> AuthenticationService:
        """Create the service that authenticates users.

        Returns
        -------
        AuthenticationService
            Newly-created authentication service.
        """
        return AuthenticationService(
            config=self._config.ldap,
            directory=self.create_directory_client(),
            admin_classifier=self.create_admin_classifier(),
            user_store=self._user_store,
            create_users=self._config.create_users_from_ldap,
            provider_id=LDAPProvider.__name__,
            logger=self._logger,
        )

    def create_directory_client(self) -> DirectoryClient:
        """Create the client used to talk to LDAP.

        Returns
        -------
        DirectoryClient
            Newly-created directory client.
        """
        if self._directory:
            return self._directory
        return LDAPStorage(self._config.ldap, self._logger)

    def create_provider(self) -> LDAPProvider:
        """Create the authentication provider for the host application.

        Returns
        -------
        LDAPProvider
            Newly-created authentication provider.
        """
        return LDAPProvider(
            self.create_authentication_service(), self._logger
        )
