"""LDAP storage layer for ldaplogin.

This is the only module that talks to the LDAP server. `DirectoryClient` is
the abstract interface used by the rest of ldaplogin, and `LDAPStorage` is
its implementation on top of bonsai.
"""

from __future__ import annotations

import asyncio
from abc import ABCMeta, abstractmethod
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import Any, override

import bonsai
from bonsai import LDAPClient, LDAPSearchScope
from structlog.stdlib import BoundLogger

from ..config import LDAPConfig
from ..exceptions import (
    LDAPBindError,
    LDAPConnectError,
    LDAPSearchError,
)
from ..models.enums import SearchScope
from ..models.ldap import DirectoryEntry

_SCOPES = {
    SearchScope.base: LDAPSearchScope.BASE,
    SearchScope.subtree: LDAPSearchScope.SUB,
}
"""Mapping of search scopes to the corresponding bonsai scopes."""

__all__ = [
    "CertificateVerificationBypass",
    "DirectoryClient",
    "DirectorySession",
    "LDAPSession",
    "LDAPStorage",
]


class DirectorySession(metaclass=ABCMeta):
    """A bound connection to a directory server."""

    @abstractmethod
    async def search(
        self,
        base_dn: str,
        scope: SearchScope,
        filter_exp: str,
        attributes: list[str],
    ) -> list[DirectoryEntry]:
        """Search the directory.

        Parameters
        ----------
        base_dn
            Base DN of the search.
        scope
            Scope of the search.
        filter_exp
            Search filter.
        attributes
            Attributes to retrieve.

        Returns
        -------
        list of DirectoryEntry
            Matching entries in the order returned by the server.

        Raises
        ------
        LDAPSearchError
            Raised if the search failed.
        """

    @abstractmethod
    async def close(self) -> None:
        """Close the connection.

        Closing a connection that is already closed does nothing.
        """


class DirectoryClient(metaclass=ABCMeta):
    """Opens bound connections to a directory server."""

    @abstractmethod
    async def connect(
        self, bind_dn: str | None, password: str | None
    ) -> DirectorySession:
        """Open a new connection and bind to the directory server.

        Parameters
        ----------
        bind_dn
            DN to bind as, or `None` to bind anonymously.
        password
            Password for the bind DN.

        Returns
        -------
        DirectorySession
            The new connection. The caller must close it.

        Raises
        ------
        LDAPBindError
            Raised if the server rejected the credentials.
        LDAPConnectError
            Raised if the connection could not be established.
        """

    @asynccontextmanager
    async def session(
        self, bind_dn: str | None, password: str | None
    ) -> AsyncIterator[DirectorySession]:
        """Open a connection that is closed on exit from the context.

        Parameters
        ----------
        bind_dn
            DN to bind as, or `None` to bind anonymously.
        password
            Password for the bind DN.

        Yields
        ------
        DirectorySession
            The new connection.
        """
        session = await self.connect(bind_dn, password)
        try:
            yield session
        finally:
            await session.close()


class CertificateVerificationBypass:
    """Disable server certificate verification for one LDAP client.

    This changes the certificate policy of a single `bonsai.LDAPClient`, so
    it does not affect other connections made at the same time. Use it as a
    context manager around the connect call.

    Parameters
    ----------
    client
        The client whose certificate verification should be disabled.
    logger
        Logger for debug messages.
    """

    def __init__(self, client: LDAPClient, logger: BoundLogger) -> None:
        self._client = client
        self._logger = logger
        self._installed = False

    def __enter__(self) -> CertificateVerificationBypass:
        self.install()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.uninstall()

    @property
    def installed(self) -> bool:
        """Whether certificate verification is currently disabled."""
        return self._installed

    def install(self) -> None:
        """Disable certificate verification."""
        if self._installed:
            return
        self._client.set_cert_policy("never")
        self._installed = True
        self._logger.debug("Disabled LDAP server certificate verification")

    def uninstall(self) -> None:
        """Restore certificate verification.

        Does nothing if verification was not disabled by this object.
        """
        if not self._installed:
            return
        self._client.set_cert_policy("demand")
        self._installed = False
        self._logger.debug("Restored LDAP server certificate verification")


class LDAPSession(DirectorySession):
    """A bound connection to the LDAP server.

    Parameters
    ----------
    connection
        The underlying bonsai connection.
    timeout
        Timeout for searches in seconds.
    logger
        Logger for debug messages and errors.
    """

    def __init__(
        self,
        connection: Any,
        timeout: float,
        logger: BoundLogger,
    ) -> None:
        self._connection = connection
        self._timeout = timeout
        self._logger = logger
        self._closed = False

    @override
    async def search(
        self,
        base_dn: str,
        scope: SearchScope,
        filter_exp: str,
        attributes: list[str],
    ) -> list[DirectoryEntry]:
        if self._closed:
            raise LDAPSearchError("LDAP connection is closed", base_dn)
        logger = self._logger.bind(
            ldap_attrs=attributes,
            ldap_base=base_dn,
            ldap_scope=scope.value,
            ldap_search=filter_exp,
        )
        try:
            logger.debug("Querying LDAP")
            results = await self._connection.search(
                base=base_dn,
                scope=_SCOPES[scope],
                filter_exp=filter_exp,
                attrlist=attributes,
                timeout=self._timeout,
            )
        except (bonsai.LDAPError, asyncio.TimeoutError) as e:
            logger.exception("Cannot query LDAP", error=str(e))
            raise LDAPSearchError("Error querying LDAP", base_dn) from e
        entries = [self._to_entry(r) for r in results]
        logger.debug("LDAP search returned", count=len(entries))
        return entries

    @override
    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._connection.close()
        self._logger.debug("Closed LDAP connection")

    def _to_entry(self, result: Any) -> DirectoryEntry:
        """Convert a bonsai search result into a `DirectoryEntry`."""
        attributes = {}
        for attr, values in result.items():
            if attr == "dn":
                continue
            attributes[attr] = [self._to_str(v) for v in values]
        return DirectoryEntry(dn=str(result.dn), attributes=attributes)

    @staticmethod
    def _to_str(value: Any) -> str:
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        return str(value)


class LDAPStorage(DirectoryClient):
    """LDAP connections made with bonsai.

    Every call to `connect` creates a new client and connection. Connections
    are never pooled or shared.

    Parameters
    ----------
    config
        Configuration for the LDAP server.
    logger
        Logger for debug messages and errors.
    """

    def __init__(self, config: LDAPConfig, logger: BoundLogger) -> None:
        self._config = config
        self._logger = logger.bind(ldap_url=self._config.url)

    @override
    async def connect(
        self, bind_dn: str | None, password: str | None
    ) -> LDAPSession:
        logger = self._logger.bind(ldap_bind_dn=bind_dn)
        client = self._create_client(bind_dn, password)
        try:
            with self._certificate_policy(client, logger):
                logger.debug("Connecting to LDAP server")
                connection = await client.connect(
                    is_async=True, timeout=self._config.timeout
                )
        except bonsai.AuthenticationError as e:
            logger.exception("Cannot bind to LDAP server", error=str(e))
            raise LDAPBindError("LDAP bind failed", bind_dn) from e
        except (bonsai.LDAPError, asyncio.TimeoutError, OSError) as e:
            logger.exception("Cannot connect to LDAP server", error=str(e))
            msg = "Cannot connect to LDAP server"
            raise LDAPConnectError(msg, bind_dn) from e
        logger.debug("Bound to LDAP server")
        return LDAPSession(connection, self._config.timeout, logger)

    def _create_client(
        self, bind_dn: str | None, password: str | None
    ) -> LDAPClient:
        """Create the bonsai client for a new connection.

        bonsai performs the StartTLS upgrade and the bind as part of opening
        the connection, so both are configured here.
        """
        try:
            url = self._config.url
            client = LDAPClient(url, tls=self._config.use_start_tls)
            if bind_dn:
                client.set_credentials(
                    "SIMPLE", user=bind_dn, password=password
                )
        except (bonsai.LDAPError, ValueError, TypeError) as e:
            msg = "Invalid LDAP client settings"
            self._logger.exception(msg, error=str(e))
            raise LDAPConnectError(msg, bind_dn) from e
        return client

    @contextmanager
    def _certificate_policy(
        self, client: LDAPClient, logger: BoundLogger
    ) -> Iterator[None]:
        """Disable certificate verification around a connect if configured."""
        if not self._config.skip_ssl_verify:
            yield
            return
        with CertificateVerificationBypass(client, logger):
            yield

