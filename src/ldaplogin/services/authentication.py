"""Authenticate users against LDAP and map them to local users."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from structlog.stdlib import BoundLogger

from ..config import LDAPConfig
from ..exceptions import (
    AuthenticationError,
    AutomaticProvisioningDisabledError,
    ConnectFailureError,
    InvalidCredentialsError,
    LDAPError,
    LDAPSearchError,
    NoUsersFoundError,
    UserNotFoundError,
    UserNotFoundInStoreError,
)
from ..matching import find_match
from ..models.auth import AuthenticationOutcome, ProvisioningDecision
from ..models.enums import AuthenticationState, SearchScope
from ..models.ldap import DirectoryEntry
from ..storage.ldap import DirectoryClient, DirectorySession
from ..storage.users import UserStore
from .authorization import AdminClassifier

__all__ = ["AuthenticationService"]


@dataclass
class _Attempt:
    """State carried between the steps of one authentication attempt."""

    username: str
    password: str
    logger: BoundLogger
    service_session: DirectorySession | None = None
    entry: DirectoryEntry | None = None
    ldap_username: str | None = None
    user_session: DirectorySession | None = None
    error: AuthenticationError | None = None


_Handler = Callable[[_Attempt], Awaitable[AuthenticationState]]


class AuthenticationService:
    """Authenticate a username and password against LDAP.

    Authentication is a state machine over `AuthenticationState`. First, the
    service account (or an anonymous bind) searches for all entries matching
    the search filter, and the first entry with an attribute equal to the
    provided username is selected. Second, a new connection binds as that
    entry's DN with the provided password. If that succeeds, the user is
    looked up in the local user store and, if not found, may be created,
    possibly as an administrator.

    Every failure ends the attempt and is reported as an
    `AuthenticationOutcome` with a failure reason. LDAP errors are logged
    but never returned to the caller. Nothing is retried.

    Parameters
    ----------
    config
        LDAP configuration.
    directory
        Client used to open LDAP connections.
    admin_classifier
        Decides whether newly-created users are administrators.
    user_store
        Store of local users.
    create_users
        Whether to create local users for directory users without one.
    provider_id
        Authentication provider identifier to record in new users' policy.
    logger
        Logger to use.
    """

    def __init__(
        self,
        *,
        config: LDAPConfig,
        directory: DirectoryClient,
        admin_classifier: AdminClassifier,
        user_store: UserStore,
        create_users: bool,
        provider_id: str,
        logger: BoundLogger,
    ) -> None:
        self._config = config
        self._directory = directory
        self._admin_classifier = admin_classifier
        self._user_store = user_store
        self._create_users = create_users
        self._provider_id = provider_id
        self._logger = logger
        self._handlers: dict[AuthenticationState, _Handler] = {
            AuthenticationState.service_bind: self._service_bind,
            AuthenticationState.search_user: self._search_user,
            AuthenticationState.user_resolved: self._user_resolved,
            AuthenticationState.credential_bind: self._credential_bind,
            AuthenticationState.authorized: self._authorized,
            AuthenticationState.provision_check: self._provision_check,
        }

    async def authenticate(
        self, username: str, password: str
    ) -> AuthenticationOutcome:
        """Authenticate a user.

        Parameters
        ----------
        username
            Username entered by the user. This is not normalized in any way.
        password
            Password entered by the user.

        Returns
        -------
        AuthenticationOutcome
            The local username on success, or the failure reason and a
            message that is safe to show to the user.
        """
        attempt = _Attempt(
            username=username,
            password=password,
            logger=self._logger.bind(user=username),
        )
        state = AuthenticationState.service_bind
        try:
            while not state.is_terminal:
                attempt.logger.debug("Authentication step", state=state.value)
                state = await self._handlers[state](attempt)
        finally:
            await self._close_sessions(attempt)

        if state == AuthenticationState.failed:
            if not attempt.error:
                raise RuntimeError("Authentication failed without an error")
            return AuthenticationOutcome.from_error(attempt.error)
        if not attempt.ldap_username:
            raise RuntimeError("Authentication done without a username")
        return AuthenticationOutcome.success(attempt.ldap_username)

    async def _service_bind(self, attempt: _Attempt) -> AuthenticationState:
        password = None
        if self._config.bind_password:
            password = self._config.bind_password.get_secret_value()
        try:
            attempt.service_session = await self._directory.connect(
                self._config.bind_dn, password
            )
        except LDAPError as e:
            msg = "Failed to connect or bind to LDAP server"
            attempt.logger.error(msg, error=str(e))
            return self._fail(attempt, ConnectFailureError())
        return AuthenticationState.search_user

    async def _search_user(self, attempt: _Attempt) -> AuthenticationState:
        if not attempt.service_session:
            raise RuntimeError("User search without a connection")
        logger = attempt.logger.bind(
            ldap_base=self._config.base_dn,
            ldap_search=self._config.search_filter,
        )
        try:
            entries = await attempt.service_session.search(
                self._config.base_dn,
                SearchScope.subtree,
                self._config.search_filter,
                self._config.search_attributes,
            )
        except LDAPSearchError as e:
            logger.error("LDAP user search failed", error=str(e))
            return self._fail(attempt, NoUsersFoundError())
        if entries is None:
            logger.warning("No LDAP users found from query")
            return self._fail(attempt, NoUsersFoundError())

        entry = find_match(
            entries, self._config.search_attributes, attempt.username
        )
        if not entry:
            logger.warning("Found no users matching username in LDAP search")
            return self._fail(attempt, UserNotFoundError())
        attempt.entry = entry
        logger.debug("Found matching LDAP entry", ldap_dn=entry.dn)
        return AuthenticationState.user_resolved

    async def _user_resolved(self, attempt: _Attempt) -> AuthenticationState:
        if not attempt.entry:
            raise RuntimeError("User resolved without an entry")

        # The service connection is not reused for the user bind.
        await self._close_service_session(attempt)

        attr = self._config.username_attribute
        ldap_username = attempt.entry.get_first(attr)
        if ldap_username is None:
            msg = "Matched LDAP entry has no username attribute"
            attempt.logger.error(msg, ldap_dn=attempt.entry.dn, attr=attr)
            return self._fail(attempt, UserNotFoundError())
        attempt.ldap_username = ldap_username
        attempt.logger = attempt.logger.bind(ldap_username=ldap_username)
        attempt.logger.debug("Resolved LDAP username")
        return AuthenticationState.credential_bind

    async def _credential_bind(self, attempt: _Attempt) -> AuthenticationState:
        if not attempt.entry:
            raise RuntimeError("Credential bind without an entry")
        dn = attempt.entry.dn
        logger = attempt.logger.bind(ldap_dn=dn)

        # A simple bind with an empty password is an unauthenticated bind,
        # which many servers accept.
        if not attempt.password:
            logger.error("Refusing LDAP bind with an empty password")
            return self._fail(attempt, InvalidCredentialsError())

        logger.debug("Trying bind as user")
        try:
            attempt.user_session = await self._directory.connect(
                dn, attempt.password
            )
        except LDAPError as e:
            logger.error(
                "Failed to connect or bind to LDAP server as user",
                error=str(e),
                error_type=type(e).__name__,
            )
            return self._fail(attempt, InvalidCredentialsError())
        return AuthenticationState.authorized

    async def _authorized(self, attempt: _Attempt) -> AuthenticationState:
        if not attempt.ldap_username:
            raise RuntimeError("Authorized without a username")
        try:
            await self._user_store.get_user_by_name(attempt.ldap_username)
        except UserNotFoundInStoreError:
            attempt.logger.debug("No local user for LDAP user")
            return AuthenticationState.provision_check
        except Exception as e:
            msg = (
                "User store could not find a user for LDAP user, this may"
                " not be fatal"
            )
            attempt.logger.warning(msg, error=str(e))
            return AuthenticationState.provision_check
        attempt.logger.info("Authenticated LDAP user")
        return AuthenticationState.done

    async def _provision_check(self, attempt: _Attempt) -> AuthenticationState:
        if not attempt.entry or not attempt.user_session:
            raise RuntimeError("Provisioning without a bound user")
        if not attempt.ldap_username:
            raise RuntimeError("Provisioning without a username")
        is_admin = await self._admin_classifier.is_admin(
            attempt.user_session, attempt.entry.dn
        )
        decision = ProvisioningDecision(
            is_admin=is_admin, should_create=self._create_users
        )
        attempt.logger.debug("Checking new user", is_admin=is_admin)
        if not decision.should_create:
            msg = "Automatic user creation disabled and no local user exists"
            attempt.logger.error(msg)
            return self._fail(attempt, AutomaticProvisioningDisabledError())

        user = await self._user_store.create_user(attempt.ldap_username)
        policy = user.policy.model_copy(
            update={
                "is_administrator": decision.is_admin,
                "authentication_provider_id": self._provider_id,
            }
        )
        await self._user_store.set_policy(user.id, policy)
        attempt.logger.info(
            "Created local user for LDAP user", is_admin=decision.is_admin
        )
        return AuthenticationState.done

    async def _close_service_session(self, attempt: _Attempt) -> None:
        if attempt.service_session:
            session = attempt.service_session
            attempt.service_session = None
            await session.close()

    async def _close_sessions(self, attempt: _Attempt) -> None:
        """Close any connections still open at the end of an attempt."""
        try:
            await self._close_service_session(attempt)
        finally:
            if attempt.user_session:
                session = attempt.user_session
                attempt.user_session = None
                await session.close()

    def _fail(
        self, attempt: _Attempt, error: AuthenticationError
    ) -> AuthenticationState:
        attempt.error = error
        attempt.logger.debug(
            "Authentication failed", reason=error.reason.value
        )
        return AuthenticationState.failed
