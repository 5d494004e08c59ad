"""Decide whether a directory user should be an administrator."""

from __future__ import annotations

from structlog.stdlib import BoundLogger

from ..exceptions import LDAPSearchError
from ..models.enums import SearchScope
from ..storage.ldap import DirectorySession

__all__ = ["AdminClassifier"]


class AdminClassifier:
    """Classify directory users as administrators.

    A user is an administrator if a base search rooted at the user's own DN
    with the administrator filter returns any entry. The filter is expected
    to only match privileged entries, for example with a ``memberOf``
    clause. Anything else, including a failed search, means the user is not
    an administrator.

    Parameters
    ----------
    admin_filter
        The administrator filter, or `None` if no user should be an
        administrator.
    attributes
        Attributes to request in the search. Only the presence of a result
        matters, not its content.
    logger
        Logger to use.
    """

    def __init__(
        self,
        admin_filter: str | None,
        attributes: list[str],
        logger: BoundLogger,
    ) -> None:
        self._admin_filter = admin_filter
        self._attributes = attributes
        self._logger = logger

    async def is_admin(self, session: DirectorySession, dn: str) -> bool:
        """Determine whether the entry with the given DN is an administrator.

        Parameters
        ----------
        session
            Bound connection to use for the search.
        dn
            DN of the user's entry.

        Returns
        -------
        bool
            `True` if the administrator filter matched the entry, `False`
            otherwise.
        """
        if not self._admin_filter:
            return False
        logger = self._logger.bind(ldap_dn=dn, ldap_search=self._admin_filter)
        try:
            results = await session.search(
                dn, SearchScope.base, self._admin_filter, self._attributes
            )
        except LDAPSearchError as e:
            logger.warning("Admin search failed, not an admin", error=str(e))
            return False
        is_admin = len(results) > 0
        logger.debug("Checked admin filter", is_admin=is_admin)
        return is_admin
