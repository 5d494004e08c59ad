"""Interface to the host application's store of local users."""

from __future__ import annotations

from abc import ABCMeta, abstractmethod
from typing import override
from uuid import uuid4

from ..exceptions import UserNotFoundInStoreError
from ..models.user import LocalUser, UserPolicy

__all__ = ["MemoryUserStore", "UserStore"]


class UserStore(metaclass=ABCMeta):
    """Store of local users, provided by the host application.

    ldaplogin never stores anything itself. It looks up the local user for
    an authenticated directory user and, if allowed, asks the store to create
    one.
    """

    @abstractmethod
    async def get_user_by_name(self, username: str) -> LocalUser:
        """Look up a local user by name.

        Parameters
        ----------
        username
            Local username.

        Returns
        -------
        LocalUser
            The local user.

        Raises
        ------
        UserNotFoundInStoreError
            Raised if no user with that name exists.
        UserStoreError
            Raised if the lookup failed for some other reason.
        """

    @abstractmethod
    async def create_user(self, username: str) -> LocalUser:
        """Create a new local user with default policy.

        Parameters
        ----------
        username
            Local username.

        Returns
        -------
        LocalUser
            The newly-created user.
        """

    @abstractmethod
    async def set_policy(self, user_id: str, policy: UserPolicy) -> None:
        """Replace the policy of a local user.

        Parameters
        ----------
        user_id
            Identifier of the user, as assigned by the store.
        policy
            New policy for the user.

        Raises
        ------
        UserNotFoundInStoreError
            Raised if no user with that identifier exists.
        """


class MemoryUserStore(UserStore):
    """User store that keeps users in memory.

    Used by the command-line interface to exercise a login without touching
    any real user store.
    """

    def __init__(self) -> None:
        self._users: dict[str, LocalUser] = {}

    @override
    async def get_user_by_name(self, username: str) -> LocalUser:
        for user in self._users.values():
            if user.username == username:
                return user.model_copy(deep=True)
        raise UserNotFoundInStoreError(f"User {username} not found")

    @override
    async def create_user(self, username: str) -> LocalUser:
        user = LocalUser(id=uuid4().hex, username=username)
        self._users[user.id] = user
        return user.model_copy(deep=True)

    @override
    async def set_policy(self, user_id: str, policy: UserPolicy) -> None:
        if user_id not in self._users:
            raise UserNotFoundInStoreError(f"User ID {user_id} not found")
        self._users[user_id].policy = policy.model_copy()
