"""Base class for authentication providers."""

from __future__ import annotations

from abc import ABCMeta, abstractmethod

from ..models.user import LocalUser

__all__ = ["Provider"]


class Provider(metaclass=ABCMeta):
    """Abstract base class for authentication providers.

    This is the interface a host application uses to authenticate users and
    to ask about or change their passwords.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of the provider."""

    @property
    def is_enabled(self) -> bool:
        """Whether the provider may be used for logins."""
        return True

    @abstractmethod
    async def authenticate(self, username: str, password: str) -> str:
        """Authenticate a user.

        Parameters
        ----------
        username
            Username entered by the user.
        password
            Password entered by the user.

        Returns
        -------
        str
            Local username of the authenticated user.

        Raises
        ------
        AuthenticationError
            Raised if authentication failed.
        """

    @abstractmethod
    def has_password(self, user: LocalUser) -> bool:
        """Whether the user has a password with this provider."""

    @abstractmethod
    def get_password_hash(self, user: LocalUser) -> str:
        """Return the locally-stored password hash for the user."""

    @abstractmethod
    def get_easy_password_hash(self, user: LocalUser) -> str:
        """Return the locally-stored easy password (PIN) hash for the user."""

    @abstractmethod
    async def change_password(self, user: LocalUser, password: str) -> None:
        """Change the password of the user.

        Parameters
        ----------
        user
            User whose password should be changed.
        password
            New password.

        Raises
        ------
        UnsupportedOperationError
            Raised if the provider cannot change passwords.
        """

    @abstractmethod
    def change_easy_password(
        self, user: LocalUser, password: str, password_hash: str
    ) -> None:
        """Change the easy password (PIN) of the user.

        Parameters
        ----------
        user
            User whose easy password should be changed.
        password
            New easy password.
        password_hash
            Hash of the new easy password.

        Raises
        ------
        UnsupportedOperationError
            Raised if the provider cannot change easy passwords.
        """
