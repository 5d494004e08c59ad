"""Models for the result of an authentication attempt."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Self

from ..exceptions import AuthenticationError
from .enums import AuthenticationFailure

__all__ = ["AuthenticationOutcome", "ProvisioningDecision"]


@dataclass(frozen=True)
class AuthenticationOutcome:
    """Final result of one authentication attempt.

    Exactly one of ``username`` and ``failure`` is set. Use the `success`
    and `from_error` constructors rather than building this directly.
    """

    username: str | None = None
    """Local username of the authenticated user, on success."""

    failure: AuthenticationFailure | None = None
    """Reason for the failure, on failure."""

    message: str | None = None
    """Message safe to show to the user, on failure."""

    @classmethod
    def success(cls, username: str) -> Self:
        """Create a successful outcome.

        Parameters
        ----------
        username
            Local username of the authenticated user.
        """
        return cls(username=username)

    @classmethod
    def from_error(cls, error: AuthenticationError) -> Self:
        """Create a failed outcome from the corresponding exception.

        Parameters
        ----------
        error
            Exception describing the failure.
        """
        return cls(failure=error.reason, message=str(error))

    @property
    def succeeded(self) -> bool:
        """Whether the authentication succeeded."""
        return self.failure is None

    def raise_for_failure(self) -> str:
        """Convert a failed outcome into an exception.

        Returns
        -------
        str
            The authenticated username if the attempt succeeded.

        Raises
        ------
        AuthenticationError
            The subclass corresponding to the failure reason, if the attempt
            failed.
        """
        if self.failure is not None:
            error_class = AuthenticationError.for_reason(self.failure)
            raise error_class(self.message)
        if self.username is None:
            raise RuntimeError("Successful outcome without a username")
        return self.username


@dataclass(frozen=True)
class ProvisioningDecision:
    """Whether and how to create a local user for a directory user.

    Only computed when the authenticated user has no local account.
    """

    is_admin: bool
    """Whether the new user should be an administrator."""

    should_create: bool
    """Whether automatic user creation is enabled."""
