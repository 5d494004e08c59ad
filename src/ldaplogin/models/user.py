"""Models for local users managed by the host application."""

from __future__ import annotations

from pydantic import BaseModel, Field

__all__ = ["LocalUser", "UserPolicy"]


class UserPolicy(BaseModel):
    """Policy settings of a local user that ldaplogin may set."""

    is_administrator: bool = Field(
        False,
        title="Administrator",
        description="Whether the user has administrative privileges",
    )

    authentication_provider_id: str | None = Field(
        None,
        title="Authentication provider",
        description="Identifier of the provider that authenticates the user",
        examples=["LDAPProvider"],
    )


class LocalUser(BaseModel):
    """A user account in the host application's user store."""

    id: str = Field(
        ...,
        title="User ID",
        description="Opaque identifier assigned by the user store",
    )

    username: str = Field(
        ...,
        title="Username",
        description="Local username of the user",
        examples=["someuser"],
    )

    policy: UserPolicy = Field(
        default_factory=UserPolicy,
        title="Policy",
        description="Policy settings of the user",
    )
