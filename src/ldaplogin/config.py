"""Configuration for ldaplogin.

ldaplogin is configured by a YAML file provided by the host application.
Secrets may instead be injected via environment variables. Only the settings
with an explicit ``validation_alias`` starting with ``LDAPLOGIN_`` support
configuration via environment variable, and environment variables take
precedence over the configuration file. All other settings come only from
the configuration file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Self, override

import yaml
from pydantic import (
    AliasChoices,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    EnvSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from safir.logging import LogLevel, Profile, configure_logging

from .constants import ENV_PREFIX, LDAP_TIMEOUT, LOGGER_NAME

__all__ = [
    "CamelCaseSettings",
    "Config",
    "EnvFirstSettings",
    "LDAPConfig",
    "PrefixedEnvSettingsSource",
]


class PrefixedEnvSettingsSource(EnvSettingsSource):
    """Environment settings source limited to prefixed aliases.

    The camel-case alias generator gives every field an alias, and
    pydantic-settings would otherwise look up each of those aliases as an
    environment variable. This source only reads the aliases of a field that
    start with `~ldaplogin.constants.ENV_PREFIX`.
    """

    @override
    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        for env_name in self._env_names(field):
            key = env_name if self.case_sensitive else env_name.lower()
            value = self.env_vars.get(key)
            if value is not None:
                return value, env_name, self.field_is_complex(field)
        return None, field_name, False

    @staticmethod
    def _env_names(field: FieldInfo) -> list[str]:
        alias = field.validation_alias
        choices = alias.choices if isinstance(alias, AliasChoices) else [alias]
        return [
            c
            for c in choices
            if isinstance(c, str) and c.startswith(ENV_PREFIX)
        ]


class CamelCaseSettings(BaseSettings):
    """Base class for Pydantic settings supporting camel-case.

    This base class also forbids all extra attributes. It should be used as
    the base class (possibly indirectly) for all ldaplogin configuration
    models that support environment variable overrides.
    """

    model_config = SettingsConfigDict(
        alias_generator=to_camel, extra="forbid", populate_by_name=True
    )


class EnvFirstSettings(CamelCaseSettings):
    """Base class for Pydantic settings with environment overrides.

    Classes that inherit from this base class will prioritize environment
    variables over arguments to the class constructor.
    """

    @override
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Override the sources of settings.

        Deactivate :file:`.env` and secret file support. Allow environment
        variables to override init parameters, since init parameters come
        from the YAML configuration file and we want environment variables to
        take precedent. Only prefixed environment variables are read.
        """
        return (PrefixedEnvSettingsSource(settings_cls), init_settings)


class LDAPConfig(EnvFirstSettings):
    """Configuration for the LDAP server and searches.

    This is read-only for the duration of an authentication attempt. The
    host application is responsible for not changing the configuration
    while logins are in progress.
    """

    model_config = SettingsConfigDict(frozen=True)

    server: str = Field(
        ...,
        title="LDAP server",
        description="Host name or IP address of the LDAP server",
        examples=["ldap.example.com"],
    )

    port: int = Field(
        389,
        title="LDAP port",
        description="Port of the LDAP server",
        ge=1,
        le=65535,
    )

    use_ssl: bool = Field(
        False,
        title="Use LDAPS",
        description=(
            "Whether to connect to the LDAP server with TLS (``ldaps``). The"
            " port usually needs to be changed to 636 as well."
        ),
    )

    use_start_tls: bool = Field(
        False,
        title="Use StartTLS",
        description=(
            "Whether to upgrade the plaintext connection to TLS with the"
            " StartTLS extended operation before binding"
        ),
    )

    skip_ssl_verify: bool = Field(
        False,
        title="Skip certificate verification",
        description=(
            "If set to true, do not verify the server certificate. This is"
            " insecure and should only be used for servers with self-signed"
            " certificates in trusted networks."
        ),
    )

    bind_dn: str | None = Field(
        None,
        title="Simple bind DN for user searches",
        description=(
            "DN of the service account to bind as with simple bind when"
            " searching for the user. If not set, ldaplogin will do an"
            " anonymous bind."
        ),
        examples=["cn=ldaplogin,ou=services,dc=example,dc=com"],
    )

    bind_password: SecretStr | None = Field(
        None,
        title="Simple bind password",
        description=(
            "Password for the service account. Only used if ``bindDn`` is"
            " set."
        ),
        validation_alias=AliasChoices(
            "LDAPLOGIN_LDAP_BIND_PASSWORD", "bindPassword"
        ),
    )

    base_dn: str = Field(
        ...,
        title="Base DN for user searches",
        description="Base DN of the subtree search for the user's entry",
        examples=["ou=people,dc=example,dc=com"],
    )

    search_filter: str = Field(
        "(objectClass=person)",
        title="User search filter",
        description=(
            "LDAP filter selecting all entries that may log in. The username"
            " is not substituted into this filter. Instead, all returned"
            " entries are checked for an attribute matching the username."
        ),
        examples=["(memberOf=cn=users,ou=groups,dc=example,dc=com)"],
    )

    admin_filter: str | None = Field(
        None,
        title="Administrator filter",
        description=(
            "LDAP filter that matches the user's own entry if that user"
            " should be an administrator. Only consulted when creating a new"
            " local user. If not set, no new user is an administrator."
        ),
        examples=["(memberOf=cn=admins,ou=groups,dc=example,dc=com)"],
    )

    search_attributes: list[str] = Field(
        ["uid", "cn", "mail", "displayName"],
        title="Attributes to match against the username",
        description=(
            "Attributes of the entries returned by the user search to compare"
            " with the username provided at login. May be given as a"
            " comma-separated string."
        ),
    )

    username_attribute: str = Field(
        "uid",
        title="Username attribute",
        description=(
            "Attribute of the matched entry that holds the local username"
        ),
    )

    timeout: float = Field(
        LDAP_TIMEOUT,
        title="LDAP timeout",
        description="Timeout in seconds for LDAP connects and searches",
        gt=0,
    )

    @field_validator("search_attributes", mode="before")
    @classmethod
    def _validate_search_attributes(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, list):
            v = [str(a).replace(" ", "") for a in v]
            v = [a for a in v if a]
            if not v:
                raise ValueError("searchAttributes must not be empty")
        return v

    @field_validator("search_filter", "admin_filter")
    @classmethod
    def _validate_filter(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not (v.startswith("(") and v.endswith(")")):
            raise ValueError(f"LDAP filter {v} must be enclosed in parens")
        return v

    @model_validator(mode="after")
    def _validate_password(self) -> Self:
        """Ensure the password is set if the bind DN is set."""
        if self.bind_dn and not self.bind_password:
            raise ValueError("bindPassword required if bindDn is set")
        return self

    @model_validator(mode="after")
    def _validate_tls(self) -> Self:
        if self.use_ssl and self.use_start_tls:
            raise ValueError("useSsl and useStartTls are mutually exclusive")
        return self

    @property
    def url(self) -> str:
        """URL of the LDAP server."""
        scheme = "ldaps" if self.use_ssl else "ldap"
        return f"{scheme}://{self.server}:{self.port}"


class Config(EnvFirstSettings):
    """Configuration for ldaplogin."""

    ldap: LDAPConfig = Field(
        ...,
        title="LDAP configuration",
        description="How to connect to and search the LDAP server",
    )

    create_users_from_ldap: bool = Field(
        True,
        title="Create users from LDAP",
        description=(
            "Whether to create a local user on the first successful login of"
            " a directory user with no local account"
        ),
    )

    log_level: LogLevel = Field(
        LogLevel.INFO,
        title="Logging level",
        description="Python logging level",
        validation_alias=AliasChoices("LDAPLOGIN_LOG_LEVEL", "logLevel"),
    )

    log_profile: Profile = Field(
        Profile.production,
        title="Logging profile",
        description=(
            "Logging profile. ``production`` emits JSON logs and"
            " ``development`` emits human-readable logs."
        ),
        validation_alias=AliasChoices("LDAPLOGIN_LOG_PROFILE", "logProfile"),
    )

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Construct a Config object from a configuration file.

        Parameters
        ----------
        path
            Path to the configuration file in YAML.

        Returns
        -------
        Config
            The corresponding `Config` object.
        """
        with path.open("r") as f:
            return cls.model_validate(yaml.safe_load(f))

    def configure_logging(self) -> None:
        """Configure logging based on the ldaplogin configuration."""
        configure_logging(
            name=LOGGER_NAME,
            profile=self.log_profile,
            log_level=self.log_level,
        )
