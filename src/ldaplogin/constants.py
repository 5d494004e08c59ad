"""Constants for ldaplogin."""

__all__ = [
    "CONFIG_PATH",
    "ENV_PREFIX",
    "LDAP_TIMEOUT",
    "LOGGER_NAME",
    "PROVIDER_NAME",
]

CONFIG_PATH = "/etc/ldaplogin/ldaplogin.yaml"
"""Default configuration path."""

ENV_PREFIX = "LDAPLOGIN_"
"""Prefix of all environment variables that may override configuration."""

LDAP_TIMEOUT = 5.0
"""Timeout (in seconds) for LDAP connects and queries."""

LOGGER_NAME = "ldaplogin"
"""Name of the logger used for all log messages."""

PROVIDER_NAME = "LDAP-Authentication"
"""Human-readable name of the authentication provider."""
