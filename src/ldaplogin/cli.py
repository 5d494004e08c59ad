"""Administrative command-line interface."""

from __future__ import annotations

from pathlib import Path

import click
import structlog
from pydantic import ValidationError
from safir.asyncio import run_with_asyncio
from safir.click import display_help

from .config import Config
from .constants import CONFIG_PATH, LOGGER_NAME
from .factory import Factory
from .storage.users import MemoryUserStore

__all__ = [
    "check_config",
    "help",
    "login",
    "main",
]


def _load_config(config_path: Path) -> Config:
    """Load and validate the configuration, reporting errors to the user."""
    try:
        config = Config.from_file(config_path)
    except FileNotFoundError as e:
        msg = f"Configuration file {config_path} not found"
        raise click.ClickException(msg) from e
    except ValidationError as e:
        msg = f"Invalid configuration in {config_path}:\n{e}"
        raise click.ClickException(msg) from e
    config.configure_logging()
    return config


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(message="%(version)s")
def main() -> None:
    """Administrative command-line interface for ldaplogin."""


@main.command()
@click.argument("topic", default=None, required=False, nargs=1)
@click.pass_context
def help(ctx: click.Context, topic: str | None) -> None:
    """Show help for any command."""
    display_help(main, ctx, topic)


@main.command()
@click.option(
    "--config-path",
    envvar="LDAPLOGIN_CONFIG_PATH",
    type=click.Path(path_type=Path),
    default=CONFIG_PATH,
    help="Application configuration file.",
)
def check_config(*, config_path: Path) -> None:
    """Validate the configuration file."""
    config = _load_config(config_path)
    click.echo(f"LDAP server: {config.ldap.url}")
    if config.ldap.use_start_tls:
        click.echo("Using StartTLS")
    if config.ldap.skip_ssl_verify:
        click.echo("WARNING: server certificates will not be verified")
    bind = config.ldap.bind_dn or "anonymous"
    click.echo(f"Searching {config.ldap.base_dn} as {bind}")


@main.command()
@click.argument("username")
@click.option(
    "--config-path",
    envvar="LDAPLOGIN_CONFIG_PATH",
    type=click.Path(path_type=Path),
    default=CONFIG_PATH,
    help="Application configuration file.",
)
@click.password_option(
    "--password",
    envvar="LDAPLOGIN_PASSWORD",
    confirmation_prompt=False,
    help="Password of the user (prompted for if not given).",
)
@run_with_asyncio
async def login(*, username: str, config_path: Path, password: str) -> None:
    """Try logging in as a user.

    Users are created in a temporary in-memory store, so this never changes
    any real user store. Since that store starts empty, the administrator
    filter is always checked. If automatic user creation is disabled, the
    login therefore always fails after the password has been verified.
    """
    config = _load_config(config_path)
    logger = structlog.get_logger(LOGGER_NAME)
    user_store = MemoryUserStore()
    factory = Factory(config, user_store, logger)
    service = factory.create_authentication_service()

    outcome = await service.authenticate(username, password)
    if not outcome.succeeded or not outcome.username:
        raise click.ClickException(outcome.message or "Login failed")
    user = await user_store.get_user_by_name(outcome.username)
    click.echo(f"Authenticated as {outcome.username}")
    click.echo(f"Administrator: {user.policy.is_administrator}")
