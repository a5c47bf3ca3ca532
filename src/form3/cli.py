"""CLI interface for the Form3 accounts client"""

import json
import logging
from pathlib import Path
from typing import Optional

import click

from form3.application.client import Client
from form3.domain.errors import OperationError
from form3.domain.models.account import Account
from form3.infrastructure.config.config_manager import ConfigManager, ConfigurationError

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def load_account(file_path: Path) -> Account:
    """Read an account document from a JSON file

    Raises:
        ValueError: If the file does not hold an account document
    """
    with open(file_path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"{file_path} is not valid JSON: {e}") from e
    return Account.from_dict(data)


def _create_client(ctx: click.Context) -> Client:
    verbose = ctx.obj.get("verbose", False)
    try:
        config_manager = ConfigManager(config_path=ctx.obj.get("config_path"))
    except ConfigurationError as e:
        _die(str(e), verbose=verbose, exc=e)

    client_config = config_manager.get_client_config()
    if ctx.obj.get("base_url"):
        client_config = client_config.model_copy(update={"base_url": ctx.obj["base_url"]})
    if verbose:
        client_config = client_config.model_copy(update={"debug": True})
    return Client.from_config(client_config, config_manager.get_retry_config())


def _echo_account(account: Account) -> None:
    click.echo(json.dumps(account.to_dict(), indent=2, sort_keys=True))


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .form3.yml config file",
)
@click.option("--base-url", type=str, help="API base URL. Overrides config.")
@click.pass_context
def cli(ctx, verbose: bool, config: Path, base_url: str):
    """Form3 accounts API client"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose
    ctx.obj["base_url"] = base_url


@cli.command()
@click.argument("file_path", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def create(ctx, file_path: Path):
    """Create an account.

    FILE_PATH: JSON file holding the account document ({"data": {...}})
    """
    verbose = ctx.obj.get("verbose", False)
    try:
        account = load_account(file_path)
    except ValueError as e:
        _die(str(e), verbose=verbose, exc=e)

    with _create_client(ctx) as client:
        try:
            created = client.accounts.create(account)
        except OperationError as e:
            _die(e.message, verbose=verbose, exc=e)
    _echo_account(created)


@cli.command()
@click.argument("account_id", type=str)
@click.pass_context
def fetch(ctx, account_id: str):
    """Fetch an account.

    ACCOUNT_ID: Account identifier (UUID)
    """
    verbose = ctx.obj.get("verbose", False)
    with _create_client(ctx) as client:
        try:
            account = client.accounts.fetch(account_id)
        except OperationError as e:
            _die(e.message, verbose=verbose, exc=e)
    _echo_account(account)


@cli.command()
@click.argument("account_id", type=str)
@click.option("--version", "version", type=int, default=0, show_default=True, help="Account version")
@click.pass_context
def delete(ctx, account_id: str, version: int):
    """Delete an account.

    ACCOUNT_ID: Account identifier (UUID)
    """
    verbose = ctx.obj.get("verbose", False)
    with _create_client(ctx) as client:
        try:
            client.accounts.delete(account_id, version)
        except OperationError as e:
            _die(e.message, verbose=verbose, exc=e)
    click.echo(f"Account {account_id} deleted")


def main() -> None:
    """Console script entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
