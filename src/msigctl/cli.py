"""
msigctl CLI

Command-line interface for deploying and inspecting MultiSigWallet contracts.

Commands:
  deploy    - Deploy MultiSigWallet (owners + required confirmations)
  interact  - Read an owner of a deployed wallet
  call      - Execute an arbitrary read-only method
  send      - Execute an arbitrary state-changing method
  whoami    - Show the signing address
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .config import load_env
from .errors import InvalidCredentialError
from .commands.common import load_identity


@click.group()
@click.version_option(version=__version__, prog_name="msigctl")
@click.option(
    "--env-file",
    type=click.Path(path_type=Path, dir_okay=False, exists=True),
    default=None,
    help="Load settings from this .env file (default: ./.env)",
)
@click.option("-v", "--verbose", is_flag=True, help="Log RPC traffic to stderr")
def cli(env_file: Optional[Path], verbose: bool) -> None:
    """msigctl - deploy and interact with MultiSigWallet contracts."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    load_env(env_file)


from .commands.deploy import deploy
from .commands.interact import interact
from .commands.invoke import call, send

cli.add_command(deploy)
cli.add_command(interact)
cli.add_command(call)
cli.add_command(send)


@cli.command()
@click.option("--private-key", envvar="PRIVATE_KEY", default=None)
def whoami(private_key: Optional[str]) -> None:
    """Show the signing identity's address."""
    try:
        identity = load_identity(private_key)
    except InvalidCredentialError as exc:
        click.secho(f"ERROR: No signing identity: {exc}", fg="red", err=True)
        sys.exit(exc.exit_code)
    click.echo(f"Address: {identity.address}")


def main() -> None:
    """msigctl entry point."""
    cli()


if __name__ == "__main__":
    main()
