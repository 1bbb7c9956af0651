"""
Deploy - create a MultiSigWallet on-chain.

Owners default to OWNER_ADDRESS (comma separated) and the quorum to
REQUIRED (1).  Prints the new contract address.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import click

from ..chain.deploy import DeploymentClient, DeploymentResult, multisig_constructor_args
from ..config import parse_addresses
from .common import artifact_option, load_identity, load_interface, network_options, open_connection, run


@click.command()
@network_options
@artifact_option
@click.option(
    "--owner",
    "owners",
    multiple=True,
    help="Owner address (repeatable; default: OWNER_ADDRESS)",
)
@click.option("--required", envvar="REQUIRED", default=1, type=int, show_default=True,
              help="Confirmations required to execute a wallet transaction")
@click.option("--private-key", envvar="PRIVATE_KEY", default=None, help="Deployer private key")
def deploy(
    network: str,
    api_key: Optional[str],
    rpc_url: Optional[str],
    timeout: float,
    artifact: Path,
    owners: tuple[str, ...],
    required: int,
    private_key: Optional[str],
) -> None:
    """Deploy the MultiSigWallet contract."""
    owner_list = list(owners) or parse_addresses(os.environ.get("OWNER_ADDRESS"))

    async def main() -> DeploymentResult:
        identity = load_identity(private_key)
        interface = load_interface(artifact)
        constructor_args = multisig_constructor_args(owner_list, required)

        click.echo(f"  Deployer: {identity.address}")
        click.echo(f"  Network:  {network}")
        click.echo(f"  Owners:   {', '.join(constructor_args[0])}")
        click.echo(f"  Required: {required}")
        click.echo("")

        async with await open_connection(network, api_key, rpc_url) as connection:
            client = DeploymentClient(connection, identity, confirmation_timeout=timeout)
            return await client.deploy(interface, constructor_args)

    result = run(main)
    click.echo(f"Contract deployed to address: {result.address}")
    click.echo(f"  TX: {result.transaction_hash}")
