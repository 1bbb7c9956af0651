"""
Interact - read an owner from a deployed MultiSigWallet.

Binds to CONTRACT_ADDRESS and calls ``owners(index)``.  A wallet with fewer
owners than ``index + 1`` reverts on-chain; that revert is reported as an
error rather than papered over.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from ..chain.binding import ContractBinding
from ..errors import ContractClientError
from .common import artifact_option, load_identity, load_interface, network_options, open_connection, run


@click.command()
@network_options
@artifact_option
@click.option("--contract", envvar="CONTRACT_ADDRESS", default=None, help="Deployed wallet address")
@click.option("--index", default=0, type=int, show_default=True, help="Owner index to read")
@click.option(
    "--private-key",
    envvar="PRIVATE_KEY",
    default=None,
    help="Optional; reads are sent with this account as 'from'",
)
def interact(
    network: str,
    api_key: Optional[str],
    rpc_url: Optional[str],
    timeout: float,
    artifact: Path,
    contract: Optional[str],
    index: int,
    private_key: Optional[str],
) -> None:
    """Read an owner of a deployed MultiSigWallet."""

    async def main() -> str:
        if not contract:
            raise ContractClientError("CONTRACT_ADDRESS not set. Pass --contract or set it in .env.")
        interface = load_interface(artifact)
        identity = load_identity(private_key) if private_key else None

        async with await open_connection(network, api_key, rpc_url) as connection:
            wallet = ContractBinding(
                contract, interface, connection, identity, confirmation_timeout=timeout
            )
            code = await connection.get_code(wallet.address)
            if not code or code == "0x":
                raise ContractClientError(f"No contract deployed at {wallet.address} on {network}")
            return await wallet.call("owners", index)

    owner = run(main)
    if index == 0:
        click.echo(f"The first owner (contract owner) is: {owner}")
    else:
        click.echo(f"Owner #{index} is: {owner}")
