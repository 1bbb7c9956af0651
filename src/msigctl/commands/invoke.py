"""
Invoke - generic contract reads and writes.

``call`` runs a read-only method and prints the decoded result; ``send``
signs and submits a state-changing method and waits for confirmation.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Optional

import click

from ..chain.binding import ContractBinding, TransactionReceipt
from .common import (
    artifact_option,
    format_value,
    load_identity,
    load_interface,
    network_options,
    open_connection,
    run,
)


def _parse_args(args_json: str) -> list[Any]:
    try:
        args = json.loads(args_json)
    except json.JSONDecodeError as exc:
        click.secho(f"ERROR: Invalid args: {exc}", fg="red", err=True)
        sys.exit(1)
    if not isinstance(args, list):
        click.secho("ERROR: Invalid args: must be a JSON array", fg="red", err=True)
        sys.exit(1)
    return args


@click.command()
@network_options
@artifact_option
@click.option("--contract", envvar="CONTRACT_ADDRESS", required=True, help="Target contract address")
@click.option("--function", "func_name", required=True, help="Function name to call")
@click.option("--args", "args_json", default="[]", help="Function args as JSON array")
def call(
    network: str,
    api_key: Optional[str],
    rpc_url: Optional[str],
    timeout: float,
    artifact: Path,
    contract: str,
    func_name: str,
    args_json: str,
) -> None:
    """Execute a read-only contract method."""
    args = _parse_args(args_json)

    async def main() -> Any:
        interface = load_interface(artifact)
        async with await open_connection(network, api_key, rpc_url) as connection:
            binding = ContractBinding(contract, interface, connection)
            return await binding.call(func_name, *args)

    click.echo(format_value(run(main)))


@click.command()
@network_options
@artifact_option
@click.option("--contract", envvar="CONTRACT_ADDRESS", required=True, help="Target contract address")
@click.option("--function", "func_name", required=True, help="Function name to call")
@click.option("--args", "args_json", default="[]", help="Function args as JSON array")
@click.option("--value", default=0, type=int, help="ETH value in wei")
@click.option("--gas-limit", default=None, type=int, help="Gas limit (default: estimate)")
@click.option("--private-key", envvar="PRIVATE_KEY", default=None, help="Sender private key")
def send(
    network: str,
    api_key: Optional[str],
    rpc_url: Optional[str],
    timeout: float,
    artifact: Path,
    contract: str,
    func_name: str,
    args_json: str,
    value: int,
    gas_limit: Optional[int],
    private_key: Optional[str],
) -> None:
    """
    Sign and send a state-changing contract call.

    Waits for the transaction to be confirmed.  Sender pays gas.
    """
    args = _parse_args(args_json)

    async def main() -> TransactionReceipt:
        identity = load_identity(private_key)
        interface = load_interface(artifact)

        click.echo(f"  Sender:   {identity.address}")
        click.echo(f"  Target:   {contract}")
        click.echo(f"  Function: {func_name}")
        click.echo(f"  Args:     {args}")
        if value > 0:
            click.echo(f"  Value:    {value} wei")
        click.echo("")

        async with await open_connection(network, api_key, rpc_url) as connection:
            binding = ContractBinding(
                contract, interface, connection, identity, confirmation_timeout=timeout
            )
            return await binding.send(func_name, *args, value=value, gas_limit=gas_limit)

    receipt = run(main)
    click.secho("SUCCESS: Transaction confirmed!", fg="green")
    click.echo(f"  TX:    {receipt.transaction_hash}")
    click.echo(f"  Block: {receipt.block_number}")
