"""Options and plumbing shared by the CLI commands."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar

import click

from ..chain.abi import InterfaceDescription
from ..chain.rpc import NetworkConnection, connect
from ..config import DEFAULT_ARTIFACT_PATH, DEFAULT_CONFIRMATION_TIMEOUT, DEFAULT_NETWORK
from ..errors import ContractClientError, InvalidCredentialError
from ..keys.signer import SigningIdentity

T = TypeVar("T")


_NETWORK_OPTIONS = (
    click.option(
        "--network",
        envvar="NETWORK",
        default=DEFAULT_NETWORK,
        show_default=True,
        help="Network name (mainnet, goerli, sepolia, holesky, base-sepolia, localhost)",
    ),
    click.option("--api-key", envvar="API_KEY", default=None, help="Alchemy API key"),
    click.option("--rpc-url", envvar="RPC_URL", default=None, help="Explicit JSON-RPC endpoint"),
    click.option(
        "--timeout",
        envvar="CONFIRMATION_TIMEOUT",
        default=DEFAULT_CONFIRMATION_TIMEOUT,
        type=float,
        show_default=True,
        help="Seconds to wait for transaction confirmation",
    ),
)


def network_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach --network / --api-key / --rpc-url / --timeout."""
    for option in reversed(_NETWORK_OPTIONS):
        func = option(func)
    return func


artifact_option = click.option(
    "--artifact",
    envvar="ARTIFACT_PATH",
    default=str(DEFAULT_ARTIFACT_PATH),
    show_default=True,
    type=click.Path(path_type=Path),
    help="Compiled contract artifact (Hardhat or Foundry JSON)",
)


def load_identity(private_key: Optional[str]) -> SigningIdentity:
    if not private_key:
        raise InvalidCredentialError("PRIVATE_KEY not set. Set it in .env or the environment.")
    return SigningIdentity.from_secret(private_key)


def load_interface(artifact: Path) -> InterfaceDescription:
    return InterfaceDescription.load(artifact)


async def open_connection(
    network: str, api_key: Optional[str], rpc_url: Optional[str]
) -> NetworkConnection:
    return await connect(network, api_key, rpc_url=rpc_url)


def run(main: Callable[[], Awaitable[T]]) -> T:
    """
    Run a command body on a fresh event loop.

    Client errors and validation errors are printed and end the process
    with a non-zero exit code.
    """
    try:
        return asyncio.run(main())
    except ContractClientError as exc:
        click.secho(f"ERROR: {exc}", fg="red", err=True)
        sys.exit(exc.exit_code)
    except ValueError as exc:
        click.secho(f"ERROR: {exc}", fg="red", err=True)
        sys.exit(1)


def format_value(value: Any) -> str:
    """Render a decoded ABI value for display."""
    if isinstance(value, bytes):
        return "0x" + value.hex()
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_value(v) for v in value) + "]"
    return str(value)
