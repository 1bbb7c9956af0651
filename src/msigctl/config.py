"""
Configuration: known networks, endpoint resolution and .env loading.

Values come from the process environment, optionally seeded from a ``.env``
file.  Recognised variables:

    NETWORK               network name (default: goerli)
    API_KEY               Alchemy API key used to build the endpoint URL
    RPC_URL               explicit endpoint URL, overrides API_KEY
    PRIVATE_KEY           signing secret
    CONTRACT_ADDRESS      deployed contract to bind to
    OWNER_ADDRESS         initial owner(s), comma separated
    REQUIRED              confirmation quorum for deployment
    ARTIFACT_PATH         compiled contract artifact
    CONFIRMATION_TIMEOUT  seconds to wait for a receipt
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .errors import NetworkConnectionError


DEFAULT_NETWORK = "goerli"
DEFAULT_ARTIFACT_PATH = Path("artifacts/contracts/multisig_wallet.sol/MultiSigWallet.json")

# No confirmation policy exists upstream; two minutes covers a congested testnet.
DEFAULT_CONFIRMATION_TIMEOUT = 120.0
DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_HTTP_TIMEOUT = 30.0


@dataclass(frozen=True)
class Network:
    name: str
    chain_id: int
    alchemy_subdomain: Optional[str] = None
    public_url: Optional[str] = None


NETWORKS: dict[str, Network] = {
    "mainnet": Network("mainnet", 1, "eth-mainnet", "https://cloudflare-eth.com"),
    "goerli": Network("goerli", 5, "eth-goerli"),
    "sepolia": Network("sepolia", 11155111, "eth-sepolia", "https://rpc.sepolia.org"),
    "holesky": Network("holesky", 17000, "eth-holesky"),
    "base-sepolia": Network("base-sepolia", 84532, "base-sepolia", "https://sepolia.base.org"),
    "localhost": Network("localhost", 31337, None, "http://127.0.0.1:8545"),
}


def get_network(name: str) -> Network:
    """Look up a network by name (case-insensitive)."""
    network = NETWORKS.get(name.strip().lower())
    if network is None:
        available = ", ".join(sorted(NETWORKS))
        raise NetworkConnectionError(
            f"Unknown network: {name}. Available networks: {available}"
        )
    return network


def endpoint_url(
    network: Network,
    endpoint_credential: Optional[str] = None,
    rpc_url: Optional[str] = None,
) -> str:
    """
    Resolve the JSON-RPC endpoint for a network.

    Precedence: explicit ``rpc_url``, then the Alchemy URL built from the
    API key, then the network's public endpoint.

    Raises:
        NetworkConnectionError: If no endpoint can be derived
    """
    if rpc_url:
        return rpc_url
    if endpoint_credential and network.alchemy_subdomain:
        return f"https://{network.alchemy_subdomain}.g.alchemy.com/v2/{endpoint_credential}"
    if network.public_url:
        return network.public_url
    raise NetworkConnectionError(
        f"No endpoint for network '{network.name}': set API_KEY or RPC_URL"
    )


def load_env(env_path: Optional[Path] = None) -> Optional[Path]:
    """
    Load a .env file into the process environment.

    Existing environment variables are not overridden.

    Returns:
        The path that was loaded, or None if no file was found
    """
    path = env_path or Path.cwd() / ".env"
    if not path.exists():
        return None
    load_dotenv(path, override=False)
    return path


def parse_addresses(value: Optional[str]) -> list[str]:
    """Split a comma separated OWNER_ADDRESS value."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]
