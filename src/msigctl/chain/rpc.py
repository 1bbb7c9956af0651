"""
JSON-RPC connection to an Ethereum node.

Async client built on httpx.  Every request holds the connection handle only
for the duration of its round trip, so cancelling a caller (or hitting a
timeout) never leaves a request outstanding on the handle.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import httpx
from eth_abi import decode
from eth_abi.exceptions import DecodingError

from ..config import DEFAULT_HTTP_TIMEOUT, Network, endpoint_url, get_network
from ..errors import NetworkConnectionError, RemoteExecutionError, TransactionTimeoutError

logger = logging.getLogger(__name__)

ERROR_SELECTOR = "0x08c379a0"  # Error(string)
PANIC_SELECTOR = "0x4e487b71"  # Panic(uint256)

PANIC_CODES = {
    0x01: "assertion failed",
    0x11: "arithmetic overflow or underflow",
    0x12: "division or modulo by zero",
    0x21: "invalid enum value",
    0x31: "pop on empty array",
    0x32: "array index out of bounds",
    0x41: "out of memory",
    0x51: "call to uninitialized function",
}


def decode_revert_reason(data: Any) -> Optional[str]:
    """Decode ``Error(string)`` / ``Panic(uint256)`` revert data, if present."""
    if isinstance(data, dict):
        data = data.get("data")
    if not isinstance(data, str) or len(data) < 10:
        return None

    selector = data[:10].lower()
    try:
        payload = bytes.fromhex(data[10:])
        if selector == ERROR_SELECTOR:
            return decode(["string"], payload)[0]
        if selector == PANIC_SELECTOR:
            code = decode(["uint256"], payload)[0]
            return f"panic 0x{code:02x} ({PANIC_CODES.get(code, 'unknown panic')})"
    except (DecodingError, ValueError):
        return None
    return None


class NetworkConnection:
    """
    Read access to a ledger plus submission of signed transactions.

    Use as an async context manager, or call ``aclose()`` when done.
    """

    def __init__(
        self,
        network: Network,
        url: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ) -> None:
        self.network = network
        self.url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, transport=transport)
        self._ids = itertools.count(1)
        self._open_handles = 0

    def __repr__(self) -> str:
        # the URL may embed the API key
        return f"NetworkConnection(network={self.network.name!r})"

    async def __aenter__(self) -> "NetworkConnection":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def chain_id(self) -> int:
        return self.network.chain_id

    @property
    def open_handles(self) -> int:
        """Requests currently holding the connection handle."""
        return self._open_handles

    @asynccontextmanager
    async def _handle(self) -> AsyncIterator[httpx.AsyncClient]:
        self._open_handles += 1
        try:
            yield self._client
        finally:
            self._open_handles -= 1

    async def request(self, method: str, params: list) -> Any:
        """
        Make a JSON-RPC call.

        Returns:
            Result field from the RPC response

        Raises:
            NetworkConnectionError: Transport or HTTP failure
            RemoteExecutionError: The node answered with a JSON-RPC error
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }
        logger.debug("rpc %s -> %s", method, self.network.name)

        async with self._handle() as client:
            try:
                response = await client.post(self.url, json=payload)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise NetworkConnectionError(
                    f"{method} failed: HTTP {exc.response.status_code}"
                ) from exc
            except httpx.TransportError as exc:
                raise NetworkConnectionError(f"{method} failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise NetworkConnectionError(f"{method} returned a non-JSON body") from exc

        if not isinstance(data, dict):
            raise NetworkConnectionError(f"{method} returned a malformed JSON-RPC response")

        if "error" in data:
            error = data["error"]
            if not isinstance(error, dict):
                error = {"message": str(error)}
            message = error.get("message", "unknown error")
            reason = decode_revert_reason(error.get("data"))
            logger.debug("rpc %s error: %s", method, message)
            raise RemoteExecutionError(
                f"{method} rejected: {reason or message}",
                code=error.get("code"),
                data=error.get("data"),
                reason=reason,
            )

        return data.get("result")

    async def quantity(self, method: str, params: list[Any]) -> int:
        """Request a hex-encoded integer result."""
        result = await self.request(method, params)
        try:
            return int(result, 16)
        except (TypeError, ValueError) as exc:
            raise NetworkConnectionError(
                f"{method} returned {result!r}, expected a hex quantity"
            ) from exc

    async def get_chain_id(self) -> int:
        return await self.quantity("eth_chainId", [])

    async def get_balance(self, address: str) -> int:
        return await self.quantity("eth_getBalance", [address, "latest"])

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return await self.quantity("eth_getTransactionCount", [address, block])

    async def gas_price(self) -> int:
        return await self.quantity("eth_gasPrice", [])

    async def get_code(self, address: str) -> str:
        return await self.request("eth_getCode", [address, "latest"])

    async def estimate_gas(self, tx: dict[str, Any]) -> int:
        return await self.quantity("eth_estimateGas", [_rpc_tx(tx)])

    async def eth_call(self, tx: dict[str, Any], block: str = "latest") -> str:
        return await self.request("eth_call", [_rpc_tx(tx), block])

    async def send_raw_transaction(self, raw_tx: bytes) -> str:
        """Broadcast a signed transaction; returns its hash."""
        return await self.request("eth_sendRawTransaction", ["0x" + bytes(raw_tx).hex()])

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[dict]:
        return await self.request("eth_getTransactionReceipt", [tx_hash])

    async def wait_for_receipt(
        self,
        tx_hash: str,
        timeout: float = 120,
        poll_interval: float = 2.0,
    ) -> dict:
        """
        Suspend until a transaction receipt is available.

        Raises:
            TransactionTimeoutError: If no receipt appears within ``timeout``
        """

        async def poll() -> dict:
            while True:
                receipt = await self.get_transaction_receipt(tx_hash)
                if receipt is not None:
                    return receipt
                await asyncio.sleep(poll_interval)

        try:
            return await asyncio.wait_for(poll(), timeout)
        except asyncio.TimeoutError as exc:
            raise TransactionTimeoutError(tx_hash, timeout) from exc


def _rpc_tx(tx: dict[str, Any]) -> dict[str, Any]:
    """Render integer quantities as hex, as JSON-RPC expects."""
    return {k: hex(v) if isinstance(v, int) else v for k, v in tx.items() if v is not None}


async def connect(
    network_name: str,
    endpoint_credential: Optional[str] = None,
    *,
    rpc_url: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
) -> NetworkConnection:
    """
    Open a connection and check the node serves the expected chain.

    Args:
        network_name: Known network name (e.g. "goerli", "sepolia")
        endpoint_credential: Alchemy API key
        rpc_url: Explicit endpoint, overrides the API key
        transport: httpx transport (tests use httpx.MockTransport)

    Raises:
        NetworkConnectionError: Unknown network, unreachable endpoint, or
            the node reports a different chain id
    """
    network = get_network(network_name)
    url = endpoint_url(network, endpoint_credential, rpc_url)
    connection = NetworkConnection(network, url, transport=transport, timeout=timeout)

    try:
        chain_id = await connection.get_chain_id()
    except RemoteExecutionError as exc:
        await connection.aclose()
        raise NetworkConnectionError(f"Endpoint rejected eth_chainId: {exc}") from exc
    except BaseException:
        await connection.aclose()
        raise

    if chain_id != network.chain_id:
        await connection.aclose()
        raise NetworkConnectionError(
            f"Endpoint serves chain {chain_id}, expected {network.name} ({network.chain_id})"
        )

    logger.info("connected to %s (chain %d)", network.name, chain_id)
    return connection
