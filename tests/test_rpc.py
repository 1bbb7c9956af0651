"""Tests for the JSON-RPC connection (chain/rpc.py) and endpoint config."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from msigctl.chain.rpc import connect, decode_revert_reason
from msigctl.config import endpoint_url, get_network, parse_addresses
from msigctl.errors import NetworkConnectionError, RemoteExecutionError, TransactionTimeoutError

from conftest import DEPLOYER_ADDRESS, FakeLedger, open_ledger, panic_error, revert_error


class TestEndpointConfig:
    def test_alchemy_url_from_api_key(self) -> None:
        url = endpoint_url(get_network("goerli"), "abc123")
        assert url == "https://eth-goerli.g.alchemy.com/v2/abc123"

    def test_rpc_url_wins(self) -> None:
        url = endpoint_url(get_network("sepolia"), "abc123", rpc_url="http://node:8545")
        assert url == "http://node:8545"

    def test_public_fallback(self) -> None:
        assert endpoint_url(get_network("localhost")) == "http://127.0.0.1:8545"

    def test_no_endpoint(self) -> None:
        with pytest.raises(NetworkConnectionError, match="set API_KEY or RPC_URL"):
            endpoint_url(get_network("goerli"))

    def test_network_names_are_case_insensitive(self) -> None:
        assert get_network("Sepolia").chain_id == 11155111

    def test_parse_addresses(self) -> None:
        assert parse_addresses(" 0xa , 0xb,") == ["0xa", "0xb"]
        assert parse_addresses(None) == []


class TestConnect:
    def test_connect_checks_chain_id(self, ledger: FakeLedger) -> None:
        async def main() -> None:
            async with await open_ledger(ledger) as connection:
                assert connection.chain_id == 5
                assert connection.open_handles == 0

        asyncio.run(main())
        assert ledger.methods == ["eth_chainId"]

    def test_unknown_network(self, ledger: FakeLedger) -> None:
        with pytest.raises(NetworkConnectionError, match="Unknown network"):
            asyncio.run(connect("atlantis", "key", transport=ledger.transport()))
        assert ledger.requests == []

    def test_chain_id_mismatch(self) -> None:
        ledger = FakeLedger(chain_id=1)
        with pytest.raises(NetworkConnectionError, match="expected goerli"):
            asyncio.run(open_ledger(ledger))

    def test_unreachable_endpoint(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(NetworkConnectionError, match="connection refused"):
            asyncio.run(connect("sepolia", transport=httpx.MockTransport(refuse)))

    def test_http_error(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        with pytest.raises(NetworkConnectionError, match="HTTP 503"):
            asyncio.run(connect("sepolia", transport=transport))

    def test_repr_hides_endpoint(self, ledger: FakeLedger) -> None:
        async def main() -> str:
            async with await open_ledger(ledger) as connection:
                return repr(connection)

        assert "test-api-key" not in asyncio.run(main())


class TestRequests:
    def test_json_rpc_error_raises_remote_execution_error(self, ledger: FakeLedger) -> None:
        async def main() -> None:
            async with await open_ledger(ledger) as connection:
                await connection.request("eth_unsupported", [])

        with pytest.raises(RemoteExecutionError) as excinfo:
            asyncio.run(main())
        assert excinfo.value.code == -32601

    def test_quantities(self, ledger: FakeLedger) -> None:
        ledger.pending_count = 3

        async def main() -> tuple[int, int, int]:
            async with await open_ledger(ledger) as connection:
                return (
                    await connection.get_transaction_count(DEPLOYER_ADDRESS),
                    await connection.gas_price(),
                    await connection.get_balance(DEPLOYER_ADDRESS),
                )

        assert asyncio.run(main()) == (3, 1_000_000_000, 10**18)

    @pytest.mark.parametrize(
        "body",
        [
            b'[{"jsonrpc": "2.0", "id": 1, "result": "0x5"}]',
            b"null",
            b'"0x5"',
        ],
    )
    def test_malformed_response_body(self, body: bytes) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=body))
        with pytest.raises(NetworkConnectionError, match="malformed JSON-RPC response"):
            asyncio.run(connect("sepolia", transport=transport))

    def test_string_error_member(self) -> None:
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": "rate limited"})
        )
        with pytest.raises(NetworkConnectionError, match="rate limited") as excinfo:
            asyncio.run(connect("sepolia", transport=transport))
        assert isinstance(excinfo.value.__cause__, RemoteExecutionError)

    @pytest.mark.parametrize("result", [None, 5, "pending"])
    def test_non_quantity_result(self, result: object) -> None:
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": result})
        )
        with pytest.raises(NetworkConnectionError, match="expected a hex quantity"):
            asyncio.run(connect("sepolia", transport=transport))

    def test_wait_for_receipt_timeout(self, ledger: FakeLedger) -> None:
        handles: list[int] = []

        async def main() -> None:
            async with await open_ledger(ledger) as connection:
                try:
                    await connection.wait_for_receipt("0xabc", timeout=0.05, poll_interval=0.01)
                finally:
                    handles.append(connection.open_handles)

        with pytest.raises(TransactionTimeoutError) as excinfo:
            asyncio.run(main())
        assert handles == [0]
        assert excinfo.value.tx_hash == "0xabc"
        assert "eth_getTransactionReceipt" in ledger.methods


class TestRevertDecoding:
    def test_error_string(self) -> None:
        assert decode_revert_reason(revert_error("not owner")["data"]) == "not owner"

    def test_panic_code(self) -> None:
        reason = decode_revert_reason(panic_error(0x32)["data"])
        assert reason == "panic 0x32 (array index out of bounds)"

    def test_nested_data(self) -> None:
        assert decode_revert_reason({"data": revert_error("nope")["data"]}) == "nope"

    @pytest.mark.parametrize("data", [None, "0x", "0x12345678", "0x08c379a0zz", 42])
    def test_undecodable(self, data: object) -> None:
        assert decode_revert_reason(data) is None
