"""
Shared fixtures: an in-memory JSON-RPC ledger served through httpx.MockTransport.

The fake ledger answers the handful of eth_* methods the client uses,
decodes submitted legacy transactions with rlp, and mints receipts
immediately unless told otherwise.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import httpx
import pytest
import rlp
from eth_abi import encode
from eth_hash.auto import keccak

from msigctl.chain.abi import AbiFunction, InterfaceDescription
from msigctl.chain.rpc import NetworkConnection, connect


# Hardhat's first default account
DEPLOYER_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
DEPLOYER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
SECOND_OWNER = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
CONTRACT_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
NEW_CONTRACT_ADDRESS = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"

FAKE_BYTECODE = "0x6080604052348015600f57600080fd5b50"

MULTISIG_ABI: list[dict[str, Any]] = [
    {
        "type": "constructor",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "_owners", "type": "address[]"},
            {"name": "_required", "type": "uint256"},
        ],
    },
    {
        "type": "function",
        "name": "owners",
        "stateMutability": "view",
        "inputs": [{"name": "", "type": "uint256"}],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "function",
        "name": "required",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "getOwners",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address[]"}],
    },
    {
        "type": "function",
        "name": "submitTransaction",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "destination", "type": "address"},
            {"name": "value", "type": "uint256"},
            {"name": "data", "type": "bytes"},
        ],
        "outputs": [{"name": "transactionId", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "confirmTransaction",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "transactionId", "type": "uint256"}],
        "outputs": [],
    },
    {
        "type": "event",
        "name": "Confirmation",
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "sender", "type": "address"},
            {"indexed": True, "name": "transactionId", "type": "uint256"},
        ],
    },
    {"type": "receive", "stateMutability": "payable"},
]

MULTISIG_ARTIFACT: dict[str, Any] = {
    "_format": "hh-sol-artifact-1",
    "contractName": "MultiSigWallet",
    "sourceName": "contracts/multisig_wallet.sol",
    "abi": MULTISIG_ABI,
    "bytecode": FAKE_BYTECODE,
    "deployedBytecode": "0x6080",
}


class RpcFault(Exception):
    def __init__(self, error: dict[str, Any]) -> None:
        super().__init__(error.get("message"))
        self.error = error


def revert_error(reason: str) -> dict[str, Any]:
    data = "0x08c379a0" + encode(["string"], [reason]).hex()
    return {"code": 3, "message": "execution reverted", "data": data}


def panic_error(code: int) -> dict[str, Any]:
    data = "0x4e487b71" + encode(["uint256"], [code]).hex()
    return {"code": 3, "message": "execution reverted", "data": data}


class FakeLedger:
    def __init__(self, chain_id: int = 5) -> None:
        self.chain_id = chain_id
        self.requests: list[dict[str, Any]] = []
        self.call_results: dict[str, str] = {}
        self.call_errors: dict[str, dict[str, Any]] = {}
        self.code: dict[str, str] = {CONTRACT_ADDRESS.lower(): "0x6080"}
        self.sent: list[dict[str, Any]] = []
        self.receipts: dict[str, dict[str, Any]] = {}
        self.pending_count = 0
        self.next_contract_address: Optional[str] = NEW_CONTRACT_ADDRESS
        self.revert_sends = False
        self.withhold_receipts = False
        self.reject_sends: Optional[dict[str, Any]] = None
        # (error, delay) pairs consumed by successive eth_estimateGas requests
        self.estimate_failures: list[tuple[dict[str, Any], float]] = []
        # set both to asyncio.Events (inside a running loop) to hold eth_call open
        self.call_gate: Optional[asyncio.Event] = None
        self.call_started: Optional[asyncio.Event] = None

    @property
    def methods(self) -> list[str]:
        return [r["method"] for r in self.requests]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def stub_call(self, fn: AbiFunction, *values: Any) -> None:
        key = "0x" + fn.selector.hex()
        self.call_results[key] = "0x" + encode(list(fn.outputs), list(values)).hex()

    def fail_call(self, fn: AbiFunction, error: dict[str, Any]) -> None:
        self.call_errors["0x" + fn.selector.hex()] = error

    async def handle(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.requests.append(payload)
        try:
            result = await self._dispatch(payload["method"], payload["params"])
        except RpcFault as fault:
            return httpx.Response(
                200, json={"jsonrpc": "2.0", "id": payload["id"], "error": fault.error}
            )
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "result": result})

    async def _dispatch(self, method: str, params: list) -> Any:
        if method == "eth_chainId":
            return hex(self.chain_id)
        if method == "eth_gasPrice":
            return hex(1_000_000_000)
        if method == "eth_estimateGas":
            if self.estimate_failures:
                error, delay = self.estimate_failures.pop(0)
                await asyncio.sleep(delay)
                raise RpcFault(error)
            return hex(150_000)
        if method == "eth_getTransactionCount":
            return hex(self.pending_count)
        if method == "eth_getBalance":
            return hex(10**18)
        if method == "eth_getCode":
            return self.code.get(params[0].lower(), "0x")
        if method == "eth_call":
            if self.call_gate is not None:
                if self.call_started is not None:
                    self.call_started.set()
                await self.call_gate.wait()
            selector = params[0]["data"][:10]
            if selector in self.call_errors:
                raise RpcFault(self.call_errors[selector])
            return self.call_results.get(selector, "0x")
        if method == "eth_sendRawTransaction":
            return self._accept(params[0])
        if method == "eth_getTransactionReceipt":
            return self.receipts.get(params[0])
        raise RpcFault({"code": -32601, "message": f"method {method} not found"})

    def _accept(self, raw_hex: str) -> str:
        if self.reject_sends is not None:
            raise RpcFault(self.reject_sends)

        raw = bytes.fromhex(raw_hex[2:])
        # legacy transaction: [nonce, gasPrice, gas, to, value, data, v, r, s]
        items = rlp.decode(raw)
        to = items[3]
        tx_hash = "0x" + keccak(raw).hex()
        self.sent.append(
            {
                "nonce": int.from_bytes(items[0], "big"),
                "to": "0x" + to.hex() if to else None,
                "value": int.from_bytes(items[4], "big"),
                "data": "0x" + items[5].hex(),
                "hash": tx_hash,
            }
        )

        if not self.withhold_receipts:
            creation = not to
            self.receipts[tx_hash] = {
                "transactionHash": tx_hash,
                "blockNumber": hex(100 + len(self.sent)),
                "status": "0x0" if self.revert_sends else "0x1",
                "gasUsed": hex(21_000),
                "contractAddress": self.next_contract_address if creation else None,
                "logs": [],
            }
        return tx_hash


@pytest.fixture()
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture()
def interface() -> InterfaceDescription:
    return InterfaceDescription.from_artifact(MULTISIG_ARTIFACT)


@pytest.fixture()
def artifact_path(tmp_path: Path) -> Path:
    path = tmp_path / "MultiSigWallet.json"
    path.write_text(json.dumps(MULTISIG_ARTIFACT), encoding="utf-8")
    return path


async def open_ledger(ledger: FakeLedger, network: str = "goerli") -> NetworkConnection:
    """Connect to the fake ledger as if it were an Alchemy endpoint."""
    return await connect(network, "test-api-key", transport=ledger.transport())
