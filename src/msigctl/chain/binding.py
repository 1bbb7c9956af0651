"""
Contract binding - typed calls and transactions against one contract.

A binding ties an address (or None, before deployment) to an interface
description, a network connection and, optionally, a signing identity.
Method names and argument counts are checked against the interface before
anything touches the network.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from ..config import DEFAULT_CONFIRMATION_TIMEOUT, DEFAULT_POLL_INTERVAL
from ..errors import (
    ContractClientError,
    DeploymentRejectedError,
    MethodNotFoundError,
    RemoteExecutionError,
    TransactionRevertedError,
    UnauthorizedError,
)
from ..keys.signer import SigningIdentity
from .abi import InterfaceDescription, checksum_address
from .rpc import NetworkConnection

logger = logging.getLogger(__name__)


def _quantity(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    return int(value, 16)


@dataclass(frozen=True)
class TransactionReceipt:
    transaction_hash: str
    block_number: Optional[int]
    status: int
    gas_used: Optional[int] = None
    contract_address: Optional[str] = None
    logs: tuple = ()
    raw: dict = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_rpc(cls, receipt: dict[str, Any]) -> "TransactionReceipt":
        contract_address = receipt.get("contractAddress")
        return cls(
            transaction_hash=receipt["transactionHash"],
            block_number=_quantity(receipt.get("blockNumber")),
            # pre-Byzantium receipts have no status; treat as success
            status=_quantity(receipt.get("status", "0x1")),
            gas_used=_quantity(receipt.get("gasUsed")),
            contract_address=checksum_address(contract_address) if contract_address else None,
            logs=tuple(receipt.get("logs") or ()),
            raw=receipt,
        )

    @property
    def succeeded(self) -> bool:
        return self.status == 1


class ContractBinding:
    """
    Read calls (``call``), state-changing sends (``send``) and contract
    creation (``create``) for a single contract.
    """

    def __init__(
        self,
        address: Optional[str],
        interface: InterfaceDescription,
        connection: NetworkConnection,
        identity: Optional[SigningIdentity] = None,
        *,
        confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        gas_limit: Optional[int] = None,
    ) -> None:
        self.address = checksum_address(address) if address is not None else None
        self.interface = interface
        self.connection = connection
        self.identity = identity
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval
        self.gas_limit = gas_limit

    def __repr__(self) -> str:
        name = self.interface.contract_name or "contract"
        return f"ContractBinding({name} at {self.address or '<undeployed>'})"

    def bind(self, address: str) -> "ContractBinding":
        """Same interface, connection and identity at another address."""
        return ContractBinding(
            address,
            self.interface,
            self.connection,
            self.identity,
            confirmation_timeout=self.confirmation_timeout,
            poll_interval=self.poll_interval,
            gas_limit=self.gas_limit,
        )

    def _require_address(self) -> str:
        if self.address is None:
            raise ContractClientError("Binding has no address; deploy the contract first")
        return self.address

    async def call(self, method: str, *args: Any, block: str = "latest") -> Any:
        """
        Execute a read-only method via eth_call. Never creates a transaction.

        Raises:
            MethodNotFoundError: Unknown method, or the method changes state
            ArityError: Wrong number of arguments
            RemoteExecutionError: The node rejected the call (e.g. revert)
        """
        fn = self.interface.resolve(method, args)
        if not fn.read_only:
            raise MethodNotFoundError(
                f"{fn.signature} is not read-only; use send() instead"
            )
        address = self._require_address()

        tx: dict[str, Any] = {"to": address, "data": fn.encode_call(args)}
        if self.identity is not None:
            tx["from"] = self.identity.address

        result = await self.connection.eth_call(tx, block)
        if not result or result == "0x":
            if fn.outputs:
                raise RemoteExecutionError(
                    f"{fn.signature} returned no data; is {address} a contract on "
                    f"{self.connection.network.name}?"
                )
            return None
        return fn.decode_result(result)

    async def send(
        self,
        method: str,
        *args: Any,
        value: int = 0,
        gas_limit: Optional[int] = None,
    ) -> TransactionReceipt:
        """
        Sign and submit a state-changing call, then wait for confirmation.

        Raises:
            UnauthorizedError: No signing identity (raised before any I/O)
            MethodNotFoundError: Unknown method, or the method is read-only
            ArityError: Wrong number of arguments
            TransactionRevertedError: Mined with status 0
            TransactionTimeoutError: No receipt within the confirmation timeout
        """
        if self.identity is None:
            raise UnauthorizedError(f"send({method}) requires a signing identity")
        fn = self.interface.resolve(method, args)
        if fn.read_only:
            raise MethodNotFoundError(f"{fn.signature} is read-only; use call() instead")
        address = self._require_address()

        return await self._transact(
            self.identity,
            {"to": address, "data": fn.encode_call(args), "value": value},
            gas_limit=gas_limit,
            rejected=RemoteExecutionError,
        )

    async def create(
        self,
        *constructor_args: Any,
        value: int = 0,
        gas_limit: Optional[int] = None,
    ) -> TransactionReceipt:
        """
        Submit the contract creation transaction and wait for confirmation.

        Raises:
            UnauthorizedError: No signing identity
            ArityError: Wrong number of constructor arguments
            DeploymentRejectedError: The node refused the creation transaction
        """
        if self.identity is None:
            raise UnauthorizedError("Deployment requires a signing identity")
        if self.address is not None:
            raise ContractClientError(f"Binding is already deployed at {self.address}")
        data = self.interface.encode_constructor(constructor_args)

        return await self._transact(
            self.identity,
            {"data": data, "value": value},
            gas_limit=gas_limit,
            rejected=DeploymentRejectedError,
        )

    async def _transact(
        self,
        identity: SigningIdentity,
        fields: dict[str, Any],
        *,
        gas_limit: Optional[int],
        rejected: type[RemoteExecutionError],
    ) -> TransactionReceipt:
        connection = self.connection
        tx = dict(fields, chainId=connection.chain_id)
        if "to" in tx:
            tx["to"] = checksum_address(tx["to"])

        try:
            tx["gasPrice"] = await connection.gas_price()
            tx["gas"] = gas_limit or self.gas_limit or await connection.estimate_gas(
                dict(fields, **{"from": identity.address})
            )
        except RemoteExecutionError as exc:
            raise self._rejection(exc, rejected)

        # reserve only once the transaction is priced; the next await is the broadcast
        nonce = await identity.reserve_nonce(connection)
        try:
            signed = identity.sign(dict(tx, nonce=nonce))
            logger.debug("submitting tx nonce=%d from %s", nonce, identity.address)
            tx_hash = await connection.send_raw_transaction(signed.raw_transaction)
        except RemoteExecutionError as exc:
            identity.release_nonce(nonce)
            raise self._rejection(exc, rejected)
        except BaseException:
            identity.release_nonce(nonce)
            raise

        logger.info("tx %s submitted, waiting for confirmation", tx_hash)
        raw_receipt = await connection.wait_for_receipt(
            tx_hash,
            timeout=self.confirmation_timeout,
            poll_interval=self.poll_interval,
        )
        receipt = TransactionReceipt.from_rpc(raw_receipt)
        if not receipt.succeeded:
            raise TransactionRevertedError(tx_hash, receipt)

        logger.info("tx %s confirmed in block %s", tx_hash, receipt.block_number)
        return receipt

    @staticmethod
    def _rejection(
        exc: RemoteExecutionError, rejected: type[RemoteExecutionError]
    ) -> RemoteExecutionError:
        if isinstance(exc, rejected):
            return exc
        wrapped = rejected(str(exc), code=exc.code, data=exc.data, reason=exc.reason)
        wrapped.__cause__ = exc
        return wrapped
