"""
Deployment - create a new contract instance and report its address.

Deployment is a creation send through an unbound ContractBinding; the new
address is read from the confirmed receipt.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from ..config import DEFAULT_CONFIRMATION_TIMEOUT, DEFAULT_POLL_INTERVAL
from ..errors import DeploymentRejectedError
from ..keys.signer import SigningIdentity
from .abi import InterfaceDescription, checksum_address
from .binding import ContractBinding, TransactionReceipt
from .rpc import NetworkConnection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeploymentResult:
    address: str
    transaction_hash: str
    receipt: TransactionReceipt


class DeploymentClient:
    def __init__(
        self,
        connection: NetworkConnection,
        identity: SigningIdentity,
        *,
        confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        gas_limit: Optional[int] = None,
    ) -> None:
        self.connection = connection
        self.identity = identity
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval
        self.gas_limit = gas_limit

    def _unbound(self, interface: InterfaceDescription) -> ContractBinding:
        return ContractBinding(
            None,
            interface,
            self.connection,
            self.identity,
            confirmation_timeout=self.confirmation_timeout,
            poll_interval=self.poll_interval,
            gas_limit=self.gas_limit,
        )

    async def deploy(
        self,
        interface: InterfaceDescription,
        constructor_args: Sequence[Any] = (),
        *,
        value: int = 0,
    ) -> DeploymentResult:
        """
        Deploy a contract and wait for the creation receipt.

        Raises:
            DeploymentRejectedError: The node refused the transaction, or the
                receipt carries no contract address
            TransactionRevertedError: The constructor reverted
            TransactionTimeoutError: No receipt within the confirmation timeout
        """
        name = interface.contract_name or "contract"
        logger.info("deploying %s from %s", name, self.identity.address)

        receipt = await self._unbound(interface).create(*constructor_args, value=value)
        if not receipt.contract_address:
            raise DeploymentRejectedError(
                f"Receipt for {receipt.transaction_hash} has no contract address"
            )

        logger.info("%s deployed at %s", name, receipt.contract_address)
        return DeploymentResult(
            address=receipt.contract_address,
            transaction_hash=receipt.transaction_hash,
            receipt=receipt,
        )

    def bind(self, interface: InterfaceDescription, result: DeploymentResult) -> ContractBinding:
        """Binding for a freshly deployed contract."""
        return self._unbound(interface).bind(result.address)


async def deploy(
    interface: InterfaceDescription,
    constructor_args: Sequence[Any],
    identity: SigningIdentity,
    connection: NetworkConnection,
    **options: Any,
) -> DeploymentResult:
    """Deploy with a one-off DeploymentClient."""
    return await DeploymentClient(connection, identity, **options).deploy(
        interface, constructor_args
    )


def multisig_constructor_args(owners: Sequence[str], required: int) -> list[Any]:
    """
    Validate MultiSigWallet constructor parameters.

    Args:
        owners: Owner addresses
        required: Number of confirmations needed to execute a transaction

    Returns:
        ``[owners, required]`` with checksummed owner addresses

    Raises:
        ValueError: If validation fails
    """
    if not owners:
        raise ValueError("At least one owner is required")

    checksummed = [checksum_address(owner) for owner in owners]
    if len(checksummed) != len(set(checksummed)):
        raise ValueError("Duplicate owners not allowed")

    if required <= 0:
        raise ValueError("Required confirmations must be greater than 0")

    if required > len(checksummed):
        raise ValueError(
            f"Required confirmations ({required}) cannot exceed "
            f"number of owners ({len(checksummed)})"
        )

    return [checksummed, required]
