"""
Error taxonomy for msigctl.

Every error aborts the current invocation; the CLI prints it and exits with
``exit_code``.  Nothing here is retried.
"""

from __future__ import annotations

from typing import Any, Optional


class ContractClientError(RuntimeError):
    exit_code: int = 1


class NetworkConnectionError(ContractClientError):
    """Endpoint unreachable, HTTP failure, or unknown/mismatched network."""


class InvalidCredentialError(ContractClientError):
    """The signing secret is not a usable secp256k1 private key."""


class ArtifactError(ContractClientError):
    """Compiled artifact missing or malformed."""


class MethodNotFoundError(ContractClientError):
    pass


class ArityError(ContractClientError):
    pass


class AbiCodecError(ContractClientError):
    """Arguments or return data do not match the ABI types."""


class UnauthorizedError(ContractClientError):
    """A state-changing operation was requested without a signing identity."""


class RemoteExecutionError(ContractClientError):
    """The node rejected a request (JSON-RPC error, revert during eth_call)."""

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        data: Any = None,
        reason: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.data = data
        self.reason = reason


class DeploymentRejectedError(RemoteExecutionError):
    pass


class TransactionRevertedError(ContractClientError):
    def __init__(self, tx_hash: str, receipt: Any = None) -> None:
        super().__init__(f"Transaction {tx_hash} reverted")
        self.tx_hash = tx_hash
        self.receipt = receipt


class TransactionTimeoutError(ContractClientError):
    def __init__(self, tx_hash: str, timeout: float) -> None:
        super().__init__(f"Transaction {tx_hash} not confirmed within {timeout}s")
        self.tx_hash = tx_hash
        self.timeout = timeout
