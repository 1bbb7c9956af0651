__version__ = "1.0.0"

__all__ = [
    # Interface descriptions
    "AbiFunction",
    "InterfaceDescription",
    # Network
    "NetworkConnection",
    "connect",
    # Signing
    "SigningIdentity",
    "SignedTransaction",
    # Contracts
    "ContractBinding",
    "TransactionReceipt",
    "DeploymentClient",
    "DeploymentResult",
    "deploy",
    "multisig_constructor_args",
    # Errors
    "ContractClientError",
    "NetworkConnectionError",
    "InvalidCredentialError",
    "ArtifactError",
    "MethodNotFoundError",
    "ArityError",
    "AbiCodecError",
    "RemoteExecutionError",
    "UnauthorizedError",
    "TransactionRevertedError",
    "TransactionTimeoutError",
    "DeploymentRejectedError",
]

from .chain.abi import AbiFunction, InterfaceDescription
from .chain.binding import ContractBinding, TransactionReceipt
from .chain.deploy import DeploymentClient, DeploymentResult, deploy, multisig_constructor_args
from .chain.rpc import NetworkConnection, connect
from .errors import (
    AbiCodecError,
    ArityError,
    ArtifactError,
    ContractClientError,
    DeploymentRejectedError,
    InvalidCredentialError,
    MethodNotFoundError,
    NetworkConnectionError,
    RemoteExecutionError,
    TransactionRevertedError,
    TransactionTimeoutError,
    UnauthorizedError,
)
from .keys.signer import SignedTransaction, SigningIdentity
