"""
Interface descriptions - parse compiled contract artifacts.

Accepts Hardhat artifacts (``bytecode`` is a hex string), Foundry artifacts
(``bytecode.object``) and bare ABI lists.  The parsed description is
immutable; method lookups validate names and argument counts before anything
is encoded.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_abi.grammar import ABIType, BasicType, TupleType, parse as parse_type
from eth_hash.auto import keccak
from eth_utils import is_address, to_checksum_address

from ..errors import AbiCodecError, ArityError, ArtifactError, MethodNotFoundError


READ_ONLY_MUTABILITY = frozenset({"view", "pure"})


def canonical_type(param: dict[str, Any]) -> str:
    """
    Canonical ABI type of a parameter.

    Tuples are expanded from their components, keeping any array suffix:
    ``tuple[]`` with components ``(address, uint256)`` -> ``(address,uint256)[]``.
    """
    abi_type = param["type"]
    if not abi_type.startswith("tuple"):
        return abi_type
    inner = ",".join(canonical_type(c) for c in param.get("components", []))
    return f"({inner}){abi_type[len('tuple'):]}"


def _types(params: Sequence[dict[str, Any]]) -> tuple[str, ...]:
    return tuple(canonical_type(p) for p in params)


def checksum_address(address: str) -> str:
    """Validate an address and return its EIP-55 form."""
    if not isinstance(address, str) or not is_address(address):
        raise ValueError(f"Invalid address: {address!r}")
    return to_checksum_address(address)


def _coerce(abi_type: str, value: Any) -> Any:
    # bytes arrive from JSON/CLI as 0x-hex strings
    if abi_type.endswith("]") and isinstance(value, (list, tuple)):
        element = abi_type[: abi_type.rindex("[")]
        return [_coerce(element, v) for v in value]
    if abi_type.startswith("bytes") and isinstance(value, str):
        return bytes.fromhex(value[2:] if value.startswith("0x") else value)
    if abi_type == "address" and isinstance(value, str):
        return checksum_address(value)
    return value


def encode_arguments(types: Sequence[str], args: Sequence[Any]) -> bytes:
    if not types:
        return b""
    values = [_coerce(t, a) for t, a in zip(types, args)]
    try:
        return encode(list(types), values)
    except EncodingError as exc:
        raise AbiCodecError(f"Cannot encode arguments as ({','.join(types)}): {exc}") from exc


def _normalize(abi_type: ABIType, value: Any) -> Any:
    # eth-abi returns addresses lowercased
    if abi_type.is_array:
        return tuple(_normalize(abi_type.item_type, v) for v in value)
    if isinstance(abi_type, TupleType):
        return tuple(_normalize(c, v) for c, v in zip(abi_type.components, value))
    if isinstance(abi_type, BasicType) and abi_type.base == "address":
        return to_checksum_address(value)
    return value


def decode_values(types: Sequence[str], data: bytes) -> tuple[Any, ...]:
    """Decode ABI data, returning addresses in EIP-55 form."""
    try:
        decoded = decode(list(types), data)
    except DecodingError as exc:
        raise AbiCodecError(f"Cannot decode ({','.join(types)}) from return data: {exc}") from exc
    return tuple(_normalize(parse_type(t), v) for t, v in zip(types, decoded))


@dataclass(frozen=True)
class AbiFunction:
    name: str
    inputs: tuple[str, ...]
    outputs: tuple[str, ...]
    state_mutability: str = "nonpayable"

    @classmethod
    def from_entry(cls, entry: dict[str, Any]) -> "AbiFunction":
        mutability = entry.get("stateMutability")
        if mutability is None:
            # pre-0.5 compiler output
            if entry.get("constant"):
                mutability = "view"
            elif entry.get("payable"):
                mutability = "payable"
            else:
                mutability = "nonpayable"
        return cls(
            name=entry["name"],
            inputs=_types(entry.get("inputs", [])),
            outputs=_types(entry.get("outputs", [])),
            state_mutability=mutability,
        )

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return keccak(self.signature.encode("utf-8"))[:4]

    @property
    def read_only(self) -> bool:
        return self.state_mutability in READ_ONLY_MUTABILITY

    def encode_call(self, args: Sequence[Any]) -> str:
        """ABI-encode a call to 0x-prefixed calldata."""
        return "0x" + (self.selector + encode_arguments(self.inputs, args)).hex()

    def decode_result(self, data: str) -> Any:
        """
        Decode return data.

        Returns None for functions without outputs, the bare value for a
        single output, and a tuple otherwise.
        """
        if not self.outputs:
            return None
        raw = bytes.fromhex(data[2:] if data.startswith("0x") else data)
        decoded = decode_values(self.outputs, raw)
        if len(decoded) == 1:
            return decoded[0]
        return decoded


@dataclass(frozen=True)
class InterfaceDescription:
    """Immutable view of a contract's ABI and creation bytecode."""

    functions: tuple[AbiFunction, ...]
    constructor_inputs: tuple[str, ...] = ()
    events: tuple[str, ...] = ()
    bytecode: Optional[str] = None
    contract_name: Optional[str] = None

    @classmethod
    def from_abi(
        cls,
        abi: Sequence[dict[str, Any]],
        bytecode: Optional[str] = None,
        contract_name: Optional[str] = None,
    ) -> "InterfaceDescription":
        functions = []
        constructor_inputs: tuple[str, ...] = ()
        events = []
        for entry in abi:
            kind = entry.get("type", "function")
            if kind == "function":
                functions.append(AbiFunction.from_entry(entry))
            elif kind == "constructor":
                constructor_inputs = _types(entry.get("inputs", []))
            elif kind == "event":
                events.append(entry["name"])

        if bytecode is not None:
            bytecode = bytecode if bytecode.startswith("0x") else "0x" + bytecode
            if bytecode == "0x":
                bytecode = None

        return cls(
            functions=tuple(functions),
            constructor_inputs=constructor_inputs,
            events=tuple(events),
            bytecode=bytecode,
            contract_name=contract_name,
        )

    @classmethod
    def from_artifact(cls, artifact: Any) -> "InterfaceDescription":
        """Build from a parsed artifact dict or a bare ABI list."""
        if isinstance(artifact, list):
            return cls.from_abi(artifact)
        if not isinstance(artifact, dict) or "abi" not in artifact:
            raise ArtifactError("Artifact has no 'abi' field")

        bytecode = artifact.get("bytecode")
        if isinstance(bytecode, dict):
            bytecode = bytecode.get("object")
        return cls.from_abi(
            artifact["abi"],
            bytecode=bytecode or None,
            contract_name=artifact.get("contractName"),
        )

    @classmethod
    def load(cls, path: Path) -> "InterfaceDescription":
        """
        Load a compiled artifact from disk.

        Raises:
            ArtifactError: If the file is missing or not valid JSON
        """
        path = Path(path)
        if not path.exists():
            raise ArtifactError(
                f"Artifact not found: {path}. "
                f"Compile the contracts first (e.g. 'npx hardhat compile')."
            )
        try:
            with path.open("r", encoding="utf-8") as f:
                artifact = json.load(f)
        except json.JSONDecodeError as exc:
            raise ArtifactError(f"Artifact is not valid JSON: {path}: {exc}") from exc
        return cls.from_artifact(artifact)

    def has_function(self, name: str) -> bool:
        return any(fn.name == name for fn in self.functions)

    def resolve(self, name: str, args: Sequence[Any]) -> AbiFunction:
        """
        Pick the function called ``name`` taking ``len(args)`` arguments.

        Raises:
            MethodNotFoundError: No function with that name
            ArityError: Name exists but no overload takes that many arguments
        """
        candidates = [fn for fn in self.functions if fn.name == name]
        if not candidates:
            raise MethodNotFoundError(f"Function {name} not found in ABI")

        for fn in candidates:
            if len(fn.inputs) == len(args):
                return fn

        expected = " or ".join(sorted({str(len(fn.inputs)) for fn in candidates}))
        raise ArityError(
            f"{name} expects {expected} argument(s), got {len(args)}"
        )

    def encode_constructor(self, args: Sequence[Any]) -> str:
        """Creation bytecode with ABI-encoded constructor arguments appended."""
        if self.bytecode is None:
            raise ArtifactError(
                f"No bytecode for {self.contract_name or 'contract'}; "
                f"interfaces and abstract contracts cannot be deployed"
            )
        if len(args) != len(self.constructor_inputs):
            raise ArityError(
                f"constructor expects {len(self.constructor_inputs)} "
                f"argument(s), got {len(args)}"
            )
        return self.bytecode + encode_arguments(self.constructor_inputs, args).hex()
