"""
Signing identity - secp256k1 key holder for transaction signing.

The private key stays inside the identity: it is never logged, never part
of ``repr``, and never sent anywhere.  Signing is pure; broadcasting the
signed payload is the connection's job.

The identity also owns the account's transaction sequence (nonce) so that
concurrent sends through any number of bindings never reuse a nonce.
"""

from __future__ import annotations

import asyncio
import logging
import re
import secrets
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount

from ..errors import InvalidCredentialError

if TYPE_CHECKING:
    from ..chain.rpc import NetworkConnection

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")

# secp256k1 group order; valid keys are in [1, n-1]
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


@dataclass(frozen=True)
class SignedTransaction:
    raw_transaction: bytes
    hash: str
    nonce: int


class SigningIdentity:
    def __init__(self, account: LocalAccount) -> None:
        self._account = account
        self._nonce_lock = asyncio.Lock()
        self._next_nonce: Optional[int] = None

    def __repr__(self) -> str:
        return f"SigningIdentity(address={self.address!r})"

    @classmethod
    def from_secret(cls, secret: str) -> "SigningIdentity":
        """
        Build an identity from a hex private key (``0x`` prefix optional).

        Raises:
            InvalidCredentialError: If the secret is not a valid private key.
                The message never includes the secret.
        """
        if not isinstance(secret, str):
            raise InvalidCredentialError("Private key must be a hex string")
        secret = secret.strip()
        if not _KEY_PATTERN.match(secret):
            raise InvalidCredentialError("Private key must be 32 bytes of hex (64 characters)")

        key = secret if secret.startswith("0x") else "0x" + secret
        if not 0 < int(key, 16) < SECP256K1_N:
            raise InvalidCredentialError("Private key is outside the secp256k1 range")

        try:
            account = Account.from_key(key)
        except (ValueError, TypeError) as exc:
            raise InvalidCredentialError("Private key rejected by eth-account") from exc
        return cls(account)

    @classmethod
    def generate(cls) -> "SigningIdentity":
        """Create an identity with a fresh random key."""
        return cls(Account.from_key("0x" + secrets.token_hex(32)))

    @property
    def address(self) -> str:
        return self._account.address

    def sign(self, transaction: dict[str, Any]) -> SignedTransaction:
        """Sign a transaction dict. No I/O."""
        signed = self._account.sign_transaction(transaction)
        return SignedTransaction(
            raw_transaction=bytes(signed.raw_transaction),
            hash="0x" + bytes(signed.hash).hex(),
            nonce=transaction["nonce"],
        )

    async def reserve_nonce(self, connection: "NetworkConnection") -> int:
        """
        Take the next transaction sequence number.

        The first reservation syncs from the node's pending count; after that
        the counter is local.  Serialised by a lock shared by every binding
        that uses this identity.
        """
        async with self._nonce_lock:
            if self._next_nonce is None:
                self._next_nonce = await connection.get_transaction_count(self.address, "pending")
                logger.debug("nonce for %s synced at %d", self.address, self._next_nonce)
            nonce = self._next_nonce
            self._next_nonce += 1
            return nonce

    def release_nonce(self, nonce: int) -> None:
        """
        Give back a nonce whose transaction was never broadcast.

        Only the most recent reservation can be returned; anything older
        forces a re-sync on the next reservation.
        """
        if self._next_nonce is None:
            return
        if self._next_nonce == nonce + 1:
            self._next_nonce = nonce
        else:
            self._next_nonce = None

    def reset_nonce(self) -> None:
        self._next_nonce = None
