"""
ED25519 signer implementation.

Signs locally with a 32-byte Ed25519 seed using the ``cryptography`` package.
The seed lives in a mutable buffer that :meth:`Ed25519Signer.dispose` zeroes.
Envelopes and authorization entries are read and written as ``stellar_sdk``
XDR.
"""

from __future__ import annotations
import logging
from typing import Optional, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey
from stellar_sdk import DecoratedSignature, StrKey, scval
from stellar_sdk import xdr as stellar_xdr
from stellar_sdk.auth import authorization_payload_hash, authorize_entry

from ..tx.auth import auth_entry_address
from ..tx.helpers import Envelope, decode_envelope
from .signer import SignerError, SignerErrorCode, TransactionSigner

logger = logging.getLogger(__name__)


def _parse_seed(secret_seed: Union[bytes, bytearray, str]) -> bytearray:
    if isinstance(secret_seed, str):
        if StrKey.is_valid_ed25519_secret_seed(secret_seed):
            return bytearray(StrKey.decode_ed25519_secret_seed(secret_seed))
        try:
            return bytearray(bytes.fromhex(secret_seed))
        except ValueError as e:
            raise SignerError(
                SignerErrorCode.INVALID_SECRET, details="Seed is neither hex nor an S... secret key", cause=e
            ) from e
    return bytearray(secret_seed)


class Ed25519Signer(TransactionSigner):
    """
    ED25519 signer holding its own key material.

    The account address is derived from the seed. When an address is passed
    as well it must be the derived one.

    Example:
        ```python
        with Ed25519Signer(seed) as signer:
            signed_xdr = await signer.sign_transaction(tx)
        ```
    """

    def __init__(self, secret_seed: Union[bytes, bytearray, str], address: Optional[str] = None):
        """
        Initialize ED25519 signer.

        Args:
            secret_seed: 32-byte seed, as bytes, hex or an S... secret key
            address: Expected account address; checked against the seed

        Raises:
            SignerError: If the seed is invalid or does not control ``address``
        """
        seed = _parse_seed(secret_seed)
        if len(seed) != 32:
            raise SignerError(SignerErrorCode.INVALID_SECRET, details=f"Seed must be 32 bytes, got {len(seed)}")

        self._seed = seed
        self._disposed = False
        self._public_key = self._private_key().public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        self._address = StrKey.encode_ed25519_public_key(self._public_key)

        if address is not None and address != self._address:
            self.dispose()
            raise SignerError(
                SignerErrorCode.INVALID_SECRET,
                details=f"Seed controls {self._address}, not {address}",
                data={"address": address},
            )

    @property
    def address(self) -> str:
        return self._address

    @property
    def public_key(self) -> bytes:
        return self._public_key

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _private_key(self) -> Ed25519PrivateKey:
        if self._disposed:
            raise SignerError(SignerErrorCode.DISPOSED, details=f"Signer {self._address} was disposed")
        return Ed25519PrivateKey.from_private_bytes(bytes(self._seed))

    def sign(self, data: bytes) -> bytes:
        """
        Sign raw bytes.

        Args:
            data: Payload to sign, typically a 32-byte hash

        Returns:
            64-byte signature

        Raises:
            SignerError: If the signer was disposed
        """
        return self._private_key().sign(data)

    def verify(self, signature: bytes, data: bytes) -> bool:
        try:
            Ed25519PublicKey.from_public_bytes(self._public_key).verify(signature, data)
            return True
        except InvalidSignature:
            return False

    async def sign_transaction(self, envelope: Envelope) -> str:
        signature = self.sign(envelope.hash())
        # Work on a decoded copy so the caller's envelope stays unsigned
        signed = decode_envelope(envelope.to_xdr(), envelope.network_passphrase)
        signed.signatures.append(DecoratedSignature(self._public_key[-4:], signature))
        logger.debug(f"Signed envelope {envelope.hash_hex()} with {self._address}")
        return signed.to_xdr()

    def _account_signature(self, preimage: stellar_xdr.HashIDPreimage) -> stellar_xdr.SCVal:
        signature = self.sign(authorization_payload_hash(preimage))
        return scval.to_vec(
            [
                scval.to_map(
                    {
                        scval.to_symbol("public_key"): scval.to_bytes(self._public_key),
                        scval.to_symbol("signature"): scval.to_bytes(signature),
                    }
                )
            ]
        )

    async def sign_auth_entry(
        self,
        entry: stellar_xdr.SorobanAuthorizationEntry,
        valid_until_ledger_seq: int,
        network_passphrase: str,
    ) -> stellar_xdr.SorobanAuthorizationEntry:
        entry_address = auth_entry_address(entry)
        if entry_address != self._address:
            raise SignerError(
                SignerErrorCode.SIGN_FAILED,
                details=f"Entry is bound to {entry_address}, signer is {self._address}",
            )
        try:
            return authorize_entry(entry, self._account_signature, valid_until_ledger_seq, network_passphrase)
        except ValueError as e:
            raise SignerError(SignerErrorCode.SIGN_FAILED, details=str(e), cause=e) from e

    def dispose(self) -> None:
        """Zero the seed buffer. Safe to call more than once."""
        if self._disposed:
            return
        for i in range(len(self._seed)):
            self._seed[i] = 0
        self._disposed = True
        logger.debug(f"Disposed signer {self._address}")

    def to_dict(self) -> dict:
        return {"address": self._address, "publicKey": self._public_key.hex()}
