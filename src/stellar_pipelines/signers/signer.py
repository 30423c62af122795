"""
Base signer interface.

Defines the signing capability the pipelines consume. A signer exposes the
address it signs for, signs envelopes and signs authorization entries. Signers
own their key material and release it through :meth:`TransactionSigner.dispose`.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from enum import Enum
from stellar_sdk import xdr as stellar_xdr

from ..runtime.errors import Diagnostic, ErrorDomain, ErrorTemplate, TemplatedError
from ..tx.helpers import Envelope


class SignerErrorCode(str, Enum):
    UNEXPECTED_ERROR = "SIG_000"
    INVALID_SECRET = "SIG_001"
    DISPOSED = "SIG_002"
    SIGN_FAILED = "SIG_003"


class SignerError(TemplatedError):
    """Base exception for signer operations."""

    domain = ErrorDomain.SIGNERS
    source = "stellar_pipelines.signers"
    templates = {
        SignerErrorCode.UNEXPECTED_ERROR: ErrorTemplate("An unexpected error occurred in the signer!"),
        SignerErrorCode.INVALID_SECRET: ErrorTemplate(
            "Invalid secret seed!",
            diagnostic=Diagnostic(
                root_cause="The secret seed is not 32 bytes of key material, or does not control the given address.",
                suggestion="Provide the raw 32-byte Ed25519 seed (bytes or hex) or an S... secret key.",
            ),
        ),
        SignerErrorCode.DISPOSED: ErrorTemplate(
            "Signer has been disposed!",
            diagnostic=Diagnostic(
                root_cause="The signer's key material was zeroed by dispose().",
                suggestion="Create a new signer for each signing scope instead of reusing a disposed one.",
            ),
        ),
        SignerErrorCode.SIGN_FAILED: ErrorTemplate("Failed to produce a signature!"),
    }


class TransactionSigner(ABC):
    """
    Signer interface.

    Signing methods are coroutines so that remote signers (wallets, HSMs)
    can implement them without blocking the event loop.
    """

    @property
    @abstractmethod
    def address(self) -> str:
        """
        Account address this signer signs for.

        Returns:
            G... account address
        """
        pass

    @abstractmethod
    async def sign_transaction(self, envelope: Envelope) -> str:
        """
        Sign an envelope.

        Args:
            envelope: Plain or fee-bump envelope

        Returns:
            The base64 XDR envelope with this signer's signature appended

        Raises:
            SignerError: If signing fails
        """
        pass

    @abstractmethod
    async def sign_auth_entry(
        self,
        entry: stellar_xdr.SorobanAuthorizationEntry,
        valid_until_ledger_seq: int,
        network_passphrase: str,
    ) -> stellar_xdr.SorobanAuthorizationEntry:
        """
        Sign an authorization entry.

        Args:
            entry: Entry with address credentials for this signer
            valid_until_ledger_seq: Last ledger the signature is valid for
            network_passphrase: Network the signature is bound to

        Returns:
            A copy of the entry carrying the signature

        Raises:
            SignerError: If signing fails
        """
        pass

    def signs_for(self, address: str) -> bool:
        return self.address == address

    def dispose(self) -> None:
        """Release key material. The default signer holds none."""
        pass

    def __enter__(self) -> TransactionSigner:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(address='{self.address}')"
