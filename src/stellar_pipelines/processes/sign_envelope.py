"""
SignEnvelope process.

Applies one signature per signing requirement using the caller's signers.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List

from ..runtime.errors import ErrorTemplate
from ..signers.requirements import SOURCE_ACCOUNT, SignatureRequirement
from ..signers.signer import TransactionSigner
from ..tx.helpers import Envelope, decode_envelope, envelope_source
from .base import Process, ProcessError

logger = logging.getLogger(__name__)


class SignEnvelopeErrorCode(str, Enum):
    UNEXPECTED_ERROR = "SEN_000"
    NO_REQUIREMENTS = "SEN_001"
    NO_SIGNERS = "SEN_002"
    SIGNER_NOT_FOUND = "SEN_003"
    FAILED_TO_SIGN_TRANSACTION = "SEN_004"


class SignEnvelopeError(ProcessError):
    source = "stellar_pipelines.processes.sign_envelope"
    unexpected_code = SignEnvelopeErrorCode.UNEXPECTED_ERROR
    templates = {
        SignEnvelopeErrorCode.UNEXPECTED_ERROR: ErrorTemplate("An unexpected error occurred!"),
        SignEnvelopeErrorCode.NO_REQUIREMENTS: ErrorTemplate(
            "No signature requirements provided!",
            details="At least one signature requirement must be provided to sign the transaction.",
        ),
        SignEnvelopeErrorCode.NO_SIGNERS: ErrorTemplate(
            "No signers provided!",
            details="At least one signer must be provided to sign the transaction.",
        ),
        SignEnvelopeErrorCode.SIGNER_NOT_FOUND: ErrorTemplate("Signer not found!"),
        SignEnvelopeErrorCode.FAILED_TO_SIGN_TRANSACTION: ErrorTemplate("Failed to sign the transaction!"),
    }


@dataclass
class SignEnvelopeInput:
    transaction: Envelope
    signature_requirements: List[SignatureRequirement]
    signers: List[TransactionSigner]


class SignEnvelope(Process[SignEnvelopeInput, Envelope]):
    """Sign an envelope for every requirement."""

    name = "SignEnvelope"
    error_class = SignEnvelopeError

    async def _execute(self, input: SignEnvelopeInput) -> Envelope:
        E = SignEnvelopeErrorCode

        if not input.signature_requirements:
            raise SignEnvelopeError(E.NO_REQUIREMENTS, input)
        if not input.signers:
            raise SignEnvelopeError(E.NO_SIGNERS, input)

        envelope = input.transaction
        expected_hash = envelope.hash()

        for requirement in input.signature_requirements:
            address = requirement.address
            if address == SOURCE_ACCOUNT:
                address = envelope_source(envelope)

            signer = next((s for s in input.signers if s.signs_for(address)), None)
            if signer is None:
                available = ", ".join(s.address for s in input.signers)
                raise SignEnvelopeError(
                    E.SIGNER_NOT_FOUND,
                    input,
                    details=(
                        f"No signer matching the required address ({address}) was found among the provided "
                        f"signers. Available signers: [{available}]"
                    ),
                    data={"address": address},
                )

            try:
                signed_xdr = await signer.sign_transaction(envelope)
            except Exception as e:
                raise SignEnvelopeError(
                    E.FAILED_TO_SIGN_TRANSACTION,
                    input,
                    details=f"Signer {address} raised while signing. See 'cause' for more details.",
                    cause=e,
                    data={"address": address},
                ) from e

            envelope = self._decode_signed(input, address, envelope, signed_xdr, expected_hash)
            logger.debug(f"Applied signature of {address} at {requirement.threshold.name.lower()} threshold")

        return envelope

    @staticmethod
    def _decode_signed(
        input: SignEnvelopeInput,
        address: str,
        envelope: Envelope,
        signed_xdr: str,
        expected_hash: bytes,
    ) -> Envelope:
        E = SignEnvelopeErrorCode
        try:
            signed = decode_envelope(signed_xdr, envelope.network_passphrase)
        except Exception as e:
            raise SignEnvelopeError(
                E.FAILED_TO_SIGN_TRANSACTION,
                input,
                details=f"Signer {address} returned a malformed envelope.",
                cause=e,
                data={"address": address},
            ) from e

        if type(signed) is not type(envelope):
            raise SignEnvelopeError(
                E.FAILED_TO_SIGN_TRANSACTION,
                input,
                details=(
                    f"Signer {address} returned a {type(signed).__name__}, "
                    f"expected a {type(envelope).__name__}."
                ),
                data={"address": address},
            )
        if signed.hash() != expected_hash:
            raise SignEnvelopeError(
                E.FAILED_TO_SIGN_TRANSACTION,
                input,
                details=f"Signer {address} returned a different transaction.",
                data={"address": address},
            )
        return signed


__all__ = [
    "SignEnvelopeErrorCode",
    "SignEnvelopeError",
    "SignEnvelopeInput",
    "SignEnvelope",
]
