"""
EnvelopeSigningRequirements process.

Computes which accounts must sign an envelope and at what threshold level.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Union

from stellar_sdk import FeeBumpTransactionEnvelope, TransactionEnvelope

from ..runtime.address import to_base_account
from ..runtime.errors import ErrorTemplate
from ..signers.requirements import (
    OperationThreshold,
    SignatureRequirement,
    merge_requirements,
    operation_threshold,
)
from .base import Process, ProcessError

logger = logging.getLogger(__name__)


class EnvelopeSigningRequirementsErrorCode(str, Enum):
    UNEXPECTED_ERROR = "ESR_000"
    INVALID_TRANSACTION_TYPE = "ESR_001"
    FAILED_TO_PROCESS_REQUIREMENTS_FOR_FEE_BUMP_TX = "ESR_002"
    FAILED_TO_PROCESS_REQUIREMENTS_FOR_TRANSACTION = "ESR_003"


class EnvelopeSigningRequirementsError(ProcessError):
    source = "stellar_pipelines.processes.envelope_signing_requirements"
    unexpected_code = EnvelopeSigningRequirementsErrorCode.UNEXPECTED_ERROR
    templates = {
        EnvelopeSigningRequirementsErrorCode.UNEXPECTED_ERROR: ErrorTemplate(
            "An unexpected error occurred!", details="See the 'cause' for more details"
        ),
        EnvelopeSigningRequirementsErrorCode.INVALID_TRANSACTION_TYPE: ErrorTemplate(
            "Invalid transaction type!",
            details="Only Transaction or FeeBumpTransaction envelopes can be processed.",
        ),
        EnvelopeSigningRequirementsErrorCode.FAILED_TO_PROCESS_REQUIREMENTS_FOR_FEE_BUMP_TX: ErrorTemplate(
            "Failed to process signing requirements for fee bump transaction!",
            details="The fee bump transaction could not be processed. Verify the underlying error under 'cause'.",
        ),
        EnvelopeSigningRequirementsErrorCode.FAILED_TO_PROCESS_REQUIREMENTS_FOR_TRANSACTION: ErrorTemplate(
            "Failed to process signing requirements for transaction!",
            details="The transaction could not be processed. Verify the underlying error under 'cause'.",
        ),
    }


@dataclass
class EnvelopeSigningRequirementsInput:
    transaction: Union[TransactionEnvelope, FeeBumpTransactionEnvelope]


def fee_bump_requirements(envelope: FeeBumpTransactionEnvelope) -> List[SignatureRequirement]:
    """A fee bump only ever needs the fee source at low threshold."""
    return [SignatureRequirement(to_base_account(envelope.transaction.fee_source), OperationThreshold.LOW)]


def transaction_requirements(envelope: TransactionEnvelope) -> List[SignatureRequirement]:
    """
    Requirements of a plain envelope, one per address at the highest level seen.

    The envelope source is always required since it pays the fee and consumes
    the sequence number; operations without a source inherit it.
    """
    tx = envelope.transaction
    tx_source = to_base_account(tx.source)
    requirements = [SignatureRequirement(tx_source, OperationThreshold.LOW)]
    for operation in tx.operations:
        address = to_base_account(operation.source) if operation.source is not None else tx_source
        requirements.append(SignatureRequirement(address, operation_threshold(operation)))
    return merge_requirements(requirements)


class EnvelopeSigningRequirements(Process[EnvelopeSigningRequirementsInput, List[SignatureRequirement]]):
    """Resolve the signing requirements of an envelope."""

    name = "EnvelopeSigningRequirements"
    error_class = EnvelopeSigningRequirementsError

    async def _execute(self, input: EnvelopeSigningRequirementsInput) -> List[SignatureRequirement]:
        E = EnvelopeSigningRequirementsErrorCode
        envelope = input.transaction

        if isinstance(envelope, FeeBumpTransactionEnvelope):
            try:
                requirements = fee_bump_requirements(envelope)
            except Exception as e:
                raise EnvelopeSigningRequirementsError(
                    E.FAILED_TO_PROCESS_REQUIREMENTS_FOR_FEE_BUMP_TX, input, cause=e
                ) from e
        elif isinstance(envelope, TransactionEnvelope):
            try:
                requirements = transaction_requirements(envelope)
            except Exception as e:
                raise EnvelopeSigningRequirementsError(
                    E.FAILED_TO_PROCESS_REQUIREMENTS_FOR_TRANSACTION, input, cause=e
                ) from e
        else:
            raise EnvelopeSigningRequirementsError(E.INVALID_TRANSACTION_TYPE, input)

        logger.debug(
            "Signing requirements: "
            + ", ".join(f"{r.address}={r.threshold.name.lower()}" for r in requirements)
        )
        return requirements


__all__ = [
    "EnvelopeSigningRequirementsErrorCode",
    "EnvelopeSigningRequirementsError",
    "EnvelopeSigningRequirementsInput",
    "fee_bump_requirements",
    "transaction_requirements",
    "EnvelopeSigningRequirements",
]
