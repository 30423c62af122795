"""
Signers and signing requirements.
"""

from .signer import SignerErrorCode, SignerError, TransactionSigner
from .ed25519 import Ed25519Signer
from .requirements import (
    SOURCE_ACCOUNT, OperationThreshold, SignatureRequirement,
    OPERATION_THRESHOLDS, operation_threshold, merge_requirements,
)

__all__ = [
    "SignerErrorCode", "SignerError", "TransactionSigner", "Ed25519Signer",
    "SOURCE_ACCOUNT", "OperationThreshold", "SignatureRequirement",
    "OPERATION_THRESHOLDS", "operation_threshold", "merge_requirements",
]
