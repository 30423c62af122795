"""
Signing requirement model and the per-operation threshold table.

Every operation demands a threshold level (low, medium or high) from the
signer set of its source account. The table below covers every operation kind;
an unknown kind is rejected rather than defaulted.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Iterable, List

from stellar_sdk import SetOptions
from stellar_sdk.operation import Operation

from ..tx.helpers import OperationType, operation_type

# Pseudo-address standing for the envelope's own source (or fee source)
SOURCE_ACCOUNT = "source-account"


class OperationThreshold(IntEnum):
    """Multisig authority tiers, ordered by strength."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3


@dataclass(frozen=True)
class SignatureRequirement:
    """An address that must sign, and the threshold its signature must meet."""

    address: str
    threshold: OperationThreshold

    def to_dict(self) -> Dict[str, object]:
        return {"address": self.address, "thresholdLevel": self.threshold.name.lower()}


OPERATION_THRESHOLDS: Dict[OperationType, OperationThreshold] = {
    OperationType.ALLOW_TRUST: OperationThreshold.LOW,
    OperationType.SET_TRUST_LINE_FLAGS: OperationThreshold.LOW,
    OperationType.BUMP_SEQUENCE: OperationThreshold.LOW,
    OperationType.CLAIM_CLAIMABLE_BALANCE: OperationThreshold.LOW,
    OperationType.INFLATION: OperationThreshold.LOW,
    OperationType.EXTEND_FOOTPRINT_TTL: OperationThreshold.LOW,
    OperationType.RESTORE_FOOTPRINT: OperationThreshold.LOW,
    OperationType.CREATE_ACCOUNT: OperationThreshold.MEDIUM,
    OperationType.PAYMENT: OperationThreshold.MEDIUM,
    OperationType.PATH_PAYMENT_STRICT_RECEIVE: OperationThreshold.MEDIUM,
    OperationType.PATH_PAYMENT_STRICT_SEND: OperationThreshold.MEDIUM,
    OperationType.MANAGE_SELL_OFFER: OperationThreshold.MEDIUM,
    OperationType.MANAGE_BUY_OFFER: OperationThreshold.MEDIUM,
    OperationType.CREATE_PASSIVE_SELL_OFFER: OperationThreshold.MEDIUM,
    OperationType.CHANGE_TRUST: OperationThreshold.MEDIUM,
    OperationType.MANAGE_DATA: OperationThreshold.MEDIUM,
    OperationType.CREATE_CLAIMABLE_BALANCE: OperationThreshold.MEDIUM,
    OperationType.BEGIN_SPONSORING_FUTURE_RESERVES: OperationThreshold.MEDIUM,
    OperationType.END_SPONSORING_FUTURE_RESERVES: OperationThreshold.MEDIUM,
    OperationType.REVOKE_SPONSORSHIP: OperationThreshold.MEDIUM,
    OperationType.CLAWBACK: OperationThreshold.MEDIUM,
    OperationType.CLAWBACK_CLAIMABLE_BALANCE: OperationThreshold.MEDIUM,
    OperationType.LIQUIDITY_POOL_DEPOSIT: OperationThreshold.MEDIUM,
    OperationType.LIQUIDITY_POOL_WITHDRAW: OperationThreshold.MEDIUM,
    OperationType.INVOKE_HOST_FUNCTION: OperationThreshold.MEDIUM,
    # Raised to HIGH when it touches weights, signers or thresholds
    OperationType.SET_OPTIONS: OperationThreshold.MEDIUM,
    OperationType.ACCOUNT_MERGE: OperationThreshold.HIGH,
}

_SET_OPTIONS_HIGH_FIELDS = ("master_weight", "signer", "low_threshold", "med_threshold", "high_threshold")


def operation_threshold(operation: Operation) -> OperationThreshold:
    """
    Threshold level an operation demands from its source account.

    Args:
        operation: Operation to classify

    Returns:
        The threshold level

    Raises:
        ValueError: If the operation kind is not in the table
    """
    op_type = operation_type(operation)
    threshold = OPERATION_THRESHOLDS.get(op_type)
    if threshold is None:
        raise ValueError(f"No threshold defined for operation type: {op_type.name}")

    if isinstance(operation, SetOptions):
        if any(getattr(operation, name) is not None for name in _SET_OPTIONS_HIGH_FIELDS):
            return OperationThreshold.HIGH
    return threshold


def merge_requirements(requirements: Iterable[SignatureRequirement]) -> List[SignatureRequirement]:
    """Collapse requirements to one per address, keeping the highest threshold."""
    merged: Dict[str, OperationThreshold] = {}
    for req in requirements:
        current = merged.get(req.address)
        if current is None or req.threshold > current:
            merged[req.address] = req.threshold
    return [SignatureRequirement(address, threshold) for address, threshold in merged.items()]


__all__ = [
    "SOURCE_ACCOUNT",
    "OperationThreshold",
    "SignatureRequirement",
    "OPERATION_THRESHOLDS",
    "operation_threshold",
    "merge_requirements",
]
