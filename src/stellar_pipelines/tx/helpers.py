"""
Envelope inspection helpers.

Envelopes are ``stellar_sdk`` transaction and fee-bump envelopes; these helpers
read the parts the pipeline stages reason about (operation kinds, fees, time
bounds and source accounts) without caring which of the two kinds is given.
"""

from __future__ import annotations
import time
from typing import Callable, List, Optional, Union

from stellar_sdk import FeeBumpTransactionEnvelope, TransactionBuilder, TransactionEnvelope
from stellar_sdk import xdr as stellar_xdr
from stellar_sdk.operation import Operation
from stellar_sdk.transaction import Transaction

from ..runtime.address import to_base_account

Envelope = Union[TransactionEnvelope, FeeBumpTransactionEnvelope]

OperationType = stellar_xdr.OperationType

# Operations that run on the smart-contract host
SMART_CONTRACT_OPERATIONS = frozenset(
    {
        OperationType.INVOKE_HOST_FUNCTION,
        OperationType.EXTEND_FOOTPRINT_TTL,
        OperationType.RESTORE_FOOTPRINT,
    }
)


def operation_type(operation: Operation) -> OperationType:
    """Ledger operation kind of ``operation``."""
    return operation.to_xdr_object().body.type


def inner_transaction(envelope: Envelope) -> Transaction:
    """Return the plain transaction of an envelope, unwrapping fee bumps."""
    if isinstance(envelope, FeeBumpTransactionEnvelope):
        return envelope.transaction.inner_transaction_envelope.transaction
    return envelope.transaction


def get_transaction_timeout(envelope: Envelope, wall_clock: Callable[[], float] = time.time) -> Optional[int]:
    """
    Seconds remaining until the envelope's max time.

    Args:
        envelope: Plain or fee-bump envelope; fee bumps use the inner bounds
        wall_clock: Source of the current unix time

    Returns:
        Remaining seconds (may be zero or negative once expired), or None if
        the envelope has no upper time bound
    """
    preconditions = inner_transaction(envelope).preconditions
    bounds = preconditions.time_bounds if preconditions is not None else None
    if bounds is None or bounds.max_time <= 0:
        return None
    return bounds.max_time - int(wall_clock())


def get_operation_types(envelope: Envelope) -> List[OperationType]:
    return [operation_type(op) for op in inner_transaction(envelope).operations]


def is_smart_contract_transaction(envelope: Envelope) -> bool:
    """True when the envelope holds exactly one host-function invocation."""
    types = get_operation_types(envelope)
    return len(types) == 1 and types[0] == OperationType.INVOKE_HOST_FUNCTION


def envelope_source(envelope: Envelope) -> str:
    """Base account that pays for the envelope: the fee source of a fee bump, else the transaction source."""
    if isinstance(envelope, FeeBumpTransactionEnvelope):
        return to_base_account(envelope.transaction.fee_source)
    return to_base_account(envelope.transaction.source)


def resource_fee(transaction: Transaction) -> int:
    """Resource fee carried by the transaction's soroban data, 0 when it has none."""
    if transaction.soroban_data is None:
        return 0
    return transaction.soroban_data.resource_fee.int64


def inclusion_fee(transaction: Transaction) -> int:
    """Part of the total fee offered for inclusion, excluding the resource fee."""
    return transaction.fee - resource_fee(transaction)


def decode_envelope(envelope_xdr: str, network_passphrase: str) -> Envelope:
    """
    Decode a base64 XDR envelope of either kind.

    Raises:
        ValueError: If the text is not a valid envelope
    """
    return TransactionBuilder.from_xdr(envelope_xdr, network_passphrase)


__all__ = [
    "Envelope",
    "OperationType",
    "SMART_CONTRACT_OPERATIONS",
    "operation_type",
    "inner_transaction",
    "get_transaction_timeout",
    "get_operation_types",
    "is_smart_contract_transaction",
    "envelope_source",
    "resource_fee",
    "inclusion_fee",
    "decode_envelope",
]
