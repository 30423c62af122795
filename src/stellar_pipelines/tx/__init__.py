"""
Transaction helpers over ``stellar_sdk`` envelopes, operations and
authorization entries.
"""

from .preconditions import to_unix_seconds, TransactionPreconditions
from .helpers import (
    Envelope, OperationType, SMART_CONTRACT_OPERATIONS, operation_type,
    inner_transaction, get_transaction_timeout, get_operation_types,
    is_smart_contract_transaction, envelope_source, resource_fee, inclusion_fee,
    decode_envelope,
)
from .auth import (
    is_source_account_entry, auth_entry_address, is_signed,
    signature_expiration_ledger, with_auth, auth_entries_from_xdr,
)

__all__ = [
    "to_unix_seconds", "TransactionPreconditions",
    "Envelope", "OperationType", "SMART_CONTRACT_OPERATIONS", "operation_type",
    "inner_transaction", "get_transaction_timeout", "get_operation_types",
    "is_smart_contract_transaction", "envelope_source", "resource_fee", "inclusion_fee",
    "decode_envelope",
    "is_source_account_entry", "auth_entry_address", "is_signed",
    "signature_expiration_ledger", "with_auth", "auth_entries_from_xdr",
]
