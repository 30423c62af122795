"""
Soroban authorization entry helpers.

Authorization entries are ``stellar_sdk.xdr.SorobanAuthorizationEntry``
objects as returned by simulation. Entries with source-account credentials are
covered by the transaction signature; address-bound entries must be signed by
the address they name.
"""

from __future__ import annotations
import copy
from typing import Iterable, List, Optional

from stellar_sdk import Address, InvokeHostFunction
from stellar_sdk import xdr as stellar_xdr

_CredentialsType = stellar_xdr.SorobanCredentialsType


def _address_credentials(
    entry: stellar_xdr.SorobanAuthorizationEntry,
) -> Optional[stellar_xdr.SorobanAddressCredentials]:
    credentials = entry.credentials
    if credentials.type == _CredentialsType.SOROBAN_CREDENTIALS_ADDRESS:
        return credentials.address
    if credentials.type == _CredentialsType.SOROBAN_CREDENTIALS_ADDRESS_V2:
        return credentials.address_v2
    if credentials.type == _CredentialsType.SOROBAN_CREDENTIALS_ADDRESS_WITH_DELEGATES:
        return credentials.address_with_delegates.address_credentials
    return None


def is_source_account_entry(entry: stellar_xdr.SorobanAuthorizationEntry) -> bool:
    return entry.credentials.type == _CredentialsType.SOROBAN_CREDENTIALS_SOURCE_ACCOUNT


def auth_entry_address(entry: stellar_xdr.SorobanAuthorizationEntry) -> Optional[str]:
    """Strkey of the address an entry must be signed by, None for source-account credentials."""
    credentials = _address_credentials(entry)
    if credentials is None:
        return None
    return Address.from_xdr_sc_address(credentials.address).address


def is_signed(entry: stellar_xdr.SorobanAuthorizationEntry) -> bool:
    """True when an address-bound entry already carries a signature."""
    credentials = _address_credentials(entry)
    if credentials is None:
        return False
    return credentials.signature.type != stellar_xdr.SCValType.SCV_VOID


def signature_expiration_ledger(entry: stellar_xdr.SorobanAuthorizationEntry) -> Optional[int]:
    credentials = _address_credentials(entry)
    if credentials is None:
        return None
    return credentials.signature_expiration_ledger.uint32


def with_auth(
    operation: InvokeHostFunction,
    auth: Iterable[stellar_xdr.SorobanAuthorizationEntry],
) -> InvokeHostFunction:
    """Return a copy of an invoke operation carrying ``auth`` as its authorization entries."""
    return InvokeHostFunction(
        host_function=copy.deepcopy(operation.host_function),
        auth=list(auth),
        source=operation.source,
    )


def auth_entries_from_xdr(values: Iterable[str]) -> List[stellar_xdr.SorobanAuthorizationEntry]:
    """Decode base64 XDR authorization entries."""
    return [stellar_xdr.SorobanAuthorizationEntry.from_xdr(value) for value in values]


__all__ = [
    "is_source_account_entry",
    "auth_entry_address",
    "is_signed",
    "signature_expiration_ledger",
    "with_auth",
    "auth_entries_from_xdr",
]
