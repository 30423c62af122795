"""
Ledger address helpers.

Addresses are handled in their textual strkey form and decoded with
``stellar_sdk``'s strkey codec. Muxed accounts, either as ``M...`` strkeys or
as decoded :class:`stellar_sdk.MuxedAccount` objects, resolve to their base
account for signing-authority purposes.
"""

from __future__ import annotations
from enum import Enum
from typing import Union

from stellar_sdk import Address, AddressType, MuxedAccount, StrKey

from .errors import ConfigError, CoreErrorCode

# Placeholder used for read-only simulations (all-zero ed25519 key).
ZERO_ACCOUNT = "GAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAWHF"


class AddressKind(str, Enum):
    """Address kinds an authorization entry can be bound to."""

    ACCOUNT = "account"
    CONTRACT = "contract"
    MUXED_ACCOUNT = "muxed_account"
    CLAIMABLE_BALANCE = "claimable_balance"
    LIQUIDITY_POOL = "liquidity_pool"


_KINDS = {
    AddressType.ACCOUNT: AddressKind.ACCOUNT,
    AddressType.CONTRACT: AddressKind.CONTRACT,
    AddressType.MUXED_ACCOUNT: AddressKind.MUXED_ACCOUNT,
    AddressType.CLAIMABLE_BALANCE: AddressKind.CLAIMABLE_BALANCE,
    AddressType.LIQUIDITY_POOL: AddressKind.LIQUIDITY_POOL,
}

SourceAddress = Union[str, MuxedAccount]


def is_account_address(value: object) -> bool:
    """Check whether ``value`` is a valid ed25519 account strkey."""
    return isinstance(value, str) and StrKey.is_valid_ed25519_public_key(value)


def is_contract_address(value: object) -> bool:
    """Check whether ``value`` is a valid contract strkey."""
    return isinstance(value, str) and StrKey.is_valid_contract(value)


def is_muxed_address(value: object) -> bool:
    """Check whether ``value`` is a muxed account, decoded or in strkey form."""
    if isinstance(value, MuxedAccount):
        return value.account_muxed_id is not None
    return isinstance(value, str) and StrKey.is_valid_med25519_public_key(value)


def address_kind(address: str) -> AddressKind:
    """
    Classify an address by decoding its strkey.

    Args:
        address: Strkey address

    Returns:
        The address kind

    Raises:
        ConfigError: If the address is not a valid strkey of a known kind
    """
    try:
        return _KINDS[Address(address).type]
    except (ValueError, TypeError, KeyError) as e:
        raise ConfigError(
            CoreErrorCode.INVALID_ADDRESS,
            details=f"'{address}' is not a recognized address",
            cause=e,
            data={"address": address},
        ) from e


def to_base_account(source: SourceAddress) -> str:
    """
    Resolve a transaction or operation source to the account that signs for it.

    Args:
        source: Account address, muxed ``M...`` address or decoded muxed account

    Returns:
        The base G... account address

    Raises:
        ConfigError: If the source cannot be resolved to an account
    """
    if isinstance(source, MuxedAccount):
        return source.account_id

    if is_account_address(source):
        return source

    if is_muxed_address(source):
        return MuxedAccount.from_account(source).account_id

    raise ConfigError(
        CoreErrorCode.INVALID_ADDRESS,
        details=f"Invalid source address: '{source}'",
        data={"address": source},
    )


__all__ = [
    "ZERO_ACCOUNT",
    "AddressKind",
    "SourceAddress",
    "is_account_address",
    "is_contract_address",
    "is_muxed_address",
    "address_kind",
    "to_base_account",
]
