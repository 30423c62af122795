"""
Runtime support: error model, address helpers and configuration.
"""

from .errors import (
    ErrorDomain, Diagnostic, ErrorTemplate, StellarPipelinesError,
    TemplatedError, CoreErrorCode, ConfigError,
)
from .address import (
    ZERO_ACCOUNT, AddressKind, SourceAddress,
    is_account_address, is_contract_address, is_muxed_address,
    address_kind, to_base_account,
)
from .config import (
    LEDGER_CLOSE_TIME_SECONDS, DEFAULT_AUTH_VALIDITY_LEDGERS, NO_LIMIT,
    BaseFee, NetworkConfig, TransactionConfig, FeeBumpConfig, parse_fee,
)

__all__ = [
    "ErrorDomain", "Diagnostic", "ErrorTemplate", "StellarPipelinesError",
    "TemplatedError", "CoreErrorCode", "ConfigError",
    "ZERO_ACCOUNT", "AddressKind", "SourceAddress",
    "is_account_address", "is_contract_address", "is_muxed_address",
    "address_kind", "to_base_account",
    "LEDGER_CLOSE_TIME_SECONDS", "DEFAULT_AUTH_VALIDITY_LEDGERS", "NO_LIMIT",
    "BaseFee", "NetworkConfig", "TransactionConfig", "FeeBumpConfig", "parse_fee",
]
