"""
Configuration models for pipelines and transactions.

No network presets are shipped; callers provide the network
passphrase and RPC endpoint explicitly or through the environment.
"""

from __future__ import annotations
import os
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .address import SourceAddress
from .errors import ConfigError, CoreErrorCode

# Ledger timing
LEDGER_CLOSE_TIME_SECONDS = 5
DEFAULT_AUTH_VALIDITY_LEDGERS = 120  # ~10 minutes

# 0 means "no limit" for time and ledger bounds
NO_LIMIT = 0

BaseFee = Union[str, int]


class NetworkConfig(BaseModel):
    """
    Network connection settings.

    Example:
        ```python
        config = NetworkConfig(
            network_passphrase="Test SDF Network ; September 2015",
            rpc_url="https://soroban-testnet.stellar.org",
        )
        ```
    """

    network_passphrase: str = Field(..., min_length=1, description="Network passphrase")
    rpc_url: Optional[str] = Field(default=None, description="JSON-RPC endpoint")
    allow_http: bool = Field(default=False, description="Accept plain http:// RPC endpoints")

    model_config = {"frozen": True}

    @field_validator("rpc_url")
    @classmethod
    def validate_rpc_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"rpc_url must be an http(s) url, got {v!r}")
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_scheme(self) -> NetworkConfig:
        if self.rpc_url and self.rpc_url.startswith("http://") and not self.allow_http:
            raise ValueError("Plain http:// RPC urls require allow_http=True")
        return self

    @classmethod
    def from_env(cls, prefix: str = "STELLAR_") -> NetworkConfig:
        """
        Load the network configuration from environment variables.

        Reads ``{prefix}NETWORK_PASSPHRASE``, ``{prefix}RPC_URL`` and
        ``{prefix}ALLOW_HTTP``.

        Raises:
            ConfigError: If the passphrase is missing or a value is invalid
        """
        passphrase = os.environ.get(f"{prefix}NETWORK_PASSPHRASE", "")
        if not passphrase:
            raise ConfigError(
                CoreErrorCode.INVALID_CONFIG,
                details=f"Environment variable {prefix}NETWORK_PASSPHRASE is not set",
            )
        allow_http = os.environ.get(f"{prefix}ALLOW_HTTP", "").lower() in ("1", "true", "yes")
        try:
            return cls(
                network_passphrase=passphrase,
                rpc_url=os.environ.get(f"{prefix}RPC_URL") or None,
                allow_http=allow_http,
            )
        except ValidationError as e:
            raise ConfigError(CoreErrorCode.INVALID_CONFIG, details=str(e), cause=e)


class TransactionConfig(BaseModel):
    """Per-invocation settings for the classic and invoke pipelines."""

    fee: BaseFee = Field(..., description="Base fee per operation, in stroops")
    source: SourceAddress = Field(..., description="Transaction source account")
    timeout: int = Field(default=NO_LIMIT, ge=0, description="Relative timeout in seconds, 0 for no limit")
    signers: List[Any] = Field(default_factory=list, description="Signers available for this transaction")

    model_config = {"arbitrary_types_allowed": True}


class FeeBumpConfig(BaseModel):
    """Settings for wrapping an envelope in a fee-bump envelope."""

    source: SourceAddress = Field(..., description="Fee-paying account")
    fee: BaseFee = Field(..., description="Base fee per operation offered by the fee-bump envelope, in stroops")
    signers: List[Any] = Field(default_factory=list, description="Signers for the fee source")

    model_config = {"arbitrary_types_allowed": True}


def parse_fee(fee: Any) -> Optional[Decimal]:
    """Parse a fee value into a number, returning None when it cannot be parsed."""
    if isinstance(fee, bool) or fee is None:
        return None
    try:
        value = Decimal(str(fee).strip())
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite():
        return None
    return value


__all__ = [
    "LEDGER_CLOSE_TIME_SECONDS",
    "DEFAULT_AUTH_VALIDITY_LEDGERS",
    "NO_LIMIT",
    "BaseFee",
    "NetworkConfig",
    "TransactionConfig",
    "FeeBumpConfig",
    "parse_fee",
]
