"""
RPC collaborator interface and response models.

Statuses are kept as plain strings on the response models so that a value
introduced by a newer server still parses; the processes compare them against
the closed enums below and treat anything else as unexpected.

XDR fields arrive as base64 text and are decoded into ``stellar_sdk.xdr``
objects while the response is validated.
"""

from __future__ import annotations
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel, Field, field_validator, model_validator
from stellar_sdk import Account
from stellar_sdk import xdr as stellar_xdr

from ..tx.helpers import Envelope


class SendTransactionStatus(str, Enum):
    PENDING = "PENDING"
    DUPLICATE = "DUPLICATE"
    TRY_AGAIN_LATER = "TRY_AGAIN_LATER"
    ERROR = "ERROR"


class GetTransactionStatus(str, Enum):
    SUCCESS = "SUCCESS"
    NOT_FOUND = "NOT_FOUND"
    FAILED = "FAILED"


def _decode(xdr_type: Any, value: Any) -> Any:
    if not isinstance(value, str):
        return value
    try:
        return xdr_type.from_xdr(value)
    except Exception as e:
        raise ValueError(f"Invalid {xdr_type.__name__} XDR: {e}") from e


_XDR_MODEL_CONFIG = {"populate_by_name": True, "arbitrary_types_allowed": True}


class LatestLedgerResponse(BaseModel):
    id: str = ""
    sequence: int
    protocol_version: Optional[int] = Field(None, alias="protocolVersion")

    model_config = {"populate_by_name": True}


class SimulationHostFunctionResult(BaseModel):
    auth: List[stellar_xdr.SorobanAuthorizationEntry] = Field(default_factory=list)
    retval: Optional[stellar_xdr.SCVal] = Field(None, alias="xdr")

    model_config = _XDR_MODEL_CONFIG

    @field_validator("auth", mode="before")
    @classmethod
    def decode_auth(cls, v: Any) -> Any:
        if v is None:
            return []
        return [_decode(stellar_xdr.SorobanAuthorizationEntry, entry) for entry in v]

    @field_validator("retval", mode="before")
    @classmethod
    def decode_retval(cls, v: Any) -> Any:
        return _decode(stellar_xdr.SCVal, v)


class RestorePreamble(BaseModel):
    min_resource_fee: int = Field(0, alias="minResourceFee")
    transaction_data: stellar_xdr.SorobanTransactionData = Field(..., alias="transactionData")

    model_config = _XDR_MODEL_CONFIG

    @field_validator("transaction_data", mode="before")
    @classmethod
    def decode_transaction_data(cls, v: Any) -> Any:
        return _decode(stellar_xdr.SorobanTransactionData, v)


class SimulateTransactionResponse(BaseModel):
    """
    Raw simulation response.

    Exactly one shape is expected: an ``error`` response, a success response
    carrying ``transaction_data``, or a success response that additionally
    carries a ``restore_preamble`` because archived entries must be restored.
    """

    latest_ledger: int = Field(0, alias="latestLedger")
    error: Optional[str] = None
    min_resource_fee: Optional[int] = Field(None, alias="minResourceFee")
    transaction_data: Optional[stellar_xdr.SorobanTransactionData] = Field(None, alias="transactionData")
    results: List[SimulationHostFunctionResult] = Field(default_factory=list)
    restore_preamble: Optional[RestorePreamble] = Field(None, alias="restorePreamble")
    events: List[Any] = Field(default_factory=list)

    model_config = _XDR_MODEL_CONFIG

    @field_validator("transaction_data", mode="before")
    @classmethod
    def decode_transaction_data(cls, v: Any) -> Any:
        return _decode(stellar_xdr.SorobanTransactionData, v)

    @field_validator("results", mode="before")
    @classmethod
    def default_results(cls, v: Any) -> Any:
        return v or []

    @property
    def result(self) -> Optional[SimulationHostFunctionResult]:
        return self.results[0] if self.results else None


def is_simulation_error(response: SimulateTransactionResponse) -> bool:
    return response.error is not None


def is_simulation_success(response: SimulateTransactionResponse) -> bool:
    return response.error is None and response.transaction_data is not None


def is_simulation_restore(response: SimulateTransactionResponse) -> bool:
    return is_simulation_success(response) and response.restore_preamble is not None


class SendTransactionResponse(BaseModel):
    status: str
    hash: str
    latest_ledger: Optional[int] = Field(None, alias="latestLedger")
    error_result: Optional[stellar_xdr.TransactionResult] = Field(None, alias="errorResultXdr")

    model_config = _XDR_MODEL_CONFIG

    @field_validator("error_result", mode="before")
    @classmethod
    def decode_error_result(cls, v: Any) -> Any:
        return _decode(stellar_xdr.TransactionResult, v)


def meta_return_value(meta: stellar_xdr.TransactionMeta) -> Optional[stellar_xdr.SCVal]:
    """Contract return value recorded in transaction meta, None for classic transactions."""
    body = meta.v4 if meta.v == 4 else meta.v3 if meta.v == 3 else None
    if body is None or body.soroban_meta is None:
        return None
    return body.soroban_meta.return_value


class GetTransactionResponse(BaseModel):
    """
    Status of a submitted transaction, with the outcome once applied.

    ``return_value`` is read from ``resultMetaXdr`` when the server does not
    report it directly.
    """

    status: str
    ledger: Optional[int] = None
    latest_ledger: Optional[int] = Field(None, alias="latestLedger")
    created_at: Optional[int] = Field(None, alias="createdAt")
    return_value: Optional[stellar_xdr.SCVal] = Field(None, alias="returnValue")
    result: Optional[stellar_xdr.TransactionResult] = Field(None, alias="resultXdr")
    result_meta: Optional[stellar_xdr.TransactionMeta] = Field(None, alias="resultMetaXdr")
    raw: Dict[str, Any] = Field(default_factory=dict, exclude=True)

    model_config = _XDR_MODEL_CONFIG

    @field_validator("created_at", mode="before")
    @classmethod
    def parse_created_at(cls, v: Any) -> Any:
        if isinstance(v, str) and v.isdigit():
            return int(v)
        return v

    @field_validator("return_value", mode="before")
    @classmethod
    def decode_return_value(cls, v: Any) -> Any:
        return _decode(stellar_xdr.SCVal, v)

    @field_validator("result", mode="before")
    @classmethod
    def decode_result(cls, v: Any) -> Any:
        return _decode(stellar_xdr.TransactionResult, v)

    @field_validator("result_meta", mode="before")
    @classmethod
    def decode_result_meta(cls, v: Any) -> Any:
        return _decode(stellar_xdr.TransactionMeta, v)

    @model_validator(mode="after")
    def fill_return_value(self) -> GetTransactionResponse:
        if self.return_value is None and self.result_meta is not None:
            self.return_value = meta_return_value(self.result_meta)
        return self


class RpcClient(Protocol):
    """Remote ledger access used by the processes."""

    async def load_account(self, address: str) -> Account: ...

    async def simulate_transaction(self, transaction: Envelope) -> SimulateTransactionResponse: ...

    async def send_transaction(self, envelope: Envelope) -> SendTransactionResponse: ...

    async def get_transaction(self, transaction_hash: str) -> GetTransactionResponse: ...

    async def get_latest_ledger(self) -> LatestLedgerResponse: ...


__all__ = [
    "SendTransactionStatus",
    "GetTransactionStatus",
    "LatestLedgerResponse",
    "SimulationHostFunctionResult",
    "RestorePreamble",
    "SimulateTransactionResponse",
    "is_simulation_error",
    "is_simulation_success",
    "is_simulation_restore",
    "SendTransactionResponse",
    "meta_return_value",
    "GetTransactionResponse",
    "RpcClient",
]
