"""
Requested transaction preconditions.

``TransactionPreconditions`` is the caller-facing request shape handed to the
BuildTransaction process. It accepts conflicting or out-of-range values; the
process reports them with a typed error before anything reaches the
transaction builder.
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, List, Optional, Union

from pydantic import BaseModel, field_validator
from stellar_sdk import LedgerBounds, TimeBounds

from ..runtime.config import NO_LIMIT


def to_unix_seconds(v: Any) -> int:
    """Parse a point in time from a datetime, ISO string or unix seconds."""
    if v is None:
        return NO_LIMIT
    if isinstance(v, datetime):
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        return int(v.timestamp())
    if isinstance(v, str):
        try:
            return to_unix_seconds(datetime.fromisoformat(v.replace("Z", "+00:00")))
        except ValueError:
            pass
        if v.isdigit():
            return int(v)
        raise ValueError(f"Cannot parse time from: {v}")
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        if v < 0:
            raise ValueError(f"Time must be non-negative, got {v}")
        return int(v)
    raise ValueError(f"Cannot parse time from type: {type(v)}")


class TransactionPreconditions(BaseModel):
    """
    Requested preconditions for a new transaction.

    ``time_bounds`` and ``timeout_seconds`` both constrain the validity window
    and must not be given together. Time bounds may be given as a
    :class:`stellar_sdk.TimeBounds`, a ``(min, max)`` pair or a mapping with
    ``min_time``/``max_time``; each point in time may be a datetime, an ISO
    string or unix seconds.
    """

    time_bounds: Optional[TimeBounds] = None
    timeout_seconds: Optional[int] = None
    ledger_bounds: Optional[LedgerBounds] = None
    # Valid while min_sequence_number <= account sequence < tx sequence
    min_sequence_number: Optional[Union[str, int]] = None
    # Seconds since the account sequence last changed
    min_sequence_age: Optional[int] = None
    # Ledgers since the account sequence last changed
    min_sequence_ledger_gap: Optional[int] = None
    # At most two signer keys that must additionally sign
    extra_signers: Optional[List[str]] = None

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @field_validator("time_bounds", mode="before")
    @classmethod
    def parse_time_bounds(cls, v: Any) -> Any:
        if v is None or isinstance(v, TimeBounds):
            return v
        if isinstance(v, dict):
            v = (v.get("min_time"), v.get("max_time"))
        if isinstance(v, (tuple, list)) and len(v) == 2:
            return TimeBounds(min_time=to_unix_seconds(v[0]), max_time=to_unix_seconds(v[1]))
        raise ValueError(f"Cannot build time bounds from: {v!r}")

    @field_validator("ledger_bounds", mode="before")
    @classmethod
    def parse_ledger_bounds(cls, v: Any) -> Any:
        if v is None or isinstance(v, LedgerBounds):
            return v
        if isinstance(v, dict):
            v = (v.get("min_ledger", NO_LIMIT), v.get("max_ledger", NO_LIMIT))
        if isinstance(v, (tuple, list)) and len(v) == 2:
            return LedgerBounds(min_ledger=int(v[0]), max_ledger=int(v[1]))
        raise ValueError(f"Cannot build ledger bounds from: {v!r}")


__all__ = [
    "to_unix_seconds",
    "TransactionPreconditions",
]
