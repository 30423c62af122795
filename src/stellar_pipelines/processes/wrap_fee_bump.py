"""
WrapFeeBump process.

Wraps a plain envelope into a fee-bump envelope paid by another account. The
inner envelope is carried unchanged, signatures included.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from stellar_sdk import FeeBumpTransactionEnvelope, TransactionBuilder, TransactionEnvelope

from ..runtime.config import FeeBumpConfig
from ..runtime.errors import Diagnostic, ErrorTemplate
from .base import Process, ProcessError

logger = logging.getLogger(__name__)


class WrapFeeBumpErrorCode(str, Enum):
    UNEXPECTED_ERROR = "WFB_000"
    MISSING_ARG = "WFB_001"
    ALREADY_FEE_BUMP = "WFB_002"
    NOT_A_TRANSACTION = "WFB_003"
    FAILED_TO_BUILD_FEE_BUMP = "WFB_004"
    FEE_TOO_LOW = "WFB_005"


class WrapFeeBumpError(ProcessError):
    source = "stellar_pipelines.processes.wrap_fee_bump"
    unexpected_code = WrapFeeBumpErrorCode.UNEXPECTED_ERROR
    templates = {
        WrapFeeBumpErrorCode.UNEXPECTED_ERROR: ErrorTemplate("An unexpected error occurred!"),
        WrapFeeBumpErrorCode.MISSING_ARG: ErrorTemplate("Missing required argument!"),
        WrapFeeBumpErrorCode.ALREADY_FEE_BUMP: ErrorTemplate(
            "Transaction is already a fee bump!",
            details="A fee-bump envelope cannot be wrapped again.",
        ),
        WrapFeeBumpErrorCode.NOT_A_TRANSACTION: ErrorTemplate(
            "Not a transaction!",
            details="Only a plain transaction envelope can be wrapped.",
        ),
        WrapFeeBumpErrorCode.FAILED_TO_BUILD_FEE_BUMP: ErrorTemplate(
            "Failed to build fee bump transaction!",
            details="See the 'cause' for more details",
        ),
        WrapFeeBumpErrorCode.FEE_TOO_LOW: ErrorTemplate(
            "Fee too low!",
            diagnostic=Diagnostic(
                root_cause="The fee-bump fee must be strictly greater than the fee of the inner transaction.",
                suggestion="Raise the fee in the fee-bump config.",
            ),
        ),
    }


@dataclass
class WrapFeeBumpInput:
    transaction: Any
    config: FeeBumpConfig
    network_passphrase: str


class WrapFeeBump(Process[WrapFeeBumpInput, FeeBumpTransactionEnvelope]):
    """Wrap a plain envelope in a fee-bump envelope."""

    name = "WrapFeeBump"
    error_class = WrapFeeBumpError

    async def _execute(self, input: WrapFeeBumpInput) -> FeeBumpTransactionEnvelope:
        E = WrapFeeBumpErrorCode
        tx = input.transaction
        config = input.config

        args = {
            "transaction": tx,
            "network_passphrase": input.network_passphrase,
            "config": config,
            "config.source": config.source if config is not None else None,
            "config.fee": config.fee if config is not None else None,
        }
        for arg_name, value in args.items():
            if value is None or value == "":
                raise WrapFeeBumpError(E.MISSING_ARG, input, details=f"Missing required argument: {arg_name}")

        if isinstance(tx, FeeBumpTransactionEnvelope):
            raise WrapFeeBumpError(E.ALREADY_FEE_BUMP, input)
        if not isinstance(tx, TransactionEnvelope):
            raise WrapFeeBumpError(E.NOT_A_TRANSACTION, input, details=f"Got {type(tx).__name__}")

        fee = int(str(config.fee).strip())
        if fee <= tx.transaction.fee:
            raise WrapFeeBumpError(
                E.FEE_TOO_LOW,
                input,
                details=f"The fee-bump fee ({fee}) must be greater than the inner transaction fee ({tx.transaction.fee}).",
            )

        try:
            # The fee is offered per operation, the bump itself counting as one
            fee_bump = TransactionBuilder.build_fee_bump_transaction(config.source, fee, tx, input.network_passphrase)
        except Exception as e:
            raise WrapFeeBumpError(E.FAILED_TO_BUILD_FEE_BUMP, input, details=str(e), cause=e) from e

        logger.debug(
            f"Wrapped transaction {tx.hash_hex()} in a fee bump with base fee {fee} "
            f"(total {fee_bump.transaction.fee})"
        )
        return fee_bump


__all__ = [
    "WrapFeeBumpErrorCode",
    "WrapFeeBumpError",
    "WrapFeeBumpInput",
    "WrapFeeBump",
]
