"""
BuildTransaction process.

Produces an unsigned envelope from operations, the source account state and
the requested preconditions.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from stellar_sdk import Account, Memo, TransactionBuilder, TransactionEnvelope
from stellar_sdk import xdr as stellar_xdr
from stellar_sdk.operation import Operation

from ..runtime.address import SourceAddress, to_base_account
from ..runtime.config import NO_LIMIT, BaseFee, parse_fee
from ..runtime.errors import Diagnostic, ErrorTemplate
from ..rpc.types import RpcClient
from ..tx.preconditions import TransactionPreconditions
from .base import Process, ProcessError

logger = logging.getLogger(__name__)

_FEES_DOC = "https://developers.stellar.org/docs/learn/fundamentals/fees-resource-limits-metering"
MAX_EXTRA_SIGNERS = 2


class BuildTransactionErrorCode(str, Enum):
    UNEXPECTED_ERROR = "BTX_000"
    INVALID_BASE_FEE = "BTX_001"
    BASE_FEE_TOO_LOW = "BTX_002"
    COULD_NOT_LOAD_SOURCE_ACCOUNT = "BTX_003"
    COULD_NOT_CREATE_TRANSACTION_BUILDER = "BTX_004"
    COULD_NOT_SET_SOROBAN_DATA = "BTX_005"
    COULD_NOT_BUILD_TRANSACTION = "BTX_006"
    COULD_NOT_INITIALIZE_ACCOUNT_WITH_SEQUENCE = "BTX_007"
    CONFLICTING_TIME_CONSTRAINTS = "BTX_008"
    FAILED_TO_SET_PRECONDITIONS = "BTX_009"
    NO_OPERATIONS_PROVIDED = "BTX_010"
    RPC_REQUIRED_TO_LOAD_ACCOUNT = "BTX_011"


class BuildTransactionError(ProcessError):
    source = "stellar_pipelines.processes.build_transaction"
    unexpected_code = BuildTransactionErrorCode.UNEXPECTED_ERROR
    templates = {
        BuildTransactionErrorCode.UNEXPECTED_ERROR: ErrorTemplate("An unexpected error occurred!"),
        BuildTransactionErrorCode.INVALID_BASE_FEE: ErrorTemplate(
            "Invalid Base Fee!",
            diagnostic=Diagnostic(
                root_cause="The base fee provided could not be converted to a valid number.",
                suggestion="Provide a valid base fee as a number string (e.g., '100', '1000').",
                materials=(_FEES_DOC,),
            ),
        ),
        BuildTransactionErrorCode.BASE_FEE_TOO_LOW: ErrorTemplate(
            "Base fee is too low!",
            diagnostic=Diagnostic(
                root_cause="The base fee provided is less than or equal to 0.",
                suggestion="Provide a base fee greater than 0, ideally at least the network minimum of 100 stroops.",
                materials=(_FEES_DOC,),
            ),
        ),
        BuildTransactionErrorCode.COULD_NOT_LOAD_SOURCE_ACCOUNT: ErrorTemplate(
            "Could not load source account!",
            diagnostic=Diagnostic(
                root_cause="The account could not be fetched from the RPC. It may not exist yet or may have been merged.",
                suggestion="Ensure the account exists; on test networks fund it with friendbot. Check the cause for details.",
            ),
        ),
        BuildTransactionErrorCode.COULD_NOT_CREATE_TRANSACTION_BUILDER: ErrorTemplate(
            "Could not create transaction builder!"
        ),
        BuildTransactionErrorCode.COULD_NOT_SET_SOROBAN_DATA: ErrorTemplate("Could not set Soroban data!"),
        BuildTransactionErrorCode.COULD_NOT_BUILD_TRANSACTION: ErrorTemplate(
            "Could not build transaction!",
            details="Some inner parameters of the transaction are invalid.",
        ),
        BuildTransactionErrorCode.COULD_NOT_INITIALIZE_ACCOUNT_WITH_SEQUENCE: ErrorTemplate(
            "Could not initialize account with provided sequence!",
            diagnostic=Diagnostic(
                root_cause="The sequence number could not be parsed into a valid integer.",
                suggestion="Provide the sequence as an integer or a decimal string (e.g., '12345678901234567890').",
            ),
        ),
        BuildTransactionErrorCode.CONFLICTING_TIME_CONSTRAINTS: ErrorTemplate(
            "Conflicting time constraints!",
            diagnostic=Diagnostic(
                root_cause="Both explicit time bounds and a relative timeout were provided.",
                suggestion="Provide either time_bounds or timeout_seconds, not both.",
            ),
        ),
        BuildTransactionErrorCode.FAILED_TO_SET_PRECONDITIONS: ErrorTemplate("Failed to set preconditions!"),
        BuildTransactionErrorCode.NO_OPERATIONS_PROVIDED: ErrorTemplate(
            "No operations provided!",
            diagnostic=Diagnostic(
                root_cause="A transaction must contain at least one operation.",
                suggestion="Add at least one operation to the input.",
            ),
        ),
        BuildTransactionErrorCode.RPC_REQUIRED_TO_LOAD_ACCOUNT: ErrorTemplate(
            "RPC is required to load the source account!",
            diagnostic=Diagnostic(
                root_cause="No sequence number was provided, so the account must be loaded, but no RPC was given.",
                suggestion="Provide either a sequence number or an RPC client.",
            ),
        ),
    }


@dataclass
class BuildTransactionInput:
    """
    Input of the BuildTransaction process.

    When ``sequence`` is None the current sequence is loaded through ``rpc``.
    """

    operations: List[Operation]
    source: SourceAddress
    base_fee: BaseFee
    network_passphrase: str
    sequence: Optional[Union[str, int]] = None
    rpc: Optional[RpcClient] = None
    soroban_data: Optional[Union[stellar_xdr.SorobanTransactionData, str]] = None
    memo: Optional[Memo] = None
    preconditions: Optional[TransactionPreconditions] = None


class BuildTransaction(Process[BuildTransactionInput, TransactionEnvelope]):
    """Build an unsigned envelope."""

    name = "BuildTransaction"
    error_class = BuildTransactionError

    async def _execute(self, input: BuildTransactionInput) -> TransactionEnvelope:
        E = BuildTransactionErrorCode

        fee = parse_fee(input.base_fee)
        if fee is None:
            raise BuildTransactionError(
                E.INVALID_BASE_FEE, input, details=f"The provided base fee '{input.base_fee}' couldn't be parsed."
            )
        if fee <= 0:
            raise BuildTransactionError(
                E.BASE_FEE_TOO_LOW, input, details=f"The provided base fee '{input.base_fee}' must be greater than 0."
            )

        if not input.operations:
            raise BuildTransactionError(E.NO_OPERATIONS_PROVIDED, input)

        account = await self._load_account(input)

        try:
            builder = TransactionBuilder(account, input.network_passphrase, int(fee))
        except Exception as e:
            raise BuildTransactionError(E.COULD_NOT_CREATE_TRANSACTION_BUILDER, input, details=str(e), cause=e) from e

        if input.soroban_data is not None:
            try:
                builder.set_soroban_data(input.soroban_data)
            except Exception as e:
                raise BuildTransactionError(E.COULD_NOT_SET_SOROBAN_DATA, input, details=str(e), cause=e) from e

        preconditions = input.preconditions
        if preconditions is not None:
            if preconditions.time_bounds is not None and preconditions.timeout_seconds is not None:
                raise BuildTransactionError(E.CONFLICTING_TIME_CONSTRAINTS, input)
            try:
                _apply_preconditions(builder, preconditions)
            except Exception as e:
                raise BuildTransactionError(E.FAILED_TO_SET_PRECONDITIONS, input, details=str(e), cause=e) from e

        if preconditions is None or (preconditions.time_bounds is None and preconditions.timeout_seconds is None):
            # Every envelope carries an explicit time policy
            builder.add_time_bounds(NO_LIMIT, NO_LIMIT)

        if input.memo is not None:
            builder.add_memo(input.memo)

        for operation in input.operations:
            builder.append_operation(operation)

        try:
            tx = builder.build()
        except Exception as e:
            raise BuildTransactionError(E.COULD_NOT_BUILD_TRANSACTION, input, cause=e) from e

        logger.info(f"Built transaction sequence={tx.transaction.sequence} fee={tx.transaction.fee}")
        return tx

    async def _load_account(self, input: BuildTransactionInput) -> Account:
        E = BuildTransactionErrorCode

        if input.sequence is not None:
            try:
                return Account(input.source, int(input.sequence))
            except Exception as e:
                raise BuildTransactionError(
                    E.COULD_NOT_INITIALIZE_ACCOUNT_WITH_SEQUENCE,
                    input,
                    details=f"Account '{input.source}' could not be initialized with sequence '{input.sequence}'",
                    cause=e,
                ) from e

        if input.rpc is None:
            raise BuildTransactionError(E.RPC_REQUIRED_TO_LOAD_ACCOUNT, input)

        try:
            loaded = await input.rpc.load_account(to_base_account(input.source))
            # Keep a muxed source as given; only the sequence comes from the ledger
            return Account(input.source, loaded.sequence)
        except Exception as e:
            raise BuildTransactionError(
                E.COULD_NOT_LOAD_SOURCE_ACCOUNT,
                input,
                details=f"The source account '{input.source}' could not be loaded.",
                cause=e,
            ) from e


def _apply_preconditions(builder: TransactionBuilder, preconditions: TransactionPreconditions) -> None:
    if preconditions.min_sequence_number is not None:
        builder.set_min_sequence_number(int(preconditions.min_sequence_number))

    if preconditions.min_sequence_age:
        builder.set_min_sequence_age(preconditions.min_sequence_age)

    if preconditions.min_sequence_ledger_gap:
        builder.set_min_sequence_ledger_gap(preconditions.min_sequence_ledger_gap)

    extra_signers = preconditions.extra_signers or []
    if len(extra_signers) > MAX_EXTRA_SIGNERS:
        raise ValueError(f"At most {MAX_EXTRA_SIGNERS} extra signers are allowed, got {len(extra_signers)}")
    for signer_key in extra_signers:
        builder.add_extra_signer(signer_key)

    if preconditions.ledger_bounds is not None:
        bounds = preconditions.ledger_bounds
        builder.set_ledger_bounds(bounds.min_ledger or NO_LIMIT, bounds.max_ledger or NO_LIMIT)

    if preconditions.time_bounds is not None:
        bounds = preconditions.time_bounds
        builder.add_time_bounds(bounds.min_time or NO_LIMIT, bounds.max_time or NO_LIMIT)

    if preconditions.timeout_seconds is not None:
        if preconditions.timeout_seconds < 0:
            raise ValueError(f"Timeout must be non-negative, got {preconditions.timeout_seconds}")
        if preconditions.timeout_seconds == NO_LIMIT:
            builder.add_time_bounds(NO_LIMIT, NO_LIMIT)
        else:
            builder.set_timeout(preconditions.timeout_seconds)


__all__ = [
    "BuildTransactionErrorCode",
    "BuildTransactionError",
    "BuildTransactionInput",
    "BuildTransaction",
]
