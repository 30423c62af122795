"""
AssembleTransaction process.

Merges simulation results into a smart-contract transaction: the signed
authorization entries are attached to its invocation, the resource data is
set and the fee is recomputed. The rebuilt envelope keeps the original
sequence number, preconditions and memo.
"""

from __future__ import annotations
import copy
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from stellar_sdk import SorobanDataBuilder, TransactionEnvelope
from stellar_sdk import xdr as stellar_xdr

from ..runtime.errors import Diagnostic, ErrorTemplate
from ..tx.auth import with_auth
from ..tx.helpers import SMART_CONTRACT_OPERATIONS, OperationType, inclusion_fee, operation_type
from .base import Process, ProcessError

logger = logging.getLogger(__name__)


class AssembleTransactionErrorCode(str, Enum):
    UNEXPECTED_ERROR = "ASM_000"
    NOT_SMART_CONTRACT_TRANSACTION = "ASM_001"
    UNSUPPORTED_OPERATION = "ASM_002"
    FAILED_TO_ASSEMBLE_TRANSACTION = "ASM_003"
    FAILED_TO_BUILD_TRANSACTION = "ASM_004"
    FAILED_TO_BUILD_SOROBAN_DATA = "ASM_005"


class AssembleTransactionError(ProcessError):
    source = "stellar_pipelines.processes.assemble_transaction"
    unexpected_code = AssembleTransactionErrorCode.UNEXPECTED_ERROR
    templates = {
        AssembleTransactionErrorCode.UNEXPECTED_ERROR: ErrorTemplate("An unexpected error occurred!"),
        AssembleTransactionErrorCode.NOT_SMART_CONTRACT_TRANSACTION: ErrorTemplate(
            "The transaction is not a smart contract transaction!",
            diagnostic=Diagnostic(
                root_cause="Assembly needs exactly one smart-contract operation in the transaction.",
                suggestion="Check the detected operation types under error.data['operation_types'].",
            ),
        ),
        AssembleTransactionErrorCode.UNSUPPORTED_OPERATION: ErrorTemplate(
            "Unsupported operation!",
            details="Only invoke_host_function operations can be assembled.",
        ),
        AssembleTransactionErrorCode.FAILED_TO_ASSEMBLE_TRANSACTION: ErrorTemplate(
            "Failed to assemble transaction!",
            details="The authorized operation could not be attached to the transaction.",
        ),
        AssembleTransactionErrorCode.FAILED_TO_BUILD_TRANSACTION: ErrorTemplate("Failed to build transaction!"),
        AssembleTransactionErrorCode.FAILED_TO_BUILD_SOROBAN_DATA: ErrorTemplate(
            "Failed to build Soroban data!",
            diagnostic=Diagnostic(
                root_cause="The simulated resource data or resource fee is invalid.",
                suggestion="Pass the transaction data and min resource fee returned by a successful simulation.",
            ),
        ),
    }


@dataclass
class AssembleTransactionInput:
    """
    Input of the AssembleTransaction process.

    ``auth_entries`` replaces the invocation's authorizations when given;
    ``soroban_data`` defaults to the data already on the transaction.
    """

    transaction: TransactionEnvelope
    resource_fee: int
    auth_entries: Optional[List[stellar_xdr.SorobanAuthorizationEntry]] = None
    soroban_data: Optional[Union[stellar_xdr.SorobanTransactionData, str]] = None


class AssembleTransaction(Process[AssembleTransactionInput, TransactionEnvelope]):
    """Assemble a simulated smart-contract transaction."""

    name = "AssembleTransaction"
    error_class = AssembleTransactionError

    async def _execute(self, input: AssembleTransactionInput) -> TransactionEnvelope:
        E = AssembleTransactionErrorCode
        tx = input.transaction.transaction

        op_types = [operation_type(op) for op in tx.operations]
        if len(op_types) != 1 or op_types[0] not in SMART_CONTRACT_OPERATIONS:
            raise AssembleTransactionError(
                E.NOT_SMART_CONTRACT_TRANSACTION,
                input,
                details=f"Detected operation types: {[t.name for t in op_types]}",
                data={"operation_types": op_types},
            )
        if op_types[0] != OperationType.INVOKE_HOST_FUNCTION:
            raise AssembleTransactionError(E.UNSUPPORTED_OPERATION, input, data={"operation_types": op_types})

        try:
            resource_fee = int(input.resource_fee)
            if resource_fee < 0:
                raise ValueError(f"resource_fee must be non-negative, got {resource_fee}")
            base_data = input.soroban_data if input.soroban_data is not None else tx.soroban_data
            builder = SorobanDataBuilder.from_xdr(base_data) if base_data is not None else SorobanDataBuilder()
            soroban_data = builder.set_resource_fee(resource_fee).build()
        except Exception as e:
            raise AssembleTransactionError(E.FAILED_TO_BUILD_SOROBAN_DATA, input, details=str(e), cause=e) from e

        offered_inclusion_fee = inclusion_fee(tx)

        try:
            assembled = copy.deepcopy(input.transaction)
            assembled.signatures = []
            if input.auth_entries is not None:
                assembled.transaction.operations = [with_auth(tx.operations[0], input.auth_entries)]
        except Exception as e:
            raise AssembleTransactionError(E.FAILED_TO_ASSEMBLE_TRANSACTION, input, details=str(e), cause=e) from e

        try:
            assembled.transaction.soroban_data = soroban_data
            assembled.transaction.fee = offered_inclusion_fee + resource_fee
            # The fee field is a uint32; an overflow only shows up on encoding
            assembled.to_xdr()
        except Exception as e:
            raise AssembleTransactionError(E.FAILED_TO_BUILD_TRANSACTION, input, details=str(e), cause=e) from e

        logger.debug(
            f"Assembled transaction sequence={assembled.transaction.sequence} "
            f"fee={assembled.transaction.fee} (inclusion {offered_inclusion_fee} + resource {resource_fee})"
        )
        return assembled


__all__ = [
    "AssembleTransactionErrorCode",
    "AssembleTransactionError",
    "AssembleTransactionInput",
    "AssembleTransaction",
]
