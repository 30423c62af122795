"""
SimulateTransaction process.

Dry-runs a smart-contract transaction against the network and classifies the
outcome as success, restore-required or failure.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from stellar_sdk import TransactionEnvelope
from stellar_sdk import xdr as stellar_xdr

from ..runtime.errors import Diagnostic, ErrorTemplate
from ..rpc.types import (
    RestorePreamble,
    RpcClient,
    SimulateTransactionResponse,
    is_simulation_error,
    is_simulation_restore,
    is_simulation_success,
)
from .base import Process, ProcessError

logger = logging.getLogger(__name__)


class SimulateTransactionErrorCode(str, Enum):
    UNEXPECTED_ERROR = "SIM_000"
    SIMULATION_FAILED = "SIM_001"
    COULD_NOT_SIMULATE_TRANSACTION = "SIM_002"
    SIMULATION_RESULT_NOT_VERIFIED = "SIM_003"


class SimulateTransactionError(ProcessError):
    """
    SimulateTransaction failure.

    For ``SIMULATION_FAILED`` the full simulation response is available under
    ``error.data["response"]`` so callers can inspect the failure reason.
    """

    source = "stellar_pipelines.processes.simulate_transaction"
    unexpected_code = SimulateTransactionErrorCode.UNEXPECTED_ERROR
    templates = {
        SimulateTransactionErrorCode.UNEXPECTED_ERROR: ErrorTemplate("An unexpected error occurred!"),
        SimulateTransactionErrorCode.SIMULATION_FAILED: ErrorTemplate(
            "Transaction simulation failed!",
            diagnostic=Diagnostic(
                root_cause="The network accepted the simulation request but the contract execution would fail.",
                suggestion="Inspect the simulation error and events in error.data['response'].",
            ),
        ),
        SimulateTransactionErrorCode.COULD_NOT_SIMULATE_TRANSACTION: ErrorTemplate(
            "The transaction could not be simulated!",
            diagnostic=Diagnostic(
                root_cause="The RPC call to simulate the transaction failed before a result was produced.",
                suggestion="Check the RPC availability and that the envelope is well formed.",
            ),
        ),
        SimulateTransactionErrorCode.SIMULATION_RESULT_NOT_VERIFIED: ErrorTemplate(
            "The transaction simulation result could not be verified!",
            diagnostic=Diagnostic(
                root_cause="The simulation response is neither a success, a restore nor an error response.",
                suggestion="Check that the RPC server version is supported.",
            ),
        ),
    }

    @property
    def response(self) -> Optional[SimulateTransactionResponse]:
        return self.data.get("response")


class SimulationKind(str, Enum):
    SUCCESS = "success"
    RESTORE = "restore"


@dataclass
class SimulateTransactionInput:
    transaction: TransactionEnvelope
    rpc: RpcClient


@dataclass
class SimulateTransactionOutput:
    """Resources, fee and authorizations estimated by a successful simulation."""

    kind: SimulationKind
    transaction_data: stellar_xdr.SorobanTransactionData
    min_resource_fee: int
    latest_ledger: int
    auth: List[stellar_xdr.SorobanAuthorizationEntry] = field(default_factory=list)
    return_value: Optional[stellar_xdr.SCVal] = None
    restore_preamble: Optional[RestorePreamble] = None
    response: Optional[SimulateTransactionResponse] = None


class SimulateTransaction(Process[SimulateTransactionInput, SimulateTransactionOutput]):
    """Simulate a transaction."""

    name = "SimulateTransaction"
    error_class = SimulateTransactionError

    async def _execute(self, input: SimulateTransactionInput) -> SimulateTransactionOutput:
        E = SimulateTransactionErrorCode

        try:
            response = await input.rpc.simulate_transaction(input.transaction)
        except Exception as e:
            raise SimulateTransactionError(E.COULD_NOT_SIMULATE_TRANSACTION, input, details=str(e), cause=e) from e

        if is_simulation_error(response):
            raise SimulateTransactionError(
                E.SIMULATION_FAILED, input, details=response.error, data={"response": response}
            )

        if is_simulation_restore(response):
            logger.debug(f"Simulation requires restoring archived entries (latest ledger {response.latest_ledger})")
            return _to_output(SimulationKind.RESTORE, response)

        if is_simulation_success(response):
            return _to_output(SimulationKind.SUCCESS, response)

        raise SimulateTransactionError(E.SIMULATION_RESULT_NOT_VERIFIED, input, data={"response": response})


def _to_output(kind: SimulationKind, response: SimulateTransactionResponse) -> SimulateTransactionOutput:
    result = response.result
    return SimulateTransactionOutput(
        kind=kind,
        transaction_data=response.transaction_data,
        min_resource_fee=response.min_resource_fee or 0,
        latest_ledger=response.latest_ledger,
        auth=list(result.auth) if result else [],
        return_value=result.retval if result else None,
        restore_preamble=response.restore_preamble,
        response=response,
    )


__all__ = [
    "SimulateTransactionErrorCode",
    "SimulateTransactionError",
    "SimulationKind",
    "SimulateTransactionInput",
    "SimulateTransactionOutput",
    "SimulateTransaction",
]
