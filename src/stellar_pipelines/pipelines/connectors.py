"""
Pipeline connectors.

Transform steps that turn one stage's output into the next stage's input,
pulling earlier values from the run context where the next stage needs more
than its predecessor produced.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, List, Optional

from stellar_sdk import TransactionEnvelope
from stellar_sdk import xdr as stellar_xdr
from stellar_sdk.operation import Operation

from ..processes.assemble_transaction import AssembleTransactionInput
from ..processes.envelope_signing_requirements import EnvelopeSigningRequirementsInput
from ..processes.send_transaction import SendTransactionInput, SendTransactionOptions, SendTransactionOutput
from ..processes.sign_auth_entries import LedgerValidity, SignAuthEntriesInput
from ..processes.sign_envelope import SignEnvelopeInput
from ..processes.simulate_transaction import SimulateTransactionInput, SimulateTransactionOutput
from ..processes.build_transaction import BuildTransactionInput
from ..rpc.types import GetTransactionResponse, RpcClient
from ..runtime.config import NO_LIMIT, TransactionConfig
from ..signers.requirements import SignatureRequirement
from ..tx.preconditions import TransactionPreconditions
from .engine import RunContext, Transformer
from .errors import PipelineError, PipelineErrorCode


@dataclass
class TransactionRequest:
    """Caller input of the classic and invoke pipelines."""

    operations: List[Operation]
    config: TransactionConfig


@dataclass
class TransactionResult:
    """Output of the classic pipeline."""

    hash: str
    response: GetTransactionResponse


def input_to_build(rpc: RpcClient, network_passphrase: str) -> Transformer:
    """Map a :class:`TransactionRequest` to a BuildTransaction input."""

    def _connect(request: TransactionRequest, context: RunContext) -> BuildTransactionInput:
        config = request.config
        preconditions = None
        if config.timeout != NO_LIMIT:
            preconditions = TransactionPreconditions(timeout_seconds=config.timeout)
        return BuildTransactionInput(
            operations=list(request.operations),
            source=config.source,
            base_fee=config.fee,
            network_passphrase=network_passphrase,
            rpc=rpc,
            preconditions=preconditions,
        )

    return Transformer("input_to_build", _connect)


def build_to_simulate(rpc: RpcClient) -> Transformer:
    def _connect(transaction: TransactionEnvelope, context: RunContext) -> SimulateTransactionInput:
        return SimulateTransactionInput(transaction=transaction, rpc=rpc)

    return Transformer("build_to_simulate", _connect)


def to_envelope_signing_requirements() -> Transformer:
    """Hand the current envelope to EnvelopeSigningRequirements."""

    def _connect(transaction: TransactionEnvelope, context: RunContext) -> EnvelopeSigningRequirementsInput:
        return EnvelopeSigningRequirementsInput(transaction=transaction)

    return Transformer("to_envelope_signing_requirements", _connect)


def simulate_to_sign_auth_entries(
    input_key: str,
    rpc: RpcClient,
    network_passphrase: str,
    validity: Optional[LedgerValidity],
) -> Transformer:
    def _connect(simulation: SimulateTransactionOutput, context: RunContext) -> SignAuthEntriesInput:
        request: TransactionRequest = context.get(input_key)
        return SignAuthEntriesInput(
            auth=list(simulation.auth),
            signers=list(request.config.signers or []),
            network_passphrase=network_passphrase,
            rpc=rpc,
            validity=validity,
        )

    return Transformer("simulate_to_sign_auth_entries", _connect)


def sign_auth_entries_to_assemble(build_key: str, simulate_key: str) -> Transformer:
    def _connect(
        auth_entries: List[stellar_xdr.SorobanAuthorizationEntry], context: RunContext
    ) -> AssembleTransactionInput:
        transaction: TransactionEnvelope = context.get(build_key)
        simulation: SimulateTransactionOutput = context.get(simulate_key)
        return AssembleTransactionInput(
            transaction=transaction,
            resource_fee=int(simulation.min_resource_fee),
            auth_entries=auth_entries,
            soroban_data=simulation.transaction_data,
        )

    return Transformer("sign_auth_entries_to_assemble", _connect)


def requirements_to_sign_envelope(transaction_key: str, input_key: str) -> Transformer:
    """Pair the requirements with the stored envelope and the caller's signers."""

    def _connect(requirements: List[SignatureRequirement], context: RunContext) -> SignEnvelopeInput:
        request: TransactionRequest = context.get(input_key)
        return SignEnvelopeInput(
            transaction=context.get(transaction_key),
            signature_requirements=requirements,
            signers=list(request.config.signers or []),
        )

    return Transformer("requirements_to_sign_envelope", _connect)


def sign_envelope_to_send_transaction(rpc: RpcClient, options: Optional[SendTransactionOptions] = None) -> Transformer:
    def _connect(transaction: Any, context: RunContext) -> SendTransactionInput:
        return SendTransactionInput(transaction=transaction, rpc=rpc, options=options)

    return Transformer("sign_envelope_to_send_transaction", _connect)


def send_transaction_to_result() -> Transformer:
    def _connect(output: SendTransactionOutput, context: RunContext) -> TransactionResult:
        return TransactionResult(hash=output.hash, response=output.response)

    return Transformer("send_transaction_to_result", _connect)


def simulate_to_return_value() -> Transformer:
    """Extract the host function's return value from a simulation."""

    def _connect(simulation: SimulateTransactionOutput, context: RunContext) -> Any:
        # A simulation carries no result unless the transaction invokes a contract
        if simulation.response is None or simulation.response.result is None:
            raise PipelineError(PipelineErrorCode.NO_RETURN_VALUE, data={"simulation": simulation})
        return simulation.return_value

    return Transformer("simulate_to_return_value", _connect)


__all__ = [
    "TransactionRequest",
    "TransactionResult",
    "input_to_build",
    "build_to_simulate",
    "to_envelope_signing_requirements",
    "simulate_to_sign_auth_entries",
    "sign_auth_entries_to_assemble",
    "requirements_to_sign_envelope",
    "sign_envelope_to_send_transaction",
    "send_transaction_to_result",
    "simulate_to_return_value",
]
