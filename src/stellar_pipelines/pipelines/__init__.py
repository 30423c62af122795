"""
Pipeline engine and the pre-built pipelines.
"""

from .errors import PipelineErrorCode, PipelineError
from .engine import RunContext, TransformFn, Transformer, Step, store_metadata, Pipeline
from .connectors import (
    TransactionRequest, TransactionResult,
    input_to_build, build_to_simulate, to_envelope_signing_requirements,
    simulate_to_sign_auth_entries, sign_auth_entries_to_assemble,
    requirements_to_sign_envelope, sign_envelope_to_send_transaction,
    send_transaction_to_result, simulate_to_return_value,
)
from .classic import create_classic_transaction_pipeline
from .invoke import create_invoke_contract_pipeline
from .read import ReadRequest, create_read_from_contract_pipeline

__all__ = [
    "PipelineErrorCode", "PipelineError",
    "RunContext", "TransformFn", "Transformer", "Step", "store_metadata", "Pipeline",
    "TransactionRequest", "TransactionResult",
    "input_to_build", "build_to_simulate", "to_envelope_signing_requirements",
    "simulate_to_sign_auth_entries", "sign_auth_entries_to_assemble",
    "requirements_to_sign_envelope", "sign_envelope_to_send_transaction",
    "send_transaction_to_result", "simulate_to_return_value",
    "create_classic_transaction_pipeline", "create_invoke_contract_pipeline",
    "ReadRequest", "create_read_from_contract_pipeline",
]
