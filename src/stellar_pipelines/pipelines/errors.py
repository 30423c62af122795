"""
Pipeline errors.

Covers pipeline wiring (run context misuse, plugins for unknown stages),
factory argument validation and connector failures. Errors raised by the
processes inside a pipeline propagate unchanged.
"""

from __future__ import annotations
from enum import Enum

from ..runtime.errors import Diagnostic, ErrorDomain, ErrorTemplate, TemplatedError


class PipelineErrorCode(str, Enum):
    # Engine
    UNEXPECTED_ERROR = "PIPE_000"
    DUPLICATE_METADATA_KEY = "PIPE_001"
    MISSING_METADATA_KEY = "PIPE_002"
    UNKNOWN_STAGE = "PIPE_003"

    # Classic transaction pipeline
    CLASSIC_UNEXPECTED_ERROR = "PIPE_CLTX_000"
    CLASSIC_MISSING_ARG = "PIPE_CLTX_001"
    CLASSIC_MISSING_RPC_URL = "PIPE_CLTX_002"

    # Invoke contract pipeline
    INVOKE_UNEXPECTED_ERROR = "PIPE_INVC_000"
    INVOKE_MISSING_ARG = "PIPE_INVC_001"
    INVOKE_MISSING_RPC_URL = "PIPE_INVC_002"

    # Read from contract pipeline
    READ_UNEXPECTED_ERROR = "PIPE_READ_000"
    READ_MISSING_ARG = "PIPE_READ_001"
    READ_MISSING_RPC_URL = "PIPE_READ_002"

    # Connectors
    NO_RETURN_VALUE = "CON_001"


_MISSING_RPC_URL = ErrorTemplate(
    "Missing RPC URL!",
    diagnostic=Diagnostic(
        root_cause="No RPC client was given and the network config has no rpc_url to create one.",
        suggestion="Pass an rpc client or set rpc_url on the NetworkConfig.",
    ),
)


class PipelineError(TemplatedError):
    """Error raised by the pipeline engine, a pipeline factory or a connector."""

    domain = ErrorDomain.PIPELINES
    source = "stellar_pipelines.pipelines"
    templates = {
        PipelineErrorCode.UNEXPECTED_ERROR: ErrorTemplate(
            "An unexpected error occurred in a pipeline step!", details="See the 'cause' for more details"
        ),
        PipelineErrorCode.DUPLICATE_METADATA_KEY: ErrorTemplate(
            "Metadata key already set!",
            diagnostic=Diagnostic(
                root_cause="Two steps of the same run stored a value under the same key.",
                suggestion="Use a distinct key for every store_metadata step.",
            ),
        ),
        PipelineErrorCode.MISSING_METADATA_KEY: ErrorTemplate(
            "Metadata key not found!",
            diagnostic=Diagnostic(
                root_cause="A step read a key that no earlier step stored.",
                suggestion="Place the store_metadata step before the steps that read it.",
            ),
        ),
        PipelineErrorCode.UNKNOWN_STAGE: ErrorTemplate("Unknown pipeline stage!"),
        PipelineErrorCode.CLASSIC_UNEXPECTED_ERROR: ErrorTemplate(
            "An unexpected error occurred while assembling the 'ClassicTransaction' pipeline!",
            details="See the 'cause' for more details",
        ),
        PipelineErrorCode.CLASSIC_MISSING_ARG: ErrorTemplate("Missing required argument!"),
        PipelineErrorCode.CLASSIC_MISSING_RPC_URL: _MISSING_RPC_URL,
        PipelineErrorCode.INVOKE_UNEXPECTED_ERROR: ErrorTemplate(
            "An unexpected error occurred while assembling the 'InvokeContract' pipeline!",
            details="See the 'cause' for more details",
        ),
        PipelineErrorCode.INVOKE_MISSING_ARG: ErrorTemplate("Missing required argument!"),
        PipelineErrorCode.INVOKE_MISSING_RPC_URL: _MISSING_RPC_URL,
        PipelineErrorCode.READ_UNEXPECTED_ERROR: ErrorTemplate(
            "An unexpected error occurred while assembling the 'ReadFromContract' pipeline!",
            details="See the 'cause' for more details",
        ),
        PipelineErrorCode.READ_MISSING_ARG: ErrorTemplate("Missing required argument!"),
        PipelineErrorCode.READ_MISSING_RPC_URL: _MISSING_RPC_URL,
        PipelineErrorCode.NO_RETURN_VALUE: ErrorTemplate(
            "No return value from simulation!",
            details=(
                "The simulation did not contain a return value. This is normally because "
                "the transaction did not contain a contract invocation operation."
            ),
        ),
    }


__all__ = ["PipelineErrorCode", "PipelineError"]
