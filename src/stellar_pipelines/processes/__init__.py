"""
Pipeline stages.

Each process owns one error class and one closed enum of error codes.
"""

from .base import ProcessError, Plugin, PluginHook, apply_hook, Process
from .build_transaction import (
    BuildTransactionErrorCode, BuildTransactionError, BuildTransactionInput, BuildTransaction,
)
from .simulate_transaction import (
    SimulateTransactionErrorCode, SimulateTransactionError, SimulationKind,
    SimulateTransactionInput, SimulateTransactionOutput, SimulateTransaction,
)
from .envelope_signing_requirements import (
    EnvelopeSigningRequirementsErrorCode, EnvelopeSigningRequirementsError,
    EnvelopeSigningRequirementsInput, fee_bump_requirements, transaction_requirements,
    EnvelopeSigningRequirements,
)
from .sign_auth_entries import (
    SignAuthEntriesErrorCode, SignAuthEntriesError, ValidUntilLedger, ValidForLedgers,
    ValidForSeconds, LedgerValidity, SignAuthEntriesInput, SignAuthEntries,
)
from .assemble_transaction import (
    AssembleTransactionErrorCode, AssembleTransactionError, AssembleTransactionInput, AssembleTransaction,
)
from .sign_envelope import SignEnvelopeErrorCode, SignEnvelopeError, SignEnvelopeInput, SignEnvelope
from .send_transaction import (
    MIN_TIMEOUT_IN_SECONDS, MIN_WAIT_INTERVAL_IN_MS, DEFAULT_TIMEOUT_IN_SECONDS,
    SendTransactionErrorCode, SendTransactionError, SendTransactionOptions,
    SendTransactionInput, SendTransactionOutput, SendTransaction,
)
from .wrap_fee_bump import WrapFeeBumpErrorCode, WrapFeeBumpError, WrapFeeBumpInput, WrapFeeBump

__all__ = [
    "ProcessError", "Plugin", "PluginHook", "apply_hook", "Process",
    "BuildTransactionErrorCode", "BuildTransactionError", "BuildTransactionInput", "BuildTransaction",
    "SimulateTransactionErrorCode", "SimulateTransactionError", "SimulationKind",
    "SimulateTransactionInput", "SimulateTransactionOutput", "SimulateTransaction",
    "EnvelopeSigningRequirementsErrorCode", "EnvelopeSigningRequirementsError",
    "EnvelopeSigningRequirementsInput", "fee_bump_requirements", "transaction_requirements",
    "EnvelopeSigningRequirements",
    "SignAuthEntriesErrorCode", "SignAuthEntriesError", "ValidUntilLedger", "ValidForLedgers",
    "ValidForSeconds", "LedgerValidity", "SignAuthEntriesInput", "SignAuthEntries",
    "AssembleTransactionErrorCode", "AssembleTransactionError", "AssembleTransactionInput", "AssembleTransaction",
    "SignEnvelopeErrorCode", "SignEnvelopeError", "SignEnvelopeInput", "SignEnvelope",
    "MIN_TIMEOUT_IN_SECONDS", "MIN_WAIT_INTERVAL_IN_MS", "DEFAULT_TIMEOUT_IN_SECONDS",
    "SendTransactionErrorCode", "SendTransactionError", "SendTransactionOptions",
    "SendTransactionInput", "SendTransactionOutput", "SendTransaction",
    "WrapFeeBumpErrorCode", "WrapFeeBumpError", "WrapFeeBumpInput", "WrapFeeBump",
]
