"""
Invoke contract pipeline.

Runs all seven stages: the transaction is built and simulated, the
authorization entries returned by the simulation are signed, the simulation
results are assembled into the transaction, and the final envelope is signed
and submitted.
"""

from __future__ import annotations
import logging
from typing import Iterable, Mapping, Optional

from ..processes.assemble_transaction import AssembleTransaction
from ..processes.base import Plugin
from ..processes.build_transaction import BuildTransaction
from ..processes.envelope_signing_requirements import EnvelopeSigningRequirements
from ..processes.send_transaction import SendTransaction, SendTransactionOptions
from ..processes.sign_auth_entries import LedgerValidity, SignAuthEntries, ValidForLedgers
from ..processes.sign_envelope import SignEnvelope
from ..processes.simulate_transaction import SimulateTransaction
from ..rpc.types import RpcClient
from ..runtime.config import DEFAULT_AUTH_VALIDITY_LEDGERS, NetworkConfig
from ..runtime.errors import StellarPipelinesError
from .connectors import (
    build_to_simulate,
    input_to_build,
    requirements_to_sign_envelope,
    sign_auth_entries_to_assemble,
    sign_envelope_to_send_transaction,
    simulate_to_sign_auth_entries,
    to_envelope_signing_requirements,
)
from .engine import Pipeline, store_metadata
from .errors import PipelineError, PipelineErrorCode
from .factory import require_network_config, resolve_rpc

logger = logging.getLogger(__name__)

PIPELINE_NAME = "InvokeContractPipeline"


def create_invoke_contract_pipeline(
    network_config: NetworkConfig,
    rpc: Optional[RpcClient] = None,
    plugins: Optional[Mapping[str, Iterable[Plugin]]] = None,
    send_options: Optional[SendTransactionOptions] = None,
    auth_validity: Optional[LedgerValidity] = None,
) -> Pipeline:
    """
    Create a pipeline that invokes a contract and waits for the outcome.

    The pipeline takes a :class:`TransactionRequest` holding one contract
    invocation and returns a :class:`SendTransactionOutput`.

    Args:
        network_config: Network passphrase and, when ``rpc`` is omitted, the rpc url
        rpc: RPC client shared by every stage
        plugins: Plugins keyed by stage name
        send_options: Poll settings for the submit stage
        auth_validity: Expiration of authorization signatures; defaults to
            120 ledgers past the latest ledger

    Raises:
        PipelineError: If an argument is missing or invalid
    """
    E = PipelineErrorCode
    try:
        network_config = require_network_config(network_config, E.INVOKE_MISSING_ARG)
        rpc = resolve_rpc(network_config, rpc, E.INVOKE_MISSING_RPC_URL)
        passphrase = network_config.network_passphrase
        validity = auth_validity or ValidForLedgers(DEFAULT_AUTH_VALIDITY_LEDGERS)

        pipeline = Pipeline(
            PIPELINE_NAME,
            [
                store_metadata("pipe_input"),
                input_to_build(rpc, passphrase),
                BuildTransaction(),
                store_metadata("build_output"),
                build_to_simulate(rpc),
                SimulateTransaction(),
                store_metadata("simulate_output"),
                simulate_to_sign_auth_entries("pipe_input", rpc, passphrase, validity),
                SignAuthEntries(),
                sign_auth_entries_to_assemble("build_output", "simulate_output"),
                AssembleTransaction(),
                store_metadata("assemble_output"),
                to_envelope_signing_requirements(),
                EnvelopeSigningRequirements(),
                requirements_to_sign_envelope("assemble_output", "pipe_input"),
                SignEnvelope(),
                sign_envelope_to_send_transaction(rpc, send_options),
                SendTransaction(),
            ],
        )
        pipeline.add_plugins(plugins)
    except StellarPipelinesError:
        raise
    except Exception as e:
        raise PipelineError(E.INVOKE_UNEXPECTED_ERROR, cause=e) from e

    logger.info(f"Created {PIPELINE_NAME}")
    return pipeline


__all__ = ["PIPELINE_NAME", "create_invoke_contract_pipeline"]
