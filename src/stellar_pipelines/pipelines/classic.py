"""
Classic transaction pipeline.

Build -> EnvelopeSigningRequirements -> SignEnvelope -> SendTransaction, with
no simulation step.
"""

from __future__ import annotations
import logging
from typing import Iterable, Mapping, Optional

from ..processes.base import Plugin
from ..processes.build_transaction import BuildTransaction
from ..processes.envelope_signing_requirements import EnvelopeSigningRequirements
from ..processes.send_transaction import SendTransaction, SendTransactionOptions
from ..processes.sign_envelope import SignEnvelope
from ..rpc.types import RpcClient
from ..runtime.config import NetworkConfig
from ..runtime.errors import StellarPipelinesError
from .connectors import (
    input_to_build,
    requirements_to_sign_envelope,
    send_transaction_to_result,
    sign_envelope_to_send_transaction,
    to_envelope_signing_requirements,
)
from .engine import Pipeline, store_metadata
from .errors import PipelineError, PipelineErrorCode
from .factory import require_network_config, resolve_rpc

logger = logging.getLogger(__name__)

PIPELINE_NAME = "ClassicTransactionPipeline"


def create_classic_transaction_pipeline(
    network_config: NetworkConfig,
    rpc: Optional[RpcClient] = None,
    plugins: Optional[Mapping[str, Iterable[Plugin]]] = None,
    send_options: Optional[SendTransactionOptions] = None,
) -> Pipeline:
    """
    Create a pipeline that builds, signs and submits a classic transaction.

    The pipeline takes a :class:`TransactionRequest` and returns a
    :class:`TransactionResult`.

    Args:
        network_config: Network passphrase and, when ``rpc`` is omitted, the rpc url
        rpc: RPC client shared by every stage
        plugins: Plugins keyed by stage name
        send_options: Poll settings for the submit stage

    Raises:
        PipelineError: If an argument is missing or invalid
    """
    E = PipelineErrorCode
    try:
        network_config = require_network_config(network_config, E.CLASSIC_MISSING_ARG)
        rpc = resolve_rpc(network_config, rpc, E.CLASSIC_MISSING_RPC_URL)
        passphrase = network_config.network_passphrase

        pipeline = Pipeline(
            PIPELINE_NAME,
            [
                store_metadata("pipe_input"),
                input_to_build(rpc, passphrase),
                BuildTransaction(),
                store_metadata("build_output"),
                to_envelope_signing_requirements(),
                EnvelopeSigningRequirements(),
                requirements_to_sign_envelope("build_output", "pipe_input"),
                SignEnvelope(),
                sign_envelope_to_send_transaction(rpc, send_options),
                SendTransaction(),
                send_transaction_to_result(),
            ],
        )
        pipeline.add_plugins(plugins)
    except StellarPipelinesError:
        raise
    except Exception as e:
        raise PipelineError(E.CLASSIC_UNEXPECTED_ERROR, cause=e) from e

    logger.info(f"Created {PIPELINE_NAME}")
    return pipeline


__all__ = ["PIPELINE_NAME", "create_classic_transaction_pipeline"]
