"""
Read from contract pipeline.

Builds a throwaway transaction and simulates it to read a contract's return
value. Nothing is signed or submitted, so no real source account is needed.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional

from stellar_sdk.operation import Operation

from ..processes.base import Plugin
from ..processes.build_transaction import BuildTransaction, BuildTransactionInput
from ..processes.simulate_transaction import SimulateTransaction
from ..rpc.types import RpcClient
from ..runtime.address import ZERO_ACCOUNT
from ..runtime.config import NetworkConfig
from ..runtime.errors import StellarPipelinesError
from .connectors import build_to_simulate, simulate_to_return_value
from .engine import Pipeline, RunContext, Transformer
from .errors import PipelineError, PipelineErrorCode
from .factory import require_network_config, resolve_rpc

logger = logging.getLogger(__name__)

PIPELINE_NAME = "ReadFromContractPipeline"

# Simulation only checks that the fee covers the resources
READ_BASE_FEE = "10000000"
READ_SEQUENCE = "1"


@dataclass
class ReadRequest:
    operations: List[Operation]


def read_input_to_build(network_passphrase: str) -> Transformer:
    def _connect(request: ReadRequest, context: RunContext) -> BuildTransactionInput:
        return BuildTransactionInput(
            operations=list(request.operations),
            source=ZERO_ACCOUNT,
            base_fee=READ_BASE_FEE,
            network_passphrase=network_passphrase,
            sequence=READ_SEQUENCE,
        )

    return Transformer("read_input_to_build", _connect)


def create_read_from_contract_pipeline(
    network_config: NetworkConfig,
    rpc: Optional[RpcClient] = None,
    plugins: Optional[Mapping[str, Iterable[Plugin]]] = None,
) -> Pipeline:
    """
    Create a pipeline that returns a contract call's simulated return value.

    The pipeline takes a :class:`ReadRequest`.

    Raises:
        PipelineError: If an argument is missing or invalid
    """
    E = PipelineErrorCode
    try:
        network_config = require_network_config(network_config, E.READ_MISSING_ARG)
        rpc = resolve_rpc(network_config, rpc, E.READ_MISSING_RPC_URL)

        pipeline = Pipeline(
            PIPELINE_NAME,
            [
                read_input_to_build(network_config.network_passphrase),
                BuildTransaction(),
                build_to_simulate(rpc),
                SimulateTransaction(),
                simulate_to_return_value(),
            ],
        )
        pipeline.add_plugins(plugins)
    except StellarPipelinesError:
        raise
    except Exception as e:
        raise PipelineError(E.READ_UNEXPECTED_ERROR, cause=e) from e

    logger.info(f"Created {PIPELINE_NAME}")
    return pipeline


__all__ = [
    "PIPELINE_NAME",
    "READ_BASE_FEE",
    "READ_SEQUENCE",
    "ReadRequest",
    "read_input_to_build",
    "create_read_from_contract_pipeline",
]
