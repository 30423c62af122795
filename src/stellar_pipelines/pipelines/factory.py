"""
Argument checks shared by the pipeline factories.
"""

from __future__ import annotations
from typing import Optional

from ..rpc.client import SorobanRpcClient
from ..rpc.types import RpcClient
from ..runtime.config import NetworkConfig
from .errors import PipelineError, PipelineErrorCode


def require_network_config(network_config: Optional[NetworkConfig], missing_arg: PipelineErrorCode) -> NetworkConfig:
    if network_config is None:
        raise PipelineError(missing_arg, details="Missing required argument: network_config")
    if not network_config.network_passphrase:
        raise PipelineError(missing_arg, details="Missing required argument: network_config.network_passphrase")
    return network_config


def resolve_rpc(
    network_config: NetworkConfig,
    rpc: Optional[RpcClient],
    missing_rpc_url: PipelineErrorCode,
) -> RpcClient:
    """Return ``rpc`` or a client for the configured rpc url."""
    if rpc is not None:
        return rpc
    if not network_config.rpc_url:
        raise PipelineError(missing_rpc_url)
    return SorobanRpcClient(network_config.rpc_url)


__all__ = ["require_network_config", "resolve_rpc"]
