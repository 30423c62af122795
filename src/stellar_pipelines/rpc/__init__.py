"""
RPC collaborator: interface, response models and the aiohttp client.
"""

from .types import (
    SendTransactionStatus, GetTransactionStatus, LatestLedgerResponse,
    SimulationHostFunctionResult, RestorePreamble, SimulateTransactionResponse,
    is_simulation_error, is_simulation_success, is_simulation_restore,
    SendTransactionResponse, meta_return_value, GetTransactionResponse, RpcClient,
)
from .client import RpcErrorCode, RpcError, SorobanRpcClient

__all__ = [
    "SendTransactionStatus", "GetTransactionStatus", "LatestLedgerResponse",
    "SimulationHostFunctionResult", "RestorePreamble", "SimulateTransactionResponse",
    "is_simulation_error", "is_simulation_success", "is_simulation_restore",
    "SendTransactionResponse", "meta_return_value", "GetTransactionResponse", "RpcClient",
    "RpcErrorCode", "RpcError", "SorobanRpcClient",
]
