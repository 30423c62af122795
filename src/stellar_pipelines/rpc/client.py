"""
Soroban JSON-RPC client.

Async JSON-RPC 2.0 client over aiohttp implementing :class:`RpcClient`.
"""

from __future__ import annotations
import asyncio
import json
import logging
import random
from enum import Enum
from typing import Any, Dict, Optional

import aiohttp
from pydantic import ValidationError
from stellar_sdk import Account, Keypair
from stellar_sdk import xdr as stellar_xdr

from ..runtime.errors import Diagnostic, ErrorDomain, ErrorTemplate, TemplatedError
from ..tx.helpers import Envelope
from .types import (
    GetTransactionResponse,
    LatestLedgerResponse,
    SendTransactionResponse,
    SimulateTransactionResponse,
)

logger = logging.getLogger(__name__)


class RpcErrorCode(str, Enum):
    UNEXPECTED_ERROR = "RPC_000"
    TRANSPORT_FAILED = "RPC_001"
    HTTP_ERROR = "RPC_002"
    INVALID_JSON = "RPC_003"
    SERVER_ERROR = "RPC_004"
    INVALID_RESPONSE = "RPC_005"
    ACCOUNT_NOT_FOUND = "RPC_006"


class RpcError(TemplatedError):
    """Exception for JSON-RPC failures."""

    domain = ErrorDomain.RPC
    source = "stellar_pipelines.rpc"
    templates = {
        RpcErrorCode.UNEXPECTED_ERROR: ErrorTemplate("An unexpected error occurred in the RPC client!"),
        RpcErrorCode.TRANSPORT_FAILED: ErrorTemplate(
            "RPC request failed!",
            diagnostic=Diagnostic(
                root_cause="The RPC server could not be reached or did not answer in time.",
                suggestion="Check the rpc_url and network connectivity, then retry.",
            ),
        ),
        RpcErrorCode.HTTP_ERROR: ErrorTemplate("RPC server returned an HTTP error!"),
        RpcErrorCode.INVALID_JSON: ErrorTemplate("RPC server returned invalid JSON!"),
        RpcErrorCode.SERVER_ERROR: ErrorTemplate("RPC server returned an error!"),
        RpcErrorCode.INVALID_RESPONSE: ErrorTemplate("RPC response does not have the expected shape!"),
        RpcErrorCode.ACCOUNT_NOT_FOUND: ErrorTemplate(
            "Account not found!",
            diagnostic=Diagnostic(
                root_cause="The ledger has no entry for the account. It may not be funded yet or may have been merged.",
                suggestion="Fund the account (friendbot on test networks) before using it as a source.",
            ),
        ),
    }


class SorobanRpcClient:
    """
    JSON-RPC client for a Soroban RPC server.

    Example:
        ```python
        async with SorobanRpcClient("https://soroban-testnet.stellar.org") as rpc:
            ledger = await rpc.get_latest_ledger()
        ```
    """

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the client.

        Args:
            url: JSON-RPC endpoint
            timeout: Request timeout in seconds (default: 30)
            session: Optional aiohttp session for connection pooling; created
                lazily and owned by the client when omitted
        """
        self._url = url.rstrip("/")
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None

    @property
    def url(self) -> str:
        return self._url

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                trust_env=True,
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if owned by this client."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> SorobanRpcClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Make a JSON-RPC 2.0 call.

        Args:
            method: RPC method name
            params: Method parameters

        Returns:
            Result from the RPC call

        Raises:
            RpcError: If the call fails
        """
        request_data: Dict[str, Any] = {
            "jsonrpc": "2.0",
            "method": method,
            "id": random.randint(1, 1_000_000),
        }
        if params is not None:
            request_data["params"] = params

        session = await self._get_session()
        logger.debug(f"RPC {method} -> {self._url}")
        try:
            async with session.post(self._url, json=request_data) as response:
                if response.status != 200:
                    raise RpcError(
                        RpcErrorCode.HTTP_ERROR,
                        details=f"HTTP {response.status}: {response.reason}",
                        data={"method": method, "status": response.status},
                    )
                text = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RpcError(RpcErrorCode.TRANSPORT_FAILED, details=f"{method}: {e}", cause=e) from e

        try:
            response_data = json.loads(text)
        except json.JSONDecodeError as e:
            raise RpcError(RpcErrorCode.INVALID_JSON, details=f"{method}: {e}", cause=e) from e

        if "error" in response_data:
            error = response_data["error"] or {}
            raise RpcError(
                RpcErrorCode.SERVER_ERROR,
                details=f"{method}: {error.get('message', 'Unknown error')} (code {error.get('code')})",
                data={"method": method, "error": error},
            )

        return response_data.get("result")

    def _parse(self, model, method: str, result: Any):
        try:
            return model.model_validate(result)
        except ValidationError as e:
            raise RpcError(
                RpcErrorCode.INVALID_RESPONSE,
                details=f"{method}: {e}",
                cause=e,
                data={"method": method, "result": result},
            ) from e

    async def load_account(self, address: str) -> Account:
        """
        Load an account's current sequence number from its ledger entry.

        Args:
            address: G... account address

        Returns:
            The account, ready to build a transaction from

        Raises:
            RpcError: If the account does not exist or the entry cannot be read
        """
        key = stellar_xdr.LedgerKey(
            stellar_xdr.LedgerEntryType.ACCOUNT,
            account=stellar_xdr.LedgerKeyAccount(account_id=Keypair.from_public_key(address).xdr_account_id()),
        )
        result = await self._call("getLedgerEntries", {"keys": [key.to_xdr()]})
        entries = (result or {}).get("entries") or []
        if not entries:
            raise RpcError(
                RpcErrorCode.ACCOUNT_NOT_FOUND,
                details=f"No ledger entry for account {address}",
                data={"address": address},
            )
        try:
            data = stellar_xdr.LedgerEntryData.from_xdr(entries[0]["xdr"])
            sequence = data.account.seq_num.sequence_number.int64
        except Exception as e:
            raise RpcError(
                RpcErrorCode.INVALID_RESPONSE,
                details=f"getLedgerEntries: cannot read account entry for {address}: {e}",
                cause=e,
                data={"method": "getLedgerEntries", "result": result},
            ) from e
        return Account(address, sequence)

    async def simulate_transaction(self, transaction: Envelope) -> SimulateTransactionResponse:
        result = await self._call("simulateTransaction", {"transaction": transaction.to_xdr()})
        return self._parse(SimulateTransactionResponse, "simulateTransaction", result)

    async def send_transaction(self, envelope: Envelope) -> SendTransactionResponse:
        result = await self._call("sendTransaction", {"transaction": envelope.to_xdr()})
        return self._parse(SendTransactionResponse, "sendTransaction", result)

    async def get_transaction(self, transaction_hash: str) -> GetTransactionResponse:
        result = await self._call("getTransaction", {"hash": transaction_hash})
        response = self._parse(GetTransactionResponse, "getTransaction", result)
        return response.model_copy(update={"raw": result})

    async def get_latest_ledger(self) -> LatestLedgerResponse:
        result = await self._call("getLatestLedger")
        return self._parse(LatestLedgerResponse, "getLatestLedger", result)


__all__ = ["RpcErrorCode", "RpcError", "SorobanRpcClient"]
