"""
SendTransaction process.

Submits a signed envelope and polls its status until it is applied, fails or
the timeout runs out. Only ``NOT_FOUND`` is retried; every other outcome is
returned or raised immediately.

The clock and the sleep function are injectable so that callers (and tests)
can drive the poll loop deterministically.
"""

from __future__ import annotations
import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Optional

from ..runtime.errors import Diagnostic, ErrorTemplate
from ..rpc.types import (
    GetTransactionResponse,
    GetTransactionStatus,
    RpcClient,
    SendTransactionResponse,
    SendTransactionStatus,
)
from ..tx.helpers import Envelope, get_transaction_timeout
from .base import Plugin, Process, ProcessError

logger = logging.getLogger(__name__)

MIN_TIMEOUT_IN_SECONDS = 1
MIN_WAIT_INTERVAL_IN_MS = 100
DEFAULT_TIMEOUT_IN_SECONDS = 45


class SendTransactionErrorCode(str, Enum):
    UNEXPECTED_ERROR = "STX_000"
    MISSING_ARG = "STX_001"
    FAIL_TO_SEND_TRANSACTION = "STX_002"
    TIMEOUT_TOO_LOW = "STX_003"
    WAIT_INTERVAL_TOO_LOW = "STX_004"
    DUPLICATE_TRANSACTION = "STX_005"
    TRY_AGAIN_LATER = "STX_006"
    ERROR_STATUS = "STX_007"
    UNEXPECTED_TX_STATUS = "STX_008"
    FAILED_TO_GET_TRANSACTION_STATUS = "STX_009"
    TRANSACTION_FAILED = "STX_010"
    TRANSACTION_NOT_FOUND = "STX_011"


class SendTransactionError(ProcessError):
    source = "stellar_pipelines.processes.send_transaction"
    unexpected_code = SendTransactionErrorCode.UNEXPECTED_ERROR
    templates = {
        SendTransactionErrorCode.UNEXPECTED_ERROR: ErrorTemplate("An unexpected error occurred!"),
        SendTransactionErrorCode.MISSING_ARG: ErrorTemplate("Missing required argument!"),
        SendTransactionErrorCode.FAIL_TO_SEND_TRANSACTION: ErrorTemplate(
            "Failed to send transaction!",
            details=(
                "An error was caught when trying to send the transaction for processing through the RPC. "
                "Check the 'cause' section for more details."
            ),
        ),
        SendTransactionErrorCode.TIMEOUT_TOO_LOW: ErrorTemplate("Timeout too low!"),
        SendTransactionErrorCode.WAIT_INTERVAL_TOO_LOW: ErrorTemplate("Wait interval too low!"),
        SendTransactionErrorCode.DUPLICATE_TRANSACTION: ErrorTemplate(
            "Duplicate transaction!",
            diagnostic=Diagnostic(
                root_cause="The RPC returned the 'DUPLICATE' status when the transaction was sent for processing.",
                suggestion="Check whether the transaction was already submitted.",
            ),
        ),
        SendTransactionErrorCode.TRY_AGAIN_LATER: ErrorTemplate(
            "Temporary issue, please try again later!",
            diagnostic=Diagnostic(
                root_cause="The RPC returned a 'TRY_AGAIN_LATER' status when the transaction was sent for processing.",
                suggestion="Wait for a while and resubmit the transaction.",
            ),
        ),
        SendTransactionErrorCode.ERROR_STATUS: ErrorTemplate(
            "Transaction rejected!",
            diagnostic=Diagnostic(
                root_cause="The RPC returned an 'ERROR' status when the transaction was sent for processing.",
                suggestion="Inspect error.data['error_result'] for the rejection reason.",
            ),
        ),
        SendTransactionErrorCode.UNEXPECTED_TX_STATUS: ErrorTemplate(
            "Unexpected transaction status!",
            diagnostic=Diagnostic(
                root_cause="The RPC returned a status this library does not handle.",
                suggestion="Check for a newer release that supports the status.",
            ),
        ),
        SendTransactionErrorCode.FAILED_TO_GET_TRANSACTION_STATUS: ErrorTemplate(
            "Failed to get transaction status!",
            diagnostic=Diagnostic(
                root_cause="The RPC request to fetch the transaction status encountered an error.",
                suggestion="Verify the network connection and RPC service status, then query the hash again.",
            ),
        ),
        SendTransactionErrorCode.TRANSACTION_FAILED: ErrorTemplate(
            "Transaction failed!",
            diagnostic=Diagnostic(
                root_cause="The transaction was processed but resulted in a failure.",
                suggestion="Investigate the response under error.data['response'].",
            ),
        ),
        SendTransactionErrorCode.TRANSACTION_NOT_FOUND: ErrorTemplate(
            "Transaction not found!",
            diagnostic=Diagnostic(
                root_cause="The transaction does not exist or has not been processed yet.",
                suggestion="If recently submitted, review the timeout settings and allow more time for processing.",
            ),
        ),
    }


@dataclass
class SendTransactionOptions:
    """
    Poll loop settings.

    Attributes:
        timeout_in_seconds: Poll budget; when None the envelope's own max time
            is used if enabled and usable, else the default of 45 seconds
        wait_interval_in_ms: Pause between status queries
        use_envelope_timeout_if_available: Derive the budget from the
            envelope's time bounds when no explicit timeout is set
    """

    timeout_in_seconds: Optional[int] = None
    wait_interval_in_ms: int = 500
    use_envelope_timeout_if_available: bool = True


@dataclass
class SendTransactionInput:
    transaction: Envelope
    rpc: RpcClient
    options: Optional[SendTransactionOptions] = None


@dataclass
class SendTransactionOutput:
    hash: str
    return_value: Optional[Any]
    response: GetTransactionResponse


class SendTransaction(Process[SendTransactionInput, SendTransactionOutput]):
    """
    Submit an envelope and wait for its outcome.

    Args:
        plugins: Input plugins
        clock: Monotonic clock in seconds
        sleep: Coroutine function pausing for a number of seconds
        wall_clock: Unix time source, used to read the envelope's time bounds
    """

    name = "SendTransaction"
    error_class = SendTransactionError

    def __init__(
        self,
        plugins: Optional[Iterable[Plugin]] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        wall_clock: Callable[[], float] = time.time,
    ):
        super().__init__(plugins)
        self._clock = clock
        self._sleep = sleep
        self._wall_clock = wall_clock

    async def _execute(self, input: SendTransactionInput) -> SendTransactionOutput:
        E = SendTransactionErrorCode

        if input.transaction is None:
            raise SendTransactionError(E.MISSING_ARG, input, details="Missing required argument: transaction")
        if input.rpc is None:
            raise SendTransactionError(E.MISSING_ARG, input, details="Missing required argument: rpc")

        options = input.options or SendTransactionOptions()
        timeout = self._effective_timeout(input, options)
        if options.wait_interval_in_ms < MIN_WAIT_INTERVAL_IN_MS:
            raise SendTransactionError(
                E.WAIT_INTERVAL_TOO_LOW,
                input,
                details=(
                    f"The provided wait interval ({options.wait_interval_in_ms}ms) is too low. "
                    f"It must be at least {MIN_WAIT_INTERVAL_IN_MS}ms."
                ),
            )

        sent = await self._send(input)
        logger.info(f"Submitted transaction {sent.hash}")
        return await self._wait_for_outcome(input, sent.hash, timeout, options.wait_interval_in_ms / 1000)

    def _effective_timeout(self, input: SendTransactionInput, options: SendTransactionOptions) -> int:
        if options.timeout_in_seconds is not None:
            timeout = options.timeout_in_seconds
            if timeout < MIN_TIMEOUT_IN_SECONDS:
                raise SendTransactionError(
                    SendTransactionErrorCode.TIMEOUT_TOO_LOW,
                    input,
                    details=(
                        f"The provided timeout ({timeout}s) is too low. "
                        f"It must be at least {MIN_TIMEOUT_IN_SECONDS} second."
                    ),
                )
            return timeout

        if options.use_envelope_timeout_if_available:
            remaining = get_transaction_timeout(input.transaction, self._wall_clock)
            if remaining is not None and remaining >= MIN_TIMEOUT_IN_SECONDS:
                return remaining

        return DEFAULT_TIMEOUT_IN_SECONDS

    async def _send(self, input: SendTransactionInput) -> SendTransactionResponse:
        E = SendTransactionErrorCode
        try:
            response = await input.rpc.send_transaction(input.transaction)
        except Exception as e:
            raise SendTransactionError(E.FAIL_TO_SEND_TRANSACTION, input, cause=e) from e

        status = response.status
        if status == SendTransactionStatus.PENDING.value:
            return response
        if status == SendTransactionStatus.DUPLICATE.value:
            raise SendTransactionError(
                E.DUPLICATE_TRANSACTION,
                input,
                details=f"The transaction with ID ({response.hash}) has already been submitted.",
                data={"response": response},
            )
        if status == SendTransactionStatus.TRY_AGAIN_LATER.value:
            raise SendTransactionError(
                E.TRY_AGAIN_LATER,
                input,
                details=f"The transaction with ID ({response.hash}) could not be processed at this time.",
                data={"response": response},
            )
        if status == SendTransactionStatus.ERROR.value:
            raise SendTransactionError(
                E.ERROR_STATUS,
                input,
                details=f"The transaction with ID ({response.hash}) was rejected by the network.",
                data={"response": response, "error_result": response.error_result},
            )

        logger.warning(f"Unrecognized send status {status!r} for transaction {response.hash}")
        raise SendTransactionError(
            E.UNEXPECTED_TX_STATUS,
            input,
            details=f"Send status '{status}' for transaction ({response.hash}) is not handled.",
            data={"response": response},
        )

    async def _wait_for_outcome(
        self,
        input: SendTransactionInput,
        tx_hash: str,
        timeout: int,
        interval: float,
    ) -> SendTransactionOutput:
        E = SendTransactionErrorCode
        deadline = self._clock() + timeout
        attempts = 0

        while True:
            attempts += 1
            try:
                response = await input.rpc.get_transaction(tx_hash)
            except Exception as e:
                raise SendTransactionError(
                    E.FAILED_TO_GET_TRANSACTION_STATUS,
                    input,
                    details=f"The RPC request to get the status for transaction with ID ({tx_hash}) failed: {e}",
                    cause=e,
                    data={"hash": tx_hash},
                ) from e

            status = response.status
            logger.debug(f"Poll {attempts} for {tx_hash}: {status}")

            if status == GetTransactionStatus.SUCCESS.value:
                logger.info(f"Transaction {tx_hash} confirmed in ledger {response.ledger}")
                return SendTransactionOutput(hash=tx_hash, return_value=response.return_value, response=response)

            if status == GetTransactionStatus.FAILED.value:
                raise SendTransactionError(
                    E.TRANSACTION_FAILED,
                    input,
                    details=f"The transaction with ID ({tx_hash}) failed during processing.",
                    data={"hash": tx_hash, "response": response},
                )

            if status != GetTransactionStatus.NOT_FOUND.value:
                logger.warning(f"Unrecognized status {status!r} for transaction {tx_hash}")
                raise SendTransactionError(
                    E.UNEXPECTED_TX_STATUS,
                    input,
                    details=f"Status '{status}' for transaction ({tx_hash}) is not handled.",
                    data={"hash": tx_hash, "response": response},
                )

            if self._clock() >= deadline:
                raise self._not_found(input, tx_hash, attempts, timeout)

            await self._sleep(interval)
            # No query may start once the deadline has passed
            if self._clock() >= deadline:
                raise self._not_found(input, tx_hash, attempts, timeout)

    @staticmethod
    def _not_found(input: SendTransactionInput, tx_hash: str, attempts: int, timeout: int) -> SendTransactionError:
        return SendTransactionError(
            SendTransactionErrorCode.TRANSACTION_NOT_FOUND,
            input,
            details=(
                f"The transaction with ID ({tx_hash}) was not found on the network "
                f"after {attempts} attempts within {timeout}s."
            ),
            data={"hash": tx_hash, "attempts": attempts},
        )


__all__ = [
    "MIN_TIMEOUT_IN_SECONDS",
    "MIN_WAIT_INTERVAL_IN_MS",
    "DEFAULT_TIMEOUT_IN_SECONDS",
    "SendTransactionErrorCode",
    "SendTransactionError",
    "SendTransactionOptions",
    "SendTransactionInput",
    "SendTransactionOutput",
    "SendTransaction",
]
