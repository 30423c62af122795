"""
SignAuthEntries process.

Signs the contract authorization entries produced by simulation. Only entries
bound to a plain account address are signed; the expiration ledger of each
signature comes from a validity policy.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from stellar_sdk import xdr as stellar_xdr

from ..runtime.address import AddressKind, address_kind
from ..runtime.config import LEDGER_CLOSE_TIME_SECONDS
from ..runtime.errors import Diagnostic, ErrorTemplate
from ..rpc.types import RpcClient
from ..signers.signer import TransactionSigner
from ..tx.auth import auth_entry_address, is_signed, is_source_account_entry
from .base import Process, ProcessError

logger = logging.getLogger(__name__)


class SignAuthEntriesErrorCode(str, Enum):
    UNEXPECTED_ERROR = "SAE_000"
    MISSING_ARG = "SAE_001"
    VALID_UNTIL_LEDGER_SEQ_TOO_LOW = "SAE_002"
    VALID_FOR_LEDGERS_TOO_LOW = "SAE_003"
    VALID_FOR_SECONDS_TOO_LOW = "SAE_004"
    FAILED_TO_FETCH_LATEST_LEDGER = "SAE_005"
    MISSING_SIGNER = "SAE_006"
    FAILED_TO_SIGN_AUTH_ENTRY = "SAE_007"
    MISSING_VALIDITY = "SAE_008"


class SignAuthEntriesError(ProcessError):
    source = "stellar_pipelines.processes.sign_auth_entries"
    unexpected_code = SignAuthEntriesErrorCode.UNEXPECTED_ERROR
    templates = {
        SignAuthEntriesErrorCode.UNEXPECTED_ERROR: ErrorTemplate("An unexpected error occurred!"),
        SignAuthEntriesErrorCode.MISSING_ARG: ErrorTemplate("Missing required argument!"),
        SignAuthEntriesErrorCode.VALID_UNTIL_LEDGER_SEQ_TOO_LOW: ErrorTemplate(
            "Invalid valid-until ledger! Too low!",
            details="The ledger sequence must be greater than 0.",
        ),
        SignAuthEntriesErrorCode.VALID_FOR_LEDGERS_TOO_LOW: ErrorTemplate(
            "Invalid valid-for ledgers! Too low!",
            details="The number of ledgers must be greater than 0.",
        ),
        SignAuthEntriesErrorCode.VALID_FOR_SECONDS_TOO_LOW: ErrorTemplate(
            "Invalid valid-for seconds! Too low!",
            details=f"The number of seconds must be greater than one ledger close time ({LEDGER_CLOSE_TIME_SECONDS}s).",
        ),
        SignAuthEntriesErrorCode.FAILED_TO_FETCH_LATEST_LEDGER: ErrorTemplate(
            "Failed to fetch latest ledger from the network!",
            diagnostic=Diagnostic(
                root_cause="A relative validity needs the latest ledger sequence, and the RPC call failed.",
                suggestion="Check the RPC availability or provide an explicit ValidUntilLedger.",
            ),
        ),
        SignAuthEntriesErrorCode.MISSING_SIGNER: ErrorTemplate(
            "Missing required signer for authorization entry!"
        ),
        SignAuthEntriesErrorCode.FAILED_TO_SIGN_AUTH_ENTRY: ErrorTemplate(
            "Failed to sign an authorization entry!",
            diagnostic=Diagnostic(
                root_cause="The signer raised while signing an authorization entry.",
                suggestion="Check the 'cause' and the entry under error.data['entry'].",
            ),
        ),
        SignAuthEntriesErrorCode.MISSING_VALIDITY: ErrorTemplate(
            "No validity provided for authorization signatures!",
            diagnostic=Diagnostic(
                root_cause="An entry needs signing but no expiration policy was given.",
                suggestion="Pass ValidUntilLedger, ValidForLedgers or ValidForSeconds as the validity.",
            ),
        ),
    }


@dataclass(frozen=True)
class ValidUntilLedger:
    """Signatures expire after an explicit ledger sequence."""

    ledger: int


@dataclass(frozen=True)
class ValidForLedgers:
    """Signatures expire a number of ledgers after the latest ledger."""

    ledgers: int


@dataclass(frozen=True)
class ValidForSeconds:
    """Signatures expire roughly a number of seconds from now."""

    seconds: int


LedgerValidity = Union[ValidUntilLedger, ValidForLedgers, ValidForSeconds]


@dataclass
class SignAuthEntriesInput:
    """
    Input of the SignAuthEntries process.

    ``include_unsigned`` keeps the entries this process does not sign
    (source-account credentials and non-account addresses) in the output.
    With ``require_all_signers`` an account entry without a matching signer
    is an error instead of being dropped.
    """

    auth: List[stellar_xdr.SorobanAuthorizationEntry]
    signers: List[TransactionSigner]
    network_passphrase: str
    rpc: Optional[RpcClient] = None
    validity: Optional[LedgerValidity] = None
    include_unsigned: bool = True
    require_all_signers: bool = False


class SignAuthEntries(Process[SignAuthEntriesInput, List[stellar_xdr.SorobanAuthorizationEntry]]):
    """Sign authorization entries."""

    name = "SignAuthEntries"
    error_class = SignAuthEntriesError

    async def _execute(self, input: SignAuthEntriesInput) -> List[stellar_xdr.SorobanAuthorizationEntry]:
        E = SignAuthEntriesErrorCode

        if input.auth is None:
            raise SignAuthEntriesError(E.MISSING_ARG, input, details="Missing required argument: auth")
        if input.signers is None:
            raise SignAuthEntriesError(E.MISSING_ARG, input, details="Missing required argument: signers")
        if not input.network_passphrase:
            raise SignAuthEntriesError(E.MISSING_ARG, input, details="Missing required argument: network_passphrase")

        _validate_validity(input)
        resolver = _ValidUntilResolver(input)

        result: List[stellar_xdr.SorobanAuthorizationEntry] = []
        for entry in input.auth:
            if is_source_account_entry(entry):
                if input.include_unsigned:
                    result.append(entry)
                continue

            if is_signed(entry):
                result.append(entry)
                continue

            address = auth_entry_address(entry)
            if address_kind(address) != AddressKind.ACCOUNT:
                # Contracts, claimable balances, liquidity pools and muxed accounts are never signed here
                if input.include_unsigned:
                    result.append(entry)
                continue

            signer = next((s for s in input.signers if s.signs_for(address)), None)
            if signer is None:
                if input.require_all_signers:
                    raise SignAuthEntriesError(
                        E.MISSING_SIGNER,
                        input,
                        details=f"The required signer '{address}' was not found for the authorization entry.",
                        data={"entry": entry},
                    )
                logger.warning(f"No signer for authorization entry of {address}, dropping it")
                continue

            valid_until = await resolver.resolve()
            try:
                signed = await signer.sign_auth_entry(entry, valid_until, input.network_passphrase)
            except Exception as e:
                raise SignAuthEntriesError(
                    E.FAILED_TO_SIGN_AUTH_ENTRY,
                    input,
                    details=f"Signer '{address}' failed to sign: {e}",
                    cause=e,
                    data={"entry": entry},
                ) from e

            logger.debug(f"Signed authorization entry for {address} valid until ledger {valid_until}")
            result.append(signed)

        return result


def _validate_validity(input: SignAuthEntriesInput) -> None:
    E = SignAuthEntriesErrorCode
    validity = input.validity
    if isinstance(validity, ValidUntilLedger) and validity.ledger <= 0:
        raise SignAuthEntriesError(E.VALID_UNTIL_LEDGER_SEQ_TOO_LOW, input, data={"validity": validity})
    if isinstance(validity, ValidForLedgers) and validity.ledgers <= 0:
        raise SignAuthEntriesError(E.VALID_FOR_LEDGERS_TOO_LOW, input, data={"validity": validity})
    if isinstance(validity, ValidForSeconds) and validity.seconds <= LEDGER_CLOSE_TIME_SECONDS:
        raise SignAuthEntriesError(E.VALID_FOR_SECONDS_TOO_LOW, input, data={"validity": validity})


class _ValidUntilResolver:
    """Computes the expiration ledger once, on first use."""

    def __init__(self, input: SignAuthEntriesInput):
        self._input = input
        self._value: Optional[int] = None

    async def resolve(self) -> int:
        if self._value is None:
            self._value = await self._compute()
        return self._value

    async def _compute(self) -> int:
        E = SignAuthEntriesErrorCode
        input = self._input
        validity = input.validity

        if validity is None:
            raise SignAuthEntriesError(E.MISSING_VALIDITY, input)
        if isinstance(validity, ValidUntilLedger):
            return validity.ledger

        if isinstance(validity, ValidForLedgers):
            ledgers = validity.ledgers
        elif isinstance(validity, ValidForSeconds):
            ledgers = math.ceil(validity.seconds / LEDGER_CLOSE_TIME_SECONDS)
        else:
            raise SignAuthEntriesError(E.MISSING_VALIDITY, input, details=f"Unsupported validity: {validity!r}")

        if input.rpc is None:
            raise SignAuthEntriesError(
                E.MISSING_ARG, input, details="Missing required argument: rpc (needed for a relative validity)"
            )
        try:
            latest = await input.rpc.get_latest_ledger()
        except Exception as e:
            raise SignAuthEntriesError(E.FAILED_TO_FETCH_LATEST_LEDGER, input, details=str(e), cause=e) from e

        return latest.sequence + ledgers


__all__ = [
    "SignAuthEntriesErrorCode",
    "SignAuthEntriesError",
    "ValidUntilLedger",
    "ValidForLedgers",
    "ValidForSeconds",
    "LedgerValidity",
    "SignAuthEntriesInput",
    "SignAuthEntries",
]
