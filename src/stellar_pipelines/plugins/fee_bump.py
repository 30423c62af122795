"""
Fee-bump plugin.

Attached to the SendTransaction stage, it replaces the plain envelope about to
be submitted with a fee-bump envelope paid and signed by another account.

Example:
    ```python
    plugin = FeeBumpPlugin.create(network_config, FeeBumpConfig(
        source=sponsor_address, fee="1000000", signers=[sponsor_signer],
    ))
    pipeline = create_invoke_contract_pipeline(
        network_config, plugins={"SendTransaction": [plugin]}
    )
    ```
"""

from __future__ import annotations
import dataclasses
import logging
from enum import Enum
from typing import List

from stellar_sdk import FeeBumpTransactionEnvelope, TransactionEnvelope

from ..pipelines.engine import Pipeline, RunContext, Transformer, store_metadata
from ..processes.base import Plugin
from ..processes.envelope_signing_requirements import (
    EnvelopeSigningRequirements,
    EnvelopeSigningRequirementsInput,
)
from ..processes.send_transaction import SendTransaction, SendTransactionInput
from ..processes.sign_envelope import SignEnvelope, SignEnvelopeInput
from ..processes.wrap_fee_bump import WrapFeeBump, WrapFeeBumpInput
from ..runtime.config import FeeBumpConfig, NetworkConfig
from ..runtime.errors import Diagnostic, ErrorDomain, ErrorTemplate, StellarPipelinesError, TemplatedError
from ..signers.requirements import SignatureRequirement

logger = logging.getLogger(__name__)

PLUGIN_NAME = "FeeBumpPlugin"
PIPELINE_NAME = "FeeBumpPipeline"


class FeeBumpPluginErrorCode(str, Enum):
    UNEXPECTED_ERROR = "FBP_000"
    NOT_A_TRANSACTION = "FBP_001"
    MISSING_ARG = "FBP_002"
    FAILED_TO_FEE_BUMP = "FBP_003"


class FeeBumpPluginError(TemplatedError):
    domain = ErrorDomain.PLUGINS
    source = "stellar_pipelines.plugins.fee_bump"
    templates = {
        FeeBumpPluginErrorCode.UNEXPECTED_ERROR: ErrorTemplate(
            "An unexpected error occurred while assembling the 'FeeBumpPlugin' pipeline!",
            details="See the 'cause' for more details",
        ),
        FeeBumpPluginErrorCode.NOT_A_TRANSACTION: ErrorTemplate(
            "The provided transaction is not a valid TransactionEnvelope object.",
            details="The plugin expects a plain transaction to wrap in a fee-bump transaction.",
        ),
        FeeBumpPluginErrorCode.MISSING_ARG: ErrorTemplate("Missing required argument!"),
        FeeBumpPluginErrorCode.FAILED_TO_FEE_BUMP: ErrorTemplate(
            "Failed to fee bump the transaction!",
            diagnostic=Diagnostic(
                root_cause="A stage of the fee-bump pipeline failed.",
                suggestion="Check the 'cause' for the failing stage and its error code.",
            ),
        ),
    }


def _wrap_input(network_passphrase: str, config: FeeBumpConfig) -> Transformer:
    def _connect(transaction: TransactionEnvelope, context: RunContext) -> WrapFeeBumpInput:
        return WrapFeeBumpInput(transaction=transaction, config=config, network_passphrase=network_passphrase)

    return Transformer("input_to_wrap_fee_bump", _connect)


def _wrap_to_requirements(
    fee_bump: FeeBumpTransactionEnvelope, context: RunContext
) -> EnvelopeSigningRequirementsInput:
    return EnvelopeSigningRequirementsInput(transaction=fee_bump)


def _requirements_to_sign(wrap_key: str, config: FeeBumpConfig) -> Transformer:
    def _connect(requirements: List[SignatureRequirement], context: RunContext) -> SignEnvelopeInput:
        return SignEnvelopeInput(
            transaction=context.get(wrap_key),
            signature_requirements=requirements,
            signers=list(config.signers),
        )

    return Transformer("requirements_to_sign_envelope", _connect)


def create_fee_bump_pipeline(network_config: NetworkConfig, fee_bump_config: FeeBumpConfig) -> Pipeline:
    """
    Create the pipeline that wraps a plain envelope and signs the fee bump.

    The pipeline takes a plain :class:`TransactionEnvelope` and returns the signed
    :class:`FeeBumpTransactionEnvelope`.
    """
    E = FeeBumpPluginErrorCode
    if network_config is None or not network_config.network_passphrase:
        raise FeeBumpPluginError(E.MISSING_ARG, details="Missing required argument: network_config")
    if fee_bump_config is None:
        raise FeeBumpPluginError(E.MISSING_ARG, details="Missing required argument: fee_bump_config")

    try:
        return Pipeline(
            PIPELINE_NAME,
            [
                _wrap_input(network_config.network_passphrase, fee_bump_config),
                WrapFeeBump(),
                store_metadata("wrap_fee_bump_output"),
                Transformer("wrap_fee_bump_to_requirements", _wrap_to_requirements),
                EnvelopeSigningRequirements(),
                _requirements_to_sign("wrap_fee_bump_output", fee_bump_config),
                SignEnvelope(),
            ],
        )
    except Exception as e:
        raise FeeBumpPluginError(E.UNEXPECTED_ERROR, cause=e) from e


class FeeBumpPlugin:
    """Factory of the fee-bump plugin for the SendTransaction stage."""

    name = PLUGIN_NAME
    target = SendTransaction.name

    @staticmethod
    def create(network_config: NetworkConfig, fee_bump_config: FeeBumpConfig) -> Plugin:
        wrapper = create_fee_bump_pipeline(network_config, fee_bump_config)

        async def process_input(input: SendTransactionInput) -> SendTransactionInput:
            transaction = input.transaction
            if not isinstance(transaction, TransactionEnvelope):
                raise FeeBumpPluginError(
                    FeeBumpPluginErrorCode.NOT_A_TRANSACTION,
                    data={"transaction": transaction},
                )

            try:
                fee_bump = await wrapper.run(transaction)
            except StellarPipelinesError as e:
                raise FeeBumpPluginError(
                    FeeBumpPluginErrorCode.FAILED_TO_FEE_BUMP,
                    details=f"[{e.code.value}] {e.message}",
                    cause=e,
                ) from e

            logger.info(f"Fee bumped transaction {transaction.hash_hex()} as {fee_bump.hash_hex()}")
            return dataclasses.replace(input, transaction=fee_bump)

        return Plugin(name=PLUGIN_NAME, process_input=process_input, target=FeeBumpPlugin.target)


__all__ = [
    "PLUGIN_NAME",
    "FeeBumpPluginErrorCode",
    "FeeBumpPluginError",
    "create_fee_bump_pipeline",
    "FeeBumpPlugin",
]
