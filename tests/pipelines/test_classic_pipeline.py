"""Tests for the classic transaction pipeline."""

from unittest.mock import patch

import pytest
from stellar_sdk import AccountMerge

from stellar_pipelines.pipelines.classic import PIPELINE_NAME, create_classic_transaction_pipeline
from stellar_pipelines.pipelines.connectors import TransactionRequest, TransactionResult
from stellar_pipelines.pipelines.errors import PipelineError, PipelineErrorCode
from stellar_pipelines.processes.base import Plugin
from stellar_pipelines.processes.send_transaction import SendTransactionError, SendTransactionErrorCode
from stellar_pipelines.processes.sign_envelope import SignEnvelopeError, SignEnvelopeErrorCode
from stellar_pipelines.runtime.config import NetworkConfig, TransactionConfig

from helpers import TEST_PASSPHRASE, MockRpc, RecordingSigner, mk_address, mk_hint, mk_payment


def request(source, signers, operations=None, timeout=0):
    return TransactionRequest(
        operations=operations or [mk_payment()],
        config=TransactionConfig(fee="100", source=source, timeout=timeout, signers=signers),
    )


class TestClassicPipeline:

    @pytest.mark.asyncio
    async def test_builds_signs_and_submits(self, network_config, rpc, source_address, source_signer):
        """Test a payment going through every stage."""
        pipeline = create_classic_transaction_pipeline(network_config, rpc=rpc)

        result = await pipeline.run(request(source_address, [source_signer]))

        assert isinstance(result, TransactionResult)
        assert result.response.status == "SUCCESS"
        [sent] = rpc.sent
        assert sent.transaction.sequence == 101
        assert [s.signature_hint for s in sent.signatures] == [mk_hint(source_address)]
        assert result.hash == sent.hash_hex()
        assert pipeline.name == PIPELINE_NAME

    def test_stages(self, network_config, rpc):
        pipeline = create_classic_transaction_pipeline(network_config, rpc=rpc)

        assert [p.name for p in pipeline.processes] == [
            "BuildTransaction",
            "EnvelopeSigningRequirements",
            "SignEnvelope",
            "SendTransaction",
        ]

    @pytest.mark.asyncio
    async def test_operation_sources_sign_too(self, network_config, rpc, source_address, source_signer):
        other = mk_address(2)
        other_signer = RecordingSigner(other)
        operations = [mk_payment(), AccountMerge(mk_address(9), source=other)]

        await create_classic_transaction_pipeline(network_config, rpc=rpc).run(
            request(source_address, [other_signer, source_signer], operations)
        )

        assert {s.signature_hint for s in rpc.sent[0].signatures} == {mk_hint(source_address), mk_hint(other)}

    @pytest.mark.asyncio
    async def test_timeout_becomes_time_bounds(self, network_config, rpc, source_address, source_signer):
        await create_classic_transaction_pipeline(network_config, rpc=rpc).run(
            request(source_address, [source_signer], timeout=30)
        )

        assert rpc.sent[0].transaction.preconditions.time_bounds.max_time > 0

    @pytest.mark.asyncio
    async def test_missing_signer_stops_before_submission(self, network_config, rpc, source_address):
        pipeline = create_classic_transaction_pipeline(network_config, rpc=rpc)

        with pytest.raises(SignEnvelopeError) as exc_info:
            await pipeline.run(request(source_address, [RecordingSigner(mk_address(4))]))

        assert exc_info.value.code == SignEnvelopeErrorCode.SIGNER_NOT_FOUND
        rpc.send_transaction.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_submission_failure_propagates(self, network_config, source_address, source_signer):
        rpc = MockRpc(send_status="TRY_AGAIN_LATER")

        with pytest.raises(SendTransactionError) as exc_info:
            await create_classic_transaction_pipeline(network_config, rpc=rpc).run(
                request(source_address, [source_signer])
            )

        assert exc_info.value.code == SendTransactionErrorCode.TRY_AGAIN_LATER

    @pytest.mark.asyncio
    async def test_plugins_by_stage(self, network_config, rpc, source_address, source_signer):
        seen = []

        def spy(value):
            seen.append(type(value).__name__)
            return value

        pipeline = create_classic_transaction_pipeline(
            network_config,
            rpc=rpc,
            plugins={"SignEnvelope": [Plugin("spy", spy)], "SendTransaction": [Plugin("spy2", spy)]},
        )
        await pipeline.run(request(source_address, [source_signer]))

        assert seen == ["SignEnvelopeInput", "SendTransactionInput"]


class TestClassicPipelineFactory:

    def test_missing_network_config(self, rpc):
        with pytest.raises(PipelineError) as exc_info:
            create_classic_transaction_pipeline(None, rpc=rpc)

        assert exc_info.value.code == PipelineErrorCode.CLASSIC_MISSING_ARG

    def test_missing_rpc_url(self):
        config = NetworkConfig(network_passphrase=TEST_PASSPHRASE)

        with pytest.raises(PipelineError) as exc_info:
            create_classic_transaction_pipeline(config)

        assert exc_info.value.code == PipelineErrorCode.CLASSIC_MISSING_RPC_URL

    def test_rpc_client_from_url(self, network_config):
        """Test that a client is created for the configured url when none is given."""
        with patch("stellar_pipelines.pipelines.factory.SorobanRpcClient") as client_class:
            create_classic_transaction_pipeline(network_config)

        client_class.assert_called_once_with("https://rpc.example.org")

    def test_unknown_plugin_stage(self, network_config, rpc):
        with pytest.raises(PipelineError) as exc_info:
            create_classic_transaction_pipeline(
                network_config, rpc=rpc, plugins={"SimulateTransaction": [Plugin("p", lambda v: v)]}
            )

        assert exc_info.value.code == PipelineErrorCode.UNKNOWN_STAGE

    def test_misdirected_plugin_is_unexpected(self, network_config, rpc):
        """Test that a plugin targeting another stage surfaces as a factory error."""
        plugin = Plugin("misdirected", lambda v: v, target="SimulateTransaction")

        with pytest.raises(PipelineError) as exc_info:
            create_classic_transaction_pipeline(network_config, rpc=rpc, plugins={"SendTransaction": [plugin]})

        assert exc_info.value.code == PipelineErrorCode.CLASSIC_UNEXPECTED_ERROR
        assert isinstance(exc_info.value.cause, ValueError)
