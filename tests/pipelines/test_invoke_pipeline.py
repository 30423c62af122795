"""Tests for the invoke contract pipeline."""

import asyncio

import pytest
from stellar_sdk import scval

from stellar_pipelines.pipelines.connectors import TransactionRequest
from stellar_pipelines.pipelines.errors import PipelineError, PipelineErrorCode
from stellar_pipelines.pipelines.invoke import create_invoke_contract_pipeline
from stellar_pipelines.processes.send_transaction import SendTransactionOutput
from stellar_pipelines.processes.sign_auth_entries import ValidUntilLedger
from stellar_pipelines.processes.simulate_transaction import SimulateTransactionError, SimulateTransactionErrorCode
from stellar_pipelines.rpc.types import SimulateTransactionResponse
from stellar_pipelines.runtime.config import NetworkConfig, TransactionConfig
from stellar_pipelines.tx.auth import is_signed, signature_expiration_ledger

from helpers import (
    TEST_PASSPHRASE,
    MockRpc,
    RecordingSigner,
    mk_address,
    mk_auth_entry,
    mk_hint,
    mk_invoke,
    mk_simulation,
    mk_source_auth_entry,
)


def invoke_request(source, signers, fee="100"):
    return TransactionRequest(
        operations=[mk_invoke()],
        config=TransactionConfig(fee=fee, source=source, signers=signers),
    )


class TestInvokePipeline:

    @pytest.mark.asyncio
    async def test_runs_all_stages(self, network_config, source_address, source_signer):
        """Test build, simulate, auth signing, assembly, signing and submission."""
        auth_signer = RecordingSigner(mk_address(2))
        simulation = mk_simulation(
            auth=[mk_auth_entry(mk_address(2))], retval=scval.to_uint64(9), min_resource_fee=50
        )
        rpc = MockRpc(simulation=simulation, latest_ledger=2000, return_value=scval.to_uint64(9))
        pipeline = create_invoke_contract_pipeline(network_config, rpc=rpc)

        output = await pipeline.run(invoke_request(source_address, [source_signer, auth_signer]))

        assert isinstance(output, SendTransactionOutput)
        assert scval.from_uint64(output.return_value) == 9

        [sent] = rpc.sent
        assert sent.transaction.fee == 150
        assert sent.transaction.sequence == 101
        assert sent.transaction.soroban_data.resource_fee.int64 == 50
        [entry] = sent.transaction.operations[0].auth
        assert is_signed(entry)
        # Default validity is 120 ledgers past the latest ledger
        assert signature_expiration_ledger(entry) == 2120
        assert [s.signature_hint for s in sent.signatures] == [mk_hint(source_address)]

    def test_stage_order(self, network_config, rpc):
        pipeline = create_invoke_contract_pipeline(network_config, rpc=rpc)

        assert [p.name for p in pipeline.processes] == [
            "BuildTransaction",
            "SimulateTransaction",
            "SignAuthEntries",
            "AssembleTransaction",
            "EnvelopeSigningRequirements",
            "SignEnvelope",
            "SendTransaction",
        ]

    @pytest.mark.asyncio
    async def test_explicit_auth_validity(self, network_config, source_address, source_signer):
        rpc = MockRpc(simulation=mk_simulation(auth=[mk_auth_entry(mk_address(2))]))
        pipeline = create_invoke_contract_pipeline(network_config, rpc=rpc, auth_validity=ValidUntilLedger(4242))

        await pipeline.run(invoke_request(source_address, [source_signer, RecordingSigner(mk_address(2))]))

        assert signature_expiration_ledger(rpc.sent[0].transaction.operations[0].auth[0]) == 4242
        rpc.get_latest_ledger.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_source_account_auth_is_carried_unsigned(self, network_config, source_address, source_signer):
        rpc = MockRpc(simulation=mk_simulation(auth=[mk_source_auth_entry()]))

        await create_invoke_contract_pipeline(network_config, rpc=rpc).run(
            invoke_request(source_address, [source_signer])
        )

        assert rpc.sent[0].transaction.operations[0].auth == [mk_source_auth_entry()]

    @pytest.mark.asyncio
    async def test_simulation_failure_stops_the_run(self, network_config, source_address, source_signer):
        rpc = MockRpc(simulation=SimulateTransactionResponse(latest_ledger=1, error="trapped"))

        with pytest.raises(SimulateTransactionError) as exc_info:
            await create_invoke_contract_pipeline(network_config, rpc=rpc).run(
                invoke_request(source_address, [source_signer])
            )

        assert exc_info.value.code == SimulateTransactionErrorCode.SIMULATION_FAILED
        rpc.send_transaction.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_concurrent_runs_do_not_share_context(self, network_config, source_signer, source_address):
        """Test that one pipeline instance can serve two runs."""
        rpc = MockRpc(statuses=["SUCCESS", "SUCCESS"])
        pipeline = create_invoke_contract_pipeline(network_config, rpc=rpc)

        await asyncio.gather(
            pipeline.run(invoke_request(source_address, [source_signer])),
            pipeline.run(invoke_request(source_address, [source_signer])),
        )

        assert len(rpc.sent) == 2


class TestInvokePipelineFactory:

    def test_missing_network_config(self, rpc):
        with pytest.raises(PipelineError) as exc_info:
            create_invoke_contract_pipeline(None, rpc=rpc)

        assert exc_info.value.code == PipelineErrorCode.INVOKE_MISSING_ARG

    def test_missing_rpc_url(self):
        with pytest.raises(PipelineError) as exc_info:
            create_invoke_contract_pipeline(NetworkConfig(network_passphrase=TEST_PASSPHRASE))

        assert exc_info.value.code == PipelineErrorCode.INVOKE_MISSING_RPC_URL
