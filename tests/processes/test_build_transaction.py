"""Tests for the BuildTransaction process."""

import time

import pytest
from stellar_sdk import LedgerBounds, MuxedAccount, TextMemo, TimeBounds, TransactionEnvelope

from stellar_pipelines.processes.build_transaction import (
    BuildTransaction,
    BuildTransactionError,
    BuildTransactionErrorCode,
    BuildTransactionInput,
)
from stellar_pipelines.tx.preconditions import TransactionPreconditions

from helpers import TEST_PASSPHRASE, MockRpc, mk_address, mk_payment, mk_soroban_data


def build_input(**overrides):
    values = dict(
        operations=[mk_payment()],
        source=mk_address(1),
        base_fee="100",
        network_passphrase=TEST_PASSPHRASE,
        sequence="41",
    )
    values.update(overrides)
    return BuildTransactionInput(**values)


class TestBuildTransaction:

    @pytest.mark.asyncio
    async def test_builds_with_explicit_sequence(self):
        """Test that the envelope consumes the next sequence number."""
        envelope = await BuildTransaction().run(build_input())

        assert isinstance(envelope, TransactionEnvelope)
        assert envelope.signatures == []
        assert envelope.network_passphrase == TEST_PASSPHRASE
        tx = envelope.transaction
        assert tx.sequence == 42
        assert tx.fee == 100
        assert tx.source.account_id == mk_address(1)

    @pytest.mark.asyncio
    async def test_loads_sequence_through_rpc(self):
        rpc = MockRpc(sequence=7)

        envelope = await BuildTransaction().run(build_input(sequence=None, rpc=rpc))

        assert envelope.transaction.sequence == 8
        rpc.load_account.assert_awaited_once_with(mk_address(1))

    @pytest.mark.asyncio
    async def test_muxed_source_loads_base_account_and_stays_muxed(self):
        muxed = MuxedAccount(mk_address(1), 9).account_muxed
        rpc = MockRpc(sequence=7)

        envelope = await BuildTransaction().run(build_input(source=muxed, sequence=None, rpc=rpc))

        rpc.load_account.assert_awaited_once_with(mk_address(1))
        assert envelope.transaction.source.account_muxed == muxed

    @pytest.mark.asyncio
    async def test_fee_scales_with_operations(self):
        envelope = await BuildTransaction().run(build_input(operations=[mk_payment(), mk_payment(), mk_payment()]))

        assert envelope.transaction.fee == 300

    @pytest.mark.asyncio
    async def test_soroban_data_resource_fee_is_added(self):
        envelope = await BuildTransaction().run(build_input(soroban_data=mk_soroban_data(resource_fee=50)))

        assert envelope.transaction.fee == 150
        assert envelope.transaction.soroban_data.resource_fee.int64 == 50

    @pytest.mark.asyncio
    async def test_soroban_data_accepts_xdr_text(self):
        envelope = await BuildTransaction().run(build_input(soroban_data=mk_soroban_data(resource_fee=5).to_xdr()))

        assert envelope.transaction.soroban_data == mk_soroban_data(resource_fee=5)

    @pytest.mark.asyncio
    async def test_no_limit_time_policy_by_default(self):
        """Test that every envelope carries a time policy, open when unrequested."""
        envelope = await BuildTransaction().run(build_input())

        assert envelope.transaction.preconditions.time_bounds == TimeBounds(min_time=0, max_time=0)

    @pytest.mark.asyncio
    async def test_preconditions_are_applied(self):
        preconditions = TransactionPreconditions(
            time_bounds=(10, 2_000_000_000),
            ledger_bounds=LedgerBounds(min_ledger=5, max_ledger=500),
            min_sequence_number="30",
            min_sequence_age=60,
            min_sequence_ledger_gap=2,
            extra_signers=[mk_address(8)],
        )

        envelope = await BuildTransaction().run(build_input(preconditions=preconditions, memo=TextMemo("hello")))

        tx = envelope.transaction
        assert tx.preconditions.time_bounds == TimeBounds(min_time=10, max_time=2_000_000_000)
        assert tx.preconditions.ledger_bounds == LedgerBounds(min_ledger=5, max_ledger=500)
        assert tx.preconditions.min_sequence_number == 30
        assert tx.preconditions.min_sequence_age == 60
        assert tx.preconditions.min_sequence_ledger_gap == 2
        assert [key.encoded_signer_key for key in tx.preconditions.extra_signers] == [mk_address(8)]
        assert tx.memo == TextMemo("hello")

    @pytest.mark.asyncio
    async def test_relative_timeout(self):
        before = int(time.time())

        envelope = await BuildTransaction().run(
            build_input(preconditions=TransactionPreconditions(timeout_seconds=30))
        )

        bounds = envelope.transaction.preconditions.time_bounds
        assert bounds.min_time == 0
        assert before + 30 <= bounds.max_time <= int(time.time()) + 30

    @pytest.mark.asyncio
    async def test_zero_timeout_means_no_limit(self):
        envelope = await BuildTransaction().run(
            build_input(preconditions=TransactionPreconditions(timeout_seconds=0))
        )

        assert envelope.transaction.preconditions.time_bounds == TimeBounds(min_time=0, max_time=0)


class TestBuildTransactionErrors:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("fee", ["abc", "", None])
    async def test_invalid_base_fee(self, fee):
        with pytest.raises(BuildTransactionError) as exc_info:
            await BuildTransaction().run(build_input(base_fee=fee))

        assert exc_info.value.code == BuildTransactionErrorCode.INVALID_BASE_FEE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("fee", ["0", "-5", -1])
    async def test_base_fee_too_low(self, fee):
        with pytest.raises(BuildTransactionError) as exc_info:
            await BuildTransaction().run(build_input(base_fee=fee))

        assert exc_info.value.code == BuildTransactionErrorCode.BASE_FEE_TOO_LOW

    @pytest.mark.asyncio
    async def test_no_operations(self):
        with pytest.raises(BuildTransactionError) as exc_info:
            await BuildTransaction().run(build_input(operations=[]))

        assert exc_info.value.code == BuildTransactionErrorCode.NO_OPERATIONS_PROVIDED

    @pytest.mark.asyncio
    async def test_conflicting_time_constraints(self):
        """Test that time bounds and a timeout together are rejected."""
        preconditions = TransactionPreconditions(time_bounds=(0, 2_000_000_000), timeout_seconds=30)

        with pytest.raises(BuildTransactionError) as exc_info:
            await BuildTransaction().run(build_input(preconditions=preconditions))

        assert exc_info.value.code == BuildTransactionErrorCode.CONFLICTING_TIME_CONSTRAINTS

    @pytest.mark.asyncio
    async def test_negative_timeout(self):
        with pytest.raises(BuildTransactionError) as exc_info:
            await BuildTransaction().run(build_input(preconditions=TransactionPreconditions(timeout_seconds=-1)))

        assert exc_info.value.code == BuildTransactionErrorCode.FAILED_TO_SET_PRECONDITIONS

    @pytest.mark.asyncio
    async def test_too_many_extra_signers(self):
        preconditions = TransactionPreconditions(extra_signers=[mk_address(2), mk_address(3), mk_address(4)])

        with pytest.raises(BuildTransactionError) as exc_info:
            await BuildTransaction().run(build_input(preconditions=preconditions))

        assert exc_info.value.code == BuildTransactionErrorCode.FAILED_TO_SET_PRECONDITIONS

    @pytest.mark.asyncio
    async def test_bad_sequence(self):
        with pytest.raises(BuildTransactionError) as exc_info:
            await BuildTransaction().run(build_input(sequence="twelve"))

        assert exc_info.value.code == BuildTransactionErrorCode.COULD_NOT_INITIALIZE_ACCOUNT_WITH_SEQUENCE

    @pytest.mark.asyncio
    async def test_rpc_required_without_sequence(self):
        with pytest.raises(BuildTransactionError) as exc_info:
            await BuildTransaction().run(build_input(sequence=None))

        assert exc_info.value.code == BuildTransactionErrorCode.RPC_REQUIRED_TO_LOAD_ACCOUNT

    @pytest.mark.asyncio
    async def test_account_load_failure(self):
        rpc = MockRpc()
        rpc.load_account.side_effect = LookupError("account not found")

        with pytest.raises(BuildTransactionError) as exc_info:
            await BuildTransaction().run(build_input(sequence=None, rpc=rpc))

        assert exc_info.value.code == BuildTransactionErrorCode.COULD_NOT_LOAD_SOURCE_ACCOUNT
        assert isinstance(exc_info.value.cause, LookupError)

    @pytest.mark.asyncio
    async def test_bad_soroban_data(self):
        with pytest.raises(BuildTransactionError) as exc_info:
            await BuildTransaction().run(build_input(soroban_data="not soroban data"))

        assert exc_info.value.code == BuildTransactionErrorCode.COULD_NOT_SET_SOROBAN_DATA

    @pytest.mark.asyncio
    async def test_input_is_attached_to_error(self):
        payload = build_input(operations=[])

        with pytest.raises(BuildTransactionError) as exc_info:
            await BuildTransaction().run(payload)

        assert exc_info.value.input is payload
