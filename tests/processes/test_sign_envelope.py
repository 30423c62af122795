"""Tests for the SignEnvelope process."""

import pytest
from stellar_sdk import FeeBumpTransactionEnvelope, Keypair, TransactionBuilder, TransactionEnvelope

from stellar_pipelines.processes.sign_envelope import (
    SignEnvelope,
    SignEnvelopeError,
    SignEnvelopeErrorCode,
    SignEnvelopeInput,
)
from stellar_pipelines.signers.requirements import SOURCE_ACCOUNT, OperationThreshold, SignatureRequirement

from helpers import TEST_PASSPHRASE, RecordingSigner, mk_address, mk_hint, mk_payment, mk_transaction


def requirement(address, threshold=OperationThreshold.MEDIUM):
    return SignatureRequirement(address, threshold)


def fee_bump_of(inner, fee_source):
    return TransactionBuilder.build_fee_bump_transaction(fee_source, 200, inner, TEST_PASSPHRASE)


class BrokenSigner(RecordingSigner):
    """Signer returning a configurable bogus payload."""

    def __init__(self, address, payload):
        super().__init__(address)
        self.payload = payload

    async def sign_transaction(self, envelope):
        self.transaction_calls.append(envelope)
        return self.payload


class TestSignEnvelope:

    @pytest.mark.asyncio
    async def test_signs_every_requirement(self):
        """Test that each required address signs once."""
        source, other = mk_address(1), mk_address(2)
        tx = mk_transaction(source=source, operations=[mk_payment(), mk_payment(source=other)])
        signers = [RecordingSigner(source), RecordingSigner(other)]

        signed = await SignEnvelope().run(
            SignEnvelopeInput(tx, [requirement(source), requirement(other)], signers)
        )

        assert isinstance(signed, TransactionEnvelope)
        assert [s.signature_hint for s in signed.signatures] == [mk_hint(source), mk_hint(other)]
        assert signed.hash() == tx.hash()
        assert tx.signatures == []
        assert len(signers[0].transaction_calls) == 1
        assert len(signers[1].transaction_calls) == 1

    @pytest.mark.asyncio
    async def test_signer_required_twice_signs_twice(self):
        """Test that duplicate requirements invoke the signer once each."""
        source = mk_address(1)
        signer = RecordingSigner(source)

        signed = await SignEnvelope().run(
            SignEnvelopeInput(mk_transaction(source=source), [requirement(source), requirement(source)], [signer])
        )

        assert len(signer.transaction_calls) == 2
        assert len(signed.signatures) == 2

    @pytest.mark.asyncio
    async def test_source_account_pseudo_address(self):
        """Test that the source-account requirement resolves to the envelope source."""
        source = mk_address(1)
        signer = RecordingSigner(source)

        signed = await SignEnvelope().run(
            SignEnvelopeInput(mk_transaction(source=source), [requirement(SOURCE_ACCOUNT)], [signer])
        )

        assert signed.signatures[0].signature_hint == mk_hint(source)

    @pytest.mark.asyncio
    async def test_fee_bump_stays_fee_bump(self):
        """Test that signing a fee bump resolves the fee source and keeps the shape."""
        inner = mk_transaction(source=mk_address(1))
        fee_source = mk_address(3)
        signer = RecordingSigner(fee_source)

        signed = await SignEnvelope().run(
            SignEnvelopeInput(
                fee_bump_of(inner, fee_source), [requirement(SOURCE_ACCOUNT, OperationThreshold.LOW)], [signer]
            )
        )

        assert isinstance(signed, FeeBumpTransactionEnvelope)
        assert signed.signatures[0].signature_hint == mk_hint(fee_source)
        assert signed.transaction.inner_transaction_envelope.hash() == inner.hash()

    @pytest.mark.asyncio
    async def test_signer_not_found_lists_available(self):
        """Test that a missing signer names the address and the available ones."""
        missing, present = mk_address(5), mk_address(1)

        with pytest.raises(SignEnvelopeError) as exc_info:
            await SignEnvelope().run(
                SignEnvelopeInput(mk_transaction(), [requirement(missing)], [RecordingSigner(present)])
            )

        error = exc_info.value
        assert error.code == SignEnvelopeErrorCode.SIGNER_NOT_FOUND
        assert missing in error.details
        assert present in error.details
        assert error.data["address"] == missing

    @pytest.mark.asyncio
    async def test_no_requirements(self):
        with pytest.raises(SignEnvelopeError) as exc_info:
            await SignEnvelope().run(SignEnvelopeInput(mk_transaction(), [], [RecordingSigner(mk_address(1))]))

        assert exc_info.value.code == SignEnvelopeErrorCode.NO_REQUIREMENTS

    @pytest.mark.asyncio
    async def test_no_signers(self):
        with pytest.raises(SignEnvelopeError) as exc_info:
            await SignEnvelope().run(SignEnvelopeInput(mk_transaction(), [requirement(mk_address(1))], []))

        assert exc_info.value.code == SignEnvelopeErrorCode.NO_SIGNERS

    @pytest.mark.asyncio
    async def test_signer_exception(self):
        """Test that a raising signer is a signing failure naming it."""
        source = mk_address(1)

        with pytest.raises(SignEnvelopeError) as exc_info:
            await SignEnvelope().run(
                SignEnvelopeInput(mk_transaction(), [requirement(source)], [RecordingSigner(source, fail=True)])
            )

        assert exc_info.value.code == SignEnvelopeErrorCode.FAILED_TO_SIGN_TRANSACTION
        assert exc_info.value.data["address"] == source
        assert isinstance(exc_info.value.cause, RuntimeError)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload_kind", ["garbage", "other_transaction", "other_shape"])
    async def test_malformed_result(self, payload_kind):
        """Test that undecodable, foreign or reshaped results are rejected."""
        source = mk_address(1)
        tx = mk_transaction(source=source)
        if payload_kind == "garbage":
            payload = "not an envelope"
        elif payload_kind == "other_transaction":
            payload = mk_transaction(source=source, sequence=500).to_xdr()
        else:
            payload = fee_bump_of(tx, source).to_xdr()

        with pytest.raises(SignEnvelopeError) as exc_info:
            await SignEnvelope().run(SignEnvelopeInput(tx, [requirement(source)], [BrokenSigner(source, payload)]))

        assert exc_info.value.code == SignEnvelopeErrorCode.FAILED_TO_SIGN_TRANSACTION
        assert source in exc_info.value.details

    @pytest.mark.asyncio
    async def test_real_ed25519_signature_verifies(self, ed25519_signer):
        """Test signing with the local Ed25519 signer."""
        tx = mk_transaction(source=ed25519_signer.address)

        signed = await SignEnvelope().run(
            SignEnvelopeInput(tx, [requirement(ed25519_signer.address)], [ed25519_signer])
        )

        Keypair.from_public_key(ed25519_signer.address).verify(tx.hash(), signed.signatures[0].signature)
