from .mocks import MockRpc, RecordingSigner, FakeClock
from .factories import (
    TEST_PASSPHRASE, mk_keypair, mk_address, mk_hint, mk_contract_address, mk_payment, mk_bump_sequence,
    mk_invoke, mk_transaction, mk_auth_entry, mk_source_auth_entry, mk_soroban_data, mk_simulation,
)

__all__ = [
    "MockRpc",
    "RecordingSigner",
    "FakeClock",
    "TEST_PASSPHRASE",
    "mk_keypair",
    "mk_address",
    "mk_hint",
    "mk_contract_address",
    "mk_payment",
    "mk_bump_sequence",
    "mk_invoke",
    "mk_transaction",
    "mk_auth_entry",
    "mk_source_auth_entry",
    "mk_soroban_data",
    "mk_simulation",
]
