"""Tests for the error model, network configuration and address helpers."""

from decimal import Decimal

import pytest
from pydantic import ValidationError
from stellar_sdk import MuxedAccount, StrKey

from stellar_pipelines.runtime.address import (
    ZERO_ACCOUNT,
    AddressKind,
    address_kind,
    is_account_address,
    is_contract_address,
    is_muxed_address,
    to_base_account,
)
from stellar_pipelines.runtime.config import NetworkConfig, TransactionConfig, parse_fee
from stellar_pipelines.runtime.errors import ConfigError, CoreErrorCode, ErrorDomain

from helpers import TEST_PASSPHRASE, mk_address, mk_contract_address

MUXED_STRKEY = MuxedAccount(mk_address(4), 7).account_muxed
CLAIMABLE_BALANCE = StrKey.encode_claimable_balance(b"\x00" + bytes(range(32)))
LIQUIDITY_POOL = StrKey.encode_liquidity_pool(bytes(range(32)))


class TestErrorModel:

    def test_str_includes_code_and_details(self):
        error = ConfigError(CoreErrorCode.INVALID_CONFIG, details="rpc url missing")

        assert str(error) == "[GEN_001] Invalid configuration! | Details: rpc url missing"

    def test_str_includes_cause(self):
        cause = KeyError("x")
        error = ConfigError(CoreErrorCode.UNEXPECTED_ERROR, cause=cause)

        assert "Caused by: KeyError('x')" in str(error)
        assert error.details == error.message

    def test_to_dict(self):
        error = ConfigError(CoreErrorCode.INVALID_ADDRESS, details="bad", data={"address": "x"})

        result = error.to_dict()

        assert result["domain"] == ErrorDomain.CORE.value
        assert result["code"] == "GEN_002"
        assert result["message"] == "Invalid address!"
        assert result["details"] == "bad"
        assert set(result["diagnostic"]) == {"rootCause", "suggestion"}
        assert "cause" not in result
        assert error.data == {"address": "x"}

    def test_data_defaults_to_empty(self):
        assert ConfigError(CoreErrorCode.INVALID_CONFIG).data == {}


class TestNetworkConfig:

    def test_trailing_slash_stripped(self):
        config = NetworkConfig(network_passphrase=TEST_PASSPHRASE, rpc_url=" https://rpc.example.org/ ")
        assert config.rpc_url == "https://rpc.example.org"

    def test_rpc_url_optional(self):
        assert NetworkConfig(network_passphrase=TEST_PASSPHRASE).rpc_url is None

    def test_http_requires_opt_in(self):
        with pytest.raises(ValidationError):
            NetworkConfig(network_passphrase=TEST_PASSPHRASE, rpc_url="http://localhost:8000")

        config = NetworkConfig(network_passphrase=TEST_PASSPHRASE, rpc_url="http://localhost:8000", allow_http=True)
        assert config.rpc_url == "http://localhost:8000"

    @pytest.mark.parametrize("url", ["ftp://rpc.example.org", "rpc.example.org"])
    def test_rejects_other_schemes(self, url):
        with pytest.raises(ValidationError):
            NetworkConfig(network_passphrase=TEST_PASSPHRASE, rpc_url=url)

    def test_passphrase_required(self):
        with pytest.raises(ValidationError):
            NetworkConfig(network_passphrase="")

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("STELLAR_NETWORK_PASSPHRASE", TEST_PASSPHRASE)
        monkeypatch.setenv("STELLAR_RPC_URL", "http://localhost:8000/")
        monkeypatch.setenv("STELLAR_ALLOW_HTTP", "true")

        config = NetworkConfig.from_env()

        assert config.network_passphrase == TEST_PASSPHRASE
        assert config.rpc_url == "http://localhost:8000"
        assert config.allow_http is True

    def test_from_env_custom_prefix(self, monkeypatch):
        monkeypatch.setenv("APP_NETWORK_PASSPHRASE", TEST_PASSPHRASE)
        monkeypatch.delenv("APP_RPC_URL", raising=False)

        config = NetworkConfig.from_env(prefix="APP_")

        assert config.rpc_url is None

    def test_from_env_missing_passphrase(self, monkeypatch):
        monkeypatch.delenv("STELLAR_NETWORK_PASSPHRASE", raising=False)

        with pytest.raises(ConfigError) as exc_info:
            NetworkConfig.from_env()

        assert exc_info.value.code == CoreErrorCode.INVALID_CONFIG
        assert "STELLAR_NETWORK_PASSPHRASE" in exc_info.value.details

    def test_from_env_invalid_url(self, monkeypatch):
        monkeypatch.setenv("STELLAR_NETWORK_PASSPHRASE", TEST_PASSPHRASE)
        monkeypatch.setenv("STELLAR_RPC_URL", "http://localhost:8000")
        monkeypatch.delenv("STELLAR_ALLOW_HTTP", raising=False)

        with pytest.raises(ConfigError) as exc_info:
            NetworkConfig.from_env()

        assert isinstance(exc_info.value.cause, ValidationError)

    def test_transaction_config_rejects_negative_timeout(self):
        with pytest.raises(ValidationError):
            TransactionConfig(fee=100, source=mk_address(1), timeout=-1)


class TestParseFee:

    @pytest.mark.parametrize(
        "value,expected",
        [(100, Decimal(100)), ("250", Decimal(250)), (" 7 ", Decimal(7)), ("1.5", Decimal("1.5"))],
    )
    def test_parses(self, value, expected):
        assert parse_fee(value) == expected

    @pytest.mark.parametrize("value", [None, True, "lots", "", "NaN", "Infinity"])
    def test_unparseable(self, value):
        assert parse_fee(value) is None


class TestAddresses:

    @pytest.mark.parametrize(
        "address,kind",
        [
            (mk_address(1), AddressKind.ACCOUNT),
            (mk_contract_address(1), AddressKind.CONTRACT),
            (MUXED_STRKEY, AddressKind.MUXED_ACCOUNT),
            (CLAIMABLE_BALANCE, AddressKind.CLAIMABLE_BALANCE),
            (LIQUIDITY_POOL, AddressKind.LIQUIDITY_POOL),
        ],
    )
    def test_address_kind(self, address, kind):
        assert address_kind(address) == kind

    @pytest.mark.parametrize("address", ["", "G123", "X" + "A" * 55, mk_address(1).lower()])
    def test_unknown_address_kind(self, address):
        with pytest.raises(ConfigError) as exc_info:
            address_kind(address)

        assert exc_info.value.code == CoreErrorCode.INVALID_ADDRESS
        assert exc_info.value.data == {"address": address}

    def test_predicates(self):
        assert is_account_address(ZERO_ACCOUNT)
        assert not is_account_address(mk_contract_address(1))
        assert not is_account_address(None)
        assert is_contract_address(mk_contract_address(2))
        assert is_muxed_address(MUXED_STRKEY)
        assert is_muxed_address(MuxedAccount(mk_address(1), 1))
        assert not is_muxed_address(MuxedAccount(mk_address(1)))
        assert not is_muxed_address(mk_address(1))


class TestBaseAccountResolution:

    def test_account_resolves_to_itself(self):
        assert to_base_account(mk_address(4)) == mk_address(4)

    def test_decoded_muxed_resolves_to_base(self):
        muxed = MuxedAccount(mk_address(4), 2**64 - 1)

        assert to_base_account(muxed) == mk_address(4)

    def test_muxed_strkey_resolves_to_base(self):
        assert MUXED_STRKEY.startswith("M")
        assert to_base_account(MUXED_STRKEY) == mk_address(4)

    def test_muxed_strkeys_of_one_account_share_the_base(self):
        other = MuxedAccount(mk_address(4), 8).account_muxed

        assert other != MUXED_STRKEY
        assert to_base_account(other) == to_base_account(MUXED_STRKEY)

    @pytest.mark.parametrize("source", [mk_contract_address(1), "garbage", "M" + "A" * 68])
    def test_invalid_source(self, source):
        with pytest.raises(ConfigError) as exc_info:
            to_base_account(source)

        assert exc_info.value.code == CoreErrorCode.INVALID_ADDRESS
        assert exc_info.value.data == {"address": source}
