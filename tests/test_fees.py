"""Tests for fee resolution."""

from decimal import Decimal

import pytest

from kitwallet.wallet.fees import resolve_deposit_fee, resolve_withdrawal_fee


class TestWithdrawalFee:
    """Tests for withdrawal fee resolution."""

    def test_coin_default_fee(self, kit_config):
        quote = resolve_withdrawal_fee(kit_config.coin("btc"), None, "1", 1)

        assert quote.fee == Decimal("0.0001")
        assert quote.fee_coin == "btc"

    def test_network_override(self, kit_config):
        quote = resolve_withdrawal_fee(kit_config.coin("usdt"), "eth", "100", 1)

        assert quote.fee == Decimal("5")
        assert quote.fee_coin == "usdt"

    def test_network_override_in_other_coin(self, kit_config):
        quote = resolve_withdrawal_fee(kit_config.coin("usdt"), "trx", "100", 1)

        assert quote.fee == Decimal("0.1")
        assert quote.fee_coin == "trx"

    def test_unknown_network_keeps_default(self, kit_config):
        quote = resolve_withdrawal_fee(kit_config.coin("usdt"), "sol", "100", 1)

        assert quote.fee == Decimal("2")
        assert quote.fee_coin == "usdt"

    def test_fiat_percentage_fee(self, kit_config):
        quote = resolve_withdrawal_fee(kit_config.coin("usd"), "fiat", "200", 1)

        assert quote.fee == Decimal("2")
        assert quote.fee_coin == "usd"

    def test_fiat_level_override(self, kit_config):
        quote = resolve_withdrawal_fee(kit_config.coin("usd"), "fiat", "200", 2)

        assert quote.fee == Decimal("1")

    def test_email_transfer_is_free(self, kit_config):
        quote = resolve_withdrawal_fee(kit_config.coin("usdt"), "email", "100", 1)

        assert quote.fee == Decimal("0")
        assert quote.fee_coin == "usdt"

    @pytest.mark.parametrize(
        "currency,network",
        [("btc", None), ("usdt", "eth"), ("usdt", "trx"), ("usd", "fiat"), ("eth", "email")],
    )
    def test_fee_is_never_negative(self, kit_config, currency, network):
        quote = resolve_withdrawal_fee(kit_config.coin(currency), network, "0.5", 1)

        assert quote.fee >= 0


class TestDepositFee:
    """Tests for deposit fee resolution."""

    def test_static_deposit_fee(self, kit_config):
        quote = resolve_deposit_fee(kit_config.coin("usd"), "1000", 1)

        assert quote.fee == Decimal("3")
        assert quote.fee_coin == "usd"

    def test_no_deposit_fee_configured(self, kit_config):
        quote = resolve_deposit_fee(kit_config.coin("btc"), "1", 1)

        assert quote.fee == Decimal("0")


@pytest.mark.parametrize("amount", ["1", "1000", "0.00000001"])
def test_static_fee_ignores_amount(kit_config, amount):
    quote = resolve_deposit_fee(kit_config.coin("usd"), amount, 1)

    assert quote.fee == Decimal("3")
