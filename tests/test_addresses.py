"""Tests for withdrawal address validation."""

import pytest

from kitwallet.addresses import AddressRule, get_address_validator, is_valid_address, select_rule

VALID_ETH = "0xde0B295669a9FD93d5F28D9Ec85E40f4cb697BAe"
VALID_BTC = "1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNa"
VALID_BTC_BECH32 = "bc1qar0srrr7xfkvy5l643lydnw9re59gtzzwf5mdq"
VALID_TRX = "TR7NHqjeKQxGTCi8q8ZY4pL8otSzgjLj6t"
VALID_XLM = "GAAZI4TCR3TY5OJHCTJC2A4QSY6CJWJH5IAJTGKIN2ER7LBNVKOCCWN7"
VALID_XRP = "rHb9CJAWyB4rj91VRWn96DkukG4bwdtyTh"
VALID_BCH = "bitcoincash:qpm2qsznhks23z7629mms6s4cwef74vcwvy22gdx6a"
VALID_LTC = "LaMT348PWRnrqeeWArpwQPbuanpXDZGEUz"
VALID_LTC_P2SH = "MGxNPPB7eBoWPUaprtX9v9CXJZoD2465zN"
VALID_LTC_BECH32 = "ltc1qg42tkwuuxefutzxezdkdel39gfstuap288mfea"
VALID_DOGE = "DH5yaieqoZN36fDVciNyRueRGvGLR3mr7L"
VALID_DASH = "XpESxaUmonkq8RaLLp46Brx2K39ggQe226"
VALID_DASH_P2SH = "7gnwGHt17heGpG9Crfeh4KGpYNFugPhJdh"
VALID_SOL = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"
VALID_XMR = (
    "44AFFq5kSiGBoZ4NMDwYtN18obc8AemS33DBLWs3H7otXft3XjrpDtQGv7SqSsaBYBb98uNbr2VBBEt7f2wfn3RVGQBEP3A"
)


class TestRuleSelection:
    """Network rules are checked before currency rules."""

    @pytest.mark.parametrize(
        "currency,network,rule",
        [
            ("usdt", "eth", AddressRule.ETH),
            ("usdt", "ethereum", AddressRule.ETH),
            ("usdc", "stellar", AddressRule.XLM_MEMO),
            ("usdt", "trx", AddressRule.TRX),
            ("usdt", "tron", AddressRule.TRX),
            ("busd", "bsc", AddressRule.BSC),
            ("bnb", None, AddressRule.BSC),
            ("btc", None, AddressRule.NATIVE),
            ("xmr", None, AddressRule.NATIVE),
            ("xrp", None, AddressRule.XRP_MEMO),
            ("etn", None, AddressRule.BYPASS),
            ("ltc", None, AddressRule.REGISTRY),
            ("zzz", None, AddressRule.UNKNOWN_PERMISSIVE),
        ],
    )
    def test_select_rule(self, currency, network, rule):
        assert select_rule(currency, network) is rule

    def test_network_wins_over_native_currency(self):
        # btc requested over bsc is a pegged token with an EVM address
        assert select_rule("btc", "bsc") is AddressRule.BSC
        assert is_valid_address("btc", VALID_ETH, "bsc") is True
        assert is_valid_address("btc", VALID_BTC, "bsc") is False


class TestIsValidAddress:
    """Tests for is_valid_address."""

    def test_eth(self):
        assert is_valid_address("eth", VALID_ETH) is True

    def test_eth_requires_prefix(self):
        assert is_valid_address("eth", VALID_ETH[2:]) is False

    def test_eth_bad_checksum(self):
        assert is_valid_address("eth", VALID_ETH.replace("B", "b", 1)) is False

    def test_eth_single_case_skips_checksum(self):
        assert is_valid_address("eth", VALID_ETH.lower()) is True
        assert is_valid_address("eth", "0x" + VALID_ETH[2:].upper()) is True

    def test_evm_token_bad_checksum(self):
        mistyped = VALID_ETH.replace("F", "f", 1)
        assert is_valid_address("usdt", mistyped, "eth") is False
        assert is_valid_address("busd", mistyped, "bsc") is False

    def test_btc_legacy(self):
        assert is_valid_address("btc", VALID_BTC) is True

    def test_btc_bech32(self):
        assert is_valid_address("btc", VALID_BTC_BECH32) is True

    def test_btc_garbage(self):
        assert is_valid_address("btc", "1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNb") is False
        assert is_valid_address("btc", "") is False

    def test_bch_cashaddr(self):
        assert is_valid_address("bch", VALID_BCH) is True
        assert is_valid_address("bch", VALID_BCH.split(":")[1]) is True

    def test_usdt_on_tron(self):
        assert is_valid_address("usdt", VALID_TRX, "trx") is True
        assert is_valid_address("usdt", VALID_ETH, "trx") is False

    def test_usdt_on_eth(self):
        assert is_valid_address("usdt", VALID_ETH, "eth") is True
        assert is_valid_address("usdt", VALID_TRX, "eth") is False

    def test_xlm_with_memo(self):
        assert is_valid_address("xlm", f"{VALID_XLM}:12345", "stellar") is True
        assert is_valid_address("xlm", "GBAD:12345", "stellar") is False

    def test_xrp_with_destination_tag(self):
        assert is_valid_address("xrp", f"{VALID_XRP}:4242") is True
        assert is_valid_address("xrp", VALID_XRP) is True
        assert is_valid_address("xrp", "rNotAnAddress:4242") is False

    def test_ltc(self):
        assert is_valid_address("ltc", VALID_LTC) is True
        assert is_valid_address("ltc", VALID_LTC_P2SH) is True
        assert is_valid_address("ltc", VALID_LTC_BECH32) is True

    def test_ltc_rejects_other_chains_and_bad_checksum(self):
        assert is_valid_address("ltc", VALID_BTC) is False
        assert is_valid_address("ltc", VALID_LTC[:-1] + "y") is False
        assert is_valid_address("ltc", VALID_LTC_BECH32[:-1] + "q") is False

    def test_doge(self):
        assert is_valid_address("doge", VALID_DOGE) is True
        assert is_valid_address("doge", VALID_DOGE[:-1] + "M") is False
        assert is_valid_address("doge", VALID_LTC) is False

    def test_dash(self):
        assert is_valid_address("dash", VALID_DASH) is True
        assert is_valid_address("dash", VALID_DASH_P2SH) is True
        assert is_valid_address("dash", VALID_DASH[:-1] + "7") is False
        assert is_valid_address("dash", VALID_DOGE) is False

    def test_xmr(self):
        assert is_valid_address("xmr", VALID_XMR) is True

    def test_xmr_bad_checksum_or_length(self):
        assert is_valid_address("xmr", VALID_XMR[:-1] + "B") is False
        assert is_valid_address("xmr", VALID_XMR[:-11]) is False
        assert is_valid_address("xmr", VALID_BTC) is False

    def test_sol(self):
        assert is_valid_address("sol", VALID_SOL) is True

    def test_sol_rejects_wrong_length(self):
        assert is_valid_address("sol", VALID_BTC) is False
        assert is_valid_address("sol", VALID_SOL[:-4]) is False
        assert is_valid_address("sol", "0OIl") is False

    def test_bypass_and_unknown_are_permissive(self):
        assert is_valid_address("etn", "anything") is True
        assert is_valid_address("zzz", "anything") is True


def test_validator_registry_is_cached():
    assert get_address_validator("btc") is get_address_validator("BTC")
    assert get_address_validator("zzz") is None


@pytest.mark.parametrize(
    "currency,address,network",
    [("eth", VALID_ETH, None), ("btc", "not-an-address", None), ("xrp", f"{VALID_XRP}:1", None)],
)
def test_validation_is_repeatable(currency, address, network):
    assert is_valid_address(currency, address, network) == is_valid_address(currency, address, network)
