"""Tests for settings and coin configuration loading."""

import json
from decimal import Decimal

import pytest
from pydantic import ValidationError

from kitwallet.coins import KitConfig
from kitwallet.config import Settings, load_kit_config


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.withdrawal_token_expiry == 300
        assert settings.accumulation_page_size == 50
        assert settings.accumulation_rescope_pages is False

    def test_safe_dict_redacts_secrets(self):
        settings = Settings(
            _env_file=None,
            database_url="postgresql+asyncpg://kit:hunter2@db/kit",
            network_api_secret="very-secret",
        )

        safe = settings.get_safe_dict()

        assert safe["database_url"] == "postgresql+asyncpg://kit:***@db/kit"
        assert safe["network"]["api_secret"] == "***"
        assert "hunter2" not in json.dumps(safe)


class TestKitConfig:
    """Tests for the coin catalogue."""

    def test_load_wrapped_document(self, tmp_path):
        path = tmp_path / "coins.json"
        path.write_text(json.dumps({"coins": {"btc": {"withdrawal_fee": "0.0005"}}}))

        config = load_kit_config(str(path))

        assert config.subscribed("btc")
        assert config.coin("btc").symbol == "btc"
        assert config.coin("btc").withdrawal_fee == Decimal("0.0005")

    def test_load_bare_mapping(self, tmp_path):
        path = tmp_path / "coins.json"
        path.write_text(json.dumps({"eth": {"display_name": "Ethereum"}}))

        config = load_kit_config(str(path))

        assert config.display_name("eth") == "Ethereum"
        assert config.display_name("xyz") == "xyz"

    def test_no_path_means_no_coins(self):
        assert load_kit_config(None).coins == {}

    def test_networks_list(self, kit_config):
        assert kit_config.coin("usdt").networks == ["eth", "trx"]
        assert kit_config.coin("btc").networks == []

    def test_negative_fee_rejected(self):
        with pytest.raises(ValidationError):
            KitConfig.model_validate({"coins": {"btc": {"withdrawal_fee": "-1"}}})

    def test_snapshot_is_immutable(self, kit_config):
        with pytest.raises(ValidationError):
            kit_config.coin("btc").withdrawal_fee = Decimal("1")

    def test_unsubscribed(self, kit_config):
        assert not kit_config.subscribed("zzz")
        assert not kit_config.subscribed(None)
