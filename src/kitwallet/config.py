"""Application configuration using pydantic-settings.

Process settings come from the environment. The coin catalogue is a separate
JSON document loaded into an immutable ``KitConfig`` snapshot that is only
replaced by an explicit reload.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from kitwallet.coins import KitConfig

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Database
    # ======================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/kitwallet.db",
        description="Database connection URL",
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")

    # ======================
    # Admin
    # ======================
    admin_token: str = Field(default="", description="Admin API token for protected endpoints")

    # ======================
    # Network (ledger service)
    # ======================
    network_url: str = Field(default="", description="Base URL of the ledger network API")
    network_exchange_id: int = Field(default=0, description="Exchange id on the network")
    network_api_key: str = Field(default="", description="Network API key")
    network_api_secret: str = Field(default="", description="Network API secret for signing")
    network_timeout: float = Field(default=30.0, description="Network request timeout (seconds)")

    # ======================
    # Coins
    # ======================
    coins_config_path: Optional[str] = Field(
        default=None, description="Path to the JSON coin configuration"
    )

    # ======================
    # Withdrawals
    # ======================
    withdrawal_token_expiry: int = Field(
        default=300, description="Lifetime of a withdrawal confirmation token (seconds)"
    )
    accumulation_page_size: int = Field(
        default=50, description="Page size used when reading withdrawal history"
    )
    accumulation_request_delay: float = Field(
        default=0.5, description="Delay between sequential network reads (seconds)"
    )
    accumulation_rescope_pages: bool = Field(
        default=False,
        description="Apply the currency filter to every history page, not only the first",
    )

    # ======================
    # Mail
    # ======================
    mail_api_url: str = Field(default="", description="Mail relay endpoint (empty = log only)")
    mail_api_key: str = Field(default="", description="Mail relay API key")
    mail_sender: str = Field(default="no-reply@localhost", description="Sender address")
    default_domain: str = Field(default="http://localhost:3000", description="Link domain for mails")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def has_network(self) -> bool:
        """Check if the ledger network is configured."""
        return bool(self.network_url and self.network_api_key and self.network_api_secret)

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "database_url": self._redact_url(self.database_url),
            "admin_token": "***" if self.admin_token else "(not set)",
            "network": {
                "url": self.network_url or "(not set)",
                "exchange_id": self.network_exchange_id,
                "api_key": "***" if self.network_api_key else "(not set)",
                "api_secret": "***" if self.network_api_secret else "(not set)",
            },
            "withdrawals": {
                "token_expiry": self.withdrawal_token_expiry,
                "page_size": self.accumulation_page_size,
                "request_delay": self.accumulation_request_delay,
                "rescope_pages": self.accumulation_rescope_pages,
            },
            "mail": {
                "relay": self.mail_api_url or "(log only)",
                "api_key": "***" if self.mail_api_key else "(not set)",
            },
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact sensitive parts of database URL."""
        if "://" in url and "@" in url:
            proto, rest = url.split("://", 1)
            if "@" in rest:
                creds, host = rest.rsplit("@", 1)
                if ":" in creds:
                    user, _ = creds.split(":", 1)
                    return f"{proto}://{user}:***@{host}"
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def load_kit_config(path: Optional[str]) -> KitConfig:
    """Read a coin catalogue from a JSON file.

    The document is either ``{"coins": {...}}`` or the bare coin mapping.
    A missing path yields an empty catalogue.
    """
    if not path:
        logger.warning("No coin configuration path set - no coins are subscribed")
        return KitConfig()

    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if "coins" not in raw:
        raw = {"coins": raw}
    config = KitConfig.model_validate(raw)
    logger.info("Loaded %d coins from %s", len(config.coins), path)
    return config


_kit_config: Optional[KitConfig] = None


def get_kit_config() -> KitConfig:
    """Get the current coin configuration snapshot."""
    global _kit_config
    if _kit_config is None:
        _kit_config = load_kit_config(get_settings().coins_config_path)
    return _kit_config


def reload_kit_config() -> KitConfig:
    """Re-read the coin configuration and swap the process-wide snapshot."""
    global _kit_config
    _kit_config = load_kit_config(get_settings().coins_config_path)
    return _kit_config


def set_kit_config(config: Optional[KitConfig]) -> None:
    """Install a snapshot directly (None forces a lazy reload)."""
    global _kit_config
    _kit_config = config
