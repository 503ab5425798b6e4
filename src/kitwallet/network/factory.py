"""Network client factory."""

import logging
from typing import Optional

from kitwallet.config import get_settings
from kitwallet.network.base import NetworkClient
from kitwallet.network.http import HttpNetworkClient

logger = logging.getLogger(__name__)

# Singleton instance
_network_instance: Optional[NetworkClient] = None


def get_network_client() -> NetworkClient:
    """Get the configured ledger network client.

    Returns:
        Shared HttpNetworkClient built from settings
    """
    global _network_instance

    if _network_instance is not None:
        return _network_instance

    settings = get_settings()
    if not settings.has_network:
        logger.warning("Network URL/key/secret not fully configured - network calls will fail")

    _network_instance = HttpNetworkClient(
        base_url=settings.network_url,
        exchange_id=settings.network_exchange_id,
        api_key=settings.network_api_key,
        api_secret=settings.network_api_secret,
        timeout=settings.network_timeout,
    )
    return _network_instance


async def close_network_client() -> None:
    """Close and forget the shared client."""
    global _network_instance
    if _network_instance is not None:
        await _network_instance.close()
    _network_instance = None


def reset_network_client() -> None:
    """Reset client instance (useful for testing)."""
    global _network_instance
    _network_instance = None
