"""Admin API endpoints (token-protected)."""

import logging

from fastapi import APIRouter, Depends

from kitwallet.api.dependencies import get_wallet_service, require_admin_token
from kitwallet.config import reload_kit_config
from kitwallet.wallet.service import WalletService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/admin", tags=["Admin"])


@router.post("/config/reload")
async def reload_config(
    _: bool = Depends(require_admin_token),
    service: WalletService = Depends(get_wallet_service),
) -> dict:
    """Re-read the coin configuration and swap it into the wallet service."""
    config = reload_kit_config()
    service.config = config

    logger.info("Coin configuration reloaded: %d coins", len(config.coins))
    return {"status": "reloaded", "coins": sorted(config.coins)}
