"""Request dependencies."""

from fastapi import Header, HTTPException, Request

from kitwallet.config import get_settings
from kitwallet.wallet.service import WalletService


def get_wallet_service(request: Request) -> WalletService:
    """Wallet service built at startup."""
    return request.app.state.wallet_service


async def require_admin_token(x_admin_token: str = Header(None)) -> bool:
    """Verify admin token from header.

    If ADMIN_TOKEN is not set, allows access (dev mode).
    """
    settings = get_settings()

    if not settings.admin_token:
        return True

    if x_admin_token != settings.admin_token:
        raise HTTPException(status_code=401, detail="Invalid admin token")

    return True
