"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from kitwallet import __version__
from kitwallet.config import get_kit_config, get_settings
from kitwallet.db.database import close_db, get_session_factory, init_db
from kitwallet.errors import NetworkRequestError, WalletError
from kitwallet.network.factory import close_network_client, get_network_client
from kitwallet.notifications import create_mailer
from kitwallet.wallet.service import WalletService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    await init_db()
    service = WalletService.from_settings(
        get_settings(),
        config=get_kit_config(),
        network=get_network_client(),
        session_factory=get_session_factory(),
        mailer=create_mailer(),
    )
    app.state.wallet_service = service
    yield
    # Shutdown
    await service.wait_for_mails()
    await close_network_client()
    await close_db()


async def wallet_error_handler(request: Request, exc: WalletError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"message": exc.message})


async def network_error_handler(request: Request, exc: NetworkRequestError) -> JSONResponse:
    logger.error(f"Network error on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=502, content={"message": exc.message})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Kit Wallet API",
        description="Withdrawal validation and confirmation API",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(WalletError, wallet_error_handler)
    app.add_exception_handler(NetworkRequestError, network_error_handler)

    # Register routes
    from kitwallet.api.routers import admin, withdrawal
    from kitwallet.api.routes import health

    app.include_router(health.router, tags=["Health"])
    app.include_router(withdrawal.router)
    app.include_router(admin.router)

    return app
