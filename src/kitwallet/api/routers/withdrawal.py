"""Withdrawal API endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from kitwallet.addresses import is_valid_address
from kitwallet.api.dependencies import get_wallet_service
from kitwallet.errors import InvalidCoinError, UserNotFoundError
from kitwallet.utils.decimals import to_decimal
from kitwallet.wallet.fees import resolve_withdrawal_fee
from kitwallet.wallet.service import WalletService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/withdrawals", tags=["Withdrawals"])


# Request/Response models
class FeeRequest(BaseModel):
    """Request for a withdrawal fee."""
    user_id: int
    currency: str
    amount: str  # Decimal as string
    network: Optional[str] = None


class FeeResponse(BaseModel):
    """Fee quote response."""
    currency: str
    fee: str
    fee_coin: str


class ValidateAddressRequest(BaseModel):
    """Request to validate address."""
    currency: str
    address: str
    network: Optional[str] = None


class ValidateAddressResponse(BaseModel):
    """Address validation response."""
    currency: str
    address: str
    valid: bool


class WithdrawalRequest(BaseModel):
    """Withdrawal request awaiting e-mail confirmation."""
    user_id: int
    address: str
    amount: str  # Decimal as string
    currency: str
    network: Optional[str] = None
    otp_code: Optional[str] = None


class WithdrawalRequestResponse(BaseModel):
    """Stored withdrawal request."""
    status: str
    currency: str
    amount: str
    fee: Optional[str] = None
    fee_coin: Optional[str] = None
    address: str
    network: Optional[str] = None


class ConfirmRequest(BaseModel):
    """Token from the confirmation e-mail."""
    token: str


@router.post("/fee", response_model=FeeResponse)
async def get_fee(
    request: FeeRequest,
    service: WalletService = Depends(get_wallet_service),
) -> FeeResponse:
    """Quote the fee of a withdrawal for a user's tier."""
    coin = service.config.coin(request.currency)
    if coin is None:
        raise InvalidCoinError(request.currency)

    user = await service.get_user(request.user_id)
    if user is None:
        raise UserNotFoundError()

    quote = resolve_withdrawal_fee(
        coin, request.network, to_decimal(request.amount), user.verification_level
    )
    return FeeResponse(currency=request.currency, fee=str(quote.fee), fee_coin=quote.fee_coin)


@router.post("/validate-address", response_model=ValidateAddressResponse)
async def validate_address(request: ValidateAddressRequest) -> ValidateAddressResponse:
    """Validate a withdrawal destination address."""
    return ValidateAddressResponse(
        currency=request.currency,
        address=request.address,
        valid=is_valid_address(request.currency, request.address, request.network),
    )


@router.post("/request", response_model=WithdrawalRequestResponse)
async def request_withdrawal(
    body: WithdrawalRequest,
    http_request: Request,
    service: WalletService = Depends(get_wallet_service),
) -> WithdrawalRequestResponse:
    """Validate a withdrawal and mail a confirmation token to the user."""
    payload = await service.send_request_withdrawal_email(
        body.user_id,
        body.address,
        body.amount,
        body.currency,
        network=body.network,
        otp_code=body.otp_code,
        ip=http_request.client.host if http_request.client else None,
    )

    return WithdrawalRequestResponse(
        status="pending_confirmation",
        currency=payload.currency,
        amount=str(payload.amount),
        fee=str(payload.fee) if payload.fee is not None else None,
        fee_coin=payload.fee_coin,
        address=payload.address,
        network=payload.network,
    )


@router.post("/confirm")
async def confirm_withdrawal(
    request: ConfirmRequest,
    service: WalletService = Depends(get_wallet_service),
) -> dict:
    """Execute the withdrawal behind a confirmation token."""
    result = await service.confirm_withdrawal(request.token)
    logger.info("Withdrawal confirmed with token %s", request.token)
    return result
