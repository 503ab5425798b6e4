"""Wallet service: withdrawal validation, confirmation and ledger wrappers.

Withdrawal flow:
1. ``validate_withdrawal`` checks coin, amount, destination, user, balance
   and the 24h / monthly tier limits, returning the fee
2. ``send_request_withdrawal_email`` stores the request under a token and
   mails the token to the user (or ``perform_direct_withdrawal`` executes
   straight away)
3. ``validate_withdrawal_token`` consumes the token on confirmation
4. ``perform_withdrawal`` re-checks the limits and asks the network to send

The remaining operations translate kit ids into network ids before calling
the network. No lock is held between a balance check and the withdrawal
that follows it; the network is the only guard against double spending.
"""

import asyncio
import logging
import time
import uuid
from decimal import Decimal
from typing import Any, Callable, Optional, Union

from email_validator import EmailNotValidError, validate_email

from kitwallet.addresses import is_valid_address
from kitwallet.coins import CoinConfiguration, KitConfig
from kitwallet.config import Settings
from kitwallet.db.database import SessionFactory, get_db
from kitwallet.db.models import User
from kitwallet.db.repository import KitRepository
from kitwallet.errors import (
    DepositDisabledError,
    ExpiredWithdrawalTokenError,
    InsufficientBalanceError,
    InvalidAddressError,
    InvalidAmountError,
    InvalidCoinError,
    InvalidNetworkError,
    InvalidOtpCodeError,
    InvalidWithdrawalTokenError,
    NetworkRequiredError,
    UserNotFoundError,
    UserNotRegisteredOnNetworkError,
    VerificationRequiredError,
    WithdrawalDisabledError,
)
from kitwallet.network.base import NetworkClient, RecordPage, TransactionPage
from kitwallet.notifications.mailer import Mailer, MailType
from kitwallet.security import verify_otp_before_action
from kitwallet.utils.decimals import ZERO, Number, to_decimal
from kitwallet.wallet.accumulation import WithdrawalAccumulator
from kitwallet.wallet.fees import FeeQuote, resolve_deposit_fee, resolve_withdrawal_fee
from kitwallet.wallet.limits import (
    LimitPeriod,
    TransactionLimit,
    TransactionType,
    find_independent_limit,
)
from kitwallet.wallet.networks import NetworkKind, classify_network
from kitwallet.wallet.tokens import SqlTokenStore, TokenStore, WithdrawalRequestPayload

logger = logging.getLogger(__name__)

MIN_WITHDRAWAL_LEVEL = 1


def _is_email(address: str) -> bool:
    try:
        validate_email(address, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def _available(balance: dict[str, Any], currency: str) -> Decimal:
    value = balance.get(f"{currency}_available")
    return to_decimal(value) if value is not None else ZERO


class WalletService:
    """Orchestrates withdrawals and wraps ledger network operations."""

    def __init__(
        self,
        config: KitConfig,
        network: NetworkClient,
        session_factory: SessionFactory,
        mailer: Mailer,
        token_store: Optional[TokenStore] = None,
        accumulator: Optional[WithdrawalAccumulator] = None,
        token_expiry: int = 300,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize service.

        Args:
            config: Coin configuration snapshot
            network: Ledger network client
            session_factory: Factory for database sessions
            mailer: E-mail sender
            token_store: Withdrawal request store (SQL table by default)
            accumulator: Withdrawal history accumulator
            token_expiry: Lifetime of a withdrawal token in seconds
            clock: Returns the current time in epoch seconds
        """
        self.config = config
        self.network = network
        self.mailer = mailer
        self.token_store = token_store or SqlTokenStore(session_factory)
        self.accumulator = accumulator or WithdrawalAccumulator(network)
        self.token_expiry = token_expiry
        self._session_factory = session_factory
        self._clock = clock
        self._pending_mails: set[asyncio.Task] = set()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        config: KitConfig,
        network: NetworkClient,
        session_factory: SessionFactory,
        mailer: Mailer,
    ) -> "WalletService":
        accumulator = WithdrawalAccumulator(
            network,
            page_size=settings.accumulation_page_size,
            request_delay=settings.accumulation_request_delay,
            rescope_pages=settings.accumulation_rescope_pages,
        )
        return cls(
            config=config,
            network=network,
            session_factory=session_factory,
            mailer=mailer,
            accumulator=accumulator,
            token_expiry=settings.withdrawal_token_expiry,
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _subscribed_coin(self, currency: str) -> CoinConfiguration:
        if not self.config.subscribed(currency):
            raise InvalidCoinError(currency)
        return self.config.coin(currency)

    async def get_user(self, kit_id: int) -> Optional[User]:
        async with get_db(self._session_factory) as session:
            return await KitRepository(session).get_user_by_kit_id(kit_id)

    async def _find_limits(
        self, level: int, period: LimitPeriod, type: TransactionType
    ) -> list[TransactionLimit]:
        async with get_db(self._session_factory) as session:
            return await KitRepository(session).find_transaction_limits(level, period, type)

    async def _resolve_network_id(self, kit_id: int) -> int:
        """Translate a kit id into a network id."""
        async with get_db(self._session_factory) as session:
            id_dictionary = await KitRepository(session).map_kit_id_to_network_id([kit_id])

        if kit_id not in id_dictionary:
            raise UserNotFoundError()
        if not id_dictionary[kit_id]:
            raise UserNotRegisteredOnNetworkError()
        return id_dictionary[kit_id]

    @staticmethod
    def _require_network_id(network_id: Optional[int]) -> int:
        if not network_id:
            raise UserNotRegisteredOnNetworkError()
        return network_id

    @staticmethod
    def _require_registered(user: Optional[User]) -> User:
        if user is None:
            raise UserNotFoundError()
        if not user.network_id:
            raise UserNotRegisteredOnNetworkError()
        return user

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _check_destination(
        self,
        coin: CoinConfiguration,
        currency: str,
        address: str,
        network: Optional[str],
    ) -> None:
        kind = classify_network(network)

        if kind is NetworkKind.EMAIL:
            # internal transfer to another user
            if not _is_email(address):
                raise InvalidAddressError(currency, address)
            return

        if kind is NetworkKind.FIAT:
            return

        if coin.networks:
            if kind is NetworkKind.NONE:
                raise NetworkRequiredError(currency, coin.network)
            if network not in coin.networks:
                raise InvalidNetworkError(network, coin.network)
        elif kind is not NetworkKind.NONE:
            raise InvalidNetworkError(network)

        if not is_valid_address(currency, address, network):
            raise InvalidAddressError(currency, address)

    async def _check_balance(
        self,
        network_id: int,
        currency: str,
        amount: Decimal,
        quote: FeeQuote,
    ) -> None:
        balance = await self.network.get_user_balance(network_id)
        fee, fee_coin = quote.fee, quote.fee_coin

        if fee_coin == currency:
            total = amount + fee
            if total > _available(balance, currency):
                raise InsufficientBalanceError(
                    currency,
                    amount=amount,
                    fee=fee,
                    message=f'User {currency} balance is lower than amount "{amount}" + fee "{fee}"',
                )
            return

        if amount > _available(balance, currency):
            raise InsufficientBalanceError(
                currency,
                amount=amount,
                message=f'User {currency} balance is lower than withdrawal amount "{amount}"',
            )
        if fee > _available(balance, fee_coin):
            raise InsufficientBalanceError(
                fee_coin,
                fee=fee,
                message=f'User {fee_coin} balance is lower than fee amount "{fee}"',
            )

    async def _enforce_withdrawal_limits(self, user: User, currency: str, amount: Decimal) -> None:
        """Check the 24h and monthly limits of the user's tier."""
        for period in (LimitPeriod.DAY, LimitPeriod.MONTH):
            tier_limits = await self._find_limits(
                user.verification_level, period, TransactionType.WITHDRAWAL
            )
            limit = find_independent_limit(tier_limits, currency)
            if limit is None:
                continue

            if limit.is_blocked:
                raise WithdrawalDisabledError(currency)
            if limit.is_capped:
                await self.accumulator.check_below_limit(
                    user.network_id, currency, amount, limit, tier_limits
                )

    async def validate_withdrawal(
        self,
        user: Optional[User],
        address: str,
        amount: Number,
        currency: str,
        network: Optional[str] = None,
    ) -> FeeQuote:
        """Validate a withdrawal request.

        Args:
            user: Withdrawing user (None when the lookup found nothing)
            address: Destination address, or e-mail for internal transfers
            amount: Amount to withdraw
            currency: Currency code
            network: Chain id, "fiat", "email" or None

        Returns:
            FeeQuote for the withdrawal

        Raises:
            WalletError: The first failed check
        """
        coin = self._subscribed_coin(currency)

        amount = to_decimal(amount)
        if amount <= 0:
            raise InvalidAmountError(amount)

        if not coin.allow_withdrawal:
            raise WithdrawalDisabledError(currency)

        self._check_destination(coin, currency, address, network)

        user = self._require_registered(user)
        if user.verification_level < MIN_WITHDRAWAL_LEVEL:
            raise VerificationRequiredError(MIN_WITHDRAWAL_LEVEL)

        quote = resolve_withdrawal_fee(coin, network, amount, user.verification_level)

        await self._check_balance(user.network_id, currency, amount, quote)
        await self._enforce_withdrawal_limits(user, currency, amount)

        logger.info(
            "Withdrawal of %s %s validated for user %s (fee %s %s)",
            amount, currency, user.id, quote.fee, quote.fee_coin,
        )
        return quote

    async def validate_deposit(
        self,
        user: Optional[User],
        amount: Number,
        currency: str,
        network: Optional[str] = None,
    ) -> FeeQuote:
        """Validate a deposit and return its fee."""
        coin = self._subscribed_coin(currency)

        amount = to_decimal(amount)
        if amount <= 0:
            raise InvalidAmountError(amount)

        if not coin.allow_deposit:
            raise DepositDisabledError(currency)

        user = self._require_registered(user)
        if user.verification_level < MIN_WITHDRAWAL_LEVEL:
            raise VerificationRequiredError(MIN_WITHDRAWAL_LEVEL)

        return resolve_deposit_fee(coin, amount, user.verification_level)

    # ------------------------------------------------------------------
    # E-mail confirmation
    # ------------------------------------------------------------------

    async def send_request_withdrawal_email(
        self,
        user_id: int,
        address: str,
        amount: Number,
        currency: str,
        network: Optional[str] = None,
        otp_code: Optional[str] = None,
        fee: Optional[Number] = None,
        fee_coin: Optional[str] = None,
        skip_validate: bool = False,
        ip: Optional[str] = None,
        domain: Optional[str] = None,
    ) -> WithdrawalRequestPayload:
        """Store a withdrawal request and mail its confirmation token.

        ``skip_validate`` is for trusted callers that already validated the
        request and pass ``fee``/``fee_coin`` themselves.
        """
        user = await self.get_user(user_id)
        if user is None:
            raise UserNotFoundError()

        if not verify_otp_before_action(user, otp_code):
            raise InvalidOtpCodeError()

        if not skip_validate:
            quote = await self.validate_withdrawal(user, address, amount, currency, network)
            fee, fee_coin = quote.fee, quote.fee_coin

        payload = WithdrawalRequestPayload(
            user_id=user_id,
            email=user.email,
            amount=to_decimal(amount),
            fee=to_decimal(fee) if fee is not None else None,
            fee_coin=fee_coin,
            transaction_id=str(uuid.uuid4()),
            address=address,
            currency=currency,
            network=network,
            timestamp=self._now_ms(),
        )
        token = payload.transaction_id

        await self.token_store.put(token, payload.model_dump_json())
        self._schedule_withdrawal_request_email(user, payload, token, domain, ip)

        logger.info("Withdrawal request %s stored for user %s", token, user_id)
        return payload

    def _schedule_withdrawal_request_email(
        self,
        user: User,
        payload: WithdrawalRequestPayload,
        token: str,
        domain: Optional[str],
        ip: Optional[str],
    ) -> None:
        data = {
            "amount": str(payload.amount),
            "fee": str(payload.fee) if payload.fee is not None else None,
            "fee_coin": self.config.display_name(payload.fee_coin) if payload.fee_coin else None,
            "currency": self.config.display_name(payload.currency),
            "transaction_id": token,
            "address": payload.address,
            "ip": ip,
            "network": payload.network,
        }
        task = asyncio.create_task(
            self.mailer.send_email(
                MailType.WITHDRAWAL_REQUEST, payload.email, data, user.settings, domain
            )
        )
        self._pending_mails.add(task)
        task.add_done_callback(self._on_mail_done)

    def _on_mail_done(self, task: asyncio.Task) -> None:
        self._pending_mails.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Withdrawal request mail failed: %s", error)
        elif task.result() is False:
            logger.warning("Withdrawal request mail was not delivered")

    async def wait_for_mails(self) -> None:
        """Wait for scheduled mails to finish (shutdown and tests)."""
        if self._pending_mails:
            await asyncio.gather(*list(self._pending_mails), return_exceptions=True)

    async def validate_withdrawal_token(self, token: str) -> WithdrawalRequestPayload:
        """Consume a withdrawal token.

        The token is removed before the expiry check, so an expired token
        cannot be retried.

        Raises:
            InvalidWithdrawalTokenError: Unknown or already used token
            ExpiredWithdrawalTokenError: Token older than the expiry window
        """
        raw = await self.token_store.take(token)
        if raw is None:
            raise InvalidWithdrawalTokenError()

        payload = WithdrawalRequestPayload.model_validate_json(raw)

        if payload.is_expired(self._now_ms(), self.token_expiry * 1000):
            logger.info("Withdrawal token %s expired", token)
            raise ExpiredWithdrawalTokenError()

        return payload

    async def confirm_withdrawal(self, token: str) -> dict[str, Any]:
        """Consume a token and execute the withdrawal it describes."""
        payload = await self.validate_withdrawal_token(token)
        return await self.perform_withdrawal(
            payload.user_id,
            payload.address,
            payload.currency,
            payload.amount,
            network=payload.network,
        )

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def perform_withdrawal(
        self,
        user_id: int,
        address: str,
        currency: str,
        amount: Number,
        network: Optional[str] = None,
    ) -> dict[str, Any]:
        """Re-check the tier limits and execute a withdrawal."""
        self._subscribed_coin(currency)

        user = self._require_registered(await self.get_user(user_id))
        amount = to_decimal(amount)

        await self._enforce_withdrawal_limits(user, currency, amount)

        logger.info("Performing withdrawal of %s %s for user %s", amount, currency, user_id)
        return await self.network.perform_withdrawal(
            user.network_id, address, currency, amount, network=network
        )

    async def perform_direct_withdrawal(
        self,
        user_id: int,
        address: str,
        currency: str,
        amount: Number,
        network: Optional[str] = None,
    ) -> dict[str, Any]:
        """Validate and execute a withdrawal without e-mail confirmation."""
        user = await self.get_user(user_id)
        await self.validate_withdrawal(user, address, amount, currency, network)
        return await self.network.perform_withdrawal(
            user.network_id, address, currency, to_decimal(amount), network=network
        )

    async def perform_withdrawal_network(
        self,
        network_id: int,
        address: str,
        currency: str,
        amount: Number,
        network: Optional[str] = None,
    ) -> dict[str, Any]:
        return await self.network.perform_withdrawal(
            network_id, address, currency, to_decimal(amount), network=network
        )

    async def cancel_user_withdrawal_by_kit_id(
        self, user_id: int, withdrawal_id: str
    ) -> dict[str, Any]:
        network_id = await self._resolve_network_id(user_id)
        return await self.network.cancel_withdrawal(network_id, withdrawal_id)

    async def cancel_user_withdrawal_by_network_id(
        self, network_id: Optional[int], withdrawal_id: str
    ) -> dict[str, Any]:
        network_id = self._require_network_id(network_id)
        return await self.network.cancel_withdrawal(network_id, withdrawal_id)

    async def check_transaction(
        self,
        currency: str,
        transaction_id: str,
        address: str,
        network: Optional[str] = None,
        is_testnet: bool = False,
    ) -> dict[str, Any]:
        self._subscribed_coin(currency)
        return await self.network.check_transaction(
            currency, transaction_id, address, network, is_testnet=is_testnet
        )

    # ------------------------------------------------------------------
    # Transfers, mint and burn
    # ------------------------------------------------------------------

    async def transfer_asset_by_kit_ids(
        self,
        sender_id: int,
        receiver_id: int,
        currency: str,
        amount: Number,
        description: str = "Admin Transfer",
        email: bool = True,
        transaction_id: Optional[str] = None,
    ) -> dict[str, Any]:
        self._subscribed_coin(currency)

        amount = to_decimal(amount)
        if amount <= 0:
            raise InvalidAmountError(amount)

        sender_network_id = await self._resolve_network_id(sender_id)
        receiver_network_id = await self._resolve_network_id(receiver_id)

        return await self.network.transfer_asset(
            sender_network_id,
            receiver_network_id,
            currency,
            amount,
            description=description,
            email=email,
            transaction_id=transaction_id,
        )

    async def transfer_asset_by_network_ids(
        self,
        sender_id: int,
        receiver_id: int,
        currency: str,
        amount: Number,
        description: str = "Admin Transfer",
        email: bool = True,
        transaction_id: Optional[str] = None,
    ) -> dict[str, Any]:
        return await self.network.transfer_asset(
            sender_id,
            receiver_id,
            currency,
            to_decimal(amount),
            description=description,
            email=email,
            transaction_id=transaction_id,
        )

    async def mint_asset_by_kit_id(
        self, kit_id: int, currency: str, amount: Number, **opts: Any
    ) -> dict[str, Any]:
        network_id = await self._resolve_network_id(kit_id)
        return await self.network.mint_asset(network_id, currency, to_decimal(amount), **opts)

    async def mint_asset_by_network_id(
        self, network_id: int, currency: str, amount: Number, **opts: Any
    ) -> dict[str, Any]:
        return await self.network.mint_asset(network_id, currency, to_decimal(amount), **opts)

    async def update_pending_mint(self, transaction_id: str, **opts: Any) -> dict[str, Any]:
        return await self.network.update_pending_mint(transaction_id, **opts)

    async def burn_asset_by_kit_id(
        self, kit_id: int, currency: str, amount: Number, **opts: Any
    ) -> dict[str, Any]:
        network_id = await self._resolve_network_id(kit_id)
        return await self.network.burn_asset(network_id, currency, to_decimal(amount), **opts)

    async def burn_asset_by_network_id(
        self, network_id: int, currency: str, amount: Number, **opts: Any
    ) -> dict[str, Any]:
        return await self.network.burn_asset(network_id, currency, to_decimal(amount), **opts)

    async def update_pending_burn(self, transaction_id: str, **opts: Any) -> dict[str, Any]:
        return await self.network.update_pending_burn(transaction_id, **opts)

    # ------------------------------------------------------------------
    # Balances and history
    # ------------------------------------------------------------------

    async def get_user_balance_by_kit_id(self, kit_id: int) -> dict[str, Any]:
        network_id = await self._resolve_network_id(kit_id)
        balance = await self.network.get_user_balance(network_id)
        return {"user_id": kit_id, **balance}

    async def get_user_balance_by_network_id(self, network_id: Optional[int]) -> dict[str, Any]:
        network_id = self._require_network_id(network_id)
        return await self.network.get_user_balance(network_id)

    async def get_kit_balance(self) -> dict[str, Any]:
        return await self.network.get_balance()

    async def _kit_ids_for(self, network_ids: list[Optional[int]]) -> dict[int, int]:
        async with get_db(self._session_factory) as session:
            return await KitRepository(session).map_network_id_to_kit_id(network_ids)

    async def _attach_kit_ids(
        self, page: Union[TransactionPage, RecordPage]
    ) -> Union[TransactionPage, RecordPage]:
        """Replace network user ids in a page with kit ids.

        The network id is kept under ``network_id``.
        """
        if not page.data:
            return page

        if isinstance(page, TransactionPage):
            id_dictionary = await self._kit_ids_for([record.user_id for record in page.data])
            for record in page.data:
                record.network_id = record.user_id
                record.user_id = id_dictionary.get(record.network_id)
                nested_user = (record.model_extra or {}).get("User")
                if isinstance(nested_user, dict):
                    nested_user["id"] = record.user_id
        else:
            id_dictionary = await self._kit_ids_for([record.get("user_id") for record in page.data])
            for record in page.data:
                record["network_id"] = record.get("user_id")
                record["user_id"] = id_dictionary.get(record["network_id"])
                if isinstance(record.get("User"), dict):
                    record["User"]["id"] = record["user_id"]

        return page

    async def get_user_deposits_by_kit_id(self, kit_id: int, **filters: Any) -> TransactionPage:
        user = self._require_registered(await self.get_user(kit_id))
        page = await self.network.get_user_deposits(user.network_id, **filters)
        return await self._attach_kit_ids(page)

    async def get_user_withdrawals_by_kit_id(self, kit_id: int, **filters: Any) -> TransactionPage:
        user = self._require_registered(await self.get_user(kit_id))
        page = await self.network.get_user_withdrawals(user.network_id, **filters)
        return await self._attach_kit_ids(page)

    async def get_exchange_deposits(self, **filters: Any) -> TransactionPage:
        return await self._attach_kit_ids(await self.network.get_deposits(**filters))

    async def get_exchange_withdrawals(self, **filters: Any) -> TransactionPage:
        return await self._attach_kit_ids(await self.network.get_withdrawals(**filters))

    async def get_wallets(self, user_id: Optional[int] = None, **filters: Any) -> RecordPage:
        """Deposit wallets, optionally for one kit user."""
        network_id = await self._resolve_network_id(user_id) if user_id is not None else None
        page = await self.network.get_exchange_wallets(user_id=network_id, **filters)
        return await self._attach_kit_ids(page)
