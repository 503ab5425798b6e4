"""Rolling-window withdrawal accumulation.

Reads a user's withdrawal history for the window of a limit, sums it per
currency and, for the default bucket, converts every currency without an
independent limit into the limit's reference currency through the oracle.

Network reads are strictly sequential with a fixed delay between requests
to keep the load on the network low. A currency without an oracle rate is
left out of the default bucket (logged, not raised).
"""

import asyncio
import logging
import math
from datetime import datetime, timezone
from decimal import Decimal
from typing import Awaitable, Callable, Optional

from kitwallet.errors import LimitExceededError
from kitwallet.network.base import NO_RATE, NetworkClient, NetworkTransaction
from kitwallet.utils.decimals import ZERO, Number, to_decimal
from kitwallet.wallet.limits import TransactionLimit, independent_currencies

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
DEFAULT_REQUEST_DELAY = 0.5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WithdrawalAccumulator:
    """Aggregates past withdrawals against tier limits."""

    def __init__(
        self,
        network: NetworkClient,
        page_size: int = DEFAULT_PAGE_SIZE,
        request_delay: float = DEFAULT_REQUEST_DELAY,
        rescope_pages: bool = False,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        now: Callable[[], datetime] = _utcnow,
    ):
        """Initialize accumulator.

        Args:
            network: Ledger network client
            page_size: Withdrawals per history page
            request_delay: Seconds to wait before each follow-up network read
            rescope_pages: Apply the currency filter to pages after the first
            sleep: Awaitable sleep (injected for tests)
            now: Clock returning an aware datetime
        """
        self.network = network
        self.page_size = page_size
        self.request_delay = request_delay
        self.rescope_pages = rescope_pages
        self._sleep = sleep
        self._now = now

    async def fetch_withdrawals(
        self,
        network_id: int,
        scope_currency: Optional[str],
        limit: TransactionLimit,
    ) -> list[NetworkTransaction]:
        """Read every withdrawal inside the limit window, page by page."""
        start_date = limit.period.window_start(self._now())

        first = await self.network.get_user_withdrawals(
            network_id,
            currency=scope_currency,
            dismissed=False,
            rejected=False,
            limit=self.page_size,
            page=1,
            start_date=start_date,
        )
        withdrawals = list(first.data)

        if first.count > self.page_size:
            pages = math.ceil(first.count / self.page_size)
            for page in range(2, pages + 1):
                await self._sleep(self.request_delay)

                # Follow-up pages only carry the currency filter when rescoping is on
                result = await self.network.get_user_withdrawals(
                    network_id,
                    currency=scope_currency if self.rescope_pages else None,
                    dismissed=False,
                    rejected=False,
                    limit=self.page_size,
                    page=page,
                    start_date=start_date,
                )
                withdrawals.extend(result.data)

        logger.debug(
            "Withdrawals made within last %s for network user %s: %d",
            limit.period.label, network_id, first.count,
        )
        return withdrawals

    @staticmethod
    def sum_by_currency(withdrawals: list[NetworkTransaction]) -> dict[str, Decimal]:
        """Sum withdrawal amounts per currency."""
        totals: dict[str, Decimal] = {}
        for withdrawal in withdrawals:
            totals[withdrawal.currency] = totals.get(withdrawal.currency, ZERO) + to_decimal(
                withdrawal.amount
            )
        return totals

    async def convert(self, currency: str, quote: str, amount: Number) -> Optional[Decimal]:
        """Convert an amount through the oracle; None when no rate is available."""
        if currency == quote:
            return to_decimal(amount)

        prices = await self.network.get_oracle_prices([currency], quote=quote, amount=to_decimal(amount))
        converted = prices.get(currency)
        if converted is None or to_decimal(converted) == NO_RATE:
            logger.warning("No conversion found between %s and %s", currency, quote)
            return None
        return to_decimal(converted)

    async def accumulate(
        self,
        network_id: int,
        scope_currency: Optional[str],
        limit: TransactionLimit,
        tier_limits: list[TransactionLimit],
    ) -> Decimal:
        """Total withdrawn inside the limit window, in the limit's currency.

        Args:
            network_id: User id on the network
            scope_currency: Only count this currency (independent limit), or
                None for the default bucket
            limit: Limit row being checked
            tier_limits: All rows of the tier for the same period and type

        Returns:
            Accumulated amount in ``limit.currency``. For a scoped currency
            this is the sum of that currency; for the default bucket it is
            the sum of every currency without an independent limit.
        """
        withdrawals = await self.fetch_withdrawals(network_id, scope_currency, limit)
        totals = self.sum_by_currency(withdrawals)

        if scope_currency:
            return await self._accumulate_scoped(scope_currency, limit, totals)

        excluded = independent_currencies(tier_limits)
        total = ZERO

        for currency, amount in totals.items():
            if currency in excluded:
                logger.debug("Currency excluded from accumulation: %s", currency)
                continue

            logger.debug("Accumulated %s withdrawal amount: %s", currency, amount)

            if currency != limit.currency:
                await self._sleep(self.request_delay)

            converted = await self.convert(currency, limit.currency, amount)
            if converted is None:
                continue

            logger.debug(
                "%s withdrawal amount converted to %s: %s", currency, limit.currency, converted
            )
            total += converted

        return total

    async def _accumulate_scoped(
        self, scope_currency: str, limit: TransactionLimit, totals: dict[str, Decimal]
    ) -> Decimal:
        amount = totals.get(scope_currency, ZERO)
        if scope_currency == limit.currency or not amount:
            return amount

        await self._sleep(self.request_delay)
        converted = await self.convert(scope_currency, limit.currency, amount)
        if converted is None:
            return ZERO

        logger.debug(
            "%s withdrawal amount converted to %s: %s", scope_currency, limit.currency, converted
        )
        return converted

    async def check_below_limit(
        self,
        network_id: int,
        currency: str,
        amount: Number,
        limit: TransactionLimit,
        tier_limits: list[TransactionLimit],
    ) -> None:
        """Raise if this withdrawal would push the window total over the cap.

        When the requested currency cannot be converted into the limit's
        currency the check is skipped.

        Raises:
            LimitExceededError: If accumulated + requested exceeds the cap
        """
        amount = to_decimal(amount)
        logger.debug(
            "Checking %s %s against %s limit %s %s for network user %s",
            amount, currency, limit.period.value, limit.amount, limit.limit_currency, network_id,
        )

        requested = await self.convert(currency, limit.currency, amount)
        if requested is None:
            logger.warning(
                "Skipping %s limit check for %s: no rate to %s",
                limit.period.value, currency, limit.currency,
            )
            return

        accumulated = await self.accumulate(network_id, limit.scope_currency, limit, tier_limits)
        total = requested + accumulated

        logger.debug(
            "Total %s withdrawn amount after this request: %s (limit %s)",
            limit.period.value, total, limit.amount,
        )

        if total > limit.amount:
            raise LimitExceededError(
                limit=limit.amount,
                limit_currency=limit.currency,
                accumulated=accumulated,
                amount=amount,
                currency=currency,
            )
