"""Withdrawal and deposit fee resolution.

Fee sources, in increasing precedence:
1. ``withdrawal_fee`` of the coin, paid in the coin itself
2. ``withdrawal_fees[network]`` for the requested chain
3. ``withdrawal_fees[currency]`` for fiat withdrawals, with per-tier levels
   and a static or percentage type
4. internal e-mail transfers are always free
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from kitwallet.coins import CoinConfiguration, FeeEntry, FeeType
from kitwallet.utils.decimals import ZERO, Number, percentage_of, to_decimal
from kitwallet.wallet.networks import NetworkKind, classify_network

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeeQuote:
    """Resolved fee and the currency it is charged in."""

    fee: Decimal
    fee_coin: str


def _apply_fee_entry(entry: FeeEntry, amount: Decimal, level: Optional[int]) -> Decimal:
    value = entry.value_for_level(level)
    if entry.type is FeeType.STATIC:
        return value
    return percentage_of(amount, value)


def resolve_withdrawal_fee(
    coin: CoinConfiguration,
    network: Optional[str],
    amount: Number,
    level: Optional[int],
) -> FeeQuote:
    """Compute the withdrawal fee for a coin over a network.

    Args:
        coin: Coin configuration of the withdrawn currency
        network: Requested network (chain id, "fiat", "email" or None)
        amount: Withdrawal amount (used by percentage fees)
        level: User tier (selects per-level fee overrides)

    Returns:
        FeeQuote with a non-negative fee
    """
    currency = coin.symbol
    kind = classify_network(network)
    amount = to_decimal(amount)

    fee = coin.withdrawal_fee
    fee_coin = currency

    if kind is not NetworkKind.NONE and network in coin.withdrawal_fees:
        entry = coin.withdrawal_fees[network]
        fee = entry.value
        fee_coin = entry.symbol

    if kind is NetworkKind.FIAT and currency in coin.withdrawal_fees:
        entry = coin.withdrawal_fees[currency]
        fee = _apply_fee_entry(entry, amount, level)
        fee_coin = entry.symbol

    if kind is NetworkKind.EMAIL:
        fee = ZERO

    logger.debug(
        "Withdrawal fee for %s over %s (level %s): %s %s",
        currency, network, level, fee, fee_coin,
    )
    return FeeQuote(fee=max(fee, ZERO), fee_coin=fee_coin)


def resolve_deposit_fee(
    coin: CoinConfiguration,
    amount: Number,
    level: Optional[int],
) -> FeeQuote:
    """Compute the deposit fee for a coin.

    Only ``deposit_fees[currency]`` applies; without it deposits are free.
    """
    currency = coin.symbol
    entry = coin.deposit_fees.get(currency)
    if entry is None:
        return FeeQuote(fee=ZERO, fee_coin=currency)

    fee = _apply_fee_entry(entry, to_decimal(amount), level)
    return FeeQuote(fee=max(fee, ZERO), fee_coin=entry.symbol)
