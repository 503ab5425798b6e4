"""Wallet core: fees, limits and withdrawal orchestration.

The orchestrator lives in ``kitwallet.wallet.service``; it is not imported
here so that the persistence layer can depend on the limit types.
"""

from kitwallet.wallet.fees import FeeQuote, resolve_deposit_fee, resolve_withdrawal_fee
from kitwallet.wallet.limits import (
    LimitPeriod,
    TransactionLimit,
    TransactionType,
    find_independent_limit,
)
from kitwallet.wallet.networks import NetworkKind, classify_network

__all__ = [
    "FeeQuote",
    "LimitPeriod",
    "NetworkKind",
    "TransactionLimit",
    "TransactionType",
    "classify_network",
    "find_independent_limit",
    "resolve_deposit_fee",
    "resolve_withdrawal_fee",
]
