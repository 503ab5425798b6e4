"""Ledger network clients."""

from kitwallet.network.base import (
    NO_RATE,
    NetworkClient,
    NetworkTransaction,
    RecordPage,
    TransactionPage,
)
from kitwallet.network.factory import (
    close_network_client,
    get_network_client,
    reset_network_client,
)
from kitwallet.network.http import HttpNetworkClient

__all__ = [
    "NO_RATE",
    "HttpNetworkClient",
    "NetworkClient",
    "NetworkTransaction",
    "RecordPage",
    "TransactionPage",
    "close_network_client",
    "get_network_client",
    "reset_network_client",
]
