"""Ledger network client interface.

The network owns balances, deposits, withdrawals and the price oracle. The
wallet core only talks to it through this interface, using network ids.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# Oracle sentinel for "no conversion rate available"
NO_RATE = Decimal("-1")


class NetworkTransaction(BaseModel):
    """Deposit or withdrawal record as returned by the network."""

    model_config = ConfigDict(extra="allow")

    id: Optional[int] = None
    user_id: Optional[int] = None
    network_id: Optional[int] = None
    currency: str
    amount: Decimal
    fee: Optional[Decimal] = None
    fee_coin: Optional[str] = None
    transaction_id: Optional[str] = None
    address: Optional[str] = None
    network: Optional[str] = None
    status: Optional[bool] = None
    dismissed: bool = False
    rejected: bool = False
    processing: bool = False
    waiting: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TransactionPage(BaseModel):
    """One page of deposits or withdrawals."""

    count: int = 0
    data: list[NetworkTransaction] = Field(default_factory=list)


class RecordPage(BaseModel):
    """One page of loosely typed records (wallets)."""

    count: int = 0
    data: list[dict[str, Any]] = Field(default_factory=list)


class NetworkClient(ABC):
    """Abstract client of the ledger network."""

    # Balances

    @abstractmethod
    async def get_user_balance(self, network_id: int) -> dict[str, Any]:
        """Get a user's balances (``<coin>_balance`` / ``<coin>_available`` keys)."""
        raise NotImplementedError()

    @abstractmethod
    async def get_balance(self) -> dict[str, Any]:
        """Get the exchange-wide balance."""
        raise NotImplementedError()

    # History

    @abstractmethod
    async def get_user_withdrawals(self, network_id: int, **filters: Any) -> TransactionPage:
        """Get a page of a user's withdrawals.

        Supported filters: currency, status, dismissed, rejected, processing,
        waiting, limit, page, order_by, order, start_date, end_date,
        transaction_id, address.
        """
        raise NotImplementedError()

    @abstractmethod
    async def get_user_deposits(self, network_id: int, **filters: Any) -> TransactionPage:
        """Get a page of a user's deposits (same filters as withdrawals)."""
        raise NotImplementedError()

    @abstractmethod
    async def get_withdrawals(self, **filters: Any) -> TransactionPage:
        """Get a page of exchange-wide withdrawals."""
        raise NotImplementedError()

    @abstractmethod
    async def get_deposits(self, **filters: Any) -> TransactionPage:
        """Get a page of exchange-wide deposits."""
        raise NotImplementedError()

    @abstractmethod
    async def get_exchange_wallets(self, **filters: Any) -> RecordPage:
        """Get a page of deposit wallets."""
        raise NotImplementedError()

    # Movements

    @abstractmethod
    async def perform_withdrawal(
        self,
        network_id: int,
        address: str,
        currency: str,
        amount: Decimal,
        network: Optional[str] = None,
    ) -> dict[str, Any]:
        raise NotImplementedError()

    @abstractmethod
    async def cancel_withdrawal(self, network_id: int, withdrawal_id: str) -> dict[str, Any]:
        raise NotImplementedError()

    @abstractmethod
    async def transfer_asset(
        self,
        sender_id: int,
        receiver_id: int,
        currency: str,
        amount: Decimal,
        description: str = "Admin Transfer",
        email: bool = True,
        transaction_id: Optional[str] = None,
    ) -> dict[str, Any]:
        raise NotImplementedError()

    @abstractmethod
    async def mint_asset(
        self, network_id: int, currency: str, amount: Decimal, **opts: Any
    ) -> dict[str, Any]:
        """Credit a user. Options: description, transaction_id, status, email, fee."""
        raise NotImplementedError()

    @abstractmethod
    async def update_pending_mint(self, transaction_id: str, **opts: Any) -> dict[str, Any]:
        raise NotImplementedError()

    @abstractmethod
    async def burn_asset(
        self, network_id: int, currency: str, amount: Decimal, **opts: Any
    ) -> dict[str, Any]:
        """Debit a user. Options: description, transaction_id, status, email, fee."""
        raise NotImplementedError()

    @abstractmethod
    async def update_pending_burn(self, transaction_id: str, **opts: Any) -> dict[str, Any]:
        raise NotImplementedError()

    @abstractmethod
    async def check_transaction(
        self,
        currency: str,
        transaction_id: str,
        address: str,
        network: Optional[str],
        is_testnet: bool = False,
    ) -> dict[str, Any]:
        raise NotImplementedError()

    # Oracle

    @abstractmethod
    async def get_oracle_prices(
        self, assets: list[str], quote: str, amount: Decimal = Decimal("1")
    ) -> dict[str, Decimal]:
        """Convert ``amount`` of each asset into ``quote``.

        Returns:
            Mapping asset -> converted amount, ``NO_RATE`` (-1) when no rate exists
        """
        raise NotImplementedError()

    async def close(self) -> None:
        """Release client resources."""
        return None
