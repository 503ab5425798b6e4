"""Pytest configuration and fixtures."""

import os
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

import pytest
import pytest_asyncio

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DEBUG"] = "true"
os.environ["ADMIN_TOKEN"] = ""
os.environ["MAIL_API_URL"] = ""

from kitwallet.coins import KitConfig
from kitwallet.db.database import create_engine_for_url, create_session_factory, create_tables, get_db
from kitwallet.db.repository import KitRepository
from kitwallet.network.base import (
    NO_RATE,
    NetworkClient,
    NetworkTransaction,
    RecordPage,
    TransactionPage,
)
from kitwallet.notifications.mailer import Mailer
from kitwallet.wallet.accumulation import WithdrawalAccumulator
from kitwallet.wallet.limits import LimitPeriod, TransactionType
from kitwallet.wallet.service import WalletService

NOW = datetime(2024, 3, 31, 12, 0, tzinfo=timezone.utc)

COINS = {
    "btc": {"display_name": "Bitcoin", "withdrawal_fee": "0.0001"},
    "eth": {"display_name": "Ethereum", "withdrawal_fee": "0.002"},
    "usdt": {
        "display_name": "Tether",
        "withdrawal_fee": "2",
        "network": "eth,trx",
        "withdrawal_fees": {
            "eth": {"value": "5", "symbol": "usdt"},
            "trx": {"value": "0.1", "symbol": "trx"},
        },
    },
    "trx": {"display_name": "Tron", "withdrawal_fee": "1"},
    "xrp": {"withdrawal_fee": "0.1"},
    "usd": {
        "display_name": "US Dollar",
        "withdrawal_fees": {
            "usd": {"value": "1", "symbol": "usd", "type": "percentage", "levels": {"2": "0.5"}},
        },
        "deposit_fees": {
            "usd": {"value": "3", "symbol": "usd", "type": "static"},
        },
    },
    "xht": {"withdrawal_fee": "1", "allow_withdrawal": False, "allow_deposit": False},
}


class FakeClock:
    """Settable epoch-seconds clock."""

    def __init__(self, now: float = NOW.timestamp()):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeNetwork(NetworkClient):
    """In-memory ledger network recording every call."""

    def __init__(self):
        self.balances: dict[int, dict[str, Any]] = {}
        self.withdrawals: list[NetworkTransaction] = []
        self.deposits: list[NetworkTransaction] = []
        self.wallets: list[dict[str, Any]] = []
        self.rates: dict[tuple[str, str], Decimal] = {}
        self.calls: list[tuple] = []
        self.withdrawal_queries: list[dict[str, Any]] = []
        self.oracle_queries: list[tuple[str, str, Decimal]] = []

    def add_withdrawal(self, network_id: int, currency: str, amount: str) -> None:
        self.withdrawals.append(
            NetworkTransaction(
                id=len(self.withdrawals) + 1,
                user_id=network_id,
                currency=currency,
                amount=Decimal(amount),
            )
        )

    @staticmethod
    def _page(records: list, filters: dict[str, Any]) -> tuple[int, list]:
        limit = filters.get("limit") or len(records) or 1
        page = filters.get("page") or 1
        return len(records), records[(page - 1) * limit : page * limit]

    async def get_user_balance(self, network_id: int) -> dict[str, Any]:
        return dict(self.balances.get(network_id, {}))

    async def get_balance(self) -> dict[str, Any]:
        return {"btc_balance": "10"}

    async def get_user_withdrawals(self, network_id: int, **filters: Any) -> TransactionPage:
        self.withdrawal_queries.append({"user_id": network_id, **filters})
        currency = filters.get("currency")
        records = [
            w for w in self.withdrawals
            if w.user_id == network_id and (currency is None or w.currency == currency)
        ]
        count, data = self._page(records, filters)
        return TransactionPage(count=count, data=data)

    async def get_user_deposits(self, network_id: int, **filters: Any) -> TransactionPage:
        records = [d for d in self.deposits if d.user_id == network_id]
        count, data = self._page(records, filters)
        return TransactionPage(count=count, data=data)

    async def get_withdrawals(self, **filters: Any) -> TransactionPage:
        count, data = self._page(self.withdrawals, filters)
        return TransactionPage(count=count, data=data)

    async def get_deposits(self, **filters: Any) -> TransactionPage:
        count, data = self._page(self.deposits, filters)
        return TransactionPage(count=count, data=data)

    async def get_exchange_wallets(self, **filters: Any) -> RecordPage:
        self.calls.append(("get_exchange_wallets", filters))
        user_id = filters.get("user_id")
        records = [w for w in self.wallets if user_id is None or w["user_id"] == user_id]
        return RecordPage(count=len(records), data=records)

    async def perform_withdrawal(
        self,
        network_id: int,
        address: str,
        currency: str,
        amount: Decimal,
        network: Optional[str] = None,
    ) -> dict[str, Any]:
        self.calls.append(("perform_withdrawal", network_id, address, currency, amount, network))
        return {"id": len(self.calls), "currency": currency, "amount": str(amount), "address": address}

    async def cancel_withdrawal(self, network_id: int, withdrawal_id: str) -> dict[str, Any]:
        self.calls.append(("cancel_withdrawal", network_id, withdrawal_id))
        return {"id": withdrawal_id, "dismissed": True}

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
        self.calls.append(("transfer_asset", sender_id, receiver_id, currency, amount, description))
        return {"sender_id": sender_id, "receiver_id": receiver_id}

    async def mint_asset(self, network_id: int, currency: str, amount: Decimal, **opts: Any):
        self.calls.append(("mint_asset", network_id, currency, amount, opts))
        return {"user_id": network_id, "currency": currency, "amount": str(amount)}

    async def update_pending_mint(self, transaction_id: str, **opts: Any):
        self.calls.append(("update_pending_mint", transaction_id, opts))
        return {"transaction_id": transaction_id, **opts}

    async def burn_asset(self, network_id: int, currency: str, amount: Decimal, **opts: Any):
        self.calls.append(("burn_asset", network_id, currency, amount, opts))
        return {"user_id": network_id, "currency": currency, "amount": str(amount)}

    async def update_pending_burn(self, transaction_id: str, **opts: Any):
        self.calls.append(("update_pending_burn", transaction_id, opts))
        return {"transaction_id": transaction_id, **opts}

    async def check_transaction(
        self,
        currency: str,
        transaction_id: str,
        address: str,
        network: Optional[str],
        is_testnet: bool = False,
    ) -> dict[str, Any]:
        self.calls.append(("check_transaction", currency, transaction_id, address, network))
        return {"transaction": {"id": transaction_id}, "message": "Success"}

    async def get_oracle_prices(
        self, assets: list[str], quote: str, amount: Decimal = Decimal("1")
    ) -> dict[str, Decimal]:
        prices = {}
        for asset in assets:
            self.oracle_queries.append((asset, quote, amount))
            rate = self.rates.get((asset, quote))
            prices[asset] = amount * rate if rate is not None else NO_RATE
        return prices


class RecordingMailer(Mailer):
    """Mailer keeping sent messages in memory."""

    def __init__(self):
        self.sent: list[dict[str, Any]] = []

    async def send_email(self, mail_type, recipient, data, user_settings=None, domain=None) -> bool:
        self.sent.append({"type": mail_type, "to": recipient, "data": data, "domain": domain})
        return True


@pytest.fixture
def kit_config() -> KitConfig:
    return KitConfig.model_validate({"coins": COINS})


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def accumulator(network, sleeps, now) -> WithdrawalAccumulator:
    async def record_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return WithdrawalAccumulator(
        network,
        page_size=50,
        request_delay=0.5,
        sleep=record_sleep,
        now=lambda: now,
    )


@pytest_asyncio.fixture
async def db_engine():
    """Create in-memory database engine for testing."""
    engine = create_engine_for_url("sqlite+aiosqlite:///:memory:")
    await create_tables(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
def service(kit_config, network, session_factory, mailer, accumulator, clock) -> WalletService:
    return WalletService(
        config=kit_config,
        network=network,
        session_factory=session_factory,
        mailer=mailer,
        accumulator=accumulator,
        token_expiry=300,
        clock=clock,
    )


@pytest.fixture
def make_user(session_factory):
    """Create a committed user and return it."""

    async def _make_user(
        email: str = "alice@example.com",
        network_id: Optional[int] = 1001,
        verification_level: int = 1,
        otp_secret: Optional[str] = None,
    ):
        async with get_db(session_factory) as session:
            return await KitRepository(session).create_user(
                email=email,
                network_id=network_id,
                verification_level=verification_level,
                otp_secret=otp_secret,
            )

    return _make_user


@pytest.fixture
def set_limit(session_factory):
    """Create or update a withdrawal tier limit."""

    async def _set_limit(
        tier: int,
        period: LimitPeriod,
        currency: str,
        amount: Optional[str],
        limit_currency: str = "default",
    ):
        async with get_db(session_factory) as session:
            await KitRepository(session).set_tier_limit(
                tier=tier,
                period=period,
                type=TransactionType.WITHDRAWAL,
                currency=currency,
                amount=Decimal(amount) if amount is not None else None,
                limit_currency=limit_currency,
            )

    return _set_limit
