"""Coin configuration models."""

from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FeeType(str, Enum):
    """How a fee entry value is applied."""

    STATIC = "static"
    PERCENTAGE = "percentage"


class FeeEntry(BaseModel):
    """Fee table entry for a network or a fiat currency."""

    model_config = ConfigDict(frozen=True)

    value: Decimal = Field(..., ge=0)
    symbol: str
    type: Optional[FeeType] = None
    levels: dict[int, Decimal] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _levels_not_negative(self) -> "FeeEntry":
        for level, value in self.levels.items():
            if value < 0:
                raise ValueError(f"Fee for level {level} must not be negative")
        return self

    def value_for_level(self, level: Optional[int]) -> Decimal:
        """Tier override when one is configured, otherwise the base value."""
        if level is not None and self.levels.get(level):
            return self.levels[level]
        return self.value


class CoinConfiguration(BaseModel):
    """Configuration of a single currency."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    display_name: Optional[str] = None
    allow_withdrawal: bool = True
    allow_deposit: bool = True
    withdrawal_fee: Decimal = Field(default=Decimal("0"), ge=0)
    withdrawal_fees: dict[str, FeeEntry] = Field(default_factory=dict)
    deposit_fees: dict[str, FeeEntry] = Field(default_factory=dict)
    network: Optional[str] = None

    @property
    def networks(self) -> list[str]:
        """Allowed chain identifiers (empty when the coin has no network list)."""
        if not self.network:
            return []
        return [n.strip() for n in self.network.split(",") if n.strip()]

    @property
    def label(self) -> str:
        return self.display_name or self.symbol


class KitConfig(BaseModel):
    """Immutable snapshot of the exchange's coin catalogue."""

    model_config = ConfigDict(frozen=True)

    coins: dict[str, CoinConfiguration] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _fill_symbols(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("coins"), dict):
            coins = {}
            for key, coin in data["coins"].items():
                if isinstance(coin, dict) and "symbol" not in coin:
                    coin = {**coin, "symbol": key}
                coins[key] = coin
            data = {**data, "coins": coins}
        return data

    def subscribed(self, currency: Optional[str]) -> bool:
        """Check if the exchange supports a currency."""
        return bool(currency) and currency in self.coins

    def coin(self, currency: str) -> Optional[CoinConfiguration]:
        return self.coins.get(currency)

    def display_name(self, currency: str) -> str:
        """Human-readable name, falling back to the code itself."""
        coin = self.coins.get(currency)
        return coin.label if coin else currency
