"""Tier transaction limits and their resolution."""

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional

DEFAULT_LIMIT_CURRENCY = "default"

# Sentinel amount: the tier may not withdraw the currency at all
BLOCKED_AMOUNT = Decimal("-1")


class LimitPeriod(str, Enum):
    """Rolling window a limit applies to."""

    DAY = "24h"
    MONTH = "1mo"

    @property
    def label(self) -> str:
        return "24 hours" if self is LimitPeriod.DAY else "month"

    def window_start(self, now: datetime) -> datetime:
        """Start of the window ending at ``now``."""
        if self is LimitPeriod.DAY:
            return now - timedelta(hours=24)
        return subtract_month(now)


class TransactionType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


def subtract_month(moment: datetime) -> datetime:
    """Same time one calendar month earlier, clamping the day to month length."""
    year, month = (moment.year, moment.month - 1) if moment.month > 1 else (moment.year - 1, 12)
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


@dataclass(frozen=True)
class TransactionLimit:
    """One tier limit row.

    ``amount`` is denominated in ``currency``. ``limit_currency`` is either
    ``"default"`` (catch-all bucket) or the single currency the row governs.
    """

    tier: int
    period: LimitPeriod
    type: TransactionType
    limit_currency: str
    currency: str
    amount: Optional[Decimal]

    @property
    def is_default(self) -> bool:
        return self.limit_currency == DEFAULT_LIMIT_CURRENCY

    @property
    def is_blocked(self) -> bool:
        return self.amount is not None and self.amount == BLOCKED_AMOUNT

    @property
    def is_capped(self) -> bool:
        """A positive cap is enforced; zero or missing means unlimited."""
        return self.amount is not None and self.amount > 0

    @property
    def scope_currency(self) -> Optional[str]:
        """Currency the accumulation is restricted to (None for the default bucket)."""
        return None if self.is_default else self.limit_currency


def find_independent_limit(
    limits: Iterable[TransactionLimit], currency: str
) -> Optional[TransactionLimit]:
    """Pick the limit governing ``currency``.

    The row scoped to the currency wins over the default row. Returns None
    when neither exists, in which case no limit is enforced.
    """
    limits = list(limits)
    independent = next((limit for limit in limits if limit.limit_currency == currency), None)
    if independent is not None:
        return independent
    return next((limit for limit in limits if limit.is_default), None)


def independent_currencies(limits: Iterable[TransactionLimit]) -> set[str]:
    """Currencies that have their own (non-default) limit row."""
    return {limit.limit_currency for limit in limits if not limit.is_default}
