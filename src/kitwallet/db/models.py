"""SQLAlchemy models for kit users, tier limits and withdrawal requests."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    DateTime,
    Index,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from kitwallet.wallet.limits import LimitPeriod, TransactionLimit, TransactionType


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class User(Base):
    """Exchange user. ``id`` is the kit id."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    network_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, unique=True, nullable=True, index=True
    )  # Id on the ledger network, None until registered
    verification_level: Mapped[int] = mapped_column(default=1)
    otp_enabled: Mapped[bool] = mapped_column(default=False)
    otp_secret: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    settings: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class TierLimit(Base):
    """Per-tier transaction limit row.

    amount: -1 blocks the currency, 0/NULL is unlimited, positive is a cap in
    ``currency``.
    """

    __tablename__ = "tier_limits"
    __table_args__ = (
        Index("ix_tier_limits_lookup", "tier", "period", "type"),
        Index(
            "ix_tier_limits_unique", "tier", "period", "type", "limit_currency", unique=True
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    tier: Mapped[int] = mapped_column(nullable=False)
    period: Mapped[str] = mapped_column(String(8), nullable=False)  # 24h, 1mo
    type: Mapped[str] = mapped_column(String(16), nullable=False)  # deposit, withdrawal
    limit_currency: Mapped[str] = mapped_column(String(20), default="default", nullable=False)
    currency: Mapped[str] = mapped_column(String(20), nullable=False)  # reference currency
    amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(36, 18), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def to_limit(self) -> TransactionLimit:
        return TransactionLimit(
            tier=self.tier,
            period=LimitPeriod(self.period),
            type=TransactionType(self.type),
            limit_currency=self.limit_currency,
            currency=self.currency,
            amount=self.amount,
        )


class WithdrawalRequestRecord(Base):
    """Pending e-mail confirmed withdrawal, consumed on first read."""

    __tablename__ = "withdrawal_requests"

    token: Mapped[str] = mapped_column(String(128), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)  # JSON
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
