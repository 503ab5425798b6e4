"""Repository for kit user and tier limit queries."""

from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kitwallet.db.models import TierLimit, User
from kitwallet.wallet.limits import (
    DEFAULT_LIMIT_CURRENCY,
    LimitPeriod,
    TransactionLimit,
    TransactionType,
)


class KitRepository:
    """Repository for user lookups, id mapping and tier limits."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # User operations
    async def get_user_by_kit_id(self, kit_id: int) -> Optional[User]:
        """Get user by kit id."""
        return await self.session.get(User, kit_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == email.lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_user(
        self,
        email: str,
        network_id: Optional[int] = None,
        verification_level: int = 1,
        otp_secret: Optional[str] = None,
        settings: Optional[dict[str, Any]] = None,
    ) -> User:
        """Create a user. OTP is enabled when a secret is given."""
        user = User(
            email=email.lower(),
            network_id=network_id,
            verification_level=verification_level,
            otp_enabled=otp_secret is not None,
            otp_secret=otp_secret,
            settings=settings or {},
        )
        self.session.add(user)
        await self.session.flush()
        return user

    async def set_network_id(self, kit_id: int, network_id: int) -> User:
        """Record the network id of a user after network registration."""
        user = await self.get_user_by_kit_id(kit_id)
        if user is None:
            raise ValueError(f"User {kit_id} not found")
        user.network_id = network_id
        await self.session.flush()
        return user

    # Id mapping
    async def map_kit_id_to_network_id(self, kit_ids: Iterable[int]) -> dict[int, Optional[int]]:
        """Map kit ids to network ids.

        Missing users are absent from the result; users not registered on the
        network map to None.
        """
        ids = list(set(kit_ids))
        if not ids:
            return {}
        stmt = select(User.id, User.network_id).where(User.id.in_(ids))
        result = await self.session.execute(stmt)
        return {kit_id: network_id for kit_id, network_id in result.all()}

    async def map_network_id_to_kit_id(self, network_ids: Iterable[int]) -> dict[int, int]:
        """Map network ids back to kit ids (unknown ids are absent)."""
        ids = [network_id for network_id in set(network_ids) if network_id is not None]
        if not ids:
            return {}
        stmt = select(User.network_id, User.id).where(User.network_id.in_(ids))
        result = await self.session.execute(stmt)
        return {network_id: kit_id for network_id, kit_id in result.all()}

    # Tier limits
    async def find_transaction_limits(
        self,
        tier: int,
        period: LimitPeriod,
        type: TransactionType,
    ) -> list[TransactionLimit]:
        """All limit rows of a tier for one period and transaction type."""
        stmt = (
            select(TierLimit)
            .where(
                TierLimit.tier == tier,
                TierLimit.period == LimitPeriod(period).value,
                TierLimit.type == TransactionType(type).value,
            )
            .order_by(TierLimit.id)
        )
        result = await self.session.execute(stmt)
        return [row.to_limit() for row in result.scalars().all()]

    async def set_tier_limit(
        self,
        tier: int,
        period: LimitPeriod,
        type: TransactionType,
        currency: str,
        amount: Optional[Decimal],
        limit_currency: str = DEFAULT_LIMIT_CURRENCY,
    ) -> TierLimit:
        """Create or update the limit row for (tier, period, type, limit_currency)."""
        stmt = select(TierLimit).where(
            TierLimit.tier == tier,
            TierLimit.period == LimitPeriod(period).value,
            TierLimit.type == TransactionType(type).value,
            TierLimit.limit_currency == limit_currency,
        )
        result = await self.session.execute(stmt)
        row = result.scalar_one_or_none()

        if row is None:
            row = TierLimit(
                tier=tier,
                period=LimitPeriod(period).value,
                type=TransactionType(type).value,
                limit_currency=limit_currency,
            )
            self.session.add(row)

        row.currency = currency
        row.amount = amount
        await self.session.flush()
        return row
