"""Withdrawal confirmation tokens.

A withdrawal request is stored under its token until the user confirms it
from the e-mail. Reading a token removes it in the same statement, so a
token can be used at most once even under concurrent confirmations.
Expiry is checked by the caller after the token is gone.
"""

import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import delete

from kitwallet.db.database import SessionFactory
from kitwallet.db.models import WithdrawalRequestRecord

logger = logging.getLogger(__name__)


class WithdrawalRequestPayload(BaseModel):
    """Everything needed to execute a confirmed withdrawal."""

    user_id: int
    email: str
    amount: Decimal
    fee: Optional[Decimal] = None
    fee_coin: Optional[str] = None
    transaction_id: str
    address: str
    currency: str
    network: Optional[str] = None
    timestamp: int  # epoch milliseconds

    def is_expired(self, now_ms: int, expiry_ms: int) -> bool:
        """Expired once ``expiry_ms`` has fully elapsed (boundary included)."""
        return now_ms - self.timestamp >= expiry_ms


class TokenStore(ABC):
    """Key-value store with an atomic take."""

    @abstractmethod
    async def put(self, token: str, payload: str) -> None:
        """Store a serialized payload under a token."""
        pass

    @abstractmethod
    async def take(self, token: str) -> Optional[str]:
        """Remove and return the payload of a token (None if absent)."""
        pass


class SqlTokenStore(TokenStore):
    """Token store on the ``withdrawal_requests`` table.

    Each operation runs in its own committed transaction.
    """

    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    async def put(self, token: str, payload: str) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                session.add(WithdrawalRequestRecord(token=token, payload=payload))
        logger.debug("Stored withdrawal request %s", token)

    async def take(self, token: str) -> Optional[str]:
        stmt = (
            delete(WithdrawalRequestRecord)
            .where(WithdrawalRequestRecord.token == token)
            .returning(WithdrawalRequestRecord.payload)
            .execution_options(synchronize_session=False)
        )
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(stmt)
                payload = result.scalar_one_or_none()

        logger.debug("Took withdrawal request %s: %s", token, "found" if payload else "missing")
        return payload
