"""Persistence for kit users, tier limits and withdrawal requests."""

from kitwallet.db.database import close_db, get_db, get_session_factory, init_db
from kitwallet.db.models import Base, TierLimit, User, WithdrawalRequestRecord
from kitwallet.db.repository import KitRepository

__all__ = [
    # Models
    "Base",
    "TierLimit",
    "User",
    "WithdrawalRequestRecord",
    # Database
    "close_db",
    "get_db",
    "get_session_factory",
    "init_db",
    "KitRepository",
]
