"""Kit wallet: withdrawal validation and ledger network orchestration."""

__version__ = "0.1.0"
