"""Wallet error taxonomy.

Every failure is scoped to a single request and propagates to the caller
unchanged. Messages are safe to show to end users.
"""

from decimal import Decimal
from typing import Optional


class WalletError(Exception):
    """Base class for all wallet errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# Request shape


class InvalidCoinError(WalletError):
    def __init__(self, currency: Optional[str]):
        self.currency = currency
        super().__init__(f"Invalid coin {currency}")


class InvalidAmountError(WalletError):
    def __init__(self, amount: object):
        self.amount = amount
        super().__init__(f"Invalid amount {amount}")


class InvalidNetworkError(WalletError):
    def __init__(self, network: Optional[str], valid_networks: Optional[str] = None):
        self.network = network
        self.valid_networks = valid_networks
        if valid_networks:
            message = f"Invalid network: {network}. Valid networks: {valid_networks}"
        else:
            message = f"Invalid network given: {network}"
        super().__init__(message)


class NetworkRequiredError(WalletError):
    def __init__(self, currency: str, valid_networks: str):
        self.currency = currency
        self.valid_networks = valid_networks
        super().__init__(
            f"Network parameter is required for coin {currency}. Valid networks: {valid_networks}"
        )


class InvalidAddressError(WalletError):
    def __init__(self, currency: str, address: str):
        self.currency = currency
        self.address = address
        super().__init__(f"Invalid {currency} address: {address}")


# Policy


class WithdrawalDisabledError(WalletError):
    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Withdrawals are disabled for {currency}")


class DepositDisabledError(WalletError):
    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Deposits are disabled for {currency}")


# Identity / eligibility


class UserNotFoundError(WalletError):
    def __init__(self):
        super().__init__("User not found")


class UserNotRegisteredOnNetworkError(WalletError):
    def __init__(self):
        super().__init__("User is not registered on the network")


class VerificationRequiredError(WalletError):
    def __init__(self, level: int = 1):
        self.level = level
        super().__init__(f"Upgrade verification level to {level} to perform this action")


# Funds


class InsufficientBalanceError(WalletError):
    """Balance does not cover the amount, the fee, or both."""

    def __init__(
        self,
        currency: str,
        amount: Optional[Decimal] = None,
        fee: Optional[Decimal] = None,
        message: Optional[str] = None,
    ):
        self.currency = currency
        self.amount = amount
        self.fee = fee
        super().__init__(message or f"User {currency} balance is too low")


class LimitExceededError(WalletError):
    """Rolling-window withdrawal cap would be exceeded."""

    def __init__(
        self,
        limit: Decimal,
        limit_currency: str,
        accumulated: Decimal,
        amount: Decimal,
        currency: str,
    ):
        self.limit = limit
        self.limit_currency = limit_currency
        self.accumulated = accumulated
        self.amount = amount
        self.currency = currency
        super().__init__(
            f"Total withdrawn amount would exceed withdrawal limit of {limit} {limit_currency}. "
            f"Withdrawn amount: {accumulated} {limit_currency}. "
            f"Request amount: {amount} {currency}"
        )


# Confirmation flow


class InvalidOtpCodeError(WalletError):
    def __init__(self):
        super().__init__("Invalid OTP Code")


class InvalidWithdrawalTokenError(WalletError):
    def __init__(self):
        super().__init__("Invalid withdrawal token")


class ExpiredWithdrawalTokenError(WalletError):
    def __init__(self):
        super().__init__("Expired withdrawal token")


# Collaborators


class NetworkRequestError(Exception):
    """The ledger network rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)
