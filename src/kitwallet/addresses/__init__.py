"""Withdrawal destination address validation."""

from kitwallet.addresses.base import AddressValidator
from kitwallet.addresses.factory import get_address_validator
from kitwallet.addresses.rules import AddressRule, is_valid_address, select_rule

__all__ = [
    "AddressRule",
    "AddressValidator",
    "get_address_validator",
    "is_valid_address",
    "select_rule",
]
