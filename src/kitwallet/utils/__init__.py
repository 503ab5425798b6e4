"""Utility modules for kitwallet."""

from kitwallet.utils.decimals import ZERO, add, percentage_of, to_decimal

__all__ = ["ZERO", "add", "percentage_of", "to_decimal"]
