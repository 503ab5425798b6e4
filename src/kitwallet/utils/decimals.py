"""Decimal helpers for fee and balance math.

All amounts that reach the wallet core go through ``to_decimal`` so fees,
balances and accumulated withdrawals are summed without float drift.
"""

from decimal import Decimal, InvalidOperation
from typing import Union

from kitwallet.errors import InvalidAmountError

Number = Union[Decimal, int, float, str]

ZERO = Decimal("0")


def to_decimal(value: Number) -> Decimal:
    """Convert a number or numeric string to Decimal.

    Floats are converted through ``str`` so ``0.1`` becomes ``Decimal("0.1")``.

    Raises:
        InvalidAmountError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise InvalidAmountError(value)
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(value.strip() if isinstance(value, str) else value)
        except InvalidOperation:
            raise InvalidAmountError(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        raise InvalidAmountError(value)

    if not result.is_finite():
        raise InvalidAmountError(value)
    return result


def add(*values: Number) -> Decimal:
    """Sum any number of values with decimal precision."""
    total = ZERO
    for value in values:
        total += to_decimal(value)
    return total


def percentage_of(amount: Number, percent: Number) -> Decimal:
    """Return ``percent`` % of ``amount``."""
    return to_decimal(amount) * to_decimal(percent) / Decimal(100)
