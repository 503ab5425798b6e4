"""Selection of the address validation rule for a currency/network pair.

Network based rules are checked before currency based ones, so a token
requested over BSC validates against ETH rules even when the currency has a
native validator of its own.
"""

from enum import Enum
from typing import Optional

from kitwallet.addresses.factory import get_address_validator


class AddressRule(str, Enum):
    """Closed set of address validation strategies."""

    ETH = "eth"
    XLM_MEMO = "xlm_memo"
    TRX = "trx"
    BSC = "bsc"
    NATIVE = "native"
    XRP_MEMO = "xrp_memo"
    BYPASS = "bypass"
    REGISTRY = "registry"
    UNKNOWN_PERMISSIVE = "unknown_permissive"


def select_rule(currency: str, network: Optional[str]) -> AddressRule:
    """Pick the validation rule for a currency requested over a network."""
    if network in ("eth", "ethereum"):
        return AddressRule.ETH
    if network in ("stellar", "xlm"):
        return AddressRule.XLM_MEMO
    if network in ("tron", "trx"):
        return AddressRule.TRX
    if network == "bsc" or currency == "bnb" or network == "bnb":
        return AddressRule.BSC
    if currency in ("btc", "bch", "xmr"):
        return AddressRule.NATIVE
    if currency == "xrp":
        return AddressRule.XRP_MEMO
    if currency == "etn":
        # no validator available for electroneum
        return AddressRule.BYPASS
    if get_address_validator(currency) is not None:
        return AddressRule.REGISTRY
    return AddressRule.UNKNOWN_PERMISSIVE


def _validate_with(code: str, address: str) -> bool:
    return get_address_validator(code).validate_address(address)


def is_valid_address(currency: str, address: str, network: Optional[str] = None) -> bool:
    """Check a withdrawal destination for a currency/network pair.

    Memo-style addresses (``address:memo``) are accepted for XLM and XRP; only
    the part before the first ``:`` is validated.
    """
    address = address or ""
    rule = select_rule(currency, network)

    if rule is AddressRule.ETH or rule is AddressRule.BSC:
        return _validate_with("eth", address)
    elif rule is AddressRule.XLM_MEMO:
        return _validate_with("xlm", address.split(":")[0])
    elif rule is AddressRule.TRX:
        return _validate_with("trx", address)
    elif rule is AddressRule.NATIVE:
        return _validate_with(currency, address)
    elif rule is AddressRule.XRP_MEMO:
        return _validate_with("xrp", address.split(":")[0])
    elif rule is AddressRule.REGISTRY:
        return _validate_with(currency, address)
    elif rule is AddressRule.BYPASS or rule is AddressRule.UNKNOWN_PERMISSIVE:
        return True

    raise ValueError(f"Unhandled address rule: {rule}")
