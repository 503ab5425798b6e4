"""Factory for address validators.

Validators are keyed by lower-case currency code. Unknown codes return None;
the caller decides what an unknown currency means.
"""

from typing import Optional

from kitwallet.addresses.altchains import (
    SOLAddressValidator,
    XLMAddressValidator,
    XMRAddressValidator,
    XRPAddressValidator,
)
from kitwallet.addresses.base import AddressValidator
from kitwallet.addresses.btc import (
    BCHAddressValidator,
    BTCAddressValidator,
    DASHAddressValidator,
    DOGEAddressValidator,
    LTCAddressValidator,
)
from kitwallet.addresses.eth import ETHAddressValidator
from kitwallet.addresses.trx import TRXAddressValidator

# Currencies living on an EVM chain with 0x addresses
EVM_CURRENCIES = (
    "eth",
    "etc",
    "bnb",
    "matic",
    "avax",
    "ftm",
    "arb",
    "op",
    "usdt",
    "usdc",
    "dai",
    "link",
    "uni",
    "shib",
)


# Cache for validator instances
_validator_cache: dict[str, AddressValidator] = {}


def _build_validator(currency: str) -> Optional[AddressValidator]:
    if currency == "btc":
        return BTCAddressValidator()
    elif currency == "bch":
        return BCHAddressValidator()
    elif currency == "ltc":
        return LTCAddressValidator()
    elif currency == "doge":
        return DOGEAddressValidator()
    elif currency == "dash":
        return DASHAddressValidator()
    elif currency == "trx":
        return TRXAddressValidator()
    elif currency == "xlm":
        return XLMAddressValidator()
    elif currency == "xrp":
        return XRPAddressValidator()
    elif currency == "xmr":
        return XMRAddressValidator()
    elif currency == "sol":
        return SOLAddressValidator()
    elif currency in EVM_CURRENCIES:
        return ETHAddressValidator(currency)
    return None


def get_address_validator(currency: str) -> Optional[AddressValidator]:
    """Get an address validator for a currency code.

    Args:
        currency: Currency code (btc, eth, xrp, ...)

    Returns:
        AddressValidator instance or None if no validator is registered
    """
    code = (currency or "").lower()

    if code in _validator_cache:
        return _validator_cache[code]

    validator = _build_validator(code)
    if validator:
        _validator_cache[code] = validator

    return validator


def get_supported_currencies() -> list[str]:
    """Get list of currency codes with a registered validator."""
    return sorted(
        {"btc", "bch", "ltc", "doge", "dash", "trx", "xlm", "xrp", "xmr", "sol"}
        | set(EVM_CURRENCIES)
    )


def reset_validator_cache() -> None:
    """Clear validator cache (useful for testing)."""
    _validator_cache.clear()
