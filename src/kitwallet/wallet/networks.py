"""Classification of the ``network`` parameter of a withdrawal."""

from enum import Enum
from typing import Optional

FIAT_NETWORK = "fiat"
EMAIL_NETWORK = "email"


class NetworkKind(str, Enum):
    """What kind of transfer a network parameter describes."""

    NONE = "none"  # no network given
    CHAIN = "chain"  # blockchain withdrawal over a named chain
    FIAT = "fiat"  # bank/fiat withdrawal, fee table keyed by currency
    EMAIL = "email"  # internal transfer to another user by e-mail


def classify_network(network: Optional[str]) -> NetworkKind:
    if not network:
        return NetworkKind.NONE
    if network == FIAT_NETWORK:
        return NetworkKind.FIAT
    if network == EMAIL_NETWORK:
        return NetworkKind.EMAIL
    return NetworkKind.CHAIN
