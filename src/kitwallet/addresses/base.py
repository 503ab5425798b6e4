"""Base interface for address validators.

Each chain family has its own implementation. Validators are pure: the same
address always yields the same answer and nothing is cached per call.
"""

from abc import ABC, abstractmethod

from bip_utils import Base58ChecksumError, Bech32ChecksumError

# Errors raised by bip_utils decoders on malformed input
DECODE_ERRORS = (ValueError, TypeError, Base58ChecksumError, Bech32ChecksumError)


class AddressValidator(ABC):
    """Abstract base class for chain address validators."""

    def __init__(self, asset: str):
        """Initialize validator.

        Args:
            asset: Asset symbol the validator is registered for
        """
        self.asset = asset.lower()

    @abstractmethod
    def validate_address(self, address: str) -> bool:
        """Validate destination address format.

        Args:
            address: Destination address to validate

        Returns:
            True if address is valid for this chain
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.asset!r})"
