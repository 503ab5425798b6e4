"""EVM address validator.

Works for ETH, BSC and every other EVM-compatible chain: 0x followed by
40 hex characters, with the EIP-55 checksum enforced on mixed-case input.
"""

from eth_utils import is_checksum_address, is_hex_address

from kitwallet.addresses.base import AddressValidator


class ETHAddressValidator(AddressValidator):
    """Ethereum-style (0x...) address validator."""

    def __init__(self, asset: str = "eth"):
        super().__init__(asset)

    def validate_address(self, address: str) -> bool:
        if not address or not address.startswith("0x"):
            return False
        if not is_hex_address(address):
            return False

        digits = address[2:]
        # Single-case addresses carry no checksum
        if digits.islower() or digits.isupper():
            return True
        return is_checksum_address(address)
