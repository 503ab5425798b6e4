"""TRON address validator.

Address format: T... (base58check of 0x41 + 20 byte hash).
"""

from bip_utils import TrxAddrDecoder

from kitwallet.addresses.base import DECODE_ERRORS, AddressValidator


class TRXAddressValidator(AddressValidator):
    """TRON address validator."""

    def __init__(self):
        super().__init__("trx")

    def validate_address(self, address: str) -> bool:
        if not address or not address.startswith("T"):
            return False
        try:
            TrxAddrDecoder.DecodeAddr(address)
        except DECODE_ERRORS:
            return False
        return True
