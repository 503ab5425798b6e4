"""Address validators for non-UTXO, non-EVM chains.

Supported:
- XLM (Stellar): G... strkey
- XRP (Ripple): r... base58check, ripple alphabet
- XMR (Monero): standard, subaddress and integrated addresses
- SOL (Solana): base58 ed25519 public key
"""

from bip_utils import (
    Base58XmrDecoder,
    SolAddrDecoder,
    XlmAddrDecoder,
    XlmAddrTypes,
    XrpAddrDecoder,
)
from eth_utils import keccak

from kitwallet.addresses.base import DECODE_ERRORS, AddressValidator


class XLMAddressValidator(AddressValidator):
    """Stellar account id validator."""

    def __init__(self):
        super().__init__("xlm")

    def validate_address(self, address: str) -> bool:
        if not address or not address.startswith("G"):
            return False
        try:
            XlmAddrDecoder.DecodeAddr(address, addr_type=XlmAddrTypes.PUB_KEY)
        except DECODE_ERRORS:
            return False
        return True


class XRPAddressValidator(AddressValidator):
    """Ripple classic address validator."""

    def __init__(self):
        super().__init__("xrp")

    def validate_address(self, address: str) -> bool:
        if not address or not address.startswith("r"):
            return False
        try:
            XrpAddrDecoder.DecodeAddr(address)
        except DECODE_ERRORS:
            return False
        return True


class XMRAddressValidator(AddressValidator):
    """Monero address validator (mainnet)."""

    # network byte -> decoded length
    PREFIXES = {
        18: 69,  # standard
        42: 69,  # subaddress
        19: 77,  # integrated (8 byte payment id)
    }

    def __init__(self):
        super().__init__("xmr")

    def validate_address(self, address: str) -> bool:
        if not address:
            return False
        try:
            decoded = Base58XmrDecoder.Decode(address)
        except DECODE_ERRORS:
            return False

        expected_length = self.PREFIXES.get(decoded[0]) if decoded else None
        if expected_length is None or len(decoded) != expected_length:
            return False

        payload, checksum = decoded[:-4], decoded[-4:]
        return keccak(payload)[:4] == checksum


class SOLAddressValidator(AddressValidator):
    """Solana address validator."""

    def __init__(self):
        super().__init__("sol")

    def validate_address(self, address: str) -> bool:
        if not address:
            return False
        try:
            SolAddrDecoder.DecodeAddr(address)
        except DECODE_ERRORS:
            return False
        return True
