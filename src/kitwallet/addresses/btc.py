"""UTXO chain address validators (BTC, BCH, LTC, DOGE, DASH).

Legacy addresses are base58check with a version byte per chain. Native
SegWit addresses are bech32/bech32m with a chain specific HRP.
"""

import logging
from typing import Optional

from bip_utils import (
    BchP2PKHAddrDecoder,
    BchP2SHAddrDecoder,
    P2PKHAddrDecoder,
    P2SHAddrDecoder,
    SegwitBech32Decoder,
)

from kitwallet.addresses.base import DECODE_ERRORS, AddressValidator

logger = logging.getLogger(__name__)


class UtxoAddressValidator(AddressValidator):
    """Validator for base58check and bech32 addresses of a UTXO chain."""

    def __init__(
        self,
        asset: str,
        p2pkh_versions: tuple[bytes, ...],
        p2sh_versions: tuple[bytes, ...],
        bech32_hrp: Optional[str] = None,
    ):
        super().__init__(asset)
        self.p2pkh_versions = p2pkh_versions
        self.p2sh_versions = p2sh_versions
        self.bech32_hrp = bech32_hrp

    def validate_address(self, address: str) -> bool:
        if not address:
            return False

        if self.bech32_hrp and address.lower().startswith(f"{self.bech32_hrp}1"):
            return self._validate_segwit(address)

        return self._validate_base58(address)

    def _validate_segwit(self, address: str) -> bool:
        try:
            witness_version, program = SegwitBech32Decoder.Decode(self.bech32_hrp, address)
        except DECODE_ERRORS:
            return False

        if witness_version == 0:
            # P2WPKH or P2WSH
            return len(program) in (20, 32)
        return 0 < witness_version <= 16 and 2 <= len(program) <= 40

    def _validate_base58(self, address: str) -> bool:
        for net_ver in self.p2pkh_versions:
            try:
                P2PKHAddrDecoder.DecodeAddr(address, net_ver=net_ver)
                return True
            except DECODE_ERRORS:
                continue

        for net_ver in self.p2sh_versions:
            try:
                P2SHAddrDecoder.DecodeAddr(address, net_ver=net_ver)
                return True
            except DECODE_ERRORS:
                continue

        return False


class BTCAddressValidator(UtxoAddressValidator):
    """Bitcoin: 1..., 3..., bc1..."""

    def __init__(self):
        super().__init__("btc", (b"\x00",), (b"\x05",), bech32_hrp="bc")


class LTCAddressValidator(UtxoAddressValidator):
    """Litecoin: L..., M... (and legacy 3...), ltc1..."""

    def __init__(self):
        super().__init__("ltc", (b"\x30",), (b"\x32", b"\x05"), bech32_hrp="ltc")


class DOGEAddressValidator(UtxoAddressValidator):
    """Dogecoin: D..., 9.../A..."""

    def __init__(self):
        super().__init__("doge", (b"\x1e",), (b"\x16",))


class DASHAddressValidator(UtxoAddressValidator):
    """DASH: X..., 7..."""

    def __init__(self):
        super().__init__("dash", (b"\x4c",), (b"\x10",))


class BCHAddressValidator(AddressValidator):
    """Bitcoin Cash: CashAddr (with or without prefix) or legacy base58."""

    HRP = "bitcoincash"

    def __init__(self):
        super().__init__("bch")
        self._legacy = UtxoAddressValidator("bch", (b"\x00",), (b"\x05",))

    def validate_address(self, address: str) -> bool:
        if not address:
            return False

        if self._legacy.validate_address(address):
            return True

        cash_address = address.lower()
        if not cash_address.startswith(f"{self.HRP}:"):
            cash_address = f"{self.HRP}:{cash_address}"

        try:
            BchP2PKHAddrDecoder.DecodeAddr(cash_address, hrp=self.HRP, net_ver=b"\x00")
            return True
        except DECODE_ERRORS:
            pass

        try:
            BchP2SHAddrDecoder.DecodeAddr(cash_address, hrp=self.HRP, net_ver=b"\x08")
            return True
        except DECODE_ERRORS:
            return False
