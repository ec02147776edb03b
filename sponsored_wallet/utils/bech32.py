"""
Bech32m codec (BIP-0350) used for human-readable key encodings.

Only the Bech32m checksum constant is accepted: every encoding this service
produces or parses is Bech32m, and a classic-Bech32 string with the same
payload is rejected as a checksum failure.

HRPs follow BIP-0173: 1..83 printable US-ASCII characters (33..126). Unlike
the data part, the HRP may contain ``-`` and ``_`` (e.g. ``mn_shield-cpk_undeployed``).
Encoded strings are produced in lowercase; all-uppercase input is accepted,
mixed case is not.

>>> s = encode_bytes("mn_shield-cpk_undeployed", bytes(32))
>>> decode_bytes(s, expected_hrp="mn_shield-cpk_undeployed")[1] == bytes(32)
True
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

__all__ = [
    "Bech32Error",
    "encode",
    "decode",
    "encode_bytes",
    "decode_bytes",
    "convertbits",
]

CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_CHARSET_REV = {c: i for i, c in enumerate(CHARSET)}

BECH32M_CONST = 0x2BC830A3
_GEN = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)
_MAX_HRP_LEN = 83


class Bech32Error(ValueError):
    pass


def _polymod(values: Iterable[int]) -> int:
    chk = 1
    for v in values:
        top = chk >> 25
        chk = ((chk & 0x1FFFFFF) << 5) ^ v
        for i, g in enumerate(_GEN):
            if (top >> i) & 1:
                chk ^= g
    return chk


def _hrp_expand(hrp: str) -> List[int]:
    return [ord(c) >> 5 for c in hrp] + [0] + [ord(c) & 31 for c in hrp]


def _checksum(hrp: str, data: Sequence[int]) -> List[int]:
    pm = _polymod(_hrp_expand(hrp) + list(data) + [0] * 6) ^ BECH32M_CONST
    return [(pm >> 5 * (5 - i)) & 31 for i in range(6)]


def _check_hrp(hrp: str) -> None:
    if not hrp or len(hrp) > _MAX_HRP_LEN:
        raise Bech32Error("HRP must be 1..83 characters")
    if any(ord(c) < 33 or ord(c) > 126 for c in hrp):
        raise Bech32Error("HRP contains characters outside US-ASCII 33..126")


def encode(hrp: str, data5: Iterable[int]) -> str:
    """Encode 5-bit groups under ``hrp``."""
    hrp = hrp.lower()
    _check_hrp(hrp)
    data = list(data5)
    if any(v < 0 or v > 31 for v in data):
        raise Bech32Error("data values must be in 0..31")
    return hrp + "1" + "".join(CHARSET[d] for d in data + _checksum(hrp, data))


def decode(text: str) -> Tuple[str, List[int]]:
    """Decode a Bech32m string into ``(hrp, data5)``; raises Bech32Error."""
    if any(ord(c) < 33 or ord(c) > 126 for c in text):
        raise Bech32Error("invalid characters")
    if text.lower() != text and text.upper() != text:
        raise Bech32Error("mixed case")
    text = text.lower()
    pos = text.rfind("1")
    if pos < 1:
        raise Bech32Error("missing separator or empty HRP")
    hrp, rest = text[:pos], text[pos + 1 :]
    _check_hrp(hrp)
    if len(rest) < 6:
        raise Bech32Error("data part too short")
    try:
        data = [_CHARSET_REV[c] for c in rest]
    except KeyError:
        raise Bech32Error("invalid data character") from None
    if _polymod(_hrp_expand(hrp) + data) != BECH32M_CONST:
        raise Bech32Error("invalid checksum")
    return hrp, data[:-6]


def convertbits(data: Iterable[int], from_bits: int, to_bits: int, *, pad: bool = True) -> List[int]:
    acc = 0
    bits = 0
    out: List[int] = []
    maxv = (1 << to_bits) - 1
    max_acc = (1 << (from_bits + to_bits - 1)) - 1
    for value in data:
        if value < 0 or value >> from_bits:
            raise Bech32Error("value out of range for convertbits")
        acc = ((acc << from_bits) | value) & max_acc
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            out.append((acc >> bits) & maxv)
    if pad:
        if bits:
            out.append((acc << (to_bits - bits)) & maxv)
    elif bits >= from_bits or ((acc << (to_bits - bits)) & maxv):
        raise Bech32Error("non-zero padding")
    return out


def encode_bytes(hrp: str, payload: bytes) -> str:
    return encode(hrp, convertbits(payload, 8, 5, pad=True))


def decode_bytes(text: str, *, expected_hrp: Optional[str] = None) -> Tuple[str, bytes]:
    hrp, data5 = decode(text)
    if expected_hrp is not None and hrp != expected_hrp.lower():
        raise Bech32Error(f"HRP mismatch: expected {expected_hrp}, got {hrp}")
    return hrp, bytes(convertbits(data5, 5, 8, pad=False))
