"""
sponsored_wallet.address
========================

Encodings of a coin public key accepted wherever an identity is addressed
(``GET /counters/{address}``, the CLI).

Forms
-----
1. **Bech32m** with HRP ``mn_shield-cpk_<network>``::

       mn_shield-cpk_undeployed1qyqszqgp...

   The network suffix must match the configured network id.

2. **Short form**: ``cpk:`` followed by the unpadded url-safe base64 of the
   32 key bytes (always 43 characters)::

       cpk:AQIDBAUGBwgJCgsMDQ4PEBESExQVFhcYGRobHB0eHyA

3. **Raw hex**: 64 hex characters, optionally ``0x``-prefixed.

Everything else raises :class:`~sponsored_wallet.errors.MalformedAddress`.
Round-trips are exact: ``resolve(encode_X(k)) == k`` for every form.
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import Dict

from sponsored_wallet.errors import MalformedAddress
from sponsored_wallet.utils.bech32 import Bech32Error, decode_bytes, encode_bytes
from sponsored_wallet.utils.bytes import from_hex
from sponsored_wallet.wallet.identity import KEY_LEN, CoinPublicKey

__all__ = [
    "HRP_PREFIX",
    "SHORT_PREFIX",
    "DEFAULT_NETWORK_ID",
    "hrp_for",
    "encode_bech32m",
    "encode_short",
    "encode_hex",
    "encode_all",
    "resolve",
]

HRP_PREFIX = "mn_shield-cpk_"
SHORT_PREFIX = "cpk:"
DEFAULT_NETWORK_ID = "undeployed"

_SHORT_BODY_LEN = 43
_SHORT_RE = re.compile(r"^[A-Za-z0-9_-]{%d}$" % _SHORT_BODY_LEN)
_HEX_RE = re.compile(r"^(0[xX])?[0-9a-fA-F]{%d}$" % (KEY_LEN * 2))


def hrp_for(network_id: str) -> str:
    return HRP_PREFIX + network_id.strip().lower()


# ---- encoders ---------------------------------------------------------------


def encode_bech32m(key: bytes, network_id: str = DEFAULT_NETWORK_ID) -> str:
    return encode_bytes(hrp_for(network_id), bytes(CoinPublicKey(key)))


def encode_short(key: bytes) -> str:
    body = base64.urlsafe_b64encode(bytes(CoinPublicKey(key))).rstrip(b"=").decode("ascii")
    return SHORT_PREFIX + body


def encode_hex(key: bytes, prefix: bool = False) -> str:
    h = bytes(CoinPublicKey(key)).hex()
    return "0x" + h if prefix else h


def encode_all(key: bytes, network_id: str = DEFAULT_NETWORK_ID) -> Dict[str, str]:
    return {
        "bech32m": encode_bech32m(key, network_id),
        "short": encode_short(key),
        "hex": encode_hex(key),
    }


# ---- decoder ----------------------------------------------------------------


def _from_short(text: str, body: str) -> CoinPublicKey:
    if not _SHORT_RE.match(body):
        raise MalformedAddress(text, reason=f"short form must be {SHORT_PREFIX} + {_SHORT_BODY_LEN} base64url chars")
    try:
        raw = base64.urlsafe_b64decode(body + "=")
    except (binascii.Error, ValueError) as e:
        raise MalformedAddress(text, reason=str(e)) from e
    # 43 chars carry 258 bits; the 2 spare bits must be zero to be canonical.
    if base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii") != body:
        raise MalformedAddress(text, reason="non-canonical base64")
    return CoinPublicKey(raw)


def _from_bech32m(text: str, network_id: str) -> CoinPublicKey:
    expected = hrp_for(network_id)
    try:
        hrp, payload = decode_bytes(text)
    except Bech32Error as e:
        raise MalformedAddress(text, reason=f"bech32m: {e}") from e
    if hrp != expected:
        raise MalformedAddress(text, reason=f"expected HRP {expected!r}, got {hrp!r}")
    if len(payload) != KEY_LEN:
        raise MalformedAddress(text, reason=f"payload is {len(payload)} bytes, expected {KEY_LEN}")
    return CoinPublicKey(payload)


def resolve(address: str, network_id: str = DEFAULT_NETWORK_ID) -> CoinPublicKey:
    """
    Decode any accepted address form into a coin public key.

    Raises:
        MalformedAddress: the text matches none of the forms, or a form's
            checksum/length/network does not validate.
    """
    if not isinstance(address, str):
        raise MalformedAddress(repr(address), reason="address must be a string")
    text = address.strip()
    if not text:
        raise MalformedAddress(address, reason="empty address")

    if text.startswith(SHORT_PREFIX):
        return _from_short(text, text[len(SHORT_PREFIX):])
    if _HEX_RE.match(text):
        return CoinPublicKey(from_hex(text))
    if text.lower().startswith(HRP_PREFIX):
        return _from_bech32m(text, network_id)
    raise MalformedAddress(text)
