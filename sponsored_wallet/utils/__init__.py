"""
Small shared helpers.

- bytes  : hex parsing
- bech32 : Bech32m codec for human-readable key encodings
"""

from .bech32 import Bech32Error, decode_bytes, encode_bytes
from .bytes import from_hex

__all__ = [
    "Bech32Error",
    "encode_bytes",
    "decode_bytes",
    "from_hex",
]
