"""
sponsored_wallet.wallet.identity
================================

Key and identity value types.

An identity is an opaque key pair seen only through its two public halves:

- the **coin public key**: owns balances and is the key of every per-identity
  ledger entry;
- the **encryption public key**: used for private-state encryption.

Both are fixed-length (32 byte) immutable values. Two identities are equal iff
their coin public keys are bit-equal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Union

KEY_LEN = 32

__all__ = [
    "KEY_LEN",
    "CoinPublicKey",
    "EncryptionPublicKey",
    "Identity",
]


def _strip_0x(s: str) -> str:
    s = s.strip()
    return s[2:] if s[:2] in ("0x", "0X") else s


class _PublicKey(bytes):
    """Fixed-length public key bytes. Subclasses only change the label."""

    label = "public key"

    def __new__(cls, value: Union[bytes, bytearray, memoryview, "_PublicKey"]):
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise TypeError(f"{cls.label} must be bytes, got {type(value).__name__}")
        raw = bytes(value)
        if len(raw) != KEY_LEN:
            raise ValueError(f"{cls.label} must be {KEY_LEN} bytes, got {len(raw)}")
        return super().__new__(cls, raw)

    @classmethod
    def from_hex(cls, value: str):
        if not isinstance(value, str):
            raise TypeError(f"{cls.label} hex must be a string")
        try:
            raw = bytes.fromhex(_strip_0x(value))
        except ValueError as e:
            raise ValueError(f"invalid {cls.label} hex: {e}") from e
        return cls(raw)

    def to_hex(self) -> str:
        return self.hex()

    def short(self) -> str:
        """Abbreviated form for logs (first and last 4 bytes)."""
        h = self.hex()
        return f"{h[:8]}…{h[-8:]}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.hex()!r})"


class CoinPublicKey(_PublicKey):
    label = "coin public key"


class EncryptionPublicKey(_PublicKey):
    label = "encryption public key"


@dataclass(frozen=True, eq=False)
class Identity:
    """Public half of a wallet identity."""

    coin_public_key: CoinPublicKey
    encryption_public_key: EncryptionPublicKey

    def __post_init__(self) -> None:
        # Coerce plain bytes so equality/hash always go through the key types.
        object.__setattr__(self, "coin_public_key", CoinPublicKey(self.coin_public_key))
        object.__setattr__(self, "encryption_public_key", EncryptionPublicKey(self.encryption_public_key))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Identity):
            return NotImplemented
        return bytes(self.coin_public_key) == bytes(other.coin_public_key)

    def __hash__(self) -> int:
        return hash(bytes(self.coin_public_key))

    def to_dict(self) -> Dict[str, str]:
        return {
            "coinPublicKey": self.coin_public_key.to_hex(),
            "encryptionPublicKey": self.encryption_public_key.to_hex(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Identity":
        return cls(
            coin_public_key=CoinPublicKey.from_hex(data["coinPublicKey"]),
            encryption_public_key=EncryptionPublicKey.from_hex(data["encryptionPublicKey"]),
        )
