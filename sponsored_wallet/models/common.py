from __future__ import annotations

"""
Common API model types.

- KeyHex: a 32-byte public key as 64 lowercase hex chars (``0x`` accepted and
  stripped on input).
- TxId:   non-empty transaction id string as returned by the chain.
"""

import re
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

_KEY_RE = re.compile(r"^[0-9a-f]{64}$")


def _validate_key_hex(v: str) -> str:
    if not isinstance(v, str):
        raise TypeError("key must be a string")
    s = v.strip().lower()
    if s.startswith("0x"):
        s = s[2:]
    if not _KEY_RE.match(s):
        raise ValueError("key must be 32 bytes of hex (64 chars)")
    return s


def _validate_tx_id(v: str) -> str:
    s = v.strip()
    if not s:
        raise ValueError("tx id must not be empty")
    return s


KeyHex = Annotated[str, AfterValidator(_validate_key_hex)]
TxId = Annotated[str, AfterValidator(_validate_tx_id)]


class CamelModel(BaseModel):
    """Base for wire models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid", str_strip_whitespace=True)


class IdentityModel(CamelModel):
    coin_public_key: KeyHex = Field(..., alias="coinPublicKey")
    encryption_public_key: KeyHex = Field(..., alias="encryptionPublicKey")


__all__ = ["KeyHex", "TxId", "CamelModel", "IdentityModel"]
