from __future__ import annotations


def from_hex(s: str) -> bytes:
    """
    Hex string (optional ``0x``) -> bytes.

    Raises ValueError on odd length or non-hex characters.
    """
    if not isinstance(s, str):
        raise TypeError("from_hex expects a string")
    if s.startswith(("0x", "0X")):
        s = s[2:]
    if len(s) % 2:
        raise ValueError("hex string must have even length")
    try:
        return bytes.fromhex(s)
    except ValueError as e:
        raise ValueError(f"invalid hex string: {e}") from e


__all__ = ["from_hex"]
