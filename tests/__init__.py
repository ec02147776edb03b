"""Test package for sponsored_wallet."""

from __future__ import annotations

__all__: list[str] = []
