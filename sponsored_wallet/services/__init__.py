"""
sponsored_wallet.services
=========================

Service layer between the HTTP/CLI surfaces and the wallet core.

Public submodules
-----------------
- sponsor : SponsorSession (serialized activate -> pipeline -> deactivate),
            build_session / build_local_session wiring per WALLET_MODE.

Submodules are loaded lazily via PEP 562 (__getattr__).
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

__all__ = ["sponsor"]


def __getattr__(name: str):
    if name in __all__:
        return importlib.import_module(f".{name}", __name__)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(list(globals().keys()) + __all__)


if TYPE_CHECKING:
    from . import sponsor
