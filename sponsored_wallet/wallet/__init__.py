"""
Wallet-side building blocks: identities, the runtime boundary, the override
store and the provider facade.

Submodules are loaded lazily via PEP 562 (__getattr__) so that importing
``sponsored_wallet.wallet.identity`` never drags in the runtime/transaction
modules that depend on it.
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

__all__ = ["identity", "runtime", "override", "provider"]


def __getattr__(name: str):
    if name in __all__:
        return importlib.import_module(f".{name}", __name__)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(list(globals().keys()) + __all__)


if TYPE_CHECKING:
    from . import identity, override, provider, runtime
