"""
Adapters over the collaborators the sponsor pipeline depends on.

- jsonrpc     : retrying JSON-RPC transport (httpx)
- wallet_rpc  : RemoteWallet, a wallet daemon as a WalletRuntime
- node_rpc    : indexer client + IndexerLedgerSource for counter reads
- local_chain : in-process devnet (LocalChain) and SimulatedWallet

Submodules are loaded lazily via PEP 562 (__getattr__) so that local mode
never imports the HTTP client stack and vice versa.
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

__all__ = [
    "jsonrpc",
    "wallet_rpc",
    "node_rpc",
    "local_chain",
]


def __getattr__(name: str):
    if name in __all__:
        return importlib.import_module(f".{name}", __name__)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(list(globals().keys()) + __all__)


if TYPE_CHECKING:
    from . import jsonrpc, local_chain, node_rpc, wallet_rpc
