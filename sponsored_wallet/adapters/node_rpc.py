"""
Chain indexer adapter.

Reads contract state from a chain indexer over JSON-RPC:

* ``contract.getState [address]`` -> ``{"counters": {"<key hex>": <int>, ...}}``
* ``chain.getHead``              -> ``{"height": <int>, ...}``

:class:`IndexerLedgerSource` turns the counter map into the same shape the
local devnet returns, so the query layer does not care where state lives.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from sponsored_wallet.adapters.jsonrpc import JsonRpcClient, RpcError
from sponsored_wallet.errors import ApiError, NotFound
from sponsored_wallet.logging import get_logger
from sponsored_wallet.wallet.identity import CoinPublicKey

log = get_logger(__name__)


class NodeRpc(JsonRpcClient):
    """Typed methods over the indexer's JSON-RPC surface."""

    async def get_head(self) -> Dict[str, Any]:
        return await self.call("chain.getHead")

    async def get_contract_state(self, address: str) -> Optional[Dict[str, Any]]:
        return await self.call("contract.getState", [address])


class IndexerLedgerSource:
    def __init__(self, rpc: NodeRpc):
        self.rpc = rpc

    async def counters(self, address: str) -> Dict[CoinPublicKey, int]:
        try:
            state = await self.rpc.get_contract_state(address)
        except RpcError as e:
            log.warning("indexer_unavailable", address=address, error=str(e))
            raise ApiError(f"indexer unavailable: {e}", status_code=502, code="upstream_unavailable") from e
        if state is None:
            raise NotFound(f"contract {address}")
        try:
            raw = state.get("counters") or {}
            return {CoinPublicKey.from_hex(k): int(v) for k, v in raw.items()}
        except (AttributeError, TypeError, ValueError) as e:
            log.warning("indexer_malformed", address=address, error=repr(e))
            raise ApiError(f"malformed contract state from indexer: {e}", status_code=502, code="upstream_unavailable") from e

    async def close(self) -> None:
        await self.rpc.close()


__all__ = ["NodeRpc", "IndexerLedgerSource"]
