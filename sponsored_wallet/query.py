"""
Read side of the counter ledger.

A *ledger source* is anything that can hand back the current counter map of a
contract: the local devnet, or the indexer adapter for a remote chain. Reads
never mutate; a key that was never incremented reads as 0.
"""

from __future__ import annotations

from typing import Mapping, Optional, Protocol, Union, runtime_checkable

from sponsored_wallet.address import DEFAULT_NETWORK_ID, resolve
from sponsored_wallet.contract.ledger import IsolatedLedgerMap
from sponsored_wallet.wallet.identity import CoinPublicKey
from sponsored_wallet.wallet.override import OverrideContext
from sponsored_wallet.wallet.provider import WalletProvider

__all__ = [
    "LedgerSource",
    "query_counter",
    "own_counter",
    "resolve_or_own",
    "read_counter",
]

LedgerLike = Union[IsolatedLedgerMap, Mapping[bytes, int]]


@runtime_checkable
class LedgerSource(Protocol):
    async def counters(self, address: str) -> Mapping[CoinPublicKey, int]: ...


def query_counter(ledger: LedgerLike, key: bytes) -> int:
    """Count stored for ``key``, or 0 if the key was never incremented."""
    if isinstance(ledger, IsolatedLedgerMap):
        return ledger.get(key, 0)
    return int(ledger.get(bytes(CoinPublicKey(key)), 0))


def own_counter(provider: WalletProvider, ctx: OverrideContext, ledger: LedgerLike) -> int:
    """Counter of whoever currently acts: the override if active, else the sponsor."""
    return query_counter(ledger, provider.coin_public_key(ctx))


def resolve_or_own(
    address: Optional[str],
    provider: WalletProvider,
    ctx: OverrideContext,
    network_id: str = DEFAULT_NETWORK_ID,
) -> CoinPublicKey:
    if address is None or not address.strip():
        return provider.coin_public_key(ctx)
    return resolve(address, network_id)


async def read_counter(source: LedgerSource, contract_address: str, key: bytes) -> int:
    """Fetch the contract's counter map from ``source`` and look ``key`` up."""
    return query_counter(await source.counters(contract_address), key)
