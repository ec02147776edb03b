"""
sponsored_wallet.wallet.provider
================================

Wallet-provider facade over one sponsor identity.

+----------------------------+---------------------------------------------+
| operation                  | identity used                               |
+============================+=============================================+
| coin_public_key(ctx)       | override if active, else sponsor            |
| encryption_public_key(ctx) | override if active, else sponsor            |
| balance(tx)                | sponsor (pays fees)                         |
| prove(tx, state)           | override prover in ``state``, else sponsor  |
| submit(tx)                 | sponsor (network-facing)                    |
+----------------------------+---------------------------------------------+

The public keys are read from the override context on every call, so they
always reflect the current override, never the one at construction time.
``prove`` takes an explicit override *snapshot* so callers can pin the prover
before any await point.
"""

from __future__ import annotations

from typing import Sequence

from sponsored_wallet.logging import get_logger
from sponsored_wallet.transactions import (BalancedTransaction,
                                           ProvenTransaction,
                                           UnprovenTransaction)
from sponsored_wallet.wallet.identity import (CoinPublicKey,
                                              EncryptionPublicKey, Identity)
from sponsored_wallet.wallet.override import Override, OverrideContext, OverrideState
from sponsored_wallet.wallet.runtime import (DEFAULT_POLL_INTERVAL_S,
                                             DEFAULT_SYNC_TIMEOUT_S,
                                             WalletRuntime, wait_for_funds,
                                             wait_for_identity)

log = get_logger(__name__)

__all__ = ["WalletProvider"]


class WalletProvider:
    def __init__(self, sponsor: WalletRuntime, sponsor_identity: Identity) -> None:
        self._sponsor = sponsor
        self._sponsor_identity = sponsor_identity

    @classmethod
    async def create(
        cls,
        sponsor: WalletRuntime,
        *,
        timeout_s: float = DEFAULT_SYNC_TIMEOUT_S,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
        min_balance: int = 0,
    ) -> "WalletProvider":
        """
        Wait for the sponsor's keys, then, when ``min_balance`` is positive, for
        a balance that covers it. Each wait is bounded by ``timeout_s``.
        """
        identity = await wait_for_identity(sponsor, timeout_s=timeout_s, poll_interval_s=poll_interval_s)
        balance = None
        if min_balance > 0:
            balance = await wait_for_funds(
                sponsor, min_balance, timeout_s=timeout_s, poll_interval_s=poll_interval_s
            )
        log.info("provider_ready", sponsor=identity.coin_public_key.hex(), balance=balance)
        return cls(sponsor, identity)

    @property
    def sponsor(self) -> WalletRuntime:
        return self._sponsor

    @property
    def sponsor_identity(self) -> Identity:
        return self._sponsor_identity

    # ---- keys ----

    def identity(self, ctx: OverrideContext) -> Identity:
        state = ctx.current()
        if isinstance(state, Override):
            return state.identity
        return self._sponsor_identity

    def coin_public_key(self, ctx: OverrideContext) -> CoinPublicKey:
        return self.identity(ctx).coin_public_key

    def encryption_public_key(self, ctx: OverrideContext) -> EncryptionPublicKey:
        return self.identity(ctx).encryption_public_key

    # ---- transaction operations ----

    def prover_for(self, state: OverrideState) -> WalletRuntime:
        if isinstance(state, Override):
            return state.prover
        return self._sponsor

    async def balance(self, tx: UnprovenTransaction, new_coins: Sequence[str] = ()) -> BalancedTransaction:
        return await self._sponsor.balance_transaction(tx, new_coins)

    async def prove(self, tx: BalancedTransaction, state: OverrideState) -> ProvenTransaction:
        prover = self.prover_for(state)
        log.debug("prove", overridden=state.active)
        return await prover.prove_transaction(tx)

    async def submit(self, tx: ProvenTransaction) -> str:
        return await self._sponsor.submit_transaction(tx)
