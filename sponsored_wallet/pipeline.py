"""
sponsored_wallet.pipeline
=========================

Build -> balance -> prove -> submit, one provider call per transition.

    Built --balance(sponsor)--> Balanced --prove(snapshot)--> Proven --submit(sponsor)--> Submitted

* Stages run strictly in order and are never retried.
* The override state is read **once**, right before balancing, and that
  snapshot picks the prover. A concurrent activate/deactivate after that
  point does not change who proves this transaction.
* A failing transition stops the pipeline. The error keeps its type, gains
  ``stage`` (the stage that could not be reached) and is re-raised. Nothing
  reaches the chain before ``Submitted``, so an abort earlier leaves the
  ledger untouched.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple, TypeVar

from sponsored_wallet.contract.counter import CIRCUIT_INCREMENT
from sponsored_wallet.errors import ApiError
from sponsored_wallet.logging import get_logger
from sponsored_wallet.transactions import (ProvenTransaction,
                                           SubmittedTransaction,
                                           UnprovenTransaction, new_nonce)
from sponsored_wallet.wallet.override import OverrideContext
from sponsored_wallet.wallet.provider import WalletProvider

log = get_logger(__name__)

T = TypeVar("T")

StageObserver = Callable[[str, str], None]

__all__ = ["Stage", "PipelineResult", "TransactionPipeline", "StageObserver"]


class Stage(str, enum.Enum):
    BUILT = "built"
    BALANCED = "balanced"
    PROVEN = "proven"
    SUBMITTED = "submitted"


@dataclass(frozen=True)
class PipelineResult:
    submitted: SubmittedTransaction
    stages: Tuple[Stage, ...]
    overridden: bool = False

    @property
    def tx_id(self) -> str:
        return self.submitted.tx_id

    @property
    def stage(self) -> Stage:
        return self.stages[-1]


class TransactionPipeline:
    """
    Drives one transaction through the provider.

    ``observer(stage, outcome)`` is called once per attempted transition with
    outcome ``"ok"`` or ``"error"`` (the metrics layer plugs in here).
    """

    def __init__(
        self,
        provider: WalletProvider,
        ctx: OverrideContext,
        *,
        contract_address: str,
        observer: Optional[StageObserver] = None,
    ) -> None:
        self.provider = provider
        self.ctx = ctx
        self.contract_address = contract_address
        self.observer = observer

    def _observe(self, stage: Stage, outcome: str) -> None:
        if self.observer is not None:
            self.observer(stage.value, outcome)

    async def _step(self, stage: Stage, op: Awaitable[T]) -> T:
        try:
            result = await op
        except ApiError as e:
            e.with_stage(stage.value)
            self._observe(stage, "error")
            log.warning("pipeline_aborted", stage=stage.value, code=e.code, error=e.message)
            raise
        except Exception as e:
            self._observe(stage, "error")
            log.error("pipeline_aborted", stage=stage.value, error=str(e), exc_info=True)
            raise
        self._observe(stage, "ok")
        return result

    # ---- stages ----

    def build_increment(self) -> UnprovenTransaction:
        """Unproven ``increment`` call with the provider's current coin key as caller."""
        tx = UnprovenTransaction(
            contract_address=self.contract_address,
            circuit=CIRCUIT_INCREMENT,
            caller=self.provider.coin_public_key(self.ctx),
            nonce=new_nonce(),
        )
        self._observe(Stage.BUILT, "ok")
        return tx

    async def run(self, tx: UnprovenTransaction, new_coins: Sequence[str] = ()) -> PipelineResult:
        stages: List[Stage] = [Stage.BUILT]
        state = self.ctx.current()
        log.debug("pipeline_start", circuit=tx.circuit, caller=tx.caller.short(), overridden=state.active)

        balanced = await self._step(Stage.BALANCED, self.provider.balance(tx, new_coins))
        stages.append(Stage.BALANCED)

        proven = await self._step(Stage.PROVEN, self.provider.prove(balanced, state))
        stages.append(Stage.PROVEN)

        tx_id = await self._step(Stage.SUBMITTED, self.provider.submit(proven))
        stages.append(Stage.SUBMITTED)

        log.info("pipeline_submitted", tx_id=tx_id, caller=tx.caller.short(), overridden=state.active)
        return PipelineResult(
            submitted=SubmittedTransaction(proven=proven, tx_id=tx_id),
            stages=tuple(stages),
            overridden=state.active,
        )

    async def increment(self) -> PipelineResult:
        return await self.run(self.build_increment())

    async def submit_only(self, tx: ProvenTransaction) -> PipelineResult:
        """Run just the ``Submitted`` stage for a transaction proven elsewhere."""
        tx_id = await self._step(Stage.SUBMITTED, self.provider.submit(tx))
        log.info("pipeline_submitted", tx_id=tx_id, caller=tx.caller.short(), relayed=True)
        return PipelineResult(
            submitted=SubmittedTransaction(proven=tx, tx_id=tx_id),
            stages=(Stage.SUBMITTED,),
        )
