"""
Remote wallet runtime: a wallet daemon reached over JSON-RPC.

Methods
-------
* ``wallet.state``                          -> WalletState JSON
* ``wallet.balanceTransaction [tx, coins]`` -> BalancedTransaction JSON
* ``wallet.proveTransaction [tx]``          -> ProvenTransaction JSON
* ``wallet.submitTransaction [tx]``         -> tx id (str)

Error mapping
-------------
JSON-RPC error objects are mapped to the error taxonomy by code:

=========  =======================
code       raised as
=========  =======================
-32010     IdentityUnavailable
-32011     InsufficientFunds
-32012     ProofFailed
-32013     SubmissionRejected
=========  =======================

Any other RPC error, and a result that does not parse, is raised as the error
type of the operation that was running (state -> IdentityUnavailable, balance
-> InsufficientFunds, prove -> ProofFailed, submit -> SubmissionRejected),
carrying the upstream message. An unreachable daemon is IdentityUnavailable
for state and balance reads.

``wallet.state`` and ``wallet.balanceTransaction`` are retried on transport
failures. Proving and submitting are sent once: a timed-out submit may already
have landed, and resending it would turn that into a replay rejection.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Type, TypeVar

from sponsored_wallet.adapters.jsonrpc import (JsonRpcClient, JsonRpcConfig,
                                               RpcError, RpcResponseError)
from sponsored_wallet.errors import (ApiError, IdentityUnavailable,
                                     InsufficientFunds, ProofFailed,
                                     SubmissionRejected)
from sponsored_wallet.logging import get_logger
from sponsored_wallet.transactions import (BalancedTransaction,
                                           ProvenTransaction,
                                           UnprovenTransaction)
from sponsored_wallet.wallet.identity import CoinPublicKey, EncryptionPublicKey
from sponsored_wallet.wallet.runtime import SyncProgress, WalletState

log = get_logger(__name__)

T = TypeVar("T")

ERROR_CODES: Dict[int, Type[ApiError]] = {
    -32010: IdentityUnavailable,
    -32011: InsufficientFunds,
    -32012: ProofFailed,
    -32013: SubmissionRejected,
}


def _opt_key(cls, value: Optional[str]):
    if not value:
        return None
    return cls.from_hex(value)


def parse_state(data: Mapping[str, Any]) -> WalletState:
    sync = data.get("syncProgress") or {}
    return WalletState(
        coin_public_key=_opt_key(CoinPublicKey, data.get("coinPublicKey")),
        encryption_public_key=_opt_key(EncryptionPublicKey, data.get("encryptionPublicKey")),
        balance=int(data.get("balance", 0)),
        sync_progress=SyncProgress(
            synced=bool(sync.get("synced", False)),
            applied=int(sync.get("applied", 0)),
            target=int(sync.get("target", 0)),
        ),
    )


def _tx_id(data: Any) -> str:
    if not isinstance(data, str) or not data:
        raise ValueError(f"expected a non-empty string, got {data!r}")
    return data


class RemoteWallet:
    def __init__(self, rpc: JsonRpcClient):
        self.rpc = rpc

    @classmethod
    def from_url(cls, url: str, *, timeout_s: float = 10.0, max_retries: int = 3) -> "RemoteWallet":
        return cls(JsonRpcClient(JsonRpcConfig(url=url, timeout_s=timeout_s, max_retries=max_retries)))

    async def close(self) -> None:
        await self.rpc.close()

    async def _call(
        self,
        method: str,
        params: Sequence[Any],
        fallback: Type[ApiError],
        *,
        retry: bool = True,
        unreachable: Optional[Type[ApiError]] = None,
    ) -> Any:
        try:
            return await self.rpc.call(method, list(params), retry=retry)
        except RpcResponseError as e:
            err_cls = ERROR_CODES.get(e.code, fallback)
            details = {"rpc_code": e.code}
            if e.data is not None:
                details["rpc_data"] = e.data
            raise err_cls(e.message, details=details) from e
        except RpcError as e:
            log.warning("wallet_rpc_unavailable", method=method, error=str(e))
            raise (unreachable or fallback)(f"wallet daemon unreachable: {e}", details={"method": method}) from e

    @staticmethod
    def _decode(parse: Callable[[Any], T], data: Any, err_cls: Type[ApiError], what: str) -> T:
        try:
            return parse(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            log.warning("wallet_rpc_malformed", what=what, error=repr(e))
            raise err_cls(f"malformed {what} from wallet daemon: {e!r}") from e

    # ---- WalletRuntime ----

    async def current_state(self) -> WalletState:
        data = await self._call("wallet.state", [], IdentityUnavailable)
        return self._decode(parse_state, data or {}, IdentityUnavailable, "wallet state")

    async def balance_transaction(
        self, tx: UnprovenTransaction, new_coins: Sequence[str] = ()
    ) -> BalancedTransaction:
        data = await self._call(
            "wallet.balanceTransaction",
            [tx.to_dict(), list(new_coins)],
            InsufficientFunds,
            unreachable=IdentityUnavailable,
        )
        return self._decode(BalancedTransaction.from_dict, data, InsufficientFunds, "balanced transaction")

    async def prove_transaction(self, tx: BalancedTransaction) -> ProvenTransaction:
        data = await self._call("wallet.proveTransaction", [tx.to_dict()], ProofFailed, retry=False)
        return self._decode(ProvenTransaction.from_dict, data, ProofFailed, "proven transaction")

    async def submit_transaction(self, tx: ProvenTransaction) -> str:
        data = await self._call("wallet.submitTransaction", [tx.to_dict()], SubmissionRejected, retry=False)
        return self._decode(_tx_id, data, SubmissionRejected, "transaction id")


__all__ = ["RemoteWallet", "ERROR_CODES", "parse_state"]
