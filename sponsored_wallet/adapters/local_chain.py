"""
In-process devnet: a tiny chain hosting counter contracts, and simulated
wallets that satisfy the :class:`~sponsored_wallet.wallet.runtime.WalletRuntime`
contract against it.

Used by ``WALLET_MODE=local``, the ``demo`` CLI command and the test-suite.

The chain accepts a proven transaction only if *all* of these hold, and only
then applies the circuit (nothing is ever partially applied):

- the target contract is deployed and exposes the circuit;
- the attached fee covers the chain fee;
- the proof commits to the transaction body and to the proving key;
- the proving key is the caller recorded in the body;
- the nonce has not been seen before.

Keys of a simulated wallet are SHA3-256 derivations of its seed. They are
stand-ins for real key derivation, not a substitute for it.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
import threading
from typing import Dict, List, Optional, Sequence, Set

from sponsored_wallet.contract.counter import CircuitContext, CounterContract
from sponsored_wallet.errors import (IdentityUnavailable, InsufficientFunds,
                                     NotFound, ProofFailed, SubmissionRejected)
from sponsored_wallet.logging import get_logger
from sponsored_wallet.transactions import (BalancedTransaction,
                                           ProvenTransaction,
                                           UnprovenTransaction, proof_digest)
from sponsored_wallet.wallet.identity import (CoinPublicKey,
                                              EncryptionPublicKey, Identity)
from sponsored_wallet.wallet.runtime import SyncProgress, WalletState

log = get_logger(__name__)

DEFAULT_FEE = 10

__all__ = ["LocalChain", "SimulatedWallet", "DEFAULT_FEE"]


class LocalChain:
    def __init__(self, *, fee: int = DEFAULT_FEE) -> None:
        self.fee = int(fee)
        self.height = 0
        self._contracts: Dict[str, CounterContract] = {}
        self._nonces: Set[str] = set()
        self._tx_ids: List[str] = []
        self._lock = threading.Lock()

    # ---- contracts ----

    def deploy(self, address: Optional[str] = None) -> str:
        addr = (address or "0x" + secrets.token_hex(32)).lower()
        with self._lock:
            if addr in self._contracts:
                raise SubmissionRejected(f"contract already deployed at {addr}")
            self._contracts[addr] = CounterContract()
        log.info("contract_deployed", address=addr)
        return addr

    def contract(self, address: str) -> CounterContract:
        try:
            return self._contracts[address.lower()]
        except KeyError:
            raise NotFound(f"contract {address}") from None

    async def counters(self, address: str) -> Dict[CoinPublicKey, int]:
        return self.contract(address).counters.snapshot()

    @property
    def transactions(self) -> List[str]:
        return list(self._tx_ids)

    # ---- submission ----

    def _validate(self, tx: ProvenTransaction) -> CounterContract:
        body = tx.unproven
        contract = self._contracts.get(body.contract_address.lower())
        if contract is None:
            raise SubmissionRejected(f"no contract at {body.contract_address}")
        if body.circuit not in contract.circuits:
            raise SubmissionRejected(f"unknown circuit {body.circuit!r}")
        if tx.balanced.fee < self.fee:
            raise SubmissionRejected(
                f"fee {tx.balanced.fee} below chain fee {self.fee}",
                details={"fee": tx.balanced.fee, "required": self.fee},
            )
        expected = proof_digest(tx.prover, body.body_hash())
        if not hmac.compare_digest(expected, bytes(tx.proof)):
            raise SubmissionRejected("proof does not verify against the transaction body")
        if bytes(tx.prover) != bytes(body.caller):
            raise SubmissionRejected(
                "proof was not produced by the caller",
                details={"caller": body.caller.hex(), "prover": tx.prover.hex()},
            )
        if body.nonce in self._nonces:
            raise SubmissionRejected("replayed nonce", details={"nonce": body.nonce})
        return contract

    def submit(self, tx: ProvenTransaction) -> str:
        with self._lock:
            contract = self._validate(tx)
            body = tx.unproven
            contract.call(body.circuit, CircuitContext(caller=body.caller))
            self._nonces.add(body.nonce)
            self.height += 1
            tx_id = "0x" + hashlib.sha3_256(body.body_hash() + bytes(tx.proof)).hexdigest()
            self._tx_ids.append(tx_id)
        log.info("tx_applied", tx_id=tx_id, circuit=body.circuit, caller=body.caller.short(), height=self.height)
        return tx_id


class SimulatedWallet:
    """
    Seeded wallet bound (optionally) to a :class:`LocalChain`.

    A wallet with ``chain=None`` is an offline prover: it can prove but cannot
    submit. An unsynced wallet exposes no keys until :meth:`mark_synced`.
    """

    def __init__(
        self,
        seed: bytes,
        *,
        chain: Optional[LocalChain] = None,
        balance: int = 0,
        synced: bool = True,
    ) -> None:
        if not seed:
            raise ValueError("seed must be non-empty")
        self._seed = bytes(seed)
        self._identity = Identity(
            CoinPublicKey(hashlib.sha3_256(b"coin:" + self._seed).digest()),
            EncryptionPublicKey(hashlib.sha3_256(b"enc:" + self._seed).digest()),
        )
        self.chain = chain
        self.balance = int(balance)
        self._is_synced = bool(synced)

    @classmethod
    def from_seed_hex(cls, seed_hex: str, **kwargs) -> "SimulatedWallet":
        return cls(bytes.fromhex(seed_hex[2:] if seed_hex.startswith("0x") else seed_hex), **kwargs)

    @classmethod
    def random(cls, **kwargs) -> "SimulatedWallet":
        return cls(secrets.token_bytes(32), **kwargs)

    @property
    def identity(self) -> Identity:
        return self._identity

    @property
    def coin_public_key(self) -> CoinPublicKey:
        return self._identity.coin_public_key

    def mark_synced(self) -> None:
        self._is_synced = True

    def fund(self, amount: int) -> None:
        self.balance += int(amount)

    def _require_synced(self) -> None:
        if not self._is_synced:
            raise IdentityUnavailable("wallet is still syncing")

    # ---- WalletRuntime ----

    async def current_state(self) -> WalletState:
        synced = self._is_synced
        return WalletState(
            coin_public_key=self._identity.coin_public_key if synced else None,
            encryption_public_key=self._identity.encryption_public_key if synced else None,
            balance=self.balance,
            sync_progress=SyncProgress(synced=synced, applied=1 if synced else 0, target=1),
        )

    async def balance_transaction(
        self, tx: UnprovenTransaction, new_coins: Sequence[str] = ()
    ) -> BalancedTransaction:
        self._require_synced()
        fee = self.chain.fee if self.chain is not None else DEFAULT_FEE
        if self.balance < fee:
            raise InsufficientFunds(
                f"balance {self.balance} cannot cover fee {fee}",
                details={"balance": self.balance, "fee": fee},
            )
        return BalancedTransaction(
            unproven=tx,
            fee_payer=self._identity.coin_public_key,
            fee=fee,
            new_coins=tuple(new_coins),
        )

    async def prove_transaction(self, tx: BalancedTransaction) -> ProvenTransaction:
        self._require_synced()
        if not isinstance(tx, BalancedTransaction):
            raise ProofFailed("only balanced transactions can be proven")
        proof = proof_digest(self._identity.coin_public_key, tx.unproven.body_hash())
        return ProvenTransaction(balanced=tx, prover=self._identity.coin_public_key, proof=proof)

    async def submit_transaction(self, tx: ProvenTransaction) -> str:
        self._require_synced()
        if self.chain is None:
            raise SubmissionRejected("wallet is not connected to a network")
        if bytes(tx.balanced.fee_payer) != bytes(self.coin_public_key):
            raise SubmissionRejected(
                "fee payer is not the submitting wallet",
                details={"fee_payer": tx.balanced.fee_payer.hex(), "submitter": self.coin_public_key.hex()},
            )
        if self.balance < tx.balanced.fee:
            raise InsufficientFunds(f"balance {self.balance} cannot cover fee {tx.balanced.fee}")
        tx_id = self.chain.submit(tx)
        self.balance -= tx.balanced.fee
        return tx_id
