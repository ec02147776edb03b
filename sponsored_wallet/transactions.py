"""
sponsored_wallet.transactions
=============================

Transaction values for each pipeline stage.

    UnprovenTransaction  --balance-->  BalancedTransaction
                         --prove---->  ProvenTransaction
                         --submit--->  SubmittedTransaction

Each stage wraps the previous one, so a later value always carries the exact
body that earlier stages produced. All values are frozen dataclasses with a
JSON-friendly ``to_dict()`` / ``from_dict()`` pair (camelCase keys, hex bytes),
which is the wire form used by the wallet daemon adapter and ``POST /submit``.
"""

from __future__ import annotations

import hashlib
import json
import secrets
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple

from .wallet.identity import CoinPublicKey

__all__ = [
    "UnprovenTransaction",
    "BalancedTransaction",
    "ProvenTransaction",
    "SubmittedTransaction",
    "new_nonce",
    "proof_digest",
]

PROOF_DOMAIN = b"sponsored-wallet/proof/v1"


def new_nonce() -> str:
    return secrets.token_hex(16)


def _canonical(obj: Mapping[str, Any]) -> bytes:
    return json.dumps(obj, sort_keys=True, separators=(",", ":")).encode("utf-8")


def proof_digest(prover: CoinPublicKey, body_hash: bytes) -> bytes:
    """
    Digest a proof must commit to: the proving key bound to the call body.

    Real proofs come from the proof server; the local devnet uses this digest
    as a stand-in so that a proof made by one identity cannot be replayed as
    another's.
    """
    return hashlib.sha3_256(PROOF_DOMAIN + bytes(prover) + body_hash).digest()


@dataclass(frozen=True)
class UnprovenTransaction:
    contract_address: str
    circuit: str
    caller: CoinPublicKey
    nonce: str = field(default_factory=new_nonce)

    def body_hash(self) -> bytes:
        return hashlib.sha3_256(_canonical(self.to_dict())).digest()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contractAddress": self.contract_address,
            "circuit": self.circuit,
            "caller": self.caller.to_hex(),
            "nonce": self.nonce,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UnprovenTransaction":
        return cls(
            contract_address=str(data["contractAddress"]),
            circuit=str(data["circuit"]),
            caller=CoinPublicKey.from_hex(data["caller"]),
            nonce=str(data["nonce"]),
        )


@dataclass(frozen=True)
class BalancedTransaction:
    unproven: UnprovenTransaction
    fee_payer: CoinPublicKey
    fee: int
    new_coins: Tuple[str, ...] = ()

    @property
    def caller(self) -> CoinPublicKey:
        return self.unproven.caller

    def to_dict(self) -> Dict[str, Any]:
        return {
            "unproven": self.unproven.to_dict(),
            "feePayer": self.fee_payer.to_hex(),
            "fee": self.fee,
            "newCoins": list(self.new_coins),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BalancedTransaction":
        return cls(
            unproven=UnprovenTransaction.from_dict(data["unproven"]),
            fee_payer=CoinPublicKey.from_hex(data["feePayer"]),
            fee=int(data["fee"]),
            new_coins=tuple(str(c) for c in data.get("newCoins") or ()),
        )


@dataclass(frozen=True)
class ProvenTransaction:
    balanced: BalancedTransaction
    prover: CoinPublicKey
    proof: bytes

    @property
    def caller(self) -> CoinPublicKey:
        return self.balanced.caller

    @property
    def unproven(self) -> UnprovenTransaction:
        return self.balanced.unproven

    def to_dict(self) -> Dict[str, Any]:
        return {
            "balanced": self.balanced.to_dict(),
            "prover": self.prover.to_hex(),
            "proof": "0x" + self.proof.hex(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProvenTransaction":
        proof = str(data["proof"])
        if proof[:2] in ("0x", "0X"):
            proof = proof[2:]
        return cls(
            balanced=BalancedTransaction.from_dict(data["balanced"]),
            prover=CoinPublicKey.from_hex(data["prover"]),
            proof=bytes.fromhex(proof),
        )


@dataclass(frozen=True)
class SubmittedTransaction:
    proven: ProvenTransaction
    tx_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"proven": self.proven.to_dict(), "txId": self.tx_id}
