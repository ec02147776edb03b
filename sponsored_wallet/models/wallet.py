from __future__ import annotations

"""
Request/response models for the sponsor endpoints.

- SubmitRequest / SubmitResponse : POST /submit
- CounterResponse                : GET /counters, GET /counters/{address}
- IdentityResponse               : GET /identity
"""

from typing import Any, Dict, Literal

from pydantic import Field

from .common import CamelModel, IdentityModel, KeyHex, TxId


class SubmitRequest(CamelModel):
    """
    A transaction already balanced and proven elsewhere, plus the identity that
    proved it. The signer's coin key must equal the transaction's prover.
    """

    transaction: Dict[str, Any] = Field(..., description="ProvenTransaction JSON")
    signer: IdentityModel


class SubmitResponse(CamelModel):
    tx_id: TxId = Field(..., alias="txId")
    status: Literal["accepted"] = "accepted"
    stage: str = Field(..., description="Last pipeline stage reached")


class CounterResponse(CamelModel):
    coin_public_key: KeyHex = Field(..., alias="coinPublicKey")
    count: int = Field(..., ge=0)
    contract_address: str = Field(..., alias="contractAddress")


class IdentityResponse(CamelModel):
    sponsor: IdentityModel
    current: IdentityModel
    override_active: bool = Field(..., alias="overrideActive")
    network_id: str = Field(..., alias="networkId")
    addresses: Dict[str, str] = Field(default_factory=dict, description="Encodings of the current coin key")


__all__ = ["SubmitRequest", "SubmitResponse", "CounterResponse", "IdentityResponse"]
