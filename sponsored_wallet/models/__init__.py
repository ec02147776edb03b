"""
Pydantic models for the HTTP surface.

- common : KeyHex / TxId types, CamelModel base, IdentityModel
- wallet : submit, counter and identity payloads
"""

from .common import CamelModel, IdentityModel, KeyHex, TxId
from .wallet import (CounterResponse, IdentityResponse, SubmitRequest,
                     SubmitResponse)

__all__ = [
    "CamelModel",
    "IdentityModel",
    "KeyHex",
    "TxId",
    "SubmitRequest",
    "SubmitResponse",
    "CounterResponse",
    "IdentityResponse",
]
