from __future__ import annotations

"""
Counter & identity routers

Endpoints:
  - GET /counters            : counter of the acting identity (override or sponsor)
  - GET /counters/{address}  : counter of any identity; ``address`` may be
                               bech32m, ``cpk:`` short form or raw hex
  - GET /identity            : sponsor keys, current keys, override flag

Never-incremented identities read as 0.
"""

from fastapi import APIRouter, Depends

from sponsored_wallet.address import encode_all
from sponsored_wallet.models.wallet import CounterResponse, IdentityResponse
from sponsored_wallet.routers.deps import get_session
from sponsored_wallet.services.sponsor import SponsorSession

router = APIRouter(tags=["counters"])


async def _counter(session: SponsorSession, address: str | None) -> CounterResponse:
    key, count = await session.counter(address)
    return CounterResponse(
        coin_public_key=key.hex(),
        count=count,
        contract_address=session.contract_address,
    )


@router.get("/counters", summary="Own counter", response_model=CounterResponse, response_model_by_alias=True)
async def get_own_counter(session: SponsorSession = Depends(get_session)) -> CounterResponse:
    return await _counter(session, None)


@router.get(
    "/counters/{address}",
    summary="Counter of an identity",
    response_model=CounterResponse,
    response_model_by_alias=True,
)
async def get_counter(address: str, session: SponsorSession = Depends(get_session)) -> CounterResponse:
    return await _counter(session, address)


@router.get("/identity", summary="Sponsor and acting identity", response_model=IdentityResponse, response_model_by_alias=True)
async def get_identity(session: SponsorSession = Depends(get_session)) -> IdentityResponse:
    info = session.identity_info()
    current = session.provider.coin_public_key(session.ctx)
    return IdentityResponse(
        sponsor=info["sponsor"],
        current=info["current"],
        override_active=info["overrideActive"],
        network_id=session.network_id,
        addresses=encode_all(current, session.network_id),
    )
