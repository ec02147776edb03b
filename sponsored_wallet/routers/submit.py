from __future__ import annotations

"""
Submit router

Endpoints:
  - POST /submit : relay a transaction proven by an (unfunded) prover; the
                   sponsor submits it and pays its fee.

Thin shim over ``SponsorSession.submit_proven``. Failures are ApiErrors and
come back as problem+json with ``code``, ``stage`` and the upstream message.
"""

from fastapi import APIRouter, Depends

from sponsored_wallet.errors import BadRequest
from sponsored_wallet.logging import get_logger
from sponsored_wallet.models.wallet import SubmitRequest, SubmitResponse
from sponsored_wallet.routers.deps import get_session
from sponsored_wallet.services.sponsor import SponsorSession
from sponsored_wallet.transactions import ProvenTransaction
from sponsored_wallet.wallet.identity import Identity

log = get_logger(__name__)
router = APIRouter(tags=["submit"])


def _parse_transaction(data: dict) -> ProvenTransaction:
    try:
        return ProvenTransaction.from_dict(data)
    except KeyError as e:
        raise BadRequest(f"transaction is missing field {e.args[0]!r}") from e
    except (TypeError, ValueError) as e:
        raise BadRequest(f"malformed transaction: {e}") from e


@router.post(
    "/submit",
    summary="Submit a prover's transaction with the sponsor paying",
    response_model=SubmitResponse,
    response_model_by_alias=True,
)
async def post_submit(req: SubmitRequest, session: SponsorSession = Depends(get_session)) -> SubmitResponse:
    tx = _parse_transaction(req.transaction)
    signer = Identity.from_dict(req.signer.model_dump(by_alias=True))
    log.debug("submit_received", prover=tx.prover.short(), circuit=tx.unproven.circuit)
    result = await session.submit_proven(tx, signer)
    return SubmitResponse(tx_id=result.tx_id, stage=result.stage.value)
