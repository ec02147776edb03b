from __future__ import annotations

from fastapi import Request

from sponsored_wallet.errors import IdentityUnavailable
from sponsored_wallet.services.sponsor import SponsorSession


def get_session(request: Request) -> SponsorSession:
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise IdentityUnavailable("sponsor session is not ready")
    return session
