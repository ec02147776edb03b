from __future__ import annotations

"""
Error hierarchy and helpers for Sponsored Wallet Services.

Every failure the sponsor pipeline can surface is one of a small set of API
exceptions. They are framework-agnostic; the FastAPI middleware in
``sponsored_wallet.middleware.errors`` renders them as RFC 7807
"problem+json" responses.

    raise InsufficientFunds("sponsor balance 3 < fee 10", details={"fee": 10})

An error carries an HTTP ``status_code``, a stable snake_case ``code`` that
clients switch on, a human ``message`` (often the upstream one), optional
``details`` and, once it has crossed the pipeline, the ``stage`` it failed to
reach. ``to_problem()`` builds the RFC 7807 body.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


DEFAULT_ERROR_DOCS_BASE = "https://docs.sponsored-wallet.dev/errors"


@dataclass
class ApiError(Exception):
    message: str
    status_code: int = 400
    code: str = "bad_request"
    details: Optional[Mapping[str, Any]] = None
    stage: Optional[str] = None
    type_uri_base: str = DEFAULT_ERROR_DOCS_BASE

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def type_uri(self) -> str:
        return f"{self.type_uri_base}#{self.code}"

    def title(self) -> str:
        return {
            "bad_request": "Bad Request",
            "identity_unavailable": "Identity Unavailable",
            "insufficient_funds": "Insufficient Funds",
            "proof_failed": "Proof Failed",
            "submission_rejected": "Submission Rejected",
            "malformed_address": "Malformed Address",
            "override_state_corrupt": "Override State Corrupt",
            "not_found": "Not Found",
            "upstream_unavailable": "Upstream Unavailable",
            "server_error": "Internal Server Error",
        }.get(self.code, self.message or "Error")

    @property
    def extras(self) -> Dict[str, Any]:
        """Extension members merged into the problem body by the middleware."""
        out: Dict[str, Any] = {}
        if self.stage:
            out["stage"] = self.stage
        if self.details:
            out["details"] = dict(self.details)
        return out

    def to_problem(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "type": self.type_uri(),
            "title": self.title(),
            "status": self.status_code,
            "code": self.code,
            "detail": self.message,
        }
        body.update(self.extras)
        return body

    def with_stage(self, stage: str) -> "ApiError":
        """Tag the error with the pipeline stage it escaped from (first tag wins)."""
        if self.stage is None:
            self.stage = stage
        return self


# ------------------------------ Taxonomy ------------------------------------- #


class IdentityUnavailable(ApiError):
    """Key material is not yet derivable, or the wallet has not synced."""

    def __init__(self, message: str = "Identity key material unavailable", *, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message=message, status_code=503, code="identity_unavailable", details=details)


class InsufficientFunds(ApiError):
    def __init__(self, message: str = "Sponsor cannot cover the transaction", *, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message=message, status_code=402, code="insufficient_funds", details=details)


class ProofFailed(ApiError):
    def __init__(self, message: str = "Proof generation failed", *, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message=message, status_code=502, code="proof_failed", details=details)


class SubmissionRejected(ApiError):
    def __init__(self, message: str = "Transaction rejected by the chain", *, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message=message, status_code=422, code="submission_rejected", details=details)


class MalformedAddress(ApiError):
    def __init__(self, value: str, *, reason: Optional[str] = None):
        shown = value if len(value) <= 120 else value[:117] + "..."
        details: Dict[str, Any] = {"value": shown}
        if reason:
            details["reason"] = reason
        super().__init__(
            message=f"Unrecognized address {shown!r}",
            status_code=400,
            code="malformed_address",
            details=details,
        )


class OverrideStateCorrupt(ApiError):
    """A partially-populated override was observed. Indicates a logic defect."""

    def __init__(self, message: str = "Override state is partially populated", *, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message=message, status_code=500, code="override_state_corrupt", details=details)


# ------------------------------ Generic -------------------------------------- #


class BadRequest(ApiError):
    def __init__(self, message: str = "Bad request", *, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message=message, status_code=400, code="bad_request", details=details)


class NotFound(ApiError):
    def __init__(self, what: str = "Resource", *, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message=f"{what} not found", status_code=404, code="not_found", details=details)


class ServerError(ApiError):
    def __init__(self, message: str = "Internal server error", *, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message=message, status_code=500, code="server_error", details=details)


__all__ = [
    "ApiError",
    "IdentityUnavailable",
    "InsufficientFunds",
    "ProofFailed",
    "SubmissionRejected",
    "MalformedAddress",
    "OverrideStateCorrupt",
    "BadRequest",
    "NotFound",
    "ServerError",
]
