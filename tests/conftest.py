from __future__ import annotations

import sys
from typing import AsyncIterator

import pytest
import structlog

# Module-level loggers are bound when the package is imported; send structlog's
# default output to stderr so CliRunner's captured stdout holds only CLI output.
structlog.configure(logger_factory=structlog.PrintLoggerFactory(sys.stderr))

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from sponsored_wallet.adapters.local_chain import LocalChain, SimulatedWallet
from sponsored_wallet.app import create_app
from sponsored_wallet.config import Settings
from sponsored_wallet.services.sponsor import SponsorSession, build_local_session

SPONSOR_SEED = "ab" * 32
FEE = 10

# Keys used across tests; any 32-byte value is a valid coin public key.
KEY_A = "1" * 64
KEY_B = "2" * 64


# ----------------------------
# Settings & local devnet
# ----------------------------
@pytest.fixture()
def settings() -> Settings:
    """Local-mode settings with fast sync polling."""
    return Settings(
        wallet_mode="local",
        sponsor_seed=SPONSOR_SEED,
        local_sponsor_balance=1000,
        local_tx_fee=FEE,
        sync_timeout_s=1.0,
        sync_poll_interval_s=0.01,
    )


@pytest.fixture()
def chain() -> LocalChain:
    return LocalChain(fee=FEE)


@pytest.fixture()
def session(settings: Settings, chain: LocalChain) -> SponsorSession:
    return build_local_session(settings, chain=chain)


@pytest.fixture()
def prover_a() -> SimulatedWallet:
    """Unfunded prover with no network connection."""
    return SimulatedWallet(b"prover-a")


@pytest.fixture()
def prover_b() -> SimulatedWallet:
    return SimulatedWallet(b"prover-b")


# ----------------------------
# App & HTTP client
# ----------------------------
@pytest.fixture()
def app(settings: Settings, session: SponsorSession) -> FastAPI:
    return create_app(settings, session)


@pytest.fixture()
async def aclient(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """
    Async HTTP client bound to the in-process ASGI app.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
