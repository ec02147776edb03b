from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from .config import Settings, load_config
from .logging import get_logger
from .metrics import setup_metrics
from .middleware.errors import install_error_handlers
from .middleware.request_id import install_request_id_middleware
from .routers.counters import router as counters_router
from .routers.health import router as health_router
from .routers.submit import router as submit_router
from .services.sponsor import (SponsorSession, build_local_session,
                               build_session)
from .version import __version__

log = get_logger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Remote mode connects to the wallet daemon here (it may need to wait for
    sync); sessions created here are closed on shutdown.
    """
    cfg: Settings = app.state.config
    owned = False
    if app.state.session is None:
        app.state.session = await build_session(cfg)
        app.state.metrics.bind_session(app.state.session)
        owned = True
    try:
        yield
    finally:
        if owned:
            await app.state.session.aclose()
            app.state.session = None


def create_app(config: Optional[Settings] = None, session: Optional[SponsorSession] = None) -> FastAPI:
    """
    FastAPI factory. Mounts routers, middleware, metrics and error handlers.

    In local mode the devnet session is built right away so the app serves
    requests even when the ASGI lifespan is not run (e.g. in-process clients).
    A prepared ``session`` may be injected (tests, the CLI demo).
    """
    cfg = config or load_config()

    app = FastAPI(
        title="Sponsored Wallet Services",
        version=__version__,
        lifespan=_lifespan,
    )
    app.state.config = cfg

    if session is None and cfg.wallet_mode == "local":
        session = build_local_session(cfg)
    app.state.session = session

    install_request_id_middleware(app)
    install_error_handlers(app)
    metrics = setup_metrics(app, service_version=__version__)
    if session is not None:
        metrics.bind_session(session)

    app.include_router(health_router)
    app.include_router(submit_router)
    app.include_router(counters_router)

    log.debug("app_created", wallet_mode=cfg.wallet_mode, network_id=cfg.network_id)
    return app
