"""
Uvicorn launcher for Sponsored Wallet Services.

Usage:
  python -m sponsored_wallet.main [--host 127.0.0.1] [--port 8080]
                                  [--workers 1] [--reload]
                                  [--log-level info]

Environment overrides (if flags not provided):
  HOST / BIND, PORT, WORKERS, RELOAD, LOG_LEVEL

Local mode keeps the devnet in process memory, so every worker would get its
own chain; use one worker unless WALLET_MODE=remote.
"""

from __future__ import annotations

import argparse
import os
from typing import Optional

import uvicorn

from .config import load_config
from .logging import get_logger, setup_logging

log = get_logger(__name__)


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.lower() in ("1", "true", "yes", "y", "on")


def serve(
    *,
    host: str = "127.0.0.1",
    port: int = 8080,
    workers: int = 1,
    reload: bool = False,
    log_level: str = "info",
) -> None:
    cfg = load_config()
    setup_logging(level=cfg.log_level)
    if reload and workers != 1:
        log.warning("reload_forces_single_worker", workers=workers)
        workers = 1
    if cfg.wallet_mode == "local" and workers != 1:
        log.warning("local_mode_single_worker", workers=workers)
        workers = 1
    log.info("serving", host=host, port=port, workers=workers, wallet_mode=cfg.wallet_mode)
    uvicorn.run(
        "sponsored_wallet.app:create_app",
        factory=True,
        host=host,
        port=port,
        workers=workers,
        reload=reload,
        log_level=log_level,
        proxy_headers=True,
    )


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Run Sponsored Wallet Services (uvicorn)")
    parser.add_argument("--host", default=os.getenv("HOST") or os.getenv("BIND") or "127.0.0.1")
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT") or 8080))
    parser.add_argument("--workers", type=int, default=int(os.getenv("WORKERS") or 1))
    parser.add_argument("--reload", action="store_true", default=_env_bool("RELOAD", False))
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "info").lower())
    args = parser.parse_args(argv)
    serve(host=args.host, port=args.port, workers=args.workers, reload=args.reload, log_level=args.log_level)


if __name__ == "__main__":
    main()
