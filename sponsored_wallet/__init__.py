"""
Sponsored Wallet Services
=========================

A funded *sponsor* wallet that balances and submits transactions whose proofs
come from a separate, possibly unfunded, *prover* identity.

This package exposes:

- ``__version__``: semantic version string
- ``build_app()``: convenience creator for a configured FastAPI app

Prefer importing submodules directly for specific concerns:
``sponsored_wallet.wallet``, ``sponsored_wallet.pipeline``,
``sponsored_wallet.contract``, ``sponsored_wallet.query``, etc.
"""

from __future__ import annotations

from .version import __version__

__all__ = ["__version__", "build_app"]


def build_app():
    """
    Create and return a fully configured FastAPI application.

    Importing lazily avoids importing FastAPI when consumers only need the
    wallet/pipeline core.
    """
    from .app import create_app

    return create_app()
