"""
Package version and source revision.

``__version__`` tracks ``pyproject.toml``. ``source_revision()`` reports the
short commit the service was started from, for ``/healthz`` and ``/version``.
"""

from __future__ import annotations

import os
import subprocess
from functools import lru_cache
from pathlib import Path
from typing import Optional

__version__ = "0.1.0"

_PACKAGE_DIR = Path(__file__).resolve().parent


@lru_cache(maxsize=1)
def source_revision() -> Optional[str]:
    """
    Short git commit (``-dirty`` suffixed for a modified tree), or the value of
    $GIT_SHA when the service runs from an installed wheel or a container.
    """
    env = os.getenv("GIT_SHA")
    if env:
        return env
    try:
        out = subprocess.run(
            ["git", "describe", "--always", "--dirty", "--abbrev=12"],
            cwd=_PACKAGE_DIR,
            capture_output=True,
            text=True,
            timeout=2.0,
            check=True,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    return out.stdout.strip() or None


__all__ = ["__version__", "source_revision"]
