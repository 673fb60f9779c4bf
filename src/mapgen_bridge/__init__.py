"""mapgen-bridge — DDNet econ vote bridge for seeded map generation.

Connects to a DDNet server's external console (econ), watches chat for
``generate`` and ``change_layout`` votes, and drives an external map generator
with a reproducible seed derived from the vote reason.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ---------------------------------------------------------------------------
# Package version — read from pyproject.toml via importlib.metadata.
#
# If the package is imported without being installed we fall back to the
# last released version so the bridge can still start.
# ---------------------------------------------------------------------------
try:
    __version__: str = version("mapgen-bridge")
except PackageNotFoundError:
    __version__ = "0.2.0"
