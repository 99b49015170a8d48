"""actorrun: execution engine for marketplace extraction actors."""

from __future__ import annotations

try:
    from importlib.metadata import version

    __version__ = version("actorrun")
except Exception:
    __version__ = "0.0.0"
