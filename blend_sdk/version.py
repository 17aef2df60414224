"""
Version helpers for the Blend Python SDK.
We keep a static __version__ (PEP 440) and expose a small structured view that
is used by the RPC client User-Agent and by `blend-sdk version`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

# Bump this when publishing
__version__ = "0.1.0"


@dataclass(frozen=True)
class VersionInfo:
    base: str
    extra: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.base if not self.extra else f"{self.base} ({self.extra})"


def version_info() -> VersionInfo:
    """Structured version info."""
    return VersionInfo(base=__version__)


def user_agent() -> str:
    """Value sent as the HTTP User-Agent by the RPC client."""
    return f"blend-sdk-python/{__version__}"


__all__ = ["__version__", "VersionInfo", "version_info", "user_agent"]
