"""
blend_sdk.cli
=============

Typer-based command-line interface, installed as the `blend-sdk` console
script. The CLI module is loaded lazily so plain library imports never pull
in Typer.

    $ blend-sdk --help
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, List, Optional

__all__: List[str] = ["main", "run", "app"]

_SUBMODULE = "blend_sdk.cli.main"


def __getattr__(name: str) -> Any:  # PEP 562 lazy attribute access
    if name == "app":
        return getattr(import_module(_SUBMODULE), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def main(argv: Optional[list[str]] = None) -> int:
    """Execute the CLI and return the process exit code."""
    return int(import_module(_SUBMODULE).main(argv))


def run(argv: Optional[list[str]] = None) -> None:
    """Console-script entry point: run the CLI and exit with its code."""
    import_module(_SUBMODULE).run(argv)
