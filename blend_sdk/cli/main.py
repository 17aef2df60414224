"""
blend_sdk.cli.main
==================

`blend-sdk`: a small command-line interface over the SDK for inspecting
transactions and estimating reserve rates.

Examples
--------
    $ blend-sdk version
    $ blend-sdk env
    $ blend-sdk resources AAAAAgAAAAB...
    $ blend-sdk tx 3f1c...e9a0
    $ blend-sdk reserve CPOOL... CASSET... --at 1700000000 --take-rate 0.1

Configuration
-------------
- RPC URL     : `--rpc` or env `BLEND_RPC_URL`
- Passphrase  : `--passphrase` or env `BLEND_NETWORK_PASSPHRASE`
- HTTP Timeout: `--timeout` or env `BLEND_TIMEOUT` seconds (default: 10.0)
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import asdict
from typing import Any, Optional

import typer

from ..config import SDKConfig
from ..errors import BlendSdkError
from ..pool.reserve import Reserve
from ..rpc.http import SorobanRpcClient
from ..tx.resources import Resources
from ..version import __version__ as SDK_VERSION

app = typer.Typer(
    name="blend-sdk",
    help="Blend SDK CLI: inspect transactions and estimate reserve state.",
    no_args_is_help=True,
    add_completion=False,
)

__all__ = ["app", "main", "run"]


def _print_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, ensure_ascii=False))


@app.callback()
def _root(
    ctx: typer.Context,
    rpc: Optional[str] = typer.Option(None, "--rpc", help="Soroban RPC URL.", envvar="BLEND_RPC_URL"),
    passphrase: Optional[str] = typer.Option(
        None, "--passphrase", help="Network passphrase.", envvar="BLEND_NETWORK_PASSPHRASE"
    ),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="HTTP timeout in seconds.", envvar="BLEND_TIMEOUT"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log SDK activity to stderr."),
) -> None:
    """Set effective configuration for this CLI process."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")
    try:
        ctx.obj = SDKConfig.with_overrides(
            SDKConfig.from_env(),
            rpc_url=rpc,
            network_passphrase=passphrase,
            request_timeout=timeout,
        )
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


def _client(ctx: typer.Context) -> SorobanRpcClient:
    cfg: SDKConfig = ctx.obj
    return SorobanRpcClient.from_network(cfg.network())


@app.command("version")
def version() -> None:
    """Print the SDK CLI version."""
    typer.echo(f"blend-sdk {SDK_VERSION}")


@app.command("env")
def env(ctx: typer.Context) -> None:
    """Show the effective configuration."""
    cfg: SDKConfig = ctx.obj
    _print_json({**cfg.to_dict(), "sdk_version": SDK_VERSION})


@app.command("resources")
def resources(envelope_xdr: str = typer.Argument(..., help="Base64 TransactionEnvelope XDR")) -> None:
    """Print the fee and resource footprint declared by an assembled transaction."""
    try:
        res = Resources.from_transaction(envelope_xdr)
    except BlendSdkError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=1)
    _print_json(asdict(res))


@app.command("tx")
def tx(ctx: typer.Context, tx_hash: str = typer.Argument(..., help="Transaction hash (hex)")) -> None:
    """Look up a transaction's status by hash."""
    with _client(ctx) as client:
        res = client.get_transaction(tx_hash)
    _print_json(asdict(res))


@app.command("reserve")
def reserve(
    ctx: typer.Context,
    pool_id: str = typer.Argument(..., help="Pool contract id (C...)"),
    asset_id: str = typer.Argument(..., help="Reserve asset contract id (C...)"),
    at: Optional[int] = typer.Option(None, "--at", help="Unix timestamp to estimate at (default: last update)."),
    take_rate: float = typer.Option(0.0, "--take-rate", min=0.0, max=1.0, help="Backstop take rate in [0, 1]."),
) -> None:
    """Load a reserve and print its estimated rates, supply and utilization."""
    with _client(ctx) as client:
        res = Reserve.load(client, pool_id, asset_id)
    est = res.estimate_data(take_rate, at)
    _print_json({"asset": asset_id, "last_time": res.data.last_time, **asdict(est)})


def main(argv: Optional[list[str]] = None) -> int:
    """
    Run the CLI. Returns an integer exit code.
    """
    try:
        rv = app(prog_name="blend-sdk", standalone_mode=False, args=argv)
        return rv if isinstance(rv, int) else 0
    except typer.Exit as e:  # normal exit
        return int(e.exit_code)
    except Exception as e:
        typer.echo(f"error: {e}", err=True)
        return 1


def run(argv: Optional[list[str]] = None) -> None:
    """Console-script entry point: run the CLI and exit with its code."""
    sys.exit(main(argv))


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
