"""
SDK configuration: RPC endpoint, network passphrase, and retry/timeouts.

- Loads sane defaults and supports overrides via environment variables (BLEND_*).
- `Network` and `TxOptions` are the small value objects the transaction
  pipeline consumes; `SDKConfig` can produce both.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from stellar_sdk import Network as StellarNetwork

from .version import user_agent

_DEFAULT_RPC = "https://soroban-testnet.stellar.org"
_DEFAULT_PASSPHRASE = StellarNetwork.TESTNET_NETWORK_PASSPHRASE


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if v is not None else default


def _ensure_scheme(url: Optional[str], allowed: tuple[str, ...]) -> Optional[str]:
    if not url:
        return url
    lower = url.lower()
    if not any(lower.startswith(f"{sch}://") for sch in allowed):
        raise ValueError(f"URL must start with {allowed}, got: {url!r}")
    return url


@dataclass(frozen=True)
class Network:
    """Soroban RPC endpoint plus the passphrase transactions are signed for."""

    rpc: str
    passphrase: str
    opts: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TxOptions:
    """
    Options for `invoke_operation`.

    simulate_only   : stop after simulation and return the predicted result
    poll_interval_s : wait between `getTransaction` polls
    timeout_s       : total polling budget after submission
    base_fee        : per-operation inclusion fee (stroops)
    tx_timeout      : envelope time bound, seconds from build time
    """

    simulate_only: bool = False
    poll_interval_s: float = 1.0
    timeout_s: float = 15.0
    base_fee: int = 100
    tx_timeout: int = 30


@dataclass(slots=True)
class SDKConfig:
    # Core
    rpc_url: str = field(default_factory=lambda: _DEFAULT_RPC)
    network_passphrase: str = field(default_factory=lambda: _DEFAULT_PASSPHRASE)
    # HTTP behavior
    request_timeout: float = 10.0
    max_retries: int = 3
    backoff_factor: float = 0.25
    # Transaction behavior
    poll_interval: float = 1.0
    tx_timeout: float = 30.0
    # Headers / identity
    user_agent: str = field(default_factory=user_agent)

    @classmethod
    def from_env(cls, prefix: str = "BLEND_") -> "SDKConfig":
        """
        Create config from environment variables:

        BLEND_RPC_URL             (http/https)
        BLEND_NETWORK_PASSPHRASE  (str)
        BLEND_TIMEOUT             (float seconds, HTTP)
        BLEND_MAX_RETRIES         (int)
        BLEND_BACKOFF             (float)
        BLEND_POLL_INTERVAL       (float seconds)
        BLEND_TX_TIMEOUT          (float seconds, polling budget)
        BLEND_USER_AGENT          (str)
        """
        rpc = _env(f"{prefix}RPC_URL", _DEFAULT_RPC)
        passphrase = _env(f"{prefix}NETWORK_PASSPHRASE", _DEFAULT_PASSPHRASE)
        timeout = float(_env(f"{prefix}TIMEOUT", "10.0"))
        retries = int(_env(f"{prefix}MAX_RETRIES", "3"))
        backoff = float(_env(f"{prefix}BACKOFF", "0.25"))
        poll = float(_env(f"{prefix}POLL_INTERVAL", "1.0"))
        tx_timeout = float(_env(f"{prefix}TX_TIMEOUT", "30.0"))
        ua = _env(f"{prefix}USER_AGENT", user_agent())

        _ensure_scheme(rpc, ("http", "https"))

        return cls(
            rpc_url=rpc or _DEFAULT_RPC,
            network_passphrase=passphrase or _DEFAULT_PASSPHRASE,
            request_timeout=timeout,
            max_retries=retries,
            backoff_factor=backoff,
            poll_interval=poll,
            tx_timeout=tx_timeout,
            user_agent=ua or user_agent(),
        )

    @classmethod
    def with_overrides(cls, base: Optional["SDKConfig"] = None, **overrides: Any) -> "SDKConfig":
        """
        Build from an existing config plus keyword overrides.
        Unknown keys and None values are ignored.
        """
        base = base or cls.from_env()
        data = base.to_dict()
        data.update({k: v for k, v in overrides.items() if k in data and v is not None})
        if "rpc_url" in overrides:
            _ensure_scheme(data["rpc_url"], ("http", "https"))
        return cls(**data)

    def network(self) -> Network:
        return Network(
            rpc=self.rpc_url,
            passphrase=self.network_passphrase,
            opts={
                "timeout": self.request_timeout,
                "max_retries": self.max_retries,
                "backoff_base": self.backoff_factor,
                "headers": {"User-Agent": self.user_agent},
            },
        )

    def tx_options(self, *, simulate_only: bool = False) -> TxOptions:
        return TxOptions(
            simulate_only=simulate_only,
            poll_interval_s=self.poll_interval,
            timeout_s=self.tx_timeout,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rpc_url": self.rpc_url,
            "network_passphrase": self.network_passphrase,
            "request_timeout": float(self.request_timeout),
            "max_retries": int(self.max_retries),
            "backoff_factor": float(self.backoff_factor),
            "poll_interval": float(self.poll_interval),
            "tx_timeout": float(self.tx_timeout),
            "user_agent": self.user_agent,
        }


__all__ = ["Network", "TxOptions", "SDKConfig"]
