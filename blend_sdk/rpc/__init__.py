"""
blend_sdk.rpc
-------------

Soroban JSON-RPC access.

    from blend_sdk.rpc import SorobanRpcClient
    rpc = SorobanRpcClient(url="https://soroban-testnet.stellar.org")
"""

from __future__ import annotations

from .http import SorobanRpcClient

__all__ = ["SorobanRpcClient"]
