"""
Blend SDK for Python.
Convenience exports for the most common client APIs.
"""

import logging

from .version import __version__  # noqa: F401

# Core config & errors
from .config import Network, SDKConfig, TxOptions  # noqa: F401
from .errors import (  # noqa: F401
    BlendErrorCode,
    BlendSdkError,
    ContractError,
    ContractErrorType,
    MalformedInputError,
    RpcError,
    parse_error,
)

# RPC
from .rpc.http import SorobanRpcClient  # noqa: F401
from .types import LedgerAccess  # noqa: F401

# Tx helpers
from .tx.build import contract_call, parse_native, parse_void  # noqa: F401
from .tx.invoke import invoke_operation  # noqa: F401
from .tx.resources import Resources  # noqa: F401
from .tx.result import ContractResult  # noqa: F401

# Pool
from .pool.pool_config import PoolConfig  # noqa: F401
from .pool.reserve import EstReserveData, Reserve, estimate_reserve  # noqa: F401
from .backstop.backstop_config import BackstopConfig  # noqa: F401
from .token import TokenMetadata  # noqa: F401

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "__version__",
    # Core
    "Network", "SDKConfig", "TxOptions",
    "BlendSdkError", "RpcError", "ContractError", "MalformedInputError",
    "ContractErrorType", "BlendErrorCode", "parse_error",
    # RPC
    "SorobanRpcClient", "LedgerAccess",
    # Tx
    "contract_call", "parse_native", "parse_void",
    "invoke_operation", "Resources", "ContractResult",
    # Pool
    "PoolConfig", "Reserve", "EstReserveData", "estimate_reserve",
    "BackstopConfig", "TokenMetadata",
]
