"""
blend_sdk.pool
--------------

Lending-pool state: reserve snapshots, the accrual estimator and the pool
configuration.
"""

from __future__ import annotations

from .pool_config import PoolConfig
from .reserve import (
    EstReserveData,
    Reserve,
    ReserveConfig,
    ReserveData,
    ReserveEmissionConfig,
    ReserveEmissionData,
    ReserveEmissions,
    estimate_reserve,
    interest_rate,
)

__all__ = [
    "PoolConfig",
    "EstReserveData",
    "Reserve",
    "ReserveConfig",
    "ReserveData",
    "ReserveEmissionConfig",
    "ReserveEmissionData",
    "ReserveEmissions",
    "estimate_reserve",
    "interest_rate",
]
