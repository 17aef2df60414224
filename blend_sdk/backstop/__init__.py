"""
blend_sdk.backstop
------------------

Backstop contract state: token addresses, pool factory, reward zone and the
backstop LP token valuation.
"""

from __future__ import annotations

from .backstop_config import BackstopConfig, LpTokenValue

__all__ = ["BackstopConfig", "LpTokenValue"]
