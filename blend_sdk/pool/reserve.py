"""
blend_sdk.pool.reserve
======================

Reserve snapshots loaded from pool contract storage, and the accrual
estimator that projects a snapshot forward in time.

Fixed-point bases used by the pool contract
-------------------------------------------
- b_rate / d_rate           : 1e9
- ir_mod                    : 1e9
- util, r_one/r_two/r_three : 1e7

`estimate_reserve` follows the contract's accrual formula operation for
operation. Float results are order-sensitive and are compared against the
contract's own numbers, so do not reassociate the arithmetic.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from stellar_sdk import scval

from ..errors import MalformedInputError
from ..ledger_entries import (
    CONTRACT_INSTANCE,
    contract_data,
    contract_data_key,
    contract_instance_key,
    decode_entry_key,
    decode_struct,
    symbol_key,
)
from ..token import TokenMetadata, balance_key, token_balance
from ..types import LedgerAccess, LedgerEntryResult

log = logging.getLogger(__name__)

BASE_RATE = 0.01
SECONDS_PER_YEAR = 31_536_000
UTIL_CAP = 0.95

RATE_SCALAR = 1e9
IR_MOD_SCALAR = 1e9
CURVE_SCALAR = 1e7


@dataclass(frozen=True)
class ReserveConfig:
    index: int
    decimals: int
    c_factor: int
    l_factor: int
    util: int
    max_util: int
    r_one: int
    r_two: int
    r_three: int
    reactivity: int

    FIELDS = ("index", "decimals", "c_factor", "l_factor", "util", "max_util", "r_one", "r_two", "r_three", "reactivity")

    @classmethod
    def from_ledger_entry(cls, entry: LedgerEntryResult) -> "ReserveConfig":
        fields = decode_struct(contract_data(entry).val, "ReserveConfig", cls.FIELDS)
        return cls(**{k: int(fields[k]) for k in cls.FIELDS})


@dataclass(frozen=True)
class ReserveData:
    d_rate: int
    b_rate: int
    ir_mod: int
    b_supply: int
    d_supply: int
    backstop_credit: int
    last_time: int

    FIELDS = ("d_rate", "b_rate", "ir_mod", "b_supply", "d_supply", "backstop_credit", "last_time")

    @classmethod
    def from_ledger_entry(cls, entry: LedgerEntryResult) -> "ReserveData":
        fields = decode_struct(contract_data(entry).val, "ReserveData", cls.FIELDS)
        return cls(**{k: int(fields[k]) for k in cls.FIELDS})


@dataclass(frozen=True)
class ReserveEmissionConfig:
    eps: int
    expiration: int

    @classmethod
    def from_ledger_entry(cls, entry: LedgerEntryResult) -> "ReserveEmissionConfig":
        fields = decode_struct(contract_data(entry).val, "ReserveEmissionConfig", ("eps", "expiration"))
        return cls(eps=int(fields["eps"]), expiration=int(fields["expiration"]))


@dataclass(frozen=True)
class ReserveEmissionData:
    """Emission index for the reserve's b or d token."""

    index: int
    last_time: int

    @classmethod
    def from_ledger_entry(cls, entry: LedgerEntryResult) -> "ReserveEmissionData":
        fields = decode_struct(contract_data(entry).val, "ReserveEmissionData", ("index", "last_time"))
        return cls(index=int(fields["index"]), last_time=int(fields["last_time"]))


@dataclass(frozen=True)
class ReserveEmissions:
    config: Optional[ReserveEmissionConfig] = None
    data: Optional[ReserveEmissionData] = None


@dataclass(frozen=True)
class EstReserveData:
    b_rate: float
    d_rate: float
    total_supply: float
    total_liabilities: float
    current_apy: float
    current_util: float


def interest_rate(config: ReserveConfig, ir_mod: float, cur_util: float) -> float:
    """Three-segment APY curve at utilization `cur_util`, as a decimal."""
    target_util = config.util / CURVE_SCALAR
    r_one = config.r_one / CURVE_SCALAR
    r_two = config.r_two / CURVE_SCALAR
    r_three = config.r_three / CURVE_SCALAR
    if cur_util <= target_util:
        # a zero target only reaches this branch at zero utilization
        util_ratio = cur_util / target_util if target_util > 0 else 0.0
        cur_apy = util_ratio * r_one + BASE_RATE
        cur_apy *= ir_mod
    elif target_util < cur_util <= UTIL_CAP:
        cur_apy = ((cur_util - target_util) / (UTIL_CAP - target_util)) * r_two + r_one + BASE_RATE
        cur_apy *= ir_mod
    else:
        # ir_mod scales the first two segments only
        cur_apy = ((cur_util - UTIL_CAP) / 0.05) * r_three + ir_mod * (r_two + r_one + BASE_RATE)
    return cur_apy


def estimate_reserve(
    config: ReserveConfig,
    data: ReserveData,
    pool_tokens: int,
    backstop_take_rate: float,
    timestamp: Optional[float] = None,
) -> EstReserveData:
    """
    Estimate a reserve's rates at `timestamp` (unix seconds).

    Without a timestamp the reserve stays at its last update time and only
    the current APY / utilization are derived. Pure and deterministic.
    """
    scaler = 10**config.decimals
    d_rate = float(data.d_rate) / RATE_SCALAR
    total_liabilities = (float(data.d_supply) / scaler) * d_rate
    if data.b_supply == 0:
        b_rate = 1.0
    else:
        b_rate = (total_liabilities + float(pool_tokens) / scaler) / (float(data.b_supply) / scaler)
    total_supply = (float(data.b_supply) / scaler) * b_rate

    if total_supply == 0:
        # nothing supplied, no utilization to accrue against
        return EstReserveData(
            b_rate=b_rate,
            d_rate=d_rate,
            total_supply=total_supply,
            total_liabilities=total_liabilities,
            current_apy=BASE_RATE,
            current_util=0.0,
        )

    cur_ir_mod = float(data.ir_mod) / IR_MOD_SCALAR
    cur_util = total_liabilities / total_supply
    cur_apy = interest_rate(config, cur_ir_mod, cur_util)

    elapsed = timestamp - float(data.last_time) if timestamp is not None else 0
    if cur_util == 0:
        # nothing borrowed: the contract skips accrual and only bumps last_time
        elapsed = 0
    accrual = (elapsed / SECONDS_PER_YEAR) * cur_apy + 1
    b_accrual = (accrual - 1) * cur_util
    if backstop_take_rate > 0:
        total_supply *= b_accrual * backstop_take_rate + 1
        b_rate *= b_accrual * (1 - backstop_take_rate) + 1
    else:
        total_supply *= b_accrual + 1
        b_rate *= b_accrual + 1
    total_liabilities *= accrual
    d_rate *= accrual

    return EstReserveData(
        b_rate=b_rate,
        d_rate=d_rate,
        total_supply=total_supply,
        total_liabilities=total_liabilities,
        current_apy=cur_apy,
        current_util=cur_util,
    )


@dataclass(frozen=True)
class Reserve:
    asset_id: str
    pool_tokens: int
    config: ReserveConfig
    data: ReserveData
    supply_emissions: Optional[ReserveEmissions] = None
    borrow_emissions: Optional[ReserveEmissions] = None
    token_metadata: Optional[TokenMetadata] = None

    def estimate_data(self, backstop_take_rate: float, timestamp: Optional[float] = None) -> EstReserveData:
        """Estimate the reserve's b_rate, d_rate and current APY (as decimal) at `timestamp`."""
        return estimate_reserve(self.config, self.data, self.pool_tokens, backstop_take_rate, timestamp)

    @classmethod
    def load(cls, ledger: LedgerAccess, pool_id: str, asset_id: str) -> "Reserve":
        """
        Load reserve `asset_id` of pool `pool_id`.

        Raises MalformedInputError if an entry has an unexpected key or shape,
        or if the token metadata or reserve config / data are missing.
        """
        asset = scval.to_address(asset_id)
        entries = ledger.get_ledger_entries(
            [
                contract_instance_key(asset_id),
                contract_data_key(pool_id, symbol_key("ResConfig", asset)),
                contract_data_key(pool_id, symbol_key("ResData", asset)),
                balance_key(asset_id, pool_id),
            ]
        )

        metadata: Optional[TokenMetadata] = None
        config: Optional[ReserveConfig] = None
        data: Optional[ReserveData] = None
        pool_tokens = 0
        for entry in entries:
            key = decode_entry_key(contract_data(entry).key)
            if key == CONTRACT_INSTANCE:
                metadata = TokenMetadata.from_ledger_entry(entry)
            elif key == "ResConfig":
                config = ReserveConfig.from_ledger_entry(entry)
            elif key == "ResData":
                data = ReserveData.from_ledger_entry(entry)
            elif key == "Balance":
                pool_tokens = token_balance(entry)
            else:
                raise MalformedInputError(f"Invalid reserve key: should not contain {key}")

        if metadata is None or config is None or data is None:
            raise MalformedInputError(f"Unable to load reserve {asset_id} of pool {pool_id}")

        supply_index = config.index * 2 + 1
        borrow_index = config.index * 2
        emissions = _load_emissions(ledger, pool_id, (supply_index, borrow_index))
        log.debug("loaded reserve %s (index=%d, pool_tokens=%d)", asset_id, config.index, pool_tokens)
        return cls(
            asset_id=asset_id,
            pool_tokens=pool_tokens,
            config=config,
            data=data,
            supply_emissions=emissions.get(supply_index),
            borrow_emissions=emissions.get(borrow_index),
            token_metadata=metadata,
        )


def _load_emissions(
    ledger: LedgerAccess, pool_id: str, indexes: Tuple[int, ...]
) -> Dict[int, ReserveEmissions]:
    keys = []
    for res_token_index in indexes:
        token = scval.to_uint32(res_token_index)
        keys.append(contract_data_key(pool_id, symbol_key("EmisConfig", token)))
        keys.append(contract_data_key(pool_id, symbol_key("EmisData", token)))

    found: Dict[int, List[object]] = {i: [None, None] for i in indexes}
    for entry in ledger.get_ledger_entries(keys):
        storage_key = contract_data(entry).key
        name = decode_entry_key(storage_key)
        res_token_index = _emission_index(storage_key)
        if res_token_index not in found:
            raise MalformedInputError(f"unexpected reserve token index {res_token_index}")
        if name == "EmisConfig":
            found[res_token_index][0] = ReserveEmissionConfig.from_ledger_entry(entry)
        elif name == "EmisData":
            found[res_token_index][1] = ReserveEmissionData.from_ledger_entry(entry)
        else:
            raise MalformedInputError(f"Invalid reserve emission key: should not contain {name}")

    return {
        i: ReserveEmissions(config=cfg, data=dat)  # type: ignore[arg-type]
        for i, (cfg, dat) in found.items()
        if cfg is not None or dat is not None
    }


def _emission_index(storage_key) -> int:  # noqa: ANN001
    parts = scval.to_native(storage_key)
    if not isinstance(parts, list) or len(parts) != 2 or not isinstance(parts[1], int):
        raise MalformedInputError(f"emission key malformed: {parts!r}")
    return parts[1]


__all__ = [
    "BASE_RATE",
    "SECONDS_PER_YEAR",
    "ReserveConfig",
    "ReserveData",
    "ReserveEmissionConfig",
    "ReserveEmissionData",
    "ReserveEmissions",
    "EstReserveData",
    "Reserve",
    "estimate_reserve",
    "interest_rate",
]
