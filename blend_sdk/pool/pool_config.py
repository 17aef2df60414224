"""
Pool-level configuration read from a pool contract's instance storage and
its reserve list.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from stellar_sdk import Address, scval

from ..errors import MalformedInputError
from ..ledger_entries import (
    CONTRACT_INSTANCE,
    address_of,
    contract_data,
    contract_data_key,
    contract_instance_key,
    decode_entry_key,
    decode_struct,
    instance_storage,
    symbol_key,
)
from ..types import LedgerAccess


@dataclass(frozen=True)
class PoolConfig:
    admin: str
    name: str
    blnd_tkn: str
    usdc_tkn: str
    backstop: str
    backstop_rate: int
    oracle: str
    status: int
    reserve_list: Tuple[str, ...]

    @classmethod
    def load(cls, ledger: LedgerAccess, pool_id: str) -> "PoolConfig":
        entries = ledger.get_ledger_entries(
            [contract_instance_key(pool_id), contract_data_key(pool_id, symbol_key("ResList"))]
        )
        if not entries:
            raise MalformedInputError(f"Unable to load pool config for {pool_id}")

        found: dict = {}
        reserve_list: Optional[List[str]] = None
        for entry in entries:
            data = contract_data(entry)
            key = decode_entry_key(data.key)
            if key == CONTRACT_INSTANCE:
                found.update(_instance_fields(data.val))
            elif key == "ResList":
                reserve_list = [_native_address(a) for a in scval.to_native(data.val)]
            else:
                raise MalformedInputError(f"Invalid PoolConfig key: should not contain {key}")

        required = ("admin", "name", "blnd_tkn", "usdc_tkn", "backstop", "backstop_rate", "oracle", "status")
        missing = [k for k in required if k not in found]
        if missing or reserve_list is None:
            raise MalformedInputError(
                f"Unable to load pool config: missing {', '.join(missing) or 'reserve list'}"
            )
        return cls(reserve_list=tuple(reserve_list), **{k: found[k] for k in required})


def _instance_fields(val) -> dict:  # noqa: ANN001
    out: dict = {}
    for key, raw in instance_storage(val).items():
        if key == "Admin":
            out["admin"] = address_of(raw)
        elif key == "BLNDTkn":
            out["blnd_tkn"] = address_of(raw)
        elif key == "USDCTkn":
            out["usdc_tkn"] = address_of(raw)
        elif key == "Backstop":
            out["backstop"] = address_of(raw)
        elif key == "Name":
            out["name"] = str(scval.to_native(raw))
        elif key == "PoolConfig":
            cfg = decode_struct(raw, "PoolConfig", ("bstop_rate", "oracle", "status"))
            out["backstop_rate"] = int(cfg["bstop_rate"])
            out["oracle"] = _native_address(cfg["oracle"])
            out["status"] = int(cfg["status"])
        else:
            raise MalformedInputError(f"Invalid pool instance storage key: should not contain {key}")
    return out


def _native_address(value: object) -> str:
    if isinstance(value, Address):
        return value.address
    raise MalformedInputError(f"expected an address, got {value!r}")


__all__ = ["PoolConfig"]
