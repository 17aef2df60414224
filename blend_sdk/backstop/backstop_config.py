"""
Backstop configuration read from the backstop contract's instance storage and
its `LPTknVal` / `RewardZone` entries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from stellar_sdk import scval
from stellar_sdk import xdr as stellar_xdr

from ..errors import MalformedInputError
from ..ledger_entries import (
    CONTRACT_INSTANCE,
    address_of,
    contract_data,
    contract_data_key,
    contract_instance_key,
    decode_entry_key,
    instance_storage,
)
from ..types import LedgerAccess

log = logging.getLogger(__name__)

_INSTANCE_FIELDS = {
    "BLNDTkn": "blnd_tkn",
    "USDCTkn": "usdc_tkn",
    "BckstpTkn": "backstop_tkn",
    "PoolFact": "pool_factory",
}


@dataclass(frozen=True)
class LpTokenValue:
    """BLND and USDC backing one backstop LP share."""

    blnd_per_share: int
    usdc_per_share: int


@dataclass(frozen=True)
class BackstopConfig:
    blnd_tkn: str
    usdc_tkn: str
    backstop_tkn: str
    pool_factory: str
    reward_zone: Tuple[str, ...]
    lp_value: LpTokenValue

    @classmethod
    def load(cls, ledger: LedgerAccess, backstop_id: str) -> "BackstopConfig":
        """
        Load the configuration of backstop contract `backstop_id`.

        A missing `RewardZone` entry means an empty reward zone. Unknown keys
        or missing token / factory / LP value entries raise MalformedInputError.
        """
        entries = ledger.get_ledger_entries(
            [
                contract_instance_key(backstop_id),
                contract_data_key(backstop_id, _vec_key("LPTknVal")),
                contract_data_key(backstop_id, _vec_key("RewardZone")),
            ]
        )
        if not entries:
            raise MalformedInputError(f"unable to load backstop config for {backstop_id}")

        found: Dict[str, str] = {}
        lp_value: Optional[LpTokenValue] = None
        reward_zone: List[str] = []
        for entry in entries:
            data = contract_data(entry)
            key = decode_entry_key(data.key)
            if key == CONTRACT_INSTANCE:
                for instance_key, raw in instance_storage(data.val).items():
                    if instance_key not in _INSTANCE_FIELDS:
                        raise MalformedInputError(
                            f"Invalid backstop instance storage key: should not contain {instance_key}"
                        )
                    found[_INSTANCE_FIELDS[instance_key]] = address_of(raw)
            elif key == "LPTknVal":
                lp_value = _lp_token_value(data.val)
            elif key == "RewardZone":
                reward_zone = [address_of(v) for v in _vec_items(data.val, "RewardZone")]
            else:
                raise MalformedInputError(f"Invalid backstop config key: should not contain {key}")

        missing = [f for f in _INSTANCE_FIELDS.values() if f not in found]
        if missing or lp_value is None:
            raise MalformedInputError(
                f"unable to load backstop config: missing {', '.join(missing) or 'LP token value'}"
            )
        log.debug("loaded backstop %s (reward zone: %d pools)", backstop_id, len(reward_zone))
        return cls(reward_zone=tuple(reward_zone), lp_value=lp_value, **found)


def _vec_key(name: str) -> stellar_xdr.SCVal:
    # the backstop keys these entries as a one-element vec, not a bare symbol
    return scval.to_vec([scval.to_symbol(name)])


def _vec_items(val: stellar_xdr.SCVal, name: str) -> List[stellar_xdr.SCVal]:
    if val.type != stellar_xdr.SCValType.SCV_VEC or val.vec is None:
        raise MalformedInputError(f"{name} value is not a vec")
    return list(val.vec.sc_vec)


def _lp_token_value(val: stellar_xdr.SCVal) -> LpTokenValue:
    items = _vec_items(val, "LPTknVal")
    if len(items) != 2:
        raise MalformedInputError("LP token value malformed")
    blnd, usdc = (scval.to_native(v) for v in items)
    if not isinstance(blnd, int) or not isinstance(usdc, int):
        raise MalformedInputError("LP token value malformed")
    return LpTokenValue(blnd_per_share=blnd, usdc_per_share=usdc)


__all__ = ["BackstopConfig", "LpTokenValue"]
