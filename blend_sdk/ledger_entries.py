"""
Contract storage helpers: ledger keys for Blend contract data and decoding of
the raw ledger entries returned by `getLedgerEntries`.

Decoding never raises bare exceptions: every shape problem surfaces as
`MalformedInputError` so callers can tell bad data from network failures.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable

from stellar_sdk import Address, scval
from stellar_sdk import xdr as stellar_xdr

from .errors import MalformedInputError
from .types import LedgerEntryResult

CONTRACT_INSTANCE = "ContractInstance"

_PERSISTENT = stellar_xdr.ContractDataDurability.PERSISTENT


def contract_data_key(
    contract_id: str,
    key: stellar_xdr.SCVal,
    durability: stellar_xdr.ContractDataDurability = _PERSISTENT,
) -> stellar_xdr.LedgerKey:
    return stellar_xdr.LedgerKey(
        type=stellar_xdr.LedgerEntryType.CONTRACT_DATA,
        contract_data=stellar_xdr.LedgerKeyContractData(
            contract=Address(contract_id).to_xdr_sc_address(),
            key=key,
            durability=durability,
        ),
    )


def contract_instance_key(contract_id: str) -> stellar_xdr.LedgerKey:
    instance = stellar_xdr.SCVal(type=stellar_xdr.SCValType.SCV_LEDGER_KEY_CONTRACT_INSTANCE)
    return contract_data_key(contract_id, instance)


def symbol_key(name: str, *args: stellar_xdr.SCVal) -> stellar_xdr.SCVal:
    """Storage key of the form ``Symbol(name)`` or ``Vec[Symbol(name), *args]``."""
    if not args:
        return scval.to_symbol(name)
    return scval.to_vec([scval.to_symbol(name), *args])


def decode_entry_key(key: stellar_xdr.SCVal) -> str:
    """Name of a storage key: the symbol, or the leading symbol of a vec key."""
    if key.type == stellar_xdr.SCValType.SCV_SYMBOL:
        return key.sym.sc_symbol.decode()
    if key.type == stellar_xdr.SCValType.SCV_VEC and key.vec is not None and key.vec.sc_vec:
        head = key.vec.sc_vec[0]
        if head.type == stellar_xdr.SCValType.SCV_SYMBOL:
            return head.sym.sc_symbol.decode()
    if key.type == stellar_xdr.SCValType.SCV_LEDGER_KEY_CONTRACT_INSTANCE:
        return CONTRACT_INSTANCE
    raise MalformedInputError(f"unable to decode storage key of type {key.type.name}")


def contract_data(entry: LedgerEntryResult) -> stellar_xdr.ContractDataEntry:
    try:
        data = entry.data()
    except Exception as e:
        raise MalformedInputError(f"invalid LedgerEntryData XDR: {e}") from e
    if data.contract_data is None:
        raise MalformedInputError(f"ledger entry is not contract data: {data.type.name}")
    return data.contract_data


def decode_struct(val: stellar_xdr.SCVal, name: str, fields: Iterable[str]) -> Dict[str, Any]:
    """
    Decode a contract struct (an SCVal map keyed by symbols) into a dict.

    The map must contain exactly `fields`.
    """
    if val.type != stellar_xdr.SCValType.SCV_MAP:
        raise MalformedInputError(f"{name} contract data value is not a map")
    native = scval.to_native(val)
    expected = set(fields)
    unknown = sorted(set(native) - expected)
    if unknown:
        raise MalformedInputError(f"Invalid {name} key: should not contain {unknown[0]}")
    missing = sorted(expected - set(native))
    if missing:
        raise MalformedInputError(f"{name} scvMap value malformed: missing {', '.join(missing)}")
    return native


def instance_storage(val: stellar_xdr.SCVal) -> Dict[str, stellar_xdr.SCVal]:
    """Contract instance storage as ``{key name: raw value}``."""
    if val.type != stellar_xdr.SCValType.SCV_CONTRACT_INSTANCE or val.instance is None:
        raise MalformedInputError("contract data value is not a contract instance")
    storage = val.instance.storage
    return {decode_entry_key(e.key): e.val for e in (storage.sc_map if storage else [])}


def address_of(val: stellar_xdr.SCVal) -> str:
    try:
        return Address.from_xdr_sc_val(val).address
    except Exception as e:
        raise MalformedInputError(f"expected an address value: {e}") from e


__all__ = [
    "CONTRACT_INSTANCE",
    "contract_data_key",
    "contract_instance_key",
    "symbol_key",
    "decode_entry_key",
    "contract_data",
    "decode_struct",
    "instance_storage",
    "address_of",
]
