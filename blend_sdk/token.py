"""
Token contract state read by the pool loaders: the asset's metadata from its
contract instance storage, and a holder's balance entry.
"""

from __future__ import annotations

from dataclasses import dataclass

from stellar_sdk import scval
from stellar_sdk import xdr as stellar_xdr

from .errors import MalformedInputError
from .ledger_entries import contract_data, contract_data_key, decode_struct, instance_storage, symbol_key
from .types import LedgerEntryResult

METADATA_KEY = "METADATA"


@dataclass(frozen=True)
class TokenMetadata:
    name: str
    symbol: str
    decimals: int

    @classmethod
    def from_ledger_entry(cls, entry: LedgerEntryResult) -> "TokenMetadata":
        """Decode the ``METADATA`` item of a token's contract instance entry."""
        storage = instance_storage(contract_data(entry).val)
        raw = storage.get(METADATA_KEY)
        if raw is None:
            raise MalformedInputError("token instance storage has no METADATA entry")
        fields = decode_struct(raw, "TokenMetadata", ("decimal", "name", "symbol"))
        return cls(name=_text(fields["name"]), symbol=_text(fields["symbol"]), decimals=int(fields["decimal"]))


def _text(value: object) -> str:
    # SCV_STRING decodes to bytes
    if isinstance(value, bytes):
        return value.decode()
    return str(value)


def balance_key(token_id: str, holder: str) -> stellar_xdr.LedgerKey:
    return contract_data_key(token_id, symbol_key("Balance", scval.to_address(holder)))


def token_balance(entry: LedgerEntryResult) -> int:
    # Stellar asset contracts store {amount, authorized, clawback}; plain tokens an i128
    value = scval.to_native(contract_data(entry).val)
    if isinstance(value, dict):
        value = value.get("amount")
    if not isinstance(value, int) or isinstance(value, bool):
        raise MalformedInputError(f"token balance malformed: {value!r}")
    return value


__all__ = ["TokenMetadata", "balance_key", "token_balance"]
