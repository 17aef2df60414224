"""
blend_sdk.tx.resources
======================

Fee and resource footprint declared by an assembled Soroban transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from stellar_sdk import TransactionEnvelope
from stellar_sdk import xdr as stellar_xdr

from ..errors import MalformedInputError

EnvelopeLike = Union[str, stellar_xdr.TransactionEnvelope, TransactionEnvelope]


@dataclass(frozen=True)
class Resources:
    fee: int
    refundable_fee: int
    cpu_inst: int
    read_bytes: int
    write_bytes: int
    read_only_entries: int
    read_write_entries: int

    @classmethod
    def empty(cls) -> "Resources":
        return cls(0, 0, 0, 0, 0, 0, 0)

    @classmethod
    def from_transaction(cls, tx: EnvelopeLike) -> "Resources":
        """
        Build a Resources record from a transaction envelope, given either as
        base64 XDR, an XDR `TransactionEnvelope` or a `stellar_sdk.TransactionEnvelope`.

        Raises MalformedInputError if the envelope is not a v1 transaction
        carrying Soroban resource data.
        """
        envelope = _as_xdr_envelope(tx)
        if envelope.type != stellar_xdr.EnvelopeType.ENVELOPE_TYPE_TX or envelope.v1 is None:
            raise MalformedInputError(f"expected a v1 transaction envelope, got {envelope.type.name}")
        transaction = envelope.v1.tx
        data = transaction.ext.soroban_data if transaction.ext.v == 1 else None
        if data is None:
            raise MalformedInputError("transaction has no Soroban resource extension")

        resources = data.resources
        footprint = resources.footprint
        return cls(
            fee=transaction.fee.uint32,
            refundable_fee=data.resource_fee.int64,
            cpu_inst=resources.instructions.uint32,
            read_bytes=resources.read_bytes.uint32,
            write_bytes=resources.write_bytes.uint32,
            read_only_entries=len(footprint.read_only),
            read_write_entries=len(footprint.read_write),
        )


def _as_xdr_envelope(tx: EnvelopeLike) -> stellar_xdr.TransactionEnvelope:
    if isinstance(tx, stellar_xdr.TransactionEnvelope):
        return tx
    if isinstance(tx, TransactionEnvelope):
        return tx.to_xdr_object()
    if isinstance(tx, str):
        try:
            return stellar_xdr.TransactionEnvelope.from_xdr(tx)
        except Exception as e:
            raise MalformedInputError(f"invalid TransactionEnvelope XDR: {e}") from e
    raise TypeError(f"unsupported envelope type: {type(tx).__name__}")


__all__ = ["Resources"]
