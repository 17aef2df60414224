"""
blend_sdk.tx.build
==================

Envelope helpers used by the submission pipeline.

- `build_transaction`: one-operation envelope from an account's sequence state.
- `assemble_transaction`: attach the simulated Soroban footprint, resource
  fee and authorization entries to an unsigned envelope.
- `contract_call`: `InvokeHostFunction` operation for `contract.method(*args)`.
- `parse_native`: default return-value parser (SCVal → Python value).
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from stellar_sdk import (
    Account,
    Address,
    InvokeHostFunction,
    TransactionBuilder,
    TransactionEnvelope,
    scval,
)
from stellar_sdk import xdr as stellar_xdr
from stellar_sdk.operation import Operation

from ..errors import MalformedInputError
from ..types import SimulationResponse


def build_transaction(
    source_account: Account,
    network_passphrase: str,
    operation: Operation,
    *,
    base_fee: int = 100,
    tx_timeout: int = 30,
) -> TransactionEnvelope:
    """Build an unsigned envelope holding exactly `operation`."""
    return (
        TransactionBuilder(
            source_account=source_account,
            network_passphrase=network_passphrase,
            base_fee=base_fee,
        )
        .append_operation(operation)
        .set_timeout(tx_timeout)
        .build()
    )


def assemble_transaction(
    te: TransactionEnvelope,
    network_passphrase: str,
    simulation: SimulationResponse,
) -> TransactionEnvelope:
    """
    Return a copy of `te` carrying the simulated resources.

    The input envelope is left untouched.
    """
    if not simulation.is_success or simulation.transaction_data is None:
        raise MalformedInputError(f"cannot assemble from a failed simulation: {simulation!r}")

    assembled = TransactionEnvelope.from_xdr(te.to_xdr(), network_passphrase)
    transaction = assembled.transaction
    transaction.soroban_data = stellar_xdr.SorobanTransactionData.from_xdr(simulation.transaction_data)
    transaction.fee = transaction.fee + simulation.min_resource_fee

    if len(transaction.operations) == 1:
        op = transaction.operations[0]
        if isinstance(op, InvokeHostFunction) and not op.auth and simulation.auth:
            op.auth = [stellar_xdr.SorobanAuthorizationEntry.from_xdr(a) for a in simulation.auth]
    return assembled


def contract_call(
    contract_id: str,
    method: str,
    args: Sequence[stellar_xdr.SCVal] = (),
    *,
    source: Optional[str] = None,
) -> InvokeHostFunction:
    host_function = stellar_xdr.HostFunction(
        type=stellar_xdr.HostFunctionType.HOST_FUNCTION_TYPE_INVOKE_CONTRACT,
        invoke_contract=stellar_xdr.InvokeContractArgs(
            contract_address=Address(contract_id).to_xdr_sc_address(),
            function_name=stellar_xdr.SCSymbol(sc_symbol=method.encode()),
            args=list(args),
        ),
    )
    return InvokeHostFunction(host_function=host_function, auth=[], source=source)


def parse_native(raw: Optional[str]) -> Any:
    """Decode a base64 SCVal return value into a Python value (None stays None)."""
    if raw is None:
        return None
    return scval.to_native(stellar_xdr.SCVal.from_xdr(raw))


def parse_void(raw: Optional[str]) -> None:
    return None


__all__ = [
    "build_transaction",
    "assemble_transaction",
    "contract_call",
    "parse_native",
    "parse_void",
]
