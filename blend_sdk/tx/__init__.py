"""
blend_sdk.tx
============

Transaction helpers for Soroban contract calls: build, simulate, sign, send.

Submodules
----------
- build    : envelope builders, simulation assembly and return-value parsers.
- resources: fee / footprint extraction from an assembled envelope.
- result   : `ContractResult`, the uniform success / failure outcome.
- invoke   : the submission pipeline (`invoke_operation`).

Typical usage
-------------
    from blend_sdk.tx import invoke_operation, contract_call, parse_native

    result = invoke_operation(
        source=keypair.public_key,
        sign=my_signer,
        network=network,
        tx_options=TxOptions(),
        parse=parse_native,
        operation=contract_call(pool_id, "get_reserve_list"),
    )
    reserves = result.unwrap()
"""

from __future__ import annotations

from .build import assemble_transaction, build_transaction, contract_call, parse_native, parse_void
from .invoke import invoke_operation
from .resources import Resources
from .result import ContractResult

__all__ = [
    "assemble_transaction",
    "build_transaction",
    "contract_call",
    "parse_native",
    "parse_void",
    "invoke_operation",
    "Resources",
    "ContractResult",
]
