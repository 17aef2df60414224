"""
blend_sdk.tx.invoke
===================

Submit one operation to a Soroban network and await its outcome.

Primary entry point
-------------------
- invoke_operation(source, sign, network, tx_options, parse, operation) -> ContractResult
    Builds the envelope, simulates it, and unless `tx_options.simulate_only`
    is set, assembles, signs, submits and polls `getTransaction` until the
    transaction leaves the pending set or `tx_options.timeout_s` elapses.

Ledger-level failures (simulation errors, archived entries, failed or
rejected transactions, timeouts) come back as failed `ContractResult`s.
Transport failures raise `RpcError`; malformed envelopes raise
`MalformedInputError`.

Retries are never automatic: polling only detects completion. Re-invoking
rebuilds the envelope from a fresh account sequence.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from stellar_sdk import TransactionEnvelope
from stellar_sdk.operation import Operation

from ..config import Network, TxOptions
from ..errors import ContractError, ContractErrorType
from ..rpc.http import SorobanRpcClient
from ..types import GetStatus, LedgerAccess, LedgerResponse, SendStatus
from .build import assemble_transaction, build_transaction
from .resources import Resources
from .result import ContractResult, Parser, T

log = logging.getLogger(__name__)

# Signs base64 envelope XDR and returns the signed base64 envelope XDR
SignFn = Callable[[str], str]

# `sendTransaction` / `getTransaction` statuses that keep the poll loop going
POLLING_STATUSES = frozenset({SendStatus.PENDING.value, GetStatus.NOT_FOUND.value})


def invoke_operation(
    source: str,
    sign: SignFn,
    network: Network,
    tx_options: TxOptions,
    parse: Parser,
    operation: Operation,
    *,
    ledger: Optional[LedgerAccess] = None,
) -> ContractResult[T]:
    """
    Invoke `operation` from account `source` against `network`.

    `ledger` defaults to a `SorobanRpcClient` for `network.rpc`, closed again
    before returning.
    """
    if ledger is not None:
        return _invoke(ledger, source, sign, network, tx_options, parse, operation)
    with SorobanRpcClient.from_network(network) as rpc:
        return _invoke(rpc, source, sign, network, tx_options, parse, operation)


def _invoke(
    ledger: LedgerAccess,
    source: str,
    sign: SignFn,
    network: Network,
    tx_options: TxOptions,
    parse: Parser,
    operation: Operation,
) -> ContractResult[T]:
    source_account = ledger.get_account(source)
    tx = build_transaction(
        source_account,
        network.passphrase,
        operation,
        base_fee=tx_options.base_fee,
        tx_timeout=tx_options.tx_timeout,
    )

    simulation = ledger.simulate_transaction(tx)
    if simulation.needs_restore or not simulation.is_success:
        # No footprint was assigned; nothing else to spend network calls on.
        log.debug("simulation failed for %s: %s", source, simulation.error or "restore required")
        return ContractResult.from_response(tx.hash_hex(), Resources.empty(), simulation, parse)

    if tx_options.simulate_only:
        prepped = assemble_transaction(tx, network.passphrase, simulation)
        resources = Resources.from_transaction(prepped)
        log.debug("simulated %s (cpu=%d, fee=%d)", prepped.hash_hex(), resources.cpu_inst, resources.fee)
        return ContractResult.from_response(prepped.hash_hex(), resources, simulation, parse)

    prepped = assemble_transaction(tx, network.passphrase, simulation)
    prepped_xdr = prepped.to_xdr()
    signed_xdr = sign(prepped_xdr)
    signed = TransactionEnvelope.from_xdr(signed_xdr, network.passphrase)
    tx_hash = signed.hash_hex()
    resources = Resources.from_transaction(prepped_xdr)

    response: LedgerResponse = ledger.send_transaction(signed)
    status = response.status
    log.debug("submitted %s: %s", tx_hash, status)

    start = time.monotonic()
    while status in POLLING_STATUSES:
        if time.monotonic() - start >= tx_options.timeout_s:
            log.warning("transaction %s timed out with status %s", tx_hash, status)
            return ContractResult.failure(
                tx_hash,
                resources,
                ContractError(
                    ContractErrorType.TIMEOUT.value,
                    f"Transaction timed out with status {status}",
                ),
            )
        time.sleep(tx_options.poll_interval_s)
        response = ledger.get_transaction(tx_hash)
        status = response.status

    log.debug("transaction %s finished with status %s", tx_hash, status)
    return ContractResult.from_response(tx_hash, resources, response, parse)


__all__ = ["invoke_operation", "SignFn", "POLLING_STATUSES"]
