from __future__ import annotations

"""
Soroban JSON-RPC client (sync) over httpx.

- Implements the `LedgerAccess` protocol used by the transaction pipeline and
  the reserve / pool loaders.
- Retries calls on transient transport failures and 429/502/503/504 HTTP.
  JSON-RPC error objects are raised as RpcError without retry.
- Converts raw camelCase payloads into the typed responses of
  `blend_sdk.types`, so the response variant is decided here and only here.

Example:
    from blend_sdk.rpc.http import SorobanRpcClient
    with SorobanRpcClient("https://soroban-testnet.stellar.org") as rpc:
        account = rpc.get_account("G...")
        print(account.sequence)
"""

import json
import logging
import random
import time
from dataclasses import dataclass, field
from itertools import count
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import httpx
from stellar_sdk import Account, Keypair, TransactionEnvelope
from stellar_sdk import xdr as stellar_xdr

from ..config import Network
from ..errors import JsonRpcCode, MalformedInputError, RpcError
from ..types import (
    LedgerEntryResult,
    PolledResponse,
    RestorePreamble,
    SimulationResponse,
    SubmissionResponse,
)
from ..version import user_agent

log = logging.getLogger(__name__)


def _is_retriable_http(status: int) -> bool:
    # Typical transient HTTP statuses: 429/502/503/504
    return status in (429, 502, 503, 504)


def _jitter_backoff(base: float, factor: float, attempt: int, jitter: float) -> float:
    # Exponential backoff with jitter in [0, jitter]
    return base * (factor ** max(attempt - 1, 0)) + random.random() * jitter


class _TransientError(Exception):
    """Internal marker for failures worth another attempt."""


@dataclass
class SorobanRpcClient:
    """Synchronous Soroban JSON-RPC 2.0 client over HTTP."""

    url: str
    timeout: float = 30.0
    max_retries: int = 3
    backoff_base: float = 0.15
    backoff_factor: float = 1.8
    backoff_jitter: float = 0.2
    headers: Optional[Mapping[str, str]] = None
    transport: Optional[httpx.BaseTransport] = None
    _id_counter: Iterable[int] = field(default_factory=lambda: count(start=1))
    _client: httpx.Client = field(init=False, repr=False)

    def __post_init__(self) -> None:
        merged_headers: Dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": user_agent(),
        }
        if self.headers:
            merged_headers.update(dict(self.headers))
        self._client = httpx.Client(
            timeout=self.timeout,
            headers=merged_headers,
            transport=self.transport,
        )

    @classmethod
    def from_network(cls, network: Network) -> "SorobanRpcClient":
        opts = dict(network.opts or {})
        known = {"timeout", "max_retries", "backoff_base", "backoff_factor", "backoff_jitter", "headers", "transport"}
        return cls(network.rpc, **{k: v for k, v in opts.items() if k in known})

    # --- context manager -------------------------------------------------

    def __enter__(self) -> "SorobanRpcClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def close(self) -> None:
        self._client.close()

    # --- LedgerAccess ----------------------------------------------------

    def get_account(self, account_id: str) -> Account:
        """Load the account's current sequence number."""
        key = stellar_xdr.LedgerKey(
            type=stellar_xdr.LedgerEntryType.ACCOUNT,
            account=stellar_xdr.LedgerKeyAccount(
                account_id=Keypair.from_public_key(account_id).xdr_account_id()
            ),
        )
        entries = self.get_ledger_entries([key])
        if not entries:
            raise RpcError(
                code=JsonRpcCode.INVALID_PARAMS,
                message=f"Account not found: {account_id}",
                method="getLedgerEntries",
            )
        account_entry = entries[0].data().account
        if account_entry is None:
            raise MalformedInputError(f"ledger entry for {account_id} is not an account")
        return Account(account_id, account_entry.seq_num.sequence_number.int64)

    def get_ledger_entries(self, keys: Sequence[stellar_xdr.LedgerKey]) -> List[LedgerEntryResult]:
        result = self.request("getLedgerEntries", {"keys": [k.to_xdr() for k in keys]})
        out: List[LedgerEntryResult] = []
        for entry in (result or {}).get("entries") or []:
            out.append(
                LedgerEntryResult(
                    key=entry["key"],
                    xdr=entry["xdr"],
                    last_modified_ledger=int(entry.get("lastModifiedLedgerSeq") or 0),
                    live_until_ledger=(
                        int(entry["liveUntilLedgerSeq"]) if entry.get("liveUntilLedgerSeq") is not None else None
                    ),
                )
            )
        return out

    def simulate_transaction(self, te: TransactionEnvelope) -> SimulationResponse:
        result = self.request("simulateTransaction", {"transaction": te.to_xdr()})
        return simulation_from_json(result)

    def send_transaction(self, te: TransactionEnvelope) -> SubmissionResponse:
        result = self.request("sendTransaction", {"transaction": te.to_xdr()})
        return submission_from_json(result)

    def get_transaction(self, tx_hash: str) -> PolledResponse:
        result = self.request("getTransaction", {"hash": tx_hash})
        return polled_from_json(tx_hash, result)

    # --- JSON-RPC --------------------------------------------------------

    def request(self, method: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Perform a single JSON-RPC request and return `result` or raise RpcError."""
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._id_counter),  # type: ignore[call-overload]
            "method": method,
            "params": dict(params or {}),
        }
        last_exc: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 2):  # N retries -> N+1 attempts
            try:
                return self._send_once(method, payload)
            except _TransientError as e:
                last_exc = e
                if attempt > self.max_retries:
                    break
                delay = _jitter_backoff(self.backoff_base, self.backoff_factor, attempt, self.backoff_jitter)
                log.debug("%s failed (%s), retrying in %.2fs", method, e, delay)
                time.sleep(delay)
        log.warning("%s failed after %d attempts: %s", method, self.max_retries + 1, last_exc)
        raise RpcError(
            code=JsonRpcCode.TRANSPORT,
            message="RPC transport failed",
            method=method,
            data=str(last_exc),
        )

    def _send_once(self, method: str, payload: Dict[str, Any]) -> Any:
        body = json.dumps(payload, separators=(",", ":"))
        try:
            r = self._client.post(self.url, content=body)
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            raise _TransientError(f"network error: {e}") from e
        if _is_retriable_http(r.status_code):
            raise _TransientError(f"HTTP {r.status_code}")
        try:
            resp = r.json()
        except ValueError as e:
            raise RpcError(
                code=JsonRpcCode.INTERNAL_ERROR,
                message="Non-JSON response from RPC",
                method=method,
                data=r.text[:256],
                http_status=r.status_code,
            ) from e

        if not isinstance(resp, dict):
            raise RpcError(
                code=JsonRpcCode.INTERNAL_ERROR,
                message="Invalid JSON-RPC response type",
                method=method,
                data=type(resp).__name__,
            )
        if "error" in resp:
            err = resp["error"] or {}
            raise RpcError(
                code=err.get("code", JsonRpcCode.INTERNAL_ERROR),
                message=err.get("message", "Unknown error"),
                method=method,
                data=err.get("data"),
                http_status=r.status_code,
            )
        if "result" not in resp:
            raise RpcError(
                code=JsonRpcCode.INTERNAL_ERROR,
                message="Malformed JSON-RPC response",
                method=method,
                data=resp,
            )
        return resp["result"]


# --- payload conversion ---------------------------------------------------


def simulation_from_json(result: Mapping[str, Any]) -> SimulationResponse:
    host_results = result.get("results") or []
    first = host_results[0] if host_results else {}
    preamble = result.get("restorePreamble")
    return SimulationResponse(
        latest_ledger=int(result.get("latestLedger") or 0),
        error=result.get("error"),
        transaction_data=result.get("transactionData") or None,
        min_resource_fee=int(result.get("minResourceFee") or 0),
        return_value=first.get("xdr") or None,
        auth=tuple(first.get("auth") or ()),
        restore_preamble=(
            RestorePreamble(
                transaction_data=preamble["transactionData"],
                min_resource_fee=int(preamble.get("minResourceFee") or 0),
            )
            if preamble
            else None
        ),
    )


def submission_from_json(result: Mapping[str, Any]) -> SubmissionResponse:
    return SubmissionResponse(
        status=str(result["status"]),
        hash=str(result.get("hash") or ""),
        latest_ledger=int(result.get("latestLedger") or 0),
        error_result_xdr=result.get("errorResultXdr"),
    )


def polled_from_json(tx_hash: str, result: Mapping[str, Any]) -> PolledResponse:
    return PolledResponse(
        status=str(result["status"]),
        hash=tx_hash,
        latest_ledger=int(result.get("latestLedger") or 0),
        ledger=int(result["ledger"]) if result.get("ledger") is not None else None,
        result_xdr=result.get("resultXdr"),
        return_value=_return_value(result),
    )


def _return_value(result: Mapping[str, Any]) -> Optional[str]:
    if result.get("returnValue"):
        return result["returnValue"]
    meta_xdr = result.get("resultMetaXdr")
    if not meta_xdr:
        return None
    meta = stellar_xdr.TransactionMeta.from_xdr(meta_xdr)
    if meta.v == 3 and meta.v3 is not None and meta.v3.soroban_meta is not None:
        return meta.v3.soroban_meta.return_value.to_xdr()
    return None


__all__ = [
    "SorobanRpcClient",
    "simulation_from_json",
    "submission_from_json",
    "polled_from_json",
]
