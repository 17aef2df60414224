"""
Typed responses exchanged with the Ledger Access Layer.

Soroban RPC answers `simulateTransaction`, `sendTransaction` and
`getTransaction` with overlapping JSON shapes. The RPC client decides which
of the three it received once, at the boundary, and hands the core one of
the variants below; nothing downstream inspects raw payload keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol, Sequence, Tuple, Union

from stellar_sdk import Account, TransactionEnvelope
from stellar_sdk import xdr as stellar_xdr

__all__ = [
    "SendStatus",
    "GetStatus",
    "RestorePreamble",
    "SimulationResponse",
    "SubmissionResponse",
    "PolledResponse",
    "LedgerResponse",
    "LedgerEntryResult",
    "LedgerAccess",
]


class SendStatus(str, Enum):
    PENDING = "PENDING"
    DUPLICATE = "DUPLICATE"
    TRY_AGAIN_LATER = "TRY_AGAIN_LATER"
    ERROR = "ERROR"


class GetStatus(str, Enum):
    SUCCESS = "SUCCESS"
    NOT_FOUND = "NOT_FOUND"
    FAILED = "FAILED"


@dataclass(frozen=True)
class RestorePreamble:
    """Footprint that has to be restored before the simulated call can run."""

    transaction_data: str  # base64 SorobanTransactionData
    min_resource_fee: int


@dataclass(frozen=True)
class SimulationResponse:
    latest_ledger: int
    error: Optional[str] = None
    transaction_data: Optional[str] = None  # base64 SorobanTransactionData
    min_resource_fee: int = 0
    return_value: Optional[str] = None  # base64 SCVal
    auth: Tuple[str, ...] = ()  # base64 SorobanAuthorizationEntry
    restore_preamble: Optional[RestorePreamble] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def needs_restore(self) -> bool:
        return (
            not self.is_error
            and self.restore_preamble is not None
            and bool(self.restore_preamble.transaction_data)
        )

    @property
    def is_success(self) -> bool:
        return not self.is_error and self.transaction_data is not None


@dataclass(frozen=True)
class SubmissionResponse:
    status: str
    hash: str
    latest_ledger: int = 0
    error_result_xdr: Optional[str] = None  # base64 TransactionResult


@dataclass(frozen=True)
class PolledResponse:
    status: str
    hash: str
    latest_ledger: int = 0
    ledger: Optional[int] = None
    result_xdr: Optional[str] = None  # base64 TransactionResult
    return_value: Optional[str] = None  # base64 SCVal


LedgerResponse = Union[SimulationResponse, SubmissionResponse, PolledResponse]


@dataclass(frozen=True)
class LedgerEntryResult:
    key: str  # base64 LedgerKey
    xdr: str  # base64 LedgerEntryData
    last_modified_ledger: int = 0
    live_until_ledger: Optional[int] = None

    def data(self) -> stellar_xdr.LedgerEntryData:
        return stellar_xdr.LedgerEntryData.from_xdr(self.xdr)


class LedgerAccess(Protocol):
    """
    Minimal interface the transaction pipeline and the loaders expect from a
    ledger client. `blend_sdk.rpc.http.SorobanRpcClient` implements it over
    JSON-RPC; tests use in-memory fakes.
    """

    def get_account(self, account_id: str) -> Account: ...

    def simulate_transaction(self, te: TransactionEnvelope) -> SimulationResponse: ...

    def send_transaction(self, te: TransactionEnvelope) -> SubmissionResponse: ...

    def get_transaction(self, tx_hash: str) -> PolledResponse: ...

    def get_ledger_entries(
        self, keys: Sequence[stellar_xdr.LedgerKey]
    ) -> List[LedgerEntryResult]: ...
