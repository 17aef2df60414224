"""
Typed error classes for the Python SDK.

These are raised by rpc/http, tx/resources and the ledger-entry decoders so
callers can catch specific failure modes while still being able to catch the
base `BlendSdkError`.

`parse_error` is the error classifier used when normalizing network
responses. The network reports failures in two shapes:

- simulation diagnostics are free-form strings that may embed a contract
  error code as ``Error(Contract, #N)``;
- ledger-committed failures come back as a structured ``TransactionResult``
  whose operation results carry an invoke-host-function status.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, List, Optional, Union

from stellar_sdk import xdr as stellar_xdr

__all__ = [
    "BlendSdkError",
    "RpcError",
    "ContractError",
    "MalformedInputError",
    "ContractErrorType",
    "BlendErrorCode",
    "JsonRpcCode",
    "parse_error",
    "parse_result_xdr",
]


class BlendSdkError(Exception):
    """Base class for all SDK errors."""


class JsonRpcCode(IntEnum):
    # JSON-RPC 2.0 reserved codes
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # Client-side transport failure (never sent by a server)
    TRANSPORT = -32098


@dataclass(slots=True)
class RpcError(BlendSdkError):
    """Raised when a JSON-RPC call returns an error object or the transport fails."""

    code: int
    message: str
    method: Optional[str] = None
    data: Optional[Any] = None
    http_status: Optional[int] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        parts = [f"RPC[{self.method or '-'}] code={self.code} msg={self.message!r}"]
        if self.http_status is not None:
            parts.append(f"http={self.http_status}")
        if self.data is not None:
            parts.append(f"data={self.data!r}")
        return " ".join(parts)

    @property
    def code_enum(self) -> Optional[JsonRpcCode]:
        try:
            return JsonRpcCode(self.code)
        except ValueError:
            return None


class ContractErrorType(str, Enum):
    """Closed taxonomy of error kinds surfaced on a failed ContractResult."""

    INTERNAL_ERROR = "InternalError"
    ALREADY_INITIALIZED = "AlreadyInitialized"
    UNAUTHORIZED = "Unauthorized"
    NEGATIVE_AMOUNT = "NegativeAmount"
    BALANCE_ERROR = "BalanceError"
    OVERFLOW = "Overflow"
    BAD_REQUEST = "BadRequest"
    NOT_EXPIRED = "NotExpired"
    INVALID_REWARD_ZONE_ENTRY = "InvalidRewardZoneEntry"
    INSUFFICIENT_FUNDS = "InsufficientFunds"
    NOT_POOL = "NotPool"
    ENTRY_ARCHIVED = "EntryArchived"
    TIMEOUT = "Timeout"
    MALFORMED_INPUT = "MalformedInput"
    UNKNOWN = "Unknown"


class BlendErrorCode(IntEnum):
    """Contract error codes reported as ``Error(Contract, #N)``."""

    # Common
    InternalError = 1
    AlreadyInitialized = 3
    Unauthorized = 4
    NegativeAmount = 8
    BalanceError = 10
    Overflow = 12

    # Backstop
    BadRequest = 1000
    NotExpired = 1001
    InvalidRewardZoneEntry = 1002
    InsufficientFunds = 1003
    NotPool = 1004

    # Pool request
    PoolBadRequest = 1200
    InvalidPoolInitArgs = 1201
    InvalidReserveMetadata = 1202
    InitNotUnlocked = 1203
    StatusNotAllowed = 1204

    # Pool state
    InvalidHf = 1205
    InvalidPoolStatus = 1206
    InvalidUtilRate = 1207
    MaxPositionsExceeded = 1208
    InternalReserveNotFound = 1209

    # Oracle
    StalePrice = 1210

    # Auctions
    InvalidLiquidation = 1211
    AuctionInProgress = 1212
    InvalidLiqTooLarge = 1213
    InvalidLiqTooSmall = 1214
    InterestTooSmall = 1215

    # Pool factory
    InvalidPoolFactoryInitArgs = 1300


@dataclass(slots=True)
class ContractError(BlendSdkError):
    """
    A classified failure.

    Fields:
      - kind: a `ContractErrorType` value, a `BlendErrorCode` name, a composite
        ledger result-code string (e.g. ``txFAILED-INVOKE_HOST_FUNCTION_TRAPPED``),
        or None when the kind cannot be determined
      - message: human-readable description / raw diagnostic
    """

    kind: Optional[str]
    message: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        kind = self.kind if self.kind is not None else "UnknownKind"
        return f"{kind}: {self.message}"


class MalformedInputError(ContractError):
    """Raised when an envelope or ledger entry does not have the expected shape."""

    def __init__(self, message: str) -> None:
        ContractError.__init__(self, ContractErrorType.MALFORMED_INPUT.value, message)


_CONTRACT_ERROR_RE = re.compile(r"Error\(Contract, #(\d+)\)")


def _classify_diagnostic(diagnostic: str) -> ContractError:
    match = _CONTRACT_ERROR_RE.search(diagnostic)
    if match is None:
        # Generic simulation failure (budget exceeded, host error, ...)
        return ContractError(kind=None, message=diagnostic)
    try:
        code = BlendErrorCode(int(match.group(1)))
    except ValueError:
        return ContractError(kind=None, message=diagnostic)
    return ContractError(kind=code.name, message=diagnostic)


def _operation_statuses(results: Optional[List[stellar_xdr.OperationResult]]) -> List[str]:
    statuses: List[str] = []
    for op_result in results or []:
        tr = op_result.tr
        if tr is not None and tr.invoke_host_function_result is not None:
            statuses.append(tr.invoke_host_function_result.code.name)
        else:
            statuses.append(op_result.code.name)
    return statuses


def _classify_result(result: stellar_xdr.TransactionResult) -> ContractError:
    body = result.result
    statuses = _operation_statuses(body.results)
    if not statuses and body.inner_result_pair is not None:
        # fee bump: the operation results live on the inner transaction
        statuses = _operation_statuses(body.inner_result_pair.result.result.results)
    kind = "-".join([body.code.name, *statuses])
    return ContractError(kind=kind, message=str(result))


def parse_error(error_result: Union[str, stellar_xdr.TransactionResult]) -> ContractError:
    """
    Classify a failure signal.

    A `str` is treated as a simulation diagnostic; a decoded
    `TransactionResult` as a ledger-reported failure. Use `parse_result_xdr`
    for the base64 form of the latter.
    """
    if isinstance(error_result, str):
        return _classify_diagnostic(error_result)
    if isinstance(error_result, stellar_xdr.TransactionResult):
        return _classify_result(error_result)
    raise TypeError(f"cannot classify error from {type(error_result).__name__}")


def parse_result_xdr(result_xdr: str) -> ContractError:
    """Decode a base64 ``TransactionResult`` and classify it."""
    try:
        result = stellar_xdr.TransactionResult.from_xdr(result_xdr)
    except Exception as e:
        raise MalformedInputError(f"invalid TransactionResult XDR: {e}") from e
    return _classify_result(result)
