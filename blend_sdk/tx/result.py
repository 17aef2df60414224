"""
blend_sdk.tx.result
===================

`ContractResult` is the single outcome type returned by
`blend_sdk.tx.invoke.invoke_operation`: either a success carrying the parsed
return value, or a failure carrying a classified `ContractError`. Both carry
the transaction hash and the declared resources.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from stellar_sdk import xdr as stellar_xdr

from ..errors import ContractError, ContractErrorType, parse_error, parse_result_xdr
from ..types import GetStatus, PolledResponse, SimulationResponse, SubmissionResponse
from .resources import Resources

T = TypeVar("T")

# Receives the base64 SCVal return value (None when the call returned nothing)
Parser = Callable[[Optional[str]], Optional[T]]


@dataclass(frozen=True)
class ContractResult(Generic[T]):
    ok: bool
    hash: str
    resources: Resources
    value: Optional[T] = None
    error: Optional[ContractError] = None

    @classmethod
    def success(cls, hash: str, resources: Resources, value: Optional[T] = None) -> "ContractResult[T]":
        return cls(ok=True, hash=hash, resources=resources, value=value)

    @classmethod
    def failure(cls, hash: str, resources: Resources, error: ContractError) -> "ContractResult[T]":
        return cls(ok=False, hash=hash, resources=resources, error=error)

    @classmethod
    def from_response(
        cls,
        hash: str,
        resources: Resources,
        response: object,
        parse: Parser,
    ) -> "ContractResult[T]":
        """
        Normalize a simulation, submission or polled response.

        Ledger-level failures are returned as failures, never raised.
        """
        if isinstance(response, SimulationResponse):
            preamble = response.restore_preamble
            if response.needs_restore and preamble is not None:
                footprint = _footprint_json(preamble.transaction_data)
                return cls.failure(
                    hash, resources, ContractError(ContractErrorType.ENTRY_ARCHIVED.value, footprint)
                )
            if response.error is not None:
                return cls.failure(hash, resources, parse_error(response.error))
            if response.is_success:
                return cls.success(hash, resources, parse(response.return_value))
            return cls.failure(
                hash,
                resources,
                ContractError(
                    ContractErrorType.UNKNOWN.value, f"invalid simulation: no result in {response!r}"
                ),
            )

        if isinstance(response, PolledResponse):
            if response.status == GetStatus.SUCCESS.value:
                return cls.success(hash, resources, parse(response.return_value))
            if response.result_xdr is None:
                return cls.failure(
                    hash,
                    resources,
                    ContractError(ContractErrorType.UNKNOWN.value, f"no result for transaction: {response!r}"),
                )
            return cls.failure(hash, resources, parse_result_xdr(response.result_xdr))

        if isinstance(response, SubmissionResponse):
            if response.error_result_xdr is None:
                return cls.failure(
                    hash,
                    resources,
                    ContractError(
                        ContractErrorType.UNKNOWN.value,
                        f"transaction submission returned {response.status}: {response!r}",
                    ),
                )
            return cls.failure(hash, resources, parse_result_xdr(response.error_result_xdr))

        return cls.failure(hash, resources, ContractError(ContractErrorType.UNKNOWN.value, repr(response)))

    def unwrap(self) -> Optional[T]:
        """Return the value of a successful result, or raise its error."""
        if self.ok:
            return self.value
        if self.error is not None:
            raise self.error
        raise ContractError(ContractErrorType.UNKNOWN.value, "unable to unwrap ContractResult")

    def __str__(self) -> str:
        if self.ok:
            if self.value is None:
                return "Success!"
            return f"Success: {self.value}"
        if self.error is None:
            return "Failure: Unknown Error Occurred"
        return f"Failure: {self.error}"


def _footprint_json(transaction_data: str) -> str:
    footprint = stellar_xdr.SorobanTransactionData.from_xdr(transaction_data).resources.footprint
    return json.dumps(
        {
            "readOnly": [key.to_xdr() for key in footprint.read_only],
            "readWrite": [key.to_xdr() for key in footprint.read_write],
        },
        indent=2,
    )


__all__ = ["ContractResult", "Parser"]
