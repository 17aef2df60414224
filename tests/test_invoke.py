import json

import pytest
from stellar_sdk import scval
from stellar_sdk import xdr as stellar_xdr

import blend_sdk.tx.invoke as invoke_module
from blend_sdk.config import TxOptions
from blend_sdk.ledger_entries import contract_instance_key
from blend_sdk.tx.build import parse_native
from blend_sdk.tx.invoke import invoke_operation
from blend_sdk.tx.resources import Resources
from blend_sdk.types import PolledResponse, RestorePreamble, SimulationResponse, SubmissionResponse


class FakeClock:
    """Stands in for the `time` module inside the pipeline; sleeping advances the clock."""

    def __init__(self, step=5.0):
        self.now = 0.0
        self.step = step
        self.sleeps = 0

    def monotonic(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps += 1
        self.now += self.step


@pytest.fixture(autouse=True)
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr(invoke_module, "time", fake)
    return fake


def _never_sign(envelope_xdr):
    raise AssertionError("sign must not be called")


def _simulation(soroban_data, **kw):
    return SimulationResponse(
        latest_ledger=100,
        transaction_data=soroban_data(instructions=2_000_000, resource_fee=30_000),
        min_resource_fee=30_000,
        return_value=scval.to_int128(1_000).to_xdr(),
        **kw,
    )


def _trapped_xdr():
    op = stellar_xdr.OperationResult(
        code=stellar_xdr.OperationResultCode.opINNER,
        tr=stellar_xdr.OperationResultTr(
            type=stellar_xdr.OperationType.INVOKE_HOST_FUNCTION,
            invoke_host_function_result=stellar_xdr.InvokeHostFunctionResult(
                code=stellar_xdr.InvokeHostFunctionResultCode.INVOKE_HOST_FUNCTION_TRAPPED,
            ),
        ),
    )
    return stellar_xdr.TransactionResult(
        fee_charged=stellar_xdr.Int64(100),
        result=stellar_xdr.TransactionResultResult(code=stellar_xdr.TransactionResultCode.txFAILED, results=[op]),
        ext=stellar_xdr.TransactionResultExt(0),
    ).to_xdr()


def test_submit_and_poll_until_success(keypair, network, sign, operation, soroban_data, fake_ledger):
    ledger = fake_ledger(
        simulation=_simulation(soroban_data),
        submission=SubmissionResponse(status="PENDING", hash="x"),
        polled=[
            PolledResponse(status="NOT_FOUND", hash="x"),
            PolledResponse(status="SUCCESS", hash="x", return_value=scval.to_int128(1_234).to_xdr()),
        ],
    )
    res = invoke_operation(
        keypair.public_key, sign, network, TxOptions(timeout_s=60), parse_native, operation, ledger=ledger
    )

    assert res.ok
    assert res.value == 1_234
    assert ledger.methods() == [
        "get_account",
        "simulate_transaction",
        "send_transaction",
        "get_transaction",
        "get_transaction",
    ]
    # The hash reported is the hash of the signed envelope that was sent and polled
    sent_hash = ledger.calls[2][1]
    assert res.hash == sent_hash
    assert ledger.calls[3] == ("get_transaction", sent_hash)
    assert res.resources.cpu_inst == 2_000_000
    assert res.resources.fee == 100 + 30_000


def test_simulate_only_stops_before_signing(keypair, network, operation, soroban_data, fake_ledger):
    ledger = fake_ledger(simulation=_simulation(soroban_data))
    res = invoke_operation(
        keypair.public_key,
        _never_sign,
        network,
        TxOptions(simulate_only=True),
        parse_native,
        operation,
        ledger=ledger,
    )

    assert res.ok
    assert res.value == 1_000
    assert res.resources != Resources.empty()
    assert res.resources.refundable_fee == 30_000
    assert "send_transaction" not in ledger.methods()


def test_timeout_with_zero_budget_never_polls(keypair, network, sign, operation, soroban_data, fake_ledger):
    ledger = fake_ledger(
        simulation=_simulation(soroban_data),
        submission=SubmissionResponse(status="PENDING", hash="x"),
        polled=[PolledResponse(status="NOT_FOUND", hash="x")],
    )
    res = invoke_operation(
        keypair.public_key, sign, network, TxOptions(timeout_s=0), parse_native, operation, ledger=ledger
    )

    assert not res.ok
    assert res.error.kind == "Timeout"
    assert "PENDING" in res.error.message
    assert "get_transaction" not in ledger.methods()


def test_timeout_while_polling(keypair, network, sign, operation, soroban_data, fake_ledger, clock):
    ledger = fake_ledger(
        simulation=_simulation(soroban_data),
        submission=SubmissionResponse(status="PENDING", hash="x"),
        polled=[PolledResponse(status="NOT_FOUND", hash="x")],
    )
    res = invoke_operation(
        keypair.public_key, sign, network, TxOptions(timeout_s=12), parse_native, operation, ledger=ledger
    )

    assert res.error.kind == "Timeout"
    assert res.error.message == "Transaction timed out with status NOT_FOUND"
    assert ledger.methods().count("get_transaction") == 3
    assert clock.sleeps == 3


def test_archived_entries_report_footprint(keypair, network, operation, soroban_data, fake_ledger, pool_id):
    key = contract_instance_key(pool_id)
    sim = SimulationResponse(
        latest_ledger=100,
        transaction_data=soroban_data(),
        restore_preamble=RestorePreamble(transaction_data=soroban_data(read_only=[key]), min_resource_fee=10),
    )
    ledger = fake_ledger(simulation=sim)
    res = invoke_operation(
        keypair.public_key, _never_sign, network, TxOptions(), parse_native, operation, ledger=ledger
    )

    assert res.error.kind == "EntryArchived"
    assert json.loads(res.error.message)["readOnly"] == [key.to_xdr()]
    assert res.resources == Resources.empty()
    assert ledger.methods() == ["get_account", "simulate_transaction"]


def test_simulation_error_is_returned(keypair, network, operation, fake_ledger):
    ledger = fake_ledger(simulation=SimulationResponse(latest_ledger=1, error="HostError: Error(Contract, #1205)"))
    res = invoke_operation(
        keypair.public_key, _never_sign, network, TxOptions(), parse_native, operation, ledger=ledger
    )
    assert res.error.kind == "InvalidHf"
    assert res.resources == Resources.empty()
    assert res.hash


def test_rejected_submission_is_not_polled(keypair, network, sign, operation, soroban_data, fake_ledger):
    ledger = fake_ledger(
        simulation=_simulation(soroban_data),
        submission=SubmissionResponse(status="ERROR", hash="x", error_result_xdr=_trapped_xdr()),
    )
    res = invoke_operation(keypair.public_key, sign, network, TxOptions(), parse_native, operation, ledger=ledger)

    assert res.error.kind == "txFAILED-INVOKE_HOST_FUNCTION_TRAPPED"
    assert "get_transaction" not in ledger.methods()


def test_failed_transaction_after_polling(keypair, network, sign, operation, soroban_data, fake_ledger):
    ledger = fake_ledger(
        simulation=_simulation(soroban_data),
        submission=SubmissionResponse(status="PENDING", hash="x"),
        polled=[PolledResponse(status="FAILED", hash="x", result_xdr=_trapped_xdr())],
    )
    res = invoke_operation(keypair.public_key, sign, network, TxOptions(), parse_native, operation, ledger=ledger)

    assert not res.ok
    assert res.error.kind == "txFAILED-INVOKE_HOST_FUNCTION_TRAPPED"
    assert res.resources.cpu_inst == 2_000_000


def test_duplicate_submission_is_normalized_without_polling(
    keypair, network, sign, operation, soroban_data, fake_ledger
):
    ledger = fake_ledger(
        simulation=_simulation(soroban_data),
        submission=SubmissionResponse(status="DUPLICATE", hash="x"),
        polled=[PolledResponse(status="SUCCESS", hash="x")],
    )
    res = invoke_operation(keypair.public_key, sign, network, TxOptions(), parse_native, operation, ledger=ledger)

    assert not res.ok
    assert res.error.kind == "Unknown"
    assert "DUPLICATE" in res.error.message
    assert ledger.methods() == ["get_account", "simulate_transaction", "send_transaction"]
