import pytest
from stellar_sdk import Account, TransactionBuilder

from blend_sdk.errors import MalformedInputError
from blend_sdk.ledger_entries import contract_instance_key
from blend_sdk.tx.build import assemble_transaction, build_transaction
from blend_sdk.tx.resources import Resources
from blend_sdk.types import RestorePreamble, SimulationResponse


def _assembled(keypair, passphrase, operation, tx_data, min_resource_fee=5_000):
    tx = build_transaction(Account(keypair.public_key, 100), passphrase, operation, base_fee=100)
    sim = SimulationResponse(latest_ledger=10, transaction_data=tx_data, min_resource_fee=min_resource_fee)
    return assemble_transaction(tx, passphrase, sim)


def test_resources_from_assembled_envelope(keypair, passphrase, operation, soroban_data, pool_id):
    key = contract_instance_key(pool_id)
    tx_data = soroban_data(
        instructions=1_234_567,
        read_bytes=4_096,
        write_bytes=512,
        resource_fee=40_000,
        read_only=[key],
        read_write=[key, key],
    )
    te = _assembled(keypair, passphrase, operation, tx_data)

    res = Resources.from_transaction(te)
    assert res == Resources(
        fee=5_100,
        refundable_fee=40_000,
        cpu_inst=1_234_567,
        read_bytes=4_096,
        write_bytes=512,
        read_only_entries=1,
        read_write_entries=2,
    )
    # Every accepted representation gives the same record
    assert Resources.from_transaction(te.to_xdr()) == res
    assert Resources.from_transaction(te.to_xdr_object()) == res


def test_assemble_leaves_input_untouched(keypair, passphrase, operation, soroban_data):
    tx = build_transaction(Account(keypair.public_key, 100), passphrase, operation, base_fee=100)
    before = tx.to_xdr()
    sim = SimulationResponse(latest_ledger=10, transaction_data=soroban_data(), min_resource_fee=900)
    assembled = assemble_transaction(tx, passphrase, sim)
    assert tx.to_xdr() == before
    assert assembled.transaction.fee == tx.transaction.fee + 900


def test_assemble_rejects_failed_simulation(keypair, passphrase, operation):
    tx = build_transaction(Account(keypair.public_key, 100), passphrase, operation)
    with pytest.raises(MalformedInputError):
        assemble_transaction(tx, passphrase, SimulationResponse(latest_ledger=1, error="boom"))


def test_assemble_rejects_simulation_without_transaction_data(keypair, passphrase, operation, soroban_data):
    tx = build_transaction(Account(keypair.public_key, 100), passphrase, operation)
    restore_only = SimulationResponse(
        latest_ledger=1, restore_preamble=RestorePreamble(transaction_data=soroban_data(), min_resource_fee=1)
    )
    with pytest.raises(MalformedInputError):
        assemble_transaction(tx, passphrase, restore_only)


def test_empty_resources_are_zero():
    assert Resources.empty() == Resources(0, 0, 0, 0, 0, 0, 0)


def test_envelope_without_soroban_data_is_malformed(keypair, passphrase, operation):
    tx = build_transaction(Account(keypair.public_key, 100), passphrase, operation)
    with pytest.raises(MalformedInputError) as ei:
        Resources.from_transaction(tx.to_xdr())
    assert ei.value.kind == "MalformedInput"


def test_fee_bump_envelope_is_malformed(keypair, passphrase, operation, soroban_data):
    inner = _assembled(keypair, passphrase, operation, soroban_data(resource_fee=5_000))
    bump = TransactionBuilder.build_fee_bump_transaction(
        fee_source=keypair.public_key,
        base_fee=10_000,
        inner_transaction_envelope=inner,
        network_passphrase=passphrase,
    )
    with pytest.raises(MalformedInputError):
        Resources.from_transaction(bump.to_xdr())


def test_garbage_xdr_is_malformed():
    with pytest.raises(MalformedInputError):
        Resources.from_transaction("not-base64-xdr!")


def test_unsupported_input_type():
    with pytest.raises(TypeError):
        Resources.from_transaction(42)  # type: ignore[arg-type]
