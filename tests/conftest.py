import pytest
from stellar_sdk import Account, Address, Keypair, Network, StrKey, TransactionEnvelope, scval
from stellar_sdk import xdr as stellar_xdr

from blend_sdk.config import Network as BlendNetwork
from blend_sdk.ledger_entries import contract_data_key
from blend_sdk.tx.build import contract_call
from blend_sdk.types import LedgerEntryResult

PASSPHRASE = Network.TESTNET_NETWORK_PASSPHRASE


@pytest.fixture(autouse=True)
def _clean_blend_env(monkeypatch):
    for name in (
        "RPC_URL",
        "NETWORK_PASSPHRASE",
        "TIMEOUT",
        "MAX_RETRIES",
        "BACKOFF",
        "POLL_INTERVAL",
        "TX_TIMEOUT",
        "USER_AGENT",
    ):
        monkeypatch.delenv(f"BLEND_{name}", raising=False)


@pytest.fixture
def passphrase():
    return PASSPHRASE


@pytest.fixture
def network():
    return BlendNetwork(rpc="http://rpc.invalid", passphrase=PASSPHRASE)


@pytest.fixture
def keypair():
    return Keypair.from_raw_ed25519_seed(bytes([7]) * 32)


@pytest.fixture
def pool_id():
    return StrKey.encode_contract(bytes([1]) * 32)


@pytest.fixture
def asset_id():
    return StrKey.encode_contract(bytes([2]) * 32)


@pytest.fixture
def sign(keypair):
    def _sign(envelope_xdr: str) -> str:
        te = TransactionEnvelope.from_xdr(envelope_xdr, PASSPHRASE)
        te.sign(keypair)
        return te.to_xdr()

    return _sign


@pytest.fixture
def operation(pool_id, keypair):
    return contract_call(pool_id, "get_positions", [scval.to_address(keypair.public_key)])


def build_soroban_data(
    *,
    instructions=1_000_000,
    read_bytes=2_000,
    write_bytes=300,
    resource_fee=50_000,
    read_only=(),
    read_write=(),
) -> str:
    data = stellar_xdr.SorobanTransactionData(
        ext=stellar_xdr.ExtensionPoint(0),
        resources=stellar_xdr.SorobanResources(
            footprint=stellar_xdr.LedgerFootprint(read_only=list(read_only), read_write=list(read_write)),
            instructions=stellar_xdr.Uint32(instructions),
            read_bytes=stellar_xdr.Uint32(read_bytes),
            write_bytes=stellar_xdr.Uint32(write_bytes),
        ),
        resource_fee=stellar_xdr.Int64(resource_fee),
    )
    return data.to_xdr()


@pytest.fixture
def soroban_data():
    """Factory for base64 SorobanTransactionData."""
    return build_soroban_data


def build_contract_entry(contract_id: str, key: stellar_xdr.SCVal, val: stellar_xdr.SCVal) -> LedgerEntryResult:
    data = stellar_xdr.LedgerEntryData(
        type=stellar_xdr.LedgerEntryType.CONTRACT_DATA,
        contract_data=stellar_xdr.ContractDataEntry(
            ext=stellar_xdr.ExtensionPoint(0),
            contract=Address(contract_id).to_xdr_sc_address(),
            key=key,
            durability=stellar_xdr.ContractDataDurability.PERSISTENT,
            val=val,
        ),
    )
    return LedgerEntryResult(key=contract_data_key(contract_id, key).to_xdr(), xdr=data.to_xdr())


@pytest.fixture
def contract_entry():
    """Factory for contract-data ledger entries as returned by getLedgerEntries."""
    return build_contract_entry


def struct(**fields) -> stellar_xdr.SCVal:
    return scval.to_map({scval.to_symbol(k): v for k, v in fields.items()})


@pytest.fixture
def scmap():
    """Factory for contract structs: symbol-keyed SCVal maps."""
    return struct


class FakeLedger:
    """
    In-memory ledger implementing the LedgerAccess protocol.

    - `simulation` / `submission` are returned as-is
    - `polled` is consumed in order; the last response repeats
    - `entries` maps base64 LedgerKey -> LedgerEntryResult; missing keys are omitted
    """

    def __init__(self, simulation=None, submission=None, polled=(), entries=None, sequence=100):
        self.simulation = simulation
        self.submission = submission
        self.polled = list(polled)
        self.entries = dict(entries or {})
        self.sequence = sequence
        self.calls = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.calls.append(("close",))

    def get_account(self, account_id):
        self.calls.append(("get_account", account_id))
        return Account(account_id, self.sequence)

    def simulate_transaction(self, te):
        self.calls.append(("simulate_transaction", te.hash_hex()))
        return self.simulation

    def send_transaction(self, te):
        self.calls.append(("send_transaction", te.hash_hex()))
        return self.submission

    def get_transaction(self, tx_hash):
        self.calls.append(("get_transaction", tx_hash))
        if len(self.polled) > 1:
            return self.polled.pop(0)
        return self.polled[0]

    def get_ledger_entries(self, keys):
        self.calls.append(("get_ledger_entries", len(keys)))
        found = []
        for key in keys:
            entry = self.entries.get(key.to_xdr())
            if entry is not None:
                found.append(entry)
        return found

    def methods(self):
        return [c[0] for c in self.calls]


@pytest.fixture
def fake_ledger():
    """Factory for FakeLedger instances."""
    return FakeLedger


def build_instance(**storage) -> stellar_xdr.SCVal:
    """Contract instance value whose storage maps symbol keys to `storage` values."""
    return stellar_xdr.SCVal(
        type=stellar_xdr.SCValType.SCV_CONTRACT_INSTANCE,
        instance=stellar_xdr.SCContractInstance(
            executable=stellar_xdr.ContractExecutable(
                type=stellar_xdr.ContractExecutableType.CONTRACT_EXECUTABLE_WASM,
                wasm_hash=stellar_xdr.Hash(bytes(32)),
            ),
            storage=stellar_xdr.SCMap(
                sc_map=[stellar_xdr.SCMapEntry(key=scval.to_symbol(k), val=v) for k, v in storage.items()]
            ),
        ),
    )


@pytest.fixture
def contract_instance():
    """Factory for contract instance SCVals."""
    return build_instance


@pytest.fixture
def token_instance_entry(asset_id):
    """Instance entry of the reserve asset, carrying token metadata."""
    metadata = struct(
        decimal=scval.to_uint32(7),
        name=scval.to_string("USD Coin"),
        symbol=scval.to_string("USDC"),
    )
    instance_key = stellar_xdr.SCVal(type=stellar_xdr.SCValType.SCV_LEDGER_KEY_CONTRACT_INSTANCE)
    return build_contract_entry(asset_id, instance_key, build_instance(METADATA=metadata))
