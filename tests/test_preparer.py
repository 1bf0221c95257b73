import httpx
import pytest

import stellar_sdk
from stellar_sdk import scval as sdk_scval
from stellar_sdk import xdr as stellar_xdr

from helpers import (
    ALICE,
    CONTRACT,
    FakeBackend,
    Recorder,
    account_entry_xdr,
    auth_entry_xdr,
    rpc_method,
    rpc_result,
    soroban_data_xdr,
)
from lumenpay.client import AsyncLumenPay
from lumenpay.config import Settings
from lumenpay.errors import InvalidAddress, SimulationError, ValidationError
from lumenpay.models.outcome import NetworkFailure, Prepared, SimulationFailed
from lumenpay.preparer import ContractInvocationPreparer
from lumenpay.registry import PaymentRegistry
from lumenpay.transport.rpc import SorobanRpcClient
from lumenpay.wallet.store import MemorySessionStore

RPC_URL = "https://rpc.test"
TX_DATA = soroban_data_xdr(5_000)
AUTH = auth_entry_xdr()


def simulation_ok(return_value=None, fee="5000", auth=()):
    first = {"auth": list(auth)}
    if return_value is not None:
        first["xdr"] = return_value.to_xdr()
    return {
        "transactionData": TX_DATA,
        "minResourceFee": fee,
        "results": [first],
        "latestLedger": 1000,
    }


def rpc_handler(simulation, entries=None):
    if entries is None:
        entries = [{"xdr": account_entry_xdr(ALICE, 1_000_000_000, 42)}]

    def handle(request: httpx.Request) -> httpx.Response:
        method = rpc_method(request)
        if method == "getLedgerEntries":
            return rpc_result(request, {"entries": entries, "latestLedger": 1000})
        if method == "simulateTransaction":
            return rpc_result(request, simulation)
        return rpc_result(request, {"status": "PENDING", "hash": "ab" * 32, "latestLedger": 1001})
    return handle


def make_preparer(handler) -> tuple[ContractInvocationPreparer, Recorder]:
    recorder = Recorder(handler)
    rpc = SorobanRpcClient(RPC_URL, transport=recorder.transport)
    return ContractInvocationPreparer(rpc), recorder


@pytest.mark.asyncio
async def test_prepare_assembles_simulated_resources():
    preparer, recorder = make_preparer(rpc_handler(simulation_ok(auth=[AUTH])))
    outcome = await preparer.prepare(ALICE, CONTRACT, "log_payment", [sdk_scval.to_uint32(1)])

    assert isinstance(outcome, Prepared)
    envelope = outcome.envelope
    assert envelope.sequence == 43
    assert envelope.fee == 100_000 + 5_000
    assert envelope.footprint.transaction_data == TX_DATA
    assert envelope.operations[0].auth == (AUTH,)
    sent = stellar_sdk.TransactionEnvelope.from_xdr(envelope.to_xdr(), stellar_sdk.Network.TESTNET_NETWORK_PASSPHRASE)
    assert sent.transaction.soroban_data.resource_fee.int64 == 5_000
    assert [rpc_method(r) for r in recorder.requests] == ["getLedgerEntries", "simulateTransaction"]


@pytest.mark.asyncio
async def test_failing_simulation_is_a_value_not_an_exception():
    preparer, _ = make_preparer(rpc_handler({"error": "HostError: Error(Contract, #3)", "latestLedger": 1000}))
    outcome = await preparer.prepare(ALICE, CONTRACT, "log_payment")
    assert isinstance(outcome, SimulationFailed)
    assert "HostError" in outcome.diagnostic


@pytest.mark.asyncio
async def test_archived_state_fails_simulation():
    sim = simulation_ok()
    sim["restorePreamble"] = {"transactionData": TX_DATA, "minResourceFee": "1"}
    preparer, _ = make_preparer(rpc_handler(sim))
    assert isinstance(await preparer.prepare(ALICE, CONTRACT, "f"), SimulationFailed)


@pytest.mark.asyncio
async def test_unknown_source_account_fails_simulation():
    preparer, recorder = make_preparer(rpc_handler(simulation_ok(), entries=[]))
    outcome = await preparer.prepare(ALICE, CONTRACT, "f")
    assert isinstance(outcome, SimulationFailed)
    assert recorder.count() == 1


@pytest.mark.asyncio
async def test_unreachable_rpc_is_a_network_failure():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    preparer, _ = make_preparer(refuse)
    outcome = await preparer.prepare(ALICE, CONTRACT, "f")
    assert isinstance(outcome, NetworkFailure)


@pytest.mark.asyncio
async def test_rpc_error_object_is_a_network_failure():
    def error(request):
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "nope"}})

    preparer, _ = make_preparer(error)
    assert isinstance(await preparer.prepare(ALICE, CONTRACT, "f"), NetworkFailure)


@pytest.mark.asyncio
async def test_bad_contract_address_raises():
    preparer, recorder = make_preparer(rpc_handler(simulation_ok()))
    with pytest.raises(InvalidAddress):
        await preparer.prepare(ALICE, str(ALICE), "f")
    assert recorder.requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize("function", ["", "x" * 33])
async def test_bad_function_name_raises(function):
    preparer, recorder = make_preparer(rpc_handler(simulation_ok()))
    with pytest.raises(ValidationError):
        await preparer.prepare(ALICE, CONTRACT, function)
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_query_returns_native_value():
    preparer, _ = make_preparer(rpc_handler(simulation_ok(sdk_scval.to_uint64(7))))
    assert await preparer.query(ALICE, CONTRACT, "get_payment_count") == 7


@pytest.mark.asyncio
async def test_query_raises_on_failed_simulation():
    preparer, _ = make_preparer(rpc_handler({"error": "boom"}))
    with pytest.raises(SimulationError):
        await preparer.query(ALICE, CONTRACT, "get_payment_count")


@pytest.mark.asyncio
async def test_registry_log_payment_arguments():
    preparer, _ = make_preparer(rpc_handler(simulation_ok()))
    registry = PaymentRegistry(preparer, CONTRACT)
    outcome = await registry.prepare_log_payment(ALICE, ALICE, ALICE, "25.5")

    assert isinstance(outcome, Prepared)
    op = outcome.envelope.operations[0]
    assert op.function == "log_payment"
    assert [a.type for a in op.args] == [
        stellar_xdr.SCValType.SCV_ADDRESS,
        stellar_xdr.SCValType.SCV_ADDRESS,
        stellar_xdr.SCValType.SCV_I128,
    ]
    assert sdk_scval.from_int128(op.args[2]) == 255_000_000


@pytest.mark.asyncio
async def test_registry_payment_count():
    preparer, _ = make_preparer(rpc_handler(simulation_ok(sdk_scval.to_uint64(12))))
    assert await PaymentRegistry(preparer, CONTRACT).payment_count(ALICE) == 12


@pytest.mark.asyncio
async def test_failed_simulation_never_reaches_the_signer():
    recorder = Recorder(rpc_handler({"error": "HostError: contract panicked"}))
    backend = FakeBackend()
    async with AsyncLumenPay(
        Settings(rpc_url=RPC_URL), backends={"fake": backend}, store=MemorySessionStore(),
        transport=recorder.transport,
    ) as client:
        await client.connect("fake")
        with pytest.raises(SimulationError):
            await client.invoke_contract(CONTRACT, "log_payment", [1])
    assert backend.calls["sign"] == 0
    assert recorder.count(method="POST") == 2


@pytest.mark.asyncio
async def test_invoke_contract_signs_and_sends():
    recorder = Recorder(rpc_handler(simulation_ok()))
    backend = FakeBackend()
    async with AsyncLumenPay(
        Settings(rpc_url=RPC_URL), backends={"fake": backend}, store=MemorySessionStore(),
        transport=recorder.transport,
    ) as client:
        await client.connect("fake")
        accepted = await client.invoke_contract(CONTRACT, "log_payment", [1])
    assert accepted.hash == "ab" * 32
    assert backend.calls["sign"] == 1
    assert [rpc_method(r) for r in recorder.requests][-1] == "sendTransaction"


@pytest.mark.asyncio
async def test_query_returns_non_utf8_strings_as_bytes():
    preparer, _ = make_preparer(rpc_handler(simulation_ok(sdk_scval.to_string(b"memo\xff\xfe"))))
    assert await preparer.query(ALICE, CONTRACT, "last_memo") == b"memo\xff\xfe"


@pytest.mark.asyncio
async def test_query_returns_addresses_as_address_objects():
    preparer, _ = make_preparer(rpc_handler(simulation_ok(sdk_scval.to_address(str(ALICE)))))
    assert await preparer.query(ALICE, CONTRACT, "owner") == ALICE


@pytest.mark.asyncio
async def test_undecodable_return_value_fails_simulation():
    sim = simulation_ok()
    sim["results"][0]["xdr"] = "AAAA/w=="
    preparer, _ = make_preparer(rpc_handler(sim))
    outcome = await preparer.prepare(ALICE, CONTRACT, "log_payment")
    assert isinstance(outcome, SimulationFailed)
    assert "undecodable" in outcome.diagnostic


@pytest.mark.asyncio
async def test_undecodable_account_entry_fails_simulation():
    preparer, recorder = make_preparer(rpc_handler(simulation_ok(), entries=[{"xdr": "AAAA"}]))
    outcome = await preparer.prepare(ALICE, CONTRACT, "log_payment")
    assert isinstance(outcome, SimulationFailed)
    assert recorder.count() == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("field, value", [
    ("transactionData", "AAAA"),
    ("auth", ["AAAA/w=="]),
])
async def test_undecodable_simulation_output_fails_simulation(field, value):
    sim = simulation_ok()
    if field == "auth":
        sim["results"][0]["auth"] = value
    else:
        sim[field] = value
    preparer, _ = make_preparer(rpc_handler(sim))
    outcome = await preparer.prepare(ALICE, CONTRACT, "log_payment")
    assert isinstance(outcome, SimulationFailed)
    assert "undecodable" in outcome.diagnostic
