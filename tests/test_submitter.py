import json
from urllib.parse import parse_qs

import httpx
import pytest
from stellar_sdk import xdr as stellar_xdr

from helpers import ALICE, BOB, Recorder, ledger_account
from lumenpay.builder import TransactionBuilder, make_payment
from lumenpay.client import raise_for_outcome
from lumenpay.errors import NetworkError, SubmissionRejected
from lumenpay.models.outcome import Accepted, NetworkFailure, Rejected
from lumenpay.models.transaction import DecoratedSignature, SignedEnvelope
from lumenpay.submitter import Submitter
from lumenpay.transport.horizon import HorizonClient
from lumenpay.transport.rpc import SorobanRpcClient


def signed_payment() -> SignedEnvelope:
    envelope = TransactionBuilder(clock=lambda: 0).build(ledger_account(), make_payment(BOB, "1"), 100)
    return SignedEnvelope(
        envelope=envelope,
        signatures=(DecoratedSignature(hint=ALICE.payload[-4:], signature=b"\x01" * 64),),
    )


def horizon(handler):
    recorder = Recorder(handler)
    return HorizonClient("https://horizon.test", transport=recorder.transport), recorder


class TestHorizonSubmit:
    @pytest.mark.asyncio
    async def test_accepted(self):
        signed = signed_payment()

        def handle(request):
            assert parse_qs(request.content.decode())["tx"] == [signed.to_xdr()]
            return httpx.Response(200, json={"hash": "ab" * 32, "ledger": 123, "created_at": "2024-05-01T00:00:00Z"})

        client, recorder = horizon(handle)
        outcome = await Submitter().submit(signed, client)

        assert outcome == Accepted(hash="ab" * 32, ledger=123, ledger_close_time="2024-05-01T00:00:00Z")
        assert recorder.count("POST", "/transactions") == 1

    @pytest.mark.asyncio
    async def test_rejected_with_result_codes(self):
        body = {
            "title": "Transaction Failed",
            "extras": {"result_codes": {"transaction": "tx_bad_seq"}},
        }
        client, recorder = horizon(lambda request: httpx.Response(400, json=body))
        outcome = await Submitter().submit(signed_payment(), client)
        assert outcome == Rejected(result_code="tx_bad_seq")
        assert recorder.count() == 1

    @pytest.mark.asyncio
    async def test_rejected_with_operation_codes(self):
        body = {"extras": {"result_codes": {"transaction": "tx_failed", "operations": ["op_underfunded"]}}}
        client, _ = horizon(lambda request: httpx.Response(400, json=body))
        outcome = await Submitter().submit(signed_payment(), client)
        assert outcome.result_code == "tx_failed"
        assert outcome.operation_result_codes == ("op_underfunded",)

        with pytest.raises(SubmissionRejected) as exc:
            raise_for_outcome(outcome)
        assert exc.value.operation_codes == ["op_underfunded"]

    @pytest.mark.asyncio
    async def test_gateway_timeout_is_a_network_failure(self):
        client, recorder = horizon(lambda request: httpx.Response(504, text="Gateway Timeout"))
        outcome = await Submitter().submit(signed_payment(), client)
        assert isinstance(outcome, NetworkFailure)
        assert recorder.count() == 1

        with pytest.raises(NetworkError):
            raise_for_outcome(outcome)

    @pytest.mark.asyncio
    async def test_transport_failure_is_not_retried(self):
        def refuse(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client, recorder = horizon(refuse)
        outcome = await Submitter().submit(signed_payment(), client)
        assert isinstance(outcome, NetworkFailure)
        assert recorder.count() == 1


class TestRpcSubmit:
    def _rpc(self, result):
        def handle(request):
            body = json.loads(request.content)
            assert body["method"] == "sendTransaction"
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

        return SorobanRpcClient("https://rpc.test", transport=httpx.MockTransport(handle))

    @pytest.mark.asyncio
    async def test_pending_is_accepted(self):
        rpc = self._rpc({"status": "PENDING", "hash": "cd" * 32, "latestLedger": 9, "latestLedgerCloseTime": "1700"})
        outcome = await Submitter().submit_rpc(signed_payment(), rpc)
        assert outcome == Accepted(hash="cd" * 32, ledger=9, ledger_close_time="1700")

    @pytest.mark.asyncio
    async def test_error_result_is_decoded(self):
        result = stellar_xdr.TransactionResult(
            fee_charged=stellar_xdr.Int64(100),
            result=stellar_xdr.TransactionResultResult(stellar_xdr.TransactionResultCode.txINSUFFICIENT_FEE),
            ext=stellar_xdr.TransactionResultExt(0),
        )
        rpc = self._rpc({"status": "ERROR", "hash": "cd" * 32, "errorResultXdr": result.to_xdr()})
        outcome = await Submitter().submit_rpc(signed_payment(), rpc)
        assert outcome == Rejected(result_code="tx_insufficient_fee")

    @pytest.mark.asyncio
    async def test_try_again_later(self):
        outcome = await Submitter().submit_rpc(signed_payment(), self._rpc({"status": "TRY_AGAIN_LATER"}))
        assert outcome == Rejected(result_code="try_again_later")

    @pytest.mark.asyncio
    async def test_unreachable_rpc(self):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        rpc = SorobanRpcClient("https://rpc.test", transport=httpx.MockTransport(refuse))
        assert isinstance(await Submitter().submit_rpc(signed_payment(), rpc), NetworkFailure)
