"""Shared fakes: addresses, accounts, a scriptable signer and mock transports."""

import asyncio
import json
from typing import Any, Callable, Optional

import httpx
from stellar_sdk import Keypair, SorobanDataBuilder
from stellar_sdk import xdr as stellar_xdr

from lumenpay.amount import to_stroops
from lumenpay.config import NETWORKS
from lumenpay.errors import SignerError
from lumenpay.models.account import LedgerAccount
from lumenpay.models.transaction import NATIVE, DecoratedSignature, SignedEnvelope
from lumenpay.strkey import AccountAddress, ContractAddress
from lumenpay.wallet.backends import SignerBackend

TESTNET = NETWORKS["testnet"]


def account_address(n: int) -> AccountAddress:
    return AccountAddress.from_payload(bytes([n]) * 32)


ALICE = account_address(1)
BOB = account_address(2)
CONTRACT = ContractAddress.from_payload(bytes([9]) * 32)


def ledger_account(address: AccountAddress = ALICE, balance: str = "100.0000000", sequence: int = 42) -> LedgerAccount:
    return LedgerAccount(address=address, sequence=sequence, balances={NATIVE: to_stroops(balance)})


def horizon_account_json(address: AccountAddress = ALICE, balance: str = "100.0000000", sequence: int = 42) -> dict:
    return {
        "id": str(address),
        "account_id": str(address),
        "sequence": str(sequence),
        "balances": [{"asset_type": "native", "balance": balance}],
    }


def account_entry_xdr(address: AccountAddress, balance: int, sequence: int) -> str:
    entry = stellar_xdr.AccountEntry(
        account_id=Keypair.from_public_key(str(address)).xdr_account_id(),
        balance=stellar_xdr.Int64(balance),
        seq_num=stellar_xdr.SequenceNumber(stellar_xdr.Int64(sequence)),
        num_sub_entries=stellar_xdr.Uint32(0),
        inflation_dest=None,
        flags=stellar_xdr.Uint32(0),
        home_domain=stellar_xdr.String32(b""),
        thresholds=stellar_xdr.Thresholds(b"\x01\x00\x00\x00"),
        signers=[],
        ext=stellar_xdr.AccountEntryExt(0),
    )
    return stellar_xdr.LedgerEntryData(stellar_xdr.LedgerEntryType.ACCOUNT, account=entry).to_xdr()


def soroban_data_xdr(resource_fee: int = 0) -> str:
    return SorobanDataBuilder().set_resource_fee(resource_fee).build().to_xdr()


def auth_entry_xdr(function: str = "log_payment") -> str:
    """A source-account authorization entry for ``CONTRACT.function()``."""
    invocation = stellar_xdr.SorobanAuthorizedInvocation(
        function=stellar_xdr.SorobanAuthorizedFunction(
            stellar_xdr.SorobanAuthorizedFunctionType.SOROBAN_AUTHORIZED_FUNCTION_TYPE_CONTRACT_FN,
            contract_fn=stellar_xdr.InvokeContractArgs(
                contract_address=CONTRACT.to_sdk().to_xdr_sc_address(),
                function_name=stellar_xdr.SCSymbol(function.encode()),
                args=[],
            ),
        ),
        sub_invocations=[],
    )
    return stellar_xdr.SorobanAuthorizationEntry(
        credentials=stellar_xdr.SorobanCredentials(
            stellar_xdr.SorobanCredentialsType.SOROBAN_CREDENTIALS_SOURCE_ACCOUNT
        ),
        root_invocation=invocation,
    ).to_xdr()


class FakeBackend(SignerBackend):
    """In-memory signer that counts calls and can be told to fail."""

    id = "fake"
    name = "Fake wallet"

    def __init__(
        self,
        address: AccountAddress = ALICE,
        available: bool = True,
        address_error: Optional[str] = None,
        sign_error: Optional[str] = None,
        gate: Optional[asyncio.Event] = None,
        address_exc: Optional[Exception] = None,
        sign_exc: Optional[Exception] = None,
    ):
        self.address = address
        self.available = available
        self.address_error = address_error
        self.sign_error = sign_error
        self.gate = gate
        self.address_exc = address_exc
        self.sign_exc = sign_exc
        self.calls = {"discover": 0, "request_address": 0, "sign": 0, "close": 0}

    async def discover(self) -> bool:
        self.calls["discover"] += 1
        return self.available

    async def request_address(self) -> AccountAddress:
        self.calls["request_address"] += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.address_exc is not None:
            raise self.address_exc
        if self.address_error:
            raise SignerError(self.address_error)
        return self.address

    async def sign(self, envelope, network_passphrase: str) -> SignedEnvelope:
        self.calls["sign"] += 1
        if self.sign_exc is not None:
            raise self.sign_exc
        if self.sign_error:
            raise SignerError(self.sign_error)
        return SignedEnvelope(
            envelope=envelope,
            signatures=(DecoratedSignature(hint=self.address.payload[-4:], signature=b"\x01" * 64),),
        )

    async def close(self) -> None:
        self.calls["close"] += 1


class Recorder:
    """httpx.MockTransport wrapper that keeps every request it saw."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: list[httpx.Request] = []
        self._handler = handler
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    def count(self, method: Optional[str] = None, path: Optional[str] = None) -> int:
        return sum(
            1 for r in self.requests
            if (method is None or r.method == method) and (path is None or r.url.path == path)
        )


def rpc_method(request: httpx.Request) -> str:
    return json.loads(request.content)["method"]


def rpc_result(request: httpx.Request, result: Any) -> httpx.Response:
    body = json.loads(request.content)
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})
