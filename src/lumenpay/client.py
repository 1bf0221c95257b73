"""
LumenPay / AsyncLumenPay — main clients.

Compose the flow: build or prepare -> sign with the wallet session ->
submit -> outcome. Lower layers return outcome values; these clients
turn failed outcomes into exceptions.
"""

import asyncio
import logging
from typing import Any, Iterable, Optional

import httpx

from lumenpay.amount import from_stroops
from lumenpay.builder import TransactionBuilder, make_payment
from lumenpay.config import NetworkConfig, Settings, load_settings
from lumenpay.errors import ConfigError, NetworkError, SessionStateError, SimulationError, SubmissionRejected
from lumenpay.history import BalanceHistoryReconstructor
from lumenpay.models.account import LedgerAccount
from lumenpay.models.history import BalanceSample
from lumenpay.models.outcome import (
    Accepted,
    NetworkFailure,
    Prepared,
    PrepareOutcome,
    Rejected,
    SimulationFailed,
    SubmissionOutcome,
)
from lumenpay.models.wallet import WalletSessionState
from lumenpay.preparer import ContractInvocationPreparer
from lumenpay.registry import PaymentRegistry
from lumenpay.strkey import AccountAddress
from lumenpay.submitter import Submitter
from lumenpay.transport.friendbot import FriendbotClient
from lumenpay.transport.horizon import HorizonClient
from lumenpay.transport.rpc import SorobanRpcClient
from lumenpay.wallet.backends import Approver, KeypairBackend, RemoteSignerBackend, SignerBackend
from lumenpay.wallet.session import WalletSession
from lumenpay.wallet.store import SessionStore

logger = logging.getLogger(__name__)


def default_backends(
    settings: Settings,
    approve: Optional[Approver] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict[str, SignerBackend]:
    backends: dict[str, SignerBackend] = {KeypairBackend.id: KeypairBackend(approve=approve)}
    if settings.remote_signer_url:
        backends[RemoteSignerBackend.id] = RemoteSignerBackend(settings.remote_signer_url, transport=transport)
    return backends


def raise_for_outcome(outcome: SubmissionOutcome) -> Accepted:
    if isinstance(outcome, Rejected):
        raise SubmissionRejected(outcome.result_code, list(outcome.operation_result_codes))
    if isinstance(outcome, NetworkFailure):
        raise NetworkError(outcome.cause)
    return outcome


def raise_for_prepare(outcome: PrepareOutcome) -> Prepared:
    if isinstance(outcome, SimulationFailed):
        raise SimulationError(outcome.diagnostic)
    if isinstance(outcome, NetworkFailure):
        raise NetworkError(outcome.cause)
    return outcome


class AsyncLumenPay:
    """Async client (primary)."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        backends: Optional[dict[str, SignerBackend]] = None,
        store: Optional[SessionStore] = None,
        approve: Optional[Approver] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or load_settings()
        self.network: NetworkConfig = self.settings.network_config()

        self.horizon = HorizonClient(self.network.horizon_url, transport=transport)
        self.rpc = SorobanRpcClient(self.network.rpc_url, transport=transport)
        self.friendbot = (
            FriendbotClient(self.network.friendbot_url, transport=transport)
            if self.network.friendbot_url else None
        )

        self.session = WalletSession(
            backends if backends is not None else default_backends(self.settings, approve, transport),
            self.network,
            store if store is not None else SessionStore(self.settings.session_path()),
        )
        self.builder = TransactionBuilder(timeout=self.settings.tx_timeout)
        self.preparer = ContractInvocationPreparer(
            self.rpc, inclusion_fee=self.settings.contract_inclusion_fee, builder=self.builder,
        )
        self.submitter = Submitter()
        self.history = BalanceHistoryReconstructor()
        self.registry = PaymentRegistry(self.preparer, self.settings.registry_contract)

    async def __aenter__(self) -> "AsyncLumenPay":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    @property
    def address(self) -> Optional[AccountAddress]:
        return self.session.address

    def _require_address(self) -> AccountAddress:
        address = self.session.address
        if address is None:
            raise SessionStateError("No wallet connected. Run `lumenpay wallet connect` first.")
        return address

    # -- wallet --

    async def connect(self, wallet_id: Optional[str] = None) -> WalletSessionState:
        return await self.session.connect(wallet_id or self.settings.wallet_backend)

    def rehydrate(self) -> WalletSessionState:
        return self.session.rehydrate()

    def disconnect(self) -> None:
        self.session.disconnect()

    # -- reads --

    async def account(self, address: Optional[str] = None) -> LedgerAccount:
        return await self.horizon.get_account(address or self._require_address())

    async def balance(self, address: Optional[str] = None) -> str:
        """Native balance as a 7-decimal string."""
        account = await self.account(address)
        return from_stroops(account.native_balance)

    async def balance_history(self, address: Optional[str] = None, limit: Optional[int] = None,
                              page_size: int = 100) -> list[BalanceSample]:
        subject = AccountAddress.parse(address) if address else self._require_address()
        account, payments = await asyncio.gather(
            self.horizon.get_account(subject),
            self.horizon.payment_log(subject, limit=page_size),
        )
        return self.history.reconstruct(account.native_balance, payments, subject, limit=limit)

    async def fund(self, address: Optional[str] = None) -> bool:
        if self.friendbot is None:
            raise ConfigError(f"{self.network.name} has no friendbot")
        return await self.friendbot.fund(address or self._require_address())

    # -- writes --

    async def send_payment(self, destination: str, amount: str) -> Accepted:
        """Build, sign and submit a native payment.

        Input is validated before any network call. The account is read
        fresh for every payment.
        """
        make_payment(destination, amount)
        source = self._require_address()
        account, base_fee = await asyncio.gather(
            self.horizon.get_account(source),
            self.horizon.base_fee(),
        )
        envelope = self.builder.build_payment(account, destination, amount, max(base_fee, self.settings.base_fee))
        signed = await self.session.sign(envelope)
        return raise_for_outcome(await self.submitter.submit(signed, self.horizon))

    async def invoke_contract(self, contract: str, function: str, args: Iterable[Any] = ()) -> Accepted:
        source = self._require_address()
        prepared = raise_for_prepare(await self.preparer.prepare(source, contract, function, args))
        signed = await self.session.sign(prepared.envelope)
        return raise_for_outcome(await self.submitter.submit_rpc(signed, self.rpc))

    async def query_contract(self, contract: str, function: str, args: Iterable[Any] = ()) -> Any:
        return await self.preparer.query(self._require_address(), contract, function, args)

    async def log_payment(self, destination: str, amount: str, source: Optional[str] = None) -> Accepted:
        """Record a payment in the on-chain registry, signed by the wallet."""
        signer = self._require_address()
        prepared = raise_for_prepare(
            await self.registry.prepare_log_payment(signer, source or signer, destination, amount)
        )
        signed = await self.session.sign(prepared.envelope)
        return raise_for_outcome(await self.submitter.submit_rpc(signed, self.rpc))

    async def payment_count(self) -> int:
        return await self.registry.payment_count(self._require_address())

    async def close(self) -> None:
        await self.horizon.close()
        await self.rpc.close()
        if self.friendbot is not None:
            await self.friendbot.close()
        await self.session.close()


class LumenPay:
    """Sync wrapper around AsyncLumenPay. Runs the event loop internally."""

    def __init__(self, settings: Optional[Settings] = None, **kwargs: Any):
        self._async = AsyncLumenPay(settings, **kwargs)
        self._loop = asyncio.new_event_loop()

    def _run(self, coro: Any) -> Any:
        return self._loop.run_until_complete(coro)

    def __enter__(self) -> "LumenPay":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    @property
    def session(self) -> WalletSession:
        return self._async.session

    @property
    def address(self) -> Optional[AccountAddress]:
        return self._async.address

    @property
    def network(self) -> NetworkConfig:
        return self._async.network

    def connect(self, wallet_id: Optional[str] = None) -> WalletSessionState:
        return self._run(self._async.connect(wallet_id))

    def rehydrate(self) -> WalletSessionState:
        return self._async.rehydrate()

    def disconnect(self) -> None:
        self._async.disconnect()

    def account(self, address: Optional[str] = None) -> LedgerAccount:
        return self._run(self._async.account(address))

    def balance(self, address: Optional[str] = None) -> str:
        return self._run(self._async.balance(address))

    def balance_history(self, address: Optional[str] = None, limit: Optional[int] = None) -> list[BalanceSample]:
        return self._run(self._async.balance_history(address, limit))

    def fund(self, address: Optional[str] = None) -> bool:
        return self._run(self._async.fund(address))

    def send_payment(self, destination: str, amount: str) -> Accepted:
        return self._run(self._async.send_payment(destination, amount))

    def invoke_contract(self, contract: str, function: str, args: Iterable[Any] = ()) -> Accepted:
        return self._run(self._async.invoke_contract(contract, function, args))

    def query_contract(self, contract: str, function: str, args: Iterable[Any] = ()) -> Any:
        return self._run(self._async.query_contract(contract, function, args))

    def log_payment(self, destination: str, amount: str, source: Optional[str] = None) -> Accepted:
        return self._run(self._async.log_payment(destination, amount, source))

    def payment_count(self) -> int:
        return self._run(self._async.payment_count())

    def close(self) -> None:
        try:
            self._run(self._async.close())
        finally:
            self._loop.close()
