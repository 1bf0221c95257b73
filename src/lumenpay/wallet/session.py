"""
WalletSession — connection state machine over a signer backend.

    Disconnected --connect--> Connecting --ok--> Connected
                                         --fail--> Error
    Error --dismiss--> Disconnected     Error --retry--> Connecting
    Connected --disconnect--> Disconnected

Every connect and disconnect bumps an epoch. An awaited result whose
epoch is no longer current is stale and discarded.
"""

import logging
from typing import Callable, Mapping, Optional, Union

from lumenpay.config import NetworkConfig
from lumenpay.errors import (
    GENERIC,
    WALLET_NOT_FOUND,
    HttpError,
    NetworkError,
    SessionStateError,
    SignerError,
    classify_signer_message,
)
from lumenpay.models.transaction import SignedEnvelope, TransactionEnvelope
from lumenpay.models.wallet import (
    Connected,
    Connecting,
    Disconnected,
    Error,
    PersistedSession,
    WalletSessionState,
)
from lumenpay.strkey import AccountAddress
from lumenpay.wallet.backends import SignerBackend
from lumenpay.wallet.store import MemorySessionStore, SessionStore

logger = logging.getLogger(__name__)

StateListener = Callable[[WalletSessionState], None]
BackendSource = Union[Mapping[str, SignerBackend], Callable[[str], Optional[SignerBackend]]]


class WalletSession:
    def __init__(
        self,
        backends: BackendSource,
        network: NetworkConfig,
        store: Optional[SessionStore] = None,
    ):
        self._backends = backends
        self._network = network
        self._store = store if store is not None else MemorySessionStore()
        self._state: WalletSessionState = Disconnected()
        self._backend: Optional[SignerBackend] = None
        self._epoch = 0
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> WalletSessionState:
        return self._state

    @property
    def connected(self) -> bool:
        return isinstance(self._state, Connected)

    @property
    def address(self) -> Optional[AccountAddress]:
        return self._state.address if isinstance(self._state, Connected) else None

    @property
    def network(self) -> NetworkConfig:
        return self._network

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` on every state change. Returns a cleanup function."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return remove

    def _set(self, state: WalletSessionState) -> None:
        logger.info("wallet %s -> %s", self._state.state, state.state)
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def _resolve(self, wallet_id: str) -> Optional[SignerBackend]:
        if callable(self._backends):
            return self._backends(wallet_id)
        return self._backends.get(wallet_id)

    async def connect(self, wallet_id: str) -> WalletSessionState:
        """Discover the signer and ask it for an address.

        Failures land in ``Error`` rather than raising. Returns the state
        the session is in once this attempt settles.
        """
        if isinstance(self._state, Connecting):
            raise SessionStateError("A wallet connection is already in progress")
        if isinstance(self._state, Connected):
            raise SessionStateError("Already connected; disconnect first")
        return await self._attempt(wallet_id)

    async def _attempt(self, wallet_id: str) -> WalletSessionState:
        self._epoch += 1
        epoch = self._epoch
        self._backend = None
        self._set(Connecting(wallet_id=wallet_id))

        try:
            backend = self._resolve(wallet_id)
            if backend is None:
                raise SignerError(f"No wallet named {wallet_id!r} was found", WALLET_NOT_FOUND)
            if not await backend.discover():
                raise SignerError(f"{backend.name or wallet_id} is not installed or not reachable", WALLET_NOT_FOUND)
            address = await backend.request_address()
        except SignerError as e:
            return self._fail(epoch, wallet_id, str(e), e.kind)
        except (NetworkError, HttpError) as e:
            return self._fail(epoch, wallet_id, f"Wallet unreachable: {e}", WALLET_NOT_FOUND)
        except Exception as e:
            message = str(e) or type(e).__name__
            return self._fail(epoch, wallet_id, message, classify_signer_message(message))

        if epoch != self._epoch:
            logger.info("discarding stale connect result for %s", wallet_id)
            return self._state

        self._backend = backend
        self._store.save(PersistedSession(
            walletBackendId=wallet_id, address=address, network=self._network.name,
        ))
        self._set(Connected(address=address, wallet_id=wallet_id, network=self._network.name))
        return self._state

    def _fail(self, epoch: int, wallet_id: str, message: str, kind: str) -> WalletSessionState:
        if epoch != self._epoch:
            logger.info("discarding stale connect failure for %s: %s", wallet_id, message)
            return self._state
        logger.warning("wallet connect failed (%s): %s", kind, message)
        self._set(Error(message=message, kind=kind, wallet_id=wallet_id))
        return self._state

    async def retry(self) -> WalletSessionState:
        if not isinstance(self._state, Error) or not self._state.wallet_id:
            raise SessionStateError("Nothing to retry")
        return await self._attempt(self._state.wallet_id)

    def dismiss(self) -> None:
        if not isinstance(self._state, Error):
            raise SessionStateError("No error to dismiss")
        self._set(Disconnected())

    def disconnect(self) -> None:
        """Drop the session from any state and forget the persisted record."""
        self._epoch += 1
        self._backend = None
        self._store.clear()
        if not isinstance(self._state, Disconnected):
            self._set(Disconnected())

    def rehydrate(self) -> WalletSessionState:
        """Restore ``Connected`` from the store without contacting the signer.

        The first ``sign`` is the liveness check. Records for another
        network or an unknown backend are ignored.
        """
        if not isinstance(self._state, Disconnected):
            return self._state
        record = self._store.load()
        if record is None:
            return self._state
        if record.network != self._network.name:
            logger.info("persisted wallet is for %s, not %s; ignoring", record.network, self._network.name)
            return self._state
        backend = self._resolve(record.walletBackendId)
        if backend is None:
            logger.info("persisted wallet backend %r is not available", record.walletBackendId)
            return self._state
        self._epoch += 1
        self._backend = backend
        self._set(Connected(
            address=record.address,
            wallet_id=record.walletBackendId,
            network=record.network,
            rehydrated=True,
        ))
        return self._state

    async def sign(self, envelope: TransactionEnvelope) -> SignedEnvelope:
        """Have the connected signer sign ``envelope``.

        A failing sign raises ``SignerError`` and leaves the session as it
        was. A result arriving after a disconnect is discarded.
        """
        state = self._state
        if not isinstance(state, Connected) or self._backend is None:
            raise SessionStateError("Connect a wallet before signing")
        if envelope.source != state.address:
            raise SignerError(
                f"Envelope source {envelope.source.short()} is not the connected account {state.address.short()}",
                GENERIC,
            )
        epoch = self._epoch
        try:
            signed = await self._backend.sign(envelope, self._network.passphrase)
        except SignerError:
            raise
        except (NetworkError, HttpError) as e:
            raise SignerError(f"Wallet unreachable: {e}", WALLET_NOT_FOUND) from e
        except Exception as e:
            raise SignerError(str(e) or type(e).__name__) from e
        if epoch != self._epoch:
            raise SessionStateError("The wallet session changed while signing; the signature was discarded")
        hint = state.address.payload[-4:]
        if not any(sig.hint == hint for sig in signed.signatures):
            raise SignerError("The wallet signed with a different account", GENERIC)
        logger.info("signed tx %s", signed.hash_hex(self._network.passphrase)[:12])
        return signed

    async def close(self) -> None:
        seen: set[int] = set()
        backends = [] if callable(self._backends) else list(self._backends.values())
        if self._backend is not None:
            backends.append(self._backend)
        for backend in backends:
            if id(backend) not in seen:
                seen.add(id(backend))
                await backend.close()
