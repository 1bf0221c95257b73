"""
Signer backends.

A backend is anything that can ``discover``, ``request_address`` and
``sign``. The session only talks to that capability set; it never looks
at which backend it holds.
"""

import inspect
import logging
import os
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, Union

import httpx
from stellar_sdk import Keypair

from lumenpay.errors import (
    GENERIC,
    USER_REJECTED,
    WALLET_NOT_FOUND,
    HttpError,
    InvalidAddress,
    NetworkError,
    SignerError,
    XdrError,
)
from lumenpay.models.transaction import DecoratedSignature, SignedEnvelope, TransactionEnvelope
from lumenpay.strkey import AccountAddress
from lumenpay.transport.envelope import signatures_from_signed_xdr
from lumenpay.transport.http import HttpClient

logger = logging.getLogger(__name__)

SEED_ENV_VAR = "LUMENPAY_SECRET_SEED"

Approver = Callable[[TransactionEnvelope], Union[bool, Awaitable[bool]]]


class SignerBackend(ABC):
    id: str = ""
    name: str = ""

    @abstractmethod
    async def discover(self) -> bool:
        """Whether the signer is present and reachable."""

    @abstractmethod
    async def request_address(self) -> AccountAddress:
        """Ask the signer which account it signs for."""

    @abstractmethod
    async def sign(self, envelope: TransactionEnvelope, network_passphrase: str) -> SignedEnvelope:
        """Return a new signed envelope; may wait on a human."""

    async def close(self) -> None:
        pass


class KeypairBackend(SignerBackend):
    """Signs locally with an ed25519 secret seed.

    The seed comes from the constructor or ``LUMENPAY_SECRET_SEED``. An
    optional ``approve`` callback stands in for the human confirmation a
    wallet app would show; returning False rejects the request.
    """

    id = "keypair"
    name = "Local keypair"

    def __init__(self, secret_seed: Optional[str] = None, approve: Optional[Approver] = None):
        self._seed = secret_seed
        self._approve = approve
        self._keypair: Optional[Keypair] = None

    def _signing_keypair(self) -> Keypair:
        if self._keypair is None:
            seed = self._seed or os.environ.get(SEED_ENV_VAR)
            if not seed:
                raise SignerError(f"No secret seed found; set {SEED_ENV_VAR}", WALLET_NOT_FOUND)
            try:
                self._keypair = Keypair.from_secret(seed.strip())
            except ValueError:
                # never echo the seed back
                raise SignerError("Secret seed not found or malformed", WALLET_NOT_FOUND) from None
        return self._keypair

    async def discover(self) -> bool:
        try:
            self._signing_keypair()
        except SignerError:
            return False
        return True

    async def request_address(self) -> AccountAddress:
        return AccountAddress.parse(self._signing_keypair().public_key)

    async def sign(self, envelope: TransactionEnvelope, network_passphrase: str) -> SignedEnvelope:
        keypair = self._signing_keypair()
        if self._approve is not None:
            approved = self._approve(envelope)
            if inspect.isawaitable(approved):
                approved = await approved
            if not approved:
                raise SignerError("User rejected the signing request", USER_REJECTED)
        decorated = keypair.sign_decorated(envelope.hash(network_passphrase))
        return SignedEnvelope(
            envelope=envelope,
            signatures=(DecoratedSignature(hint=decorated.signature_hint, signature=decorated.signature),),
        )


class RemoteSignerBackend(SignerBackend):
    """An external signer service reached over HTTP.

    ``GET /discover`` -> ``{"available": bool}``,
    ``GET /address`` -> ``{"address", "error"?}``,
    ``POST /sign`` with ``{"xdr", "networkPassphrase"}`` ->
    ``{"signedTxXdr", "error"?}``. Errors are free text and are
    classified by the session's error rules.
    """

    id = "remote"
    name = "Remote signer"

    def __init__(self, url: str, transport: Optional[httpx.AsyncBaseTransport] = None, timeout: Optional[float] = None):
        # No timeout by default: signing waits on a person.
        self._http = HttpClient(url, timeout=timeout, transport=transport)

    async def discover(self) -> bool:
        try:
            data = await self._http.get("/discover")
        except (NetworkError, HttpError) as e:
            logger.info("remote signer not reachable: %s", e)
            return False
        return bool((data or {}).get("available", False))

    async def _request(self, method: str, path: str, body: Optional[dict] = None) -> dict:
        try:
            if method == "GET":
                data = await self._http.get(path)
            else:
                data = await self._http.post(path, body)
        except NetworkError as e:
            raise SignerError(f"Remote signer unreachable: {e}", WALLET_NOT_FOUND) from e
        except HttpError as e:
            message = (e.body or {}).get("error") if isinstance(e.body, dict) else None
            raise SignerError(message or str(e)) from e
        if not isinstance(data, dict):
            raise SignerError("Remote signer returned an unexpected response", GENERIC)
        if data.get("error"):
            raise SignerError(str(data["error"]))
        return data

    async def request_address(self) -> AccountAddress:
        data = await self._request("GET", "/address")
        try:
            return AccountAddress.parse(data.get("address", ""))
        except InvalidAddress as e:
            raise SignerError(f"Remote signer returned an invalid address: {e}", GENERIC) from e

    async def sign(self, envelope: TransactionEnvelope, network_passphrase: str) -> SignedEnvelope:
        data = await self._request("POST", "/sign", {
            "xdr": envelope.to_xdr(),
            "networkPassphrase": network_passphrase,
        })
        signed_xdr = data.get("signedTxXdr")
        if not signed_xdr:
            raise SignerError("Remote signer returned no signed transaction", GENERIC)
        try:
            signatures = signatures_from_signed_xdr(envelope, signed_xdr, network_passphrase)
        except XdrError as e:
            raise SignerError(str(e), GENERIC) from e
        if not signatures:
            raise SignerError("Remote signer returned an unsigned transaction", GENERIC)
        return SignedEnvelope(envelope=envelope, signatures=signatures)

    async def close(self) -> None:
        await self._http.close()


BackendFactory = Callable[..., SignerBackend]

BACKENDS: dict[str, BackendFactory] = {
    KeypairBackend.id: KeypairBackend,
    RemoteSignerBackend.id: RemoteSignerBackend,
}
