"""
Wallet session states.
"""

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict

from lumenpay.strkey import AccountAddress


class Disconnected(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: Literal["disconnected"] = "disconnected"


class Connecting(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: Literal["connecting"] = "connecting"
    wallet_id: str


class Connected(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: Literal["connected"] = "connected"
    address: AccountAddress
    wallet_id: str
    network: str
    rehydrated: bool = False


class Error(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: Literal["error"] = "error"
    message: str
    kind: str
    wallet_id: Optional[str] = None


WalletSessionState = Union[Disconnected, Connecting, Connected, Error]


class PersistedSession(BaseModel):
    """Record written for rehydration after a restart."""

    walletBackendId: str
    address: AccountAddress
    network: str
