"""
Configuration: network presets plus user settings.

Settings live in ``~/.lumenpay/config.json``; ``LUMENPAY_*`` environment
variables override the file.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ValidationError as PydanticValidationError

from lumenpay.errors import ConfigError

CONFIG_DIR = Path.home() / ".lumenpay"
CONFIG_FILE = CONFIG_DIR / "config.json"
SESSION_FILE = CONFIG_DIR / "session.json"

DEFAULT_BASE_FEE = 100
DEFAULT_CONTRACT_INCLUSION_FEE = 100_000
DEFAULT_TX_TIMEOUT = 30
DEFAULT_REGISTRY_CONTRACT = "CDXQDRTF2BRCD63QVUBUUDC2DIQHHCDBAPA6P3UD5EVRMRN4O327VERK"


class NetworkConfig(BaseModel):
    name: str
    passphrase: str
    horizon_url: str
    rpc_url: str
    friendbot_url: Optional[str] = None


NETWORKS: dict[str, NetworkConfig] = {
    "testnet": NetworkConfig(
        name="testnet",
        passphrase="Test SDF Network ; September 2015",
        horizon_url="https://horizon-testnet.stellar.org",
        rpc_url="https://soroban-testnet.stellar.org",
        friendbot_url="https://friendbot.stellar.org",
    ),
    "futurenet": NetworkConfig(
        name="futurenet",
        passphrase="Test SDF Future Network ; October 2022",
        horizon_url="https://horizon-futurenet.stellar.org",
        rpc_url="https://rpc-futurenet.stellar.org",
        friendbot_url="https://friendbot-futurenet.stellar.org",
    ),
    "public": NetworkConfig(
        name="public",
        passphrase="Public Global Stellar Network ; September 2015",
        horizon_url="https://horizon.stellar.org",
        rpc_url="https://mainnet.sorobanrpc.com",
    ),
}

_ENV_OVERRIDES = {
    "LUMENPAY_NETWORK": "network",
    "LUMENPAY_HORIZON_URL": "horizon_url",
    "LUMENPAY_RPC_URL": "rpc_url",
    "LUMENPAY_WALLET": "wallet_backend",
    "LUMENPAY_SIGNER_URL": "remote_signer_url",
    "LUMENPAY_REGISTRY_CONTRACT": "registry_contract",
}


class Settings(BaseModel):
    network: str = "testnet"
    horizon_url: Optional[str] = None
    rpc_url: Optional[str] = None
    wallet_backend: str = "keypair"
    remote_signer_url: Optional[str] = None
    base_fee: int = DEFAULT_BASE_FEE
    contract_inclusion_fee: int = DEFAULT_CONTRACT_INCLUSION_FEE
    tx_timeout: int = DEFAULT_TX_TIMEOUT
    registry_contract: str = DEFAULT_REGISTRY_CONTRACT
    session_file: Optional[str] = None

    def network_config(self) -> NetworkConfig:
        preset = NETWORKS.get(self.network)
        if preset is None:
            raise ConfigError(f"Unknown network {self.network!r}. Choose one of: {', '.join(NETWORKS)}")
        overrides = {k: v for k, v in (("horizon_url", self.horizon_url), ("rpc_url", self.rpc_url)) if v}
        return preset.model_copy(update=overrides)

    def session_path(self) -> Path:
        return Path(self.session_file).expanduser() if self.session_file else SESSION_FILE


def _load_config_file(path: Path) -> dict[str, Any]:
    try:
        return json.loads(path.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def load_settings(path: Optional[Path] = None, env: Optional[dict[str, str]] = None) -> Settings:
    data = _load_config_file(path or CONFIG_FILE)
    environ = os.environ if env is None else env
    for var, key in _ENV_OVERRIDES.items():
        if environ.get(var):
            data[key] = environ[var]
    try:
        return Settings.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def save_settings(settings: Settings, path: Optional[Path] = None) -> None:
    target = path or CONFIG_FILE
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(settings.model_dump(exclude_defaults=True), indent=2))
