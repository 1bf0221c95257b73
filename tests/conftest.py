import pytest

from helpers import FakeBackend


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path, monkeypatch):
    """Keep config and session files out of the real home directory."""
    monkeypatch.setattr("lumenpay.config.CONFIG_FILE", tmp_path / "config.json")
    monkeypatch.setattr("lumenpay.config.SESSION_FILE", tmp_path / "session.json")
    for var in ("LUMENPAY_NETWORK", "LUMENPAY_HORIZON_URL", "LUMENPAY_RPC_URL", "LUMENPAY_WALLET",
                "LUMENPAY_SIGNER_URL", "LUMENPAY_REGISTRY_CONTRACT", "LUMENPAY_SECRET_SEED"):
        monkeypatch.delenv(var, raising=False)
